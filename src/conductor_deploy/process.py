"""Subprocess wrapper — the single mock seam for all tests."""

import os
import subprocess
from dataclasses import dataclass


@dataclass
class Result:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run(args: list[str], cwd: str | None = None, env: dict[str, str] | None = None) -> Result:
    """Run a command and capture output.

    Never raises for a failing command. A command that cannot be started
    (missing executable or missing cwd) comes back as returncode 127.
    """
    merged_env = None
    if env is not None:
        merged_env = {**os.environ, **env}

    try:
        proc = subprocess.run(
            args,
            capture_output=True,
            text=True,
            env=merged_env,
            cwd=cwd,
        )
    except OSError as e:
        return Result(returncode=127, stdout="", stderr=str(e))
    return Result(returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
