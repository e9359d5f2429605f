"""Shared test fixtures."""

import fnmatch
from datetime import datetime, timedelta, timezone

import pytest

NOT_A_REPO = "fatal: not a git repository (or any of the parent directories): .git"
EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def mock_process(monkeypatch):
    """Mock process.run for tests; scripted responses, recorded calls."""
    from conductor_deploy import process

    calls = []
    responses = []

    def fake_run(args, cwd=None, env=None):
        calls.append(("run", args, cwd, env))
        if responses:
            return responses.pop(0)
        return process.Result(returncode=0, stdout="", stderr="")

    monkeypatch.setattr(process, "run", fake_run)

    return type("MockProcess", (), {"calls": calls, "responses": responses})()


class FakeGit:
    """In-memory git tag store answering the command lines git.py issues."""

    def __init__(self):
        self.is_repo = True
        self.head = "aaaaaaa"
        self.commits = {"aaaaaaa"}
        self.tags = {}  # name -> (commit, created)
        self.remote = {}  # name -> commit
        self.fail = {}  # (operation, name) -> stderr
        self.calls = []
        self._clock = 0

    # -- setup helpers ------------------------------------------------------

    def commit(self, sha: str) -> str:
        self.commits.add(sha)
        self.head = sha
        return sha

    def add_tag(self, name, commit=None, created=None):
        commit = commit or self.head
        self.commits.add(commit)
        self.tags[name] = (commit, created or self._tick())

    def tag_commit(self, name):
        return self.tags[name][0] if name in self.tags else None

    def _tick(self):
        self._clock += 1
        return EPOCH + timedelta(minutes=self._clock)

    # -- command dispatch ---------------------------------------------------

    def run(self, args, cwd=None, env=None):
        from conductor_deploy.process import Result

        self.calls.append(args)
        assert args[0] == "git"
        if not self.is_repo:
            return Result(128, "", NOT_A_REPO)
        cmd, rest = args[1], args[2:]
        handler = getattr(self, f"_{cmd.replace('-', '_')}")
        return handler(rest, Result)

    def _resolve(self, ref):
        if ref == "HEAD":
            return self.head
        if ref in self.tags:
            return self.tags[ref][0]
        if ref in self.commits:
            return ref
        return None

    def _rev_parse(self, rest, Result):
        if rest == ["--is-inside-work-tree"]:
            return Result(0, "true\n", "")
        ref = rest[-1].replace("^{commit}", "")
        if ("rev-parse", ref) in self.fail:
            return Result(128, "", self.fail[("rev-parse", ref)])
        commit = self._resolve(ref)
        if commit is None:
            return Result(128, "", f"fatal: ambiguous argument '{ref}'")
        return Result(0, commit + "\n", "")

    def _tag(self, rest, Result):
        if rest[0] == "-l":
            return self._tag_list(rest[1:], Result)
        if rest[0] == "-d":
            name = rest[1]
            if ("delete", name) in self.fail:
                return Result(1, "", self.fail[("delete", name)])
            if name not in self.tags:
                return Result(1, "", f"error: tag '{name}' not found.")
            del self.tags[name]
            return Result(0, f"Deleted tag '{name}'\n", "")

        name = rest[0]
        if ("create", name) in self.fail:
            return Result(128, "", self.fail[("create", name)])
        if name in self.tags:
            return Result(128, "", f"fatal: tag '{name}' already exists")
        commit = self._resolve(rest[1] if len(rest) > 1 else "HEAD")
        if commit is None:
            return Result(128, "", "fatal: Failed to resolve target")
        self.tags[name] = (commit, self._tick())
        return Result(0, "", "")

    def _tag_list(self, rest, Result):
        patterns = [a for a in rest if not a.startswith("--")]
        items = [
            (name, commit, created)
            for name, (commit, created) in self.tags.items()
            if any(fnmatch.fnmatchcase(name, p) for p in patterns)
        ]
        if "--sort=-creatordate" in rest:
            items.sort(key=lambda i: i[2], reverse=True)
        out = "".join(f"{n}|{c}|{d.isoformat()}\n" for n, c, d in items)
        return Result(0, out, "")

    def _log(self, rest, Result):
        name = rest[-1]
        if name not in self.tags:
            return Result(128, "", f"fatal: bad revision '{name}'")
        return Result(0, self.tags[name][1].isoformat() + "\n", "")

    def _push(self, rest, Result):
        remote, target = rest[0], rest[1]
        force = "--force" in rest
        if target.startswith(":refs/tags/"):
            name = target[len(":refs/tags/"):]
            if ("delete-remote", name) in self.fail:
                return Result(1, "", self.fail[("delete-remote", name)])
            self.remote.pop(name, None)
            return Result(0, "", "")

        name = "--tags" if target == "--tags" else target[len("refs/tags/"):]
        if ("push", name) in self.fail:
            return Result(1, "", self.fail[("push", name)])
        names = list(self.tags) if name == "--tags" else [name]
        for n in names:
            commit = self.tags[n][0]
            if n in self.remote and self.remote[n] != commit and not force:
                return Result(1, "", f"! [rejected] {n} (already exists)")
            self.remote[n] = commit
        return Result(0, "", "")


@pytest.fixture
def fake_git(monkeypatch):
    from conductor_deploy import process

    git = FakeGit()
    monkeypatch.setattr(process, "run", git.run)
    return git
