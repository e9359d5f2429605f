"""Git tag adapter — the only module that talks to git.

Reads degrade to empty results outside a repository. Writes raise
``NotARepository``, ``TagMutationFailed`` or, for remote deletes,
``PartialRemoteFailure``.
"""

from datetime import datetime

from conductor_deploy import process
from conductor_deploy import tags as tag_codec
from conductor_deploy.errors import NotARepository, PartialRemoteFailure, TagMutationFailed
from conductor_deploy.tags import Tag

TAG_PATTERNS = ["components/*/*/*", "logic/*/*/*"]

# Peeled commit for annotated tags, object name for lightweight ones.
_COMMIT_FORMAT = "%(if)%(*objectname)%(then)%(*objectname:short)%(else)%(objectname:short)%(end)"
LIST_FORMAT = f"%(refname:strip=2)|{_COMMIT_FORMAT}|%(creatordate:iso-strict)"


# Error matching reads git's stderr, so keep it untranslated.
GIT_ENV = {"LC_ALL": "C"}


def _git(root: str, *args: str) -> process.Result:
    return process.run(["git", *args], cwd=root, env=GIT_ENV)


def _parse_date(value: str) -> datetime | None:
    value = value.strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def is_repository(root: str) -> bool:
    return _git(root, "rev-parse", "--is-inside-work-tree").ok


def list_tag_refs(root: str, patterns: list[str], sort_by_date: bool = True) -> list[dict]:
    """List raw tag refs matching glob patterns.

    Returns dicts with keys name, commit, created_at (datetime or None).
    """
    args = ["tag", "-l", f"--format={LIST_FORMAT}"]
    if sort_by_date:
        args.append("--sort=-creatordate")
    result = _git(root, *args, *patterns)
    if not result.ok:
        return []

    refs = []
    for line in result.stdout.splitlines():
        if not line.strip():
            continue
        name, _, rest = line.partition("|")
        commit, _, created = rest.partition("|")
        refs.append(
            {"name": name.strip(), "commit": commit.strip(), "created_at": _parse_date(created)}
        )
    return refs


def list_tags(root: str, patterns: list[str] | None = None, sort_by_date: bool = True) -> list[Tag]:
    """List tags in the deployment grammar. Non-conforming names are dropped."""
    found = []
    for ref in list_tag_refs(root, patterns or TAG_PATTERNS, sort_by_date=sort_by_date):
        tag = tag_codec.parse(ref["name"], commit=ref["commit"], date=ref["created_at"])
        if tag is not None:
            found.append(tag)
    return found


def resolve_commit(root: str, ref: str) -> str | None:
    """Short commit hash for any ref (tag name, branch, HEAD), or None."""
    result = _git(root, "rev-parse", "--short", f"{ref}^{{commit}}")
    if not result.ok:
        return None
    return result.stdout.strip() or None


def resolve_commit_date(root: str, tag_name: str) -> datetime | None:
    result = _git(root, "log", "-1", "--format=%cI", tag_name)
    if not result.ok:
        return None
    return _parse_date(result.stdout)


def _no_repository(result: process.Result) -> bool:
    return result.returncode == 127 or "not a git repository" in result.stderr


def _failed(root: str, name: str, operation: str, result: process.Result) -> Exception:
    if _no_repository(result):
        return NotARepository(root)
    return TagMutationFailed(name, operation, result.stderr.strip())


def create_tag(root: str, name: str, commit: str | None = None) -> None:
    """Create a lightweight tag at commit, or HEAD when commit is omitted."""
    args = ["tag", name]
    if commit:
        args.append(commit)
    result = _git(root, *args)
    if not result.ok:
        raise _failed(root, name, "create", result)


def delete_local_tag(root: str, name: str) -> bool:
    """Delete a local tag. Returns False if it did not exist."""
    result = _git(root, "tag", "-d", name)
    if result.ok:
        return True
    if "not found" in result.stderr:
        return False
    raise _failed(root, name, "delete", result)


def delete_remote_tags(root: str, names: list[str], remote: str = "origin") -> list[str]:
    """Delete tags from the remote one by one.

    Every name is attempted. Returns the deleted names; raises
    PartialRemoteFailure carrying all per-tag errors if any failed.
    """
    deleted = []
    failures = {}
    for name in names:
        result = _git(root, "push", remote, f":refs/tags/{name}")
        if result.ok:
            deleted.append(name)
        elif _no_repository(result):
            raise NotARepository(root)
        else:
            failures[name] = result.stderr.strip()
    if failures:
        raise PartialRemoteFailure(failures)
    return deleted


def delete_tag(
    root: str, name: str, local: bool = True, remote: bool = False, remote_name: str = "origin"
) -> bool:
    """Delete a tag locally and/or on the remote. Returns whether a local tag was removed."""
    removed = False
    if local:
        removed = delete_local_tag(root, name)
    if remote:
        delete_remote_tags(root, [name], remote=remote_name)
    return removed


def push_tags(
    root: str, force: bool = False, tag: str | None = None, remote: str = "origin"
) -> None:
    """Push all local tags, or one named tag, to the remote."""
    args = ["push", remote]
    args.append(f"refs/tags/{tag}" if tag else "--tags")
    if force:
        args.append("--force")
    result = _git(root, *args)
    if not result.ok:
        raise _failed(root, tag or "--tags", "push", result)
