"""Error taxonomy for tag operations.

Write paths in ``git`` raise these; the engines catch them and turn them
into per-tag outcomes, so callers only see exceptions for programming
errors.
"""


class TagEngineError(Exception):
    """Base class for tag engine failures."""


class NotARepository(TagEngineError):
    def __init__(self, root: str):
        self.root = root
        super().__init__(f"{root} is not a git repository (run `git init` or pass --root)")


class TagMutationFailed(TagEngineError):
    """A create/delete/push step failed."""

    def __init__(self, tag: str, operation: str, message: str):
        self.tag = tag
        self.operation = operation
        self.message = message
        super().__init__(f"{operation} {tag} failed: {message}")


class UnresolvableTarget(TagEngineError):
    """A version tag exists but its commit could not be resolved."""

    def __init__(self, tag: str, message: str = ""):
        self.tag = tag
        self.message = message
        super().__init__(f"cannot resolve commit for {tag}" + (f": {message}" if message else ""))


class PartialRemoteFailure(TagEngineError):
    """Local mutations applied, remote sync failed for one or more tags."""

    def __init__(self, failures: dict[str, str]):
        self.failures = failures
        names = ", ".join(sorted(failures))
        super().__init__(f"applied locally, not synced: {names}")
