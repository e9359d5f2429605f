"""Promote components to an environment by repointing environment tags."""

from dataclasses import dataclass, field

from conductor_deploy import git, log
from conductor_deploy.discovery import Component
from conductor_deploy.errors import NotARepository, TagMutationFailed
from conductor_deploy.outcome import Status, TagOutcome, count
from conductor_deploy.tags import Tag, classify_slot


@dataclass
class DeployResult:
    environment: str
    total: int
    outcomes: list[TagOutcome] = field(default_factory=list)
    commit: str | None = None
    dry_run: bool = False
    pushed: bool = False
    push_error: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> int:
        return count(self.outcomes, Status.APPLIED)

    @property
    def ok(self) -> bool:
        if self.error is not None or len(self.outcomes) != self.total:
            return False
        return all(o.ok for o in self.outcomes)

    @property
    def summary(self) -> str:
        return f"{self.succeeded} of {self.total} succeeded"


def plan(components: list[Component], environment: str) -> list[Tag]:
    """Environment tags to (re)create, one per component, in input order."""
    if not environment or classify_slot(environment):
        raise ValueError(f"invalid environment name: {environment!r} (version slots are immutable)")
    return [c.tag(environment) for c in components]


def deploy(
    root: str,
    components: list[Component],
    environment: str,
    push: bool = False,
    dry_run: bool = False,
    remote: str = "origin",
) -> DeployResult:
    """Point each component's environment tag at HEAD.

    Fail-fast: the first create failure aborts the batch and leaves
    already-created tags in place. Pushing happens only after every
    tag was created locally.
    """
    targets = plan(components, environment)
    result = DeployResult(environment=environment, total=len(targets), dry_run=dry_run)

    if not targets:
        result.error = "No components to deploy"
        log.error(result.error)
        return result

    if dry_run:
        _dry_run(targets, environment, result)
        return result

    commit = git.resolve_commit(root, "HEAD")
    if commit is None:
        if git.is_repository(root):
            result.error = "HEAD does not point at a commit (empty repository?)"
        else:
            result.error = str(NotARepository(root))
        log.error(result.error)
        return result
    result.commit = commit

    log.header(f"deploy → {environment}")
    log.info(f"commit: {commit}")
    log.info(f"components: {len(targets)}")
    log.info("")

    try:
        for tag in targets:
            outcome = _repoint(root, tag.name, commit)
            result.outcomes.append(outcome)
            if not outcome.ok:
                result.error = outcome.message
                log.info("")
                log.footer(f"FAILED ({result.summary})")
                return result
    except NotARepository as e:
        result.error = str(e)
        log.error(result.error)
        return result

    if push:
        log.step(f"pushing tags to {remote} (force)...")
        try:
            git.push_tags(root, force=True, remote=remote)
            result.pushed = True
            log.success("tags pushed")
        except (TagMutationFailed, NotARepository) as e:
            result.push_error = str(e)
            for outcome in result.outcomes:
                outcome.status = Status.LOCAL_ONLY
            log.failure(f"push failed: {e}")
            log.info("")
            log.footer("created locally, not pushed")
            return result

    log.info("")
    log.footer(f"complete ({result.summary})")
    if not push:
        log.info(f"Push when ready: git push {remote} --tags --force")
    return result


def _repoint(root: str, name: str, commit: str) -> TagOutcome:
    """Delete-then-create. The tag is absent between the two steps."""
    log.group_start(name)
    try:
        if git.delete_local_tag(root, name):
            log.step("removed previous tag")
    except TagMutationFailed as e:
        log.warn(f"could not remove previous tag: {e.message}")

    try:
        git.create_tag(root, name, commit)
    except TagMutationFailed as e:
        log.failure(f"create failed: {e.message}")
        log.group_end()
        return TagOutcome(name, "create", Status.FAILED, str(e))

    log.tag_step(name, commit)
    log.group_end()
    return TagOutcome(name, "create", Status.APPLIED)


def _dry_run(targets: list[Tag], environment: str, result: DeployResult) -> None:
    log.header(f"deploy → {environment} (dry-run)")
    for tag in targets:
        log.step(f"would move {tag.name} to HEAD")
        result.outcomes.append(TagOutcome(tag.name, "create", Status.PLANNED))
    log.footer("dry-run complete")
