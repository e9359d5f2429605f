"""Retention sweep over version tags.

Keeps the N newest version tags per component. Environment tags are
never candidates.
"""

from dataclasses import dataclass, field

from conductor_deploy import git, log
from conductor_deploy.errors import NotARepository, PartialRemoteFailure, TagMutationFailed
from conductor_deploy.outcome import Status, TagOutcome, count
from conductor_deploy.tags import Tag, group_by_component, newest_first


@dataclass
class RetentionPlan:
    keep: int
    kept: dict[str, list[Tag]] = field(default_factory=dict)
    candidates: dict[str, list[Tag]] = field(default_factory=dict)

    @property
    def delete(self) -> list[Tag]:
        return [t for group in self.candidates.values() for t in group]


@dataclass
class GcResult:
    plan: RetentionPlan
    dry_run: bool
    local: list[TagOutcome] = field(default_factory=list)
    remote: list[TagOutcome] = field(default_factory=list)
    error: str | None = None

    @property
    def deleted(self) -> int:
        return count(self.local, Status.APPLIED)

    @property
    def ok(self) -> bool:
        return self.error is None and all(o.ok for o in self.local + self.remote)

    @property
    def remote_failed(self) -> bool:
        return count(self.remote, Status.FAILED) > 0


def plan_retention(tags: list[Tag], keep: int) -> RetentionPlan:
    """Partition version tags per ``type/name`` into kept (newest ``keep``) and candidates."""
    if keep < 0:
        raise ValueError(f"keep must be >= 0, got {keep}")

    plan = RetentionPlan(keep=keep)
    versions = newest_first([t for t in tags if t.is_version])
    for component, group in group_by_component(versions).items():
        plan.kept[component] = group[:keep]
        if len(group) > keep:
            plan.candidates[component] = group[keep:]
    return plan


def collect_garbage(
    root: str,
    keep: int,
    dry_run: bool = False,
    remote: bool = False,
    remote_name: str = "origin",
    tags: list[Tag] | None = None,
) -> GcResult:
    """Delete version tags beyond the retention count.

    Local deletes run first, then (optionally) the same set on the remote.
    Each tag's outcome is independent of the others.
    """
    if tags is None:
        tags = git.list_tags(root)
    plan = plan_retention(tags, keep)
    result = GcResult(plan=plan, dry_run=dry_run)

    log.header("gc (dry-run)" if dry_run else "gc")
    log.info(f"retention: keep last {keep} versions per component")
    for component, kept in plan.kept.items():
        doomed = plan.candidates.get(component, [])
        if doomed:
            log.group_start(component)
            log.step(f"keeping: {', '.join(t.slot for t in kept) or '-'}")
            log.step(f"deleting: {', '.join(t.slot for t in doomed)}")
            log.group_end()
        else:
            log.info(f"▸ {component} — {len(kept)} version(s) (under limit)")

    candidates = plan.delete
    if not candidates:
        log.footer("nothing to clean up")
        return result

    if dry_run:
        for tag in candidates:
            result.local.append(TagOutcome(tag.name, "delete", Status.PLANNED))
        log.footer(f"dry-run: {len(candidates)} tag(s) would be deleted")
        return result

    try:
        for tag in candidates:
            result.local.append(_delete_local(root, tag.name))
        if remote:
            result.remote = _delete_remote(root, [t.name for t in candidates], remote_name)
    except NotARepository as e:
        result.error = str(e)
        log.error(result.error)
        return result

    log.footer(f"deleted {result.deleted} of {len(candidates)} local tag(s)")
    return result


def _delete_local(root: str, name: str) -> TagOutcome:
    try:
        removed = git.delete_local_tag(root, name)
    except TagMutationFailed as e:
        log.failure(f"{name}: {e.message}")
        return TagOutcome(name, "delete", Status.FAILED, e.message)
    if not removed:
        return TagOutcome(name, "delete", Status.SKIPPED, "not present locally")
    return TagOutcome(name, "delete", Status.APPLIED)


def _delete_remote(root: str, names: list[str], remote: str) -> list[TagOutcome]:
    log.step(f"deleting {len(names)} tag(s) from {remote}...")
    try:
        git.delete_remote_tags(root, names, remote=remote)
        failures = {}
    except PartialRemoteFailure as e:
        failures = e.failures
        log.failure(str(e))

    outcomes = []
    for name in names:
        if name in failures:
            outcomes.append(TagOutcome(name, "delete-remote", Status.FAILED, failures[name]))
        else:
            outcomes.append(TagOutcome(name, "delete-remote", Status.APPLIED))
    return outcomes
