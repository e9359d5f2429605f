"""Repoint an environment tag at the commit of a historical version tag."""

from dataclasses import dataclass, field

from conductor_deploy import git, log
from conductor_deploy.errors import NotARepository, TagMutationFailed, UnresolvableTarget
from conductor_deploy.outcome import Status, TagOutcome
from conductor_deploy.tags import (
    Namespace,
    Tag,
    classify_slot,
    group_by_component,
    newest_first,
    parse_component_ref,
)


@dataclass
class RollbackResult:
    component: str
    version: str
    environment: str
    status: Status = Status.FAILED
    tag: str | None = None
    commit: str | None = None
    outcomes: list[TagOutcome] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == Status.APPLIED


def version_history(tags: list[Tag]) -> dict[str, list[Tag]]:
    """Version tags grouped by ``type/name``, each group newest first."""
    return group_by_component(newest_first([t for t in tags if t.is_version]))


def find_version(
    tags: list[Tag],
    component_type: str,
    component_name: str,
    version: str,
    namespace: Namespace | None = None,
) -> Tag | None:
    """Newest version tag of the component whose slot equals ``version`` exactly."""
    for tag in newest_first(tags):
        if (
            tag.is_version
            and tag.component_type == component_type
            and tag.component_name == component_name
            and tag.slot == version
            and (namespace is None or tag.namespace == namespace)
        ):
            return tag
    return None


def resolve_target(root: str, version_tag: Tag) -> str:
    """Commit the version tag points at. Raises UnresolvableTarget."""
    commit = git.resolve_commit(root, version_tag.name)
    if commit is None:
        raise UnresolvableTarget(version_tag.name)
    return commit


def rollback(
    root: str,
    component: str,
    version: str,
    environment: str,
    push: bool = True,
    remote: str = "origin",
    tags: list[Tag] | None = None,
) -> RollbackResult:
    """Move ``component``'s environment tag to the commit of ``version``.

    ``tags`` is the current tag listing; it is read from git when omitted.
    Only the one environment tag is pushed, with force.
    """
    namespace, component_type, component_name = parse_component_ref(component)
    if not environment or classify_slot(environment):
        raise ValueError(f"invalid environment name: {environment!r} (version slots are immutable)")

    result = RollbackResult(
        component=f"{component_type}/{component_name}", version=version, environment=environment
    )
    if tags is None:
        tags = git.list_tags(root)

    version_tag = find_version(tags, component_type, component_name, version, namespace)
    if version_tag is None:
        result.error = f"No version {version} for {result.component}"
        log.error(result.error)
        return result

    env_tag = version_tag.with_slot(environment)
    result.tag = env_tag.name

    log.header(f"rollback {result.component} → {version} ({environment})")
    try:
        commit = resolve_target(root, version_tag)
    except UnresolvableTarget as e:
        result.error = str(e)
        log.failure(result.error)
        log.footer("FAILED (rollback aborted)")
        return result
    result.commit = commit
    log.step(f"{version_tag.name} → {commit}")

    try:
        if git.delete_local_tag(root, env_tag.name):
            log.step(f"removed {env_tag.name}")
    except TagMutationFailed as e:
        log.warn(f"could not remove {env_tag.name}: {e.message}")
    except NotARepository as e:
        result.error = str(e)
        log.error(result.error)
        return result

    try:
        git.create_tag(root, env_tag.name, commit)
    except (TagMutationFailed, NotARepository) as e:
        result.error = str(e)
        result.outcomes.append(TagOutcome(env_tag.name, "create", Status.FAILED, str(e)))
        log.failure(result.error)
        log.footer("FAILED (rollback aborted)")
        return result
    result.outcomes.append(TagOutcome(env_tag.name, "create", Status.APPLIED))
    log.tag_step(env_tag.name, commit)

    if not push:
        result.status = Status.APPLIED
        log.footer("complete (not pushed)")
        return result

    try:
        git.push_tags(root, force=True, tag=env_tag.name, remote=remote)
    except (TagMutationFailed, NotARepository) as e:
        result.status = Status.LOCAL_ONLY
        result.error = str(e)
        result.outcomes.append(TagOutcome(env_tag.name, "push", Status.FAILED, str(e)))
        log.failure(f"push failed: {e}")
        log.footer("applied locally, not synced")
        return result

    result.outcomes.append(TagOutcome(env_tag.name, "push", Status.APPLIED))
    result.status = Status.APPLIED
    log.success(f"pushed {env_tag.name} to {remote}")
    log.footer("complete")
    return result
