"""Read-only views over the tag set: what is deployed where, version history."""

from dataclasses import dataclass, field

from conductor_deploy.discovery import Component
from conductor_deploy.tags import Namespace, Tag, group_by_component, newest_first


@dataclass
class Catalog:
    # environment -> type label -> pointers
    environments: dict[str, dict[str, list[Tag]]] = field(default_factory=dict)
    # type/name -> newest versions, capped
    history: dict[str, list[Tag]] = field(default_factory=dict)
    history_total: dict[str, int] = field(default_factory=dict)

    @property
    def empty(self) -> bool:
        return not self.environments and not self.history


@dataclass
class PointerState:
    pointer: Tag
    versions: list[Tag]

    @property
    def tagged(self) -> bool:
        return bool(self.versions)


def type_label(tag: Tag) -> str:
    if tag.namespace == Namespace.LOGIC:
        return f"logic/{tag.component_type}"
    return tag.component_type


def build_catalog(tags: list[Tag], history_limit: int = 5) -> Catalog:
    catalog = Catalog()
    for tag in tags:
        if tag.is_version:
            continue
        by_type = catalog.environments.setdefault(tag.slot, {})
        by_type.setdefault(type_label(tag), []).append(tag)

    history = group_by_component(newest_first([t for t in tags if t.is_version]))
    for component, versions in history.items():
        catalog.history[component] = versions[:history_limit]
        catalog.history_total[component] = len(versions)
    return catalog


def verify_pointers(tags: list[Tag]) -> list[PointerState]:
    """Match each environment pointer to version tags of the same component on the same commit."""
    versions = [t for t in tags if t.is_version]
    states = []
    for pointer in tags:
        if pointer.is_version:
            continue
        matching = [
            v
            for v in versions
            if v.namespace == pointer.namespace
            and v.component == pointer.component
            and pointer.commit
            and v.commit == pointer.commit
        ]
        states.append(PointerState(pointer=pointer, versions=newest_first(matching)))
    return states


def coverage(components: list[Component], tags: list[Tag]) -> list[tuple[Component, int]]:
    """Number of tags referencing each discovered component, in discovery order."""
    counts: dict[tuple, int] = {}
    for tag in tags:
        key = (tag.namespace, tag.component_type, tag.component_name)
        counts[key] = counts.get(key, 0) + 1
    return [(c, counts.get((c.namespace, c.type, c.name), 0)) for c in components]
