"""Tag naming grammar: {namespace}/{type}/{name}/{slot}.

Tag names are parsed once, at the git adapter boundary; everything
downstream works with ``Tag`` records.
"""

import re
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

TAG_RE = re.compile(r"^(components|logic)/([^/]+)/([^/]+)/(.+)$")
VERSION_RE = re.compile(r"^v(\d+)\.(\d+)\.(\d+)")


class Namespace(str, Enum):
    COMPONENT = "components"
    LOGIC = "logic"


@dataclass(frozen=True)
class Tag:
    namespace: Namespace
    component_type: str
    component_name: str
    slot: str
    commit: str = ""
    date: datetime | None = None

    @property
    def name(self) -> str:
        return format_tag(self)

    @property
    def is_version(self) -> bool:
        return classify_slot(self.slot)

    @property
    def component(self) -> str:
        """``type/name`` key used for grouping."""
        return f"{self.component_type}/{self.component_name}"

    def with_slot(self, slot: str) -> "Tag":
        """Same component, different slot, no commit/date."""
        return replace(self, slot=slot, commit="", date=None)


def classify_slot(slot: str) -> bool:
    """True iff slot starts with vMAJOR.MINOR.PATCH. Fixed rule, prefix match."""
    return VERSION_RE.match(slot) is not None


def parse(name: str, commit: str = "", date: datetime | None = None) -> Tag | None:
    """Parse a tag name. Returns None for names outside the grammar."""
    m = TAG_RE.match(name)
    if m is None:
        return None
    namespace, component_type, component_name, slot = m.groups()
    return Tag(
        namespace=Namespace(namespace),
        component_type=component_type,
        component_name=component_name,
        slot=slot,
        commit=commit,
        date=date,
    )


def format_tag(tag: Tag) -> str:
    return f"{tag.namespace.value}/{tag.component_type}/{tag.component_name}/{tag.slot}"


def version_key(slot: str) -> tuple[int, int, int]:
    """Numeric (major, minor, patch) for a version slot, (-1, -1, -1) otherwise."""
    m = VERSION_RE.match(slot)
    if m is None:
        return (-1, -1, -1)
    return tuple(int(p) for p in m.groups())


def newest_first(tags: list[Tag]) -> list[Tag]:
    """Sort by creation date descending.

    Equal dates fall back to version number, then tag name, both
    descending. Undated tags go last.
    """
    return sorted(
        tags,
        key=lambda t: (
            t.date is not None,
            t.date.timestamp() if t.date is not None else 0.0,
            version_key(t.slot),
            t.name,
        ),
        reverse=True,
    )


def parse_component_ref(ref: str) -> tuple[Namespace | None, str, str]:
    """Parse ``type/name`` or ``namespace/type/name``.

    Raises ValueError for anything else.
    """
    parts = ref.strip("/").split("/")
    if len(parts) == 3 and parts[0] in (n.value for n in Namespace):
        return Namespace(parts[0]), parts[1], parts[2]
    if len(parts) == 2 and all(parts):
        return None, parts[0], parts[1]
    raise ValueError(f"invalid component reference: {ref!r} (expected type/name)")


def group_by_component(tags: list[Tag]) -> dict[str, list[Tag]]:
    """Group tags by ``type/name``, preserving input order within each group."""
    groups: dict[str, list[Tag]] = {}
    for tag in tags:
        groups.setdefault(tag.component, []).append(tag)
    return groups
