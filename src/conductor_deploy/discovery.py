"""Find deployable components in the project tree."""

import os
import re
from dataclasses import dataclass

from conductor_deploy.config import Settings
from conductor_deploy.tags import Namespace, Tag, parse_component_ref

ASSET_SUFFIX_RE = re.compile(r"\.(yaml|yml|md|json|ts|py)$")
LOGIC_SUFFIX_RE = re.compile(r"\.(ts|py)$")


@dataclass
class Component:
    type: str
    name: str
    path: str
    namespace: Namespace = Namespace.COMPONENT

    @property
    def ref(self) -> str:
        return f"{self.type}/{self.name}"

    def tag(self, slot: str) -> Tag:
        return Tag(
            namespace=self.namespace,
            component_type=self.type,
            component_name=self.name,
            slot=slot,
        )


def _entries(path: str) -> list[os.DirEntry]:
    """Directory entries in traversal order; missing dirs yield nothing."""
    try:
        with os.scandir(path) as it:
            return [e for e in it if not e.name.startswith(".")]
    except (FileNotFoundError, NotADirectoryError):
        return []


def discover(root: str, settings: Settings | None = None) -> list[Component]:
    """Scan well-known component directories plus the logic source dir.

    Order is filesystem traversal order, not sorted.
    """
    settings = settings or Settings()
    components = []

    for component_type in settings.component_types:
        rel_dir = f"{settings.components_dir}/{component_type}"
        for entry in _entries(os.path.join(root, rel_dir)):
            if not (entry.is_file() or entry.is_dir()):
                continue
            components.append(
                Component(
                    type=component_type,
                    name=ASSET_SUFFIX_RE.sub("", entry.name),
                    path=f"{rel_dir}/{entry.name}",
                )
            )

    for entry in _entries(os.path.join(root, settings.logic_dir)):
        if entry.is_dir() or (entry.is_file() and LOGIC_SUFFIX_RE.search(entry.name)):
            components.append(
                Component(
                    type=settings.logic_type,
                    name=LOGIC_SUFFIX_RE.sub("", entry.name),
                    path=f"{settings.logic_dir}/{entry.name}",
                    namespace=Namespace.LOGIC,
                )
            )

    return components


def select(components: list[Component], refs: list[str]) -> list[Component]:
    """Pick components by ``type/name`` or ``namespace/type/name`` refs, in ref order.

    Raises ValueError for a ref matching nothing.
    """
    selected = []
    for ref in refs:
        namespace, component_type, name = parse_component_ref(ref)
        matches = [
            c
            for c in components
            if c.type == component_type
            and c.name == name
            and (namespace is None or c.namespace == namespace)
        ]
        if not matches:
            raise ValueError(f"unknown component: {ref}")
        selected.extend(matches)
    return selected
