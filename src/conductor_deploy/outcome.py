"""Per-tag outcome records returned by deploy, rollback and gc."""

from dataclasses import dataclass
from enum import Enum


class Status(str, Enum):
    PLANNED = "planned"
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"
    LOCAL_ONLY = "local_only"


@dataclass
class TagOutcome:
    tag: str
    operation: str
    status: Status
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status in (Status.APPLIED, Status.SKIPPED, Status.PLANNED)


def count(outcomes: list[TagOutcome], status: Status) -> int:
    return sum(1 for o in outcomes if o.status == status)
