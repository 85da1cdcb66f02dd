"""Audit hooks for ledger and workflow mutations.

The core does not persist audit logs. It hands every committed mutation to an
optional listener keyed by actor, action and entity.
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Optional, Protocol


@dataclass(frozen=True)
class AuditEntry:
    """One committed mutation."""

    actor_id: Optional[int]
    action: str
    entity_type: str
    entity_id: str
    before: Optional[dict[str, Any]] = None
    after: Optional[dict[str, Any]] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class AuditListener(Protocol):
    def record(self, entry: AuditEntry) -> None:
        ...


class InMemoryAuditListener:
    """Keeps audit entries in memory."""

    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    def record(self, entry: AuditEntry) -> None:
        self.entries.append(entry)

    def actions(self) -> list[str]:
        return [entry.action for entry in self.entries]
