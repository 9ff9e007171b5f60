"""Client-side entity state with optimistic updates.

Each entity carries a sync status. An optimistic change keeps a snapshot of
the confirmed value; the change is either confirmed by the server or
reverted to the snapshot.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Iterable, TypeVar

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


class SyncStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    FAILED = "failed"


@dataclass
class Entry(Generic[T]):
    value: T
    status: SyncStatus = SyncStatus.CONFIRMED
    snapshot: T | None = None
    error: str | None = None


class EntityStore(Generic[T]):
    """Ordered collection of entities keyed by ``id``."""

    def __init__(self, items: Iterable[T] = ()):
        self.entries: dict[str, Entry[T]] = {}
        self.reset(items)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def reset(self, items: Iterable[T]) -> None:
        """Replace the contents, keeping the order of ``items``.

        Entities with a change still in flight keep their pending status and
        snapshot so the eventual confirm or revert still applies.
        """
        entries: dict[str, Entry[T]] = {}
        for item in items:
            previous = self.entries.get(item.id)
            if previous is not None and previous.status is SyncStatus.PENDING:
                entries[item.id] = Entry(item, SyncStatus.PENDING, previous.snapshot)
            else:
                entries[item.id] = Entry(item)
        self.entries = entries

    def items(self) -> list[T]:
        return [entry.value for entry in self.entries.values()]

    def get(self, entity_id: str) -> T | None:
        entry = self.entries.get(entity_id)
        return entry.value if entry else None

    def status(self, entity_id: str) -> SyncStatus | None:
        entry = self.entries.get(entity_id)
        return entry.status if entry else None

    def begin(self, entity_id: str, changes: dict[str, Any]) -> T:
        """Apply ``changes`` optimistically and mark the entity pending."""
        entry = self.entries[entity_id]
        if entry.status is not SyncStatus.PENDING:
            entry.snapshot = entry.value
        entry.value = entry.value.model_copy(update=changes)
        entry.status = SyncStatus.PENDING
        entry.error = None
        return entry.value

    def confirm(self, entity_id: str, value: T | None = None) -> None:
        """Accept the pending change, optionally replacing it with the server's copy."""
        entry = self.entries.get(entity_id)
        if entry is None:
            return
        if value is not None:
            entry.value = value
        entry.status = SyncStatus.CONFIRMED
        entry.snapshot = None
        entry.error = None

    def fail(self, entity_id: str, error: str) -> None:
        """Revert to the last confirmed value and record the failure."""
        entry = self.entries.get(entity_id)
        if entry is None:
            return
        if entry.snapshot is not None:
            entry.value = entry.snapshot
        entry.status = SyncStatus.FAILED
        entry.snapshot = None
        entry.error = error
