"""Persisted history of generated proposals."""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from sourcing_assistant.config import settings
from sourcing_assistant.errors import PersistenceError
from sourcing_assistant.proposal.models import PriorityLevel, Proposal
from sourcing_assistant.storage.local_state import LocalStateStore

logger = logging.getLogger(__name__)


def _new_entry_id() -> str:
    return f"item-{uuid.uuid4().hex}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HistoryEntry(BaseModel):
    """A proposal generated in an earlier session."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=_new_entry_id)
    product_name: Optional[str] = None
    proposal: Proposal
    created_at: datetime = Field(default_factory=_utcnow)
    priority_level: PriorityLevel = Field(
        default=PriorityLevel.MEDIUM,
        validation_alias=AliasChoices("priority", "priorityLevel", "priority_level"),
        serialization_alias="priority",
    )

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def for_proposal(cls, proposal: Proposal, priority: PriorityLevel) -> "HistoryEntry":
        return cls(product_name=proposal.product_name, proposal=proposal, priority_level=priority)


_entries_adapter = TypeAdapter(List[HistoryEntry])


class HistoryStore:
    """
    Newest-first list of past proposals with an active selection.

    State is read once by ``load()``; every mutation rewrites the whole list.
    """

    def __init__(self, state: LocalStateStore, key: Optional[str] = None):
        self.state = state
        self.key = key or settings.history_state_key
        self._entries: List[HistoryEntry] = []
        self.active_id: Optional[str] = None

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def load(self) -> None:
        """Load persisted history; a corrupt payload resets to empty."""
        try:
            raw = self.state.read(self.key)
            entries = _entries_adapter.validate_python(raw) if raw is not None else []
        except (PersistenceError, PydanticValidationError) as e:
            logger.error(f"Failed to load history, starting empty: {e}")
            self.state.remove(self.key)
            entries = []

        self._entries = self._sorted(entries)
        self.active_id = None
        logger.info(f"Loaded {len(self._entries)} history entries")

    def _save(self) -> None:
        payload = [entry.model_dump(mode="json", by_alias=True) for entry in self._entries]
        try:
            self.state.write(self.key, payload)
        except PersistenceError as e:
            logger.error(f"Failed to save history: {e}")

    @staticmethod
    def _sorted(entries: List[HistoryEntry]) -> List[HistoryEntry]:
        # Stable sort keeps earlier list positions first among equal timestamps
        return sorted(entries, key=lambda entry: entry.created_at, reverse=True)

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def append(self, entry: HistoryEntry) -> None:
        """Add an entry and keep the list sorted newest first."""
        self._entries = self._sorted([entry, *self._entries])
        self._save()

    def select(self, entry_id: str) -> Optional[Proposal]:
        """Mark an entry active and return its proposal."""
        entry = self.get(entry_id)
        if entry is None:
            return None
        self.active_id = entry_id
        return entry.proposal

    def delete(self, entry_id: str) -> bool:
        """
        Remove an entry.

        Returns:
            True if the removed entry was the active one
        """
        remaining = [entry for entry in self._entries if entry.id != entry_id]
        if len(remaining) == len(self._entries):
            return False

        self._entries = remaining
        self._save()

        if self.active_id == entry_id:
            self.active_id = None
            return True
        return False

    def clear(self) -> None:
        """Remove every entry and the active selection."""
        self._entries = []
        self.active_id = None
        self._save()
