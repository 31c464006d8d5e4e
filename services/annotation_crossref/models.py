"""Pydantic models for the annotation cross-reference pipeline.

Hierarchy:
  Entry         : one attachment (or placeholder) with its identifier keys.
  EntryTable    : insertion-ordered arena of entries for one run.
  Report        : report text plus the tags generated per entry.
  CrossrefResult: outcome of a full run.
"""

import uuid
from typing import Callable

from pydantic import BaseModel, Field

from shared.clients.library.models.Item import LibraryItem


class Entry(BaseModel):
    """Aggregation unit for one attachment.

    Entries are keyed by attachment identity and never merged by label. The
    attachment is only referenced; the tagger writes back onto it.
    """

    id: str = Field(frozen=True)
    label: str = Field(frozen=True)
    keys: set[str] = set()
    attachment: LibraryItem | None = None


class EntryTable(BaseModel):
    """Entries collected from one selection, in first-seen order."""

    entries: dict[str, Entry] = {}
    errors: list[str] = []

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, entry_id: str) -> Entry | None:
        return self.entries.get(entry_id)

    def ensure(self, attachment: LibraryItem | None, label_for: Callable[[LibraryItem | None], str]) -> Entry:
        """Return the entry for the attachment, creating it if needed.

        The label is resolved only when the entry is created. Attachments without
        an identity get a fresh placeholder entry each time.
        """
        entry_id = attachment.id if attachment is not None and attachment.id else f"missing:{uuid.uuid4().hex[:8]}"
        if entry_id not in self.entries:
            self.entries[entry_id] = Entry(id=entry_id, label=label_for(attachment), attachment=attachment)
        return self.entries[entry_id]

    def ordered(self) -> list[Entry]:
        return list(self.entries.values())

    def key_universe(self) -> set[str]:
        """Union of the key sets of all entries."""
        keys: set[str] = set()
        for entry in self.entries.values():
            keys |= entry.keys
        return keys


class Report(BaseModel):
    """Rendered report and the tags generated for each entry, both in report order."""

    text: str
    tags_by_entry: dict[str, list[str]] = {}


class CrossrefResult(BaseModel):
    """Outcome of one cross-reference run."""

    profile: str
    report: str
    entries: int = 0
    keys: int = 0
    failed_keys: list[str] = []
    extraction_errors: int = 0
    tagged_items: int = 0
    tagging_errors: int = 0
