#!/usr/bin/env python3
"""Ordered, deduplicated clipboard history storage.

The EntryStore owns the canonical sequence of entries. Entries are stored
once, keyed by an integer handle, and ordered by two handle lists:

- favorites: entries the user pinned, most recent first
- history: every other entry, most recent first

For navigation the two orderings are concatenated history first. Favorite
membership follows the entry's favorite flag, and the store keeps the flag
and the list an entry lives in consistent.

Invariants kept by every operation:
- no two stored entries are equal (same content type and payload)
- after evict_oldest() the history holds at most history_size entries

Operations on unknown handles are no-ops that return None or False; the
store never raises for a stale handle.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Iterator

from clipkeeper.entry import Entry

logger = logging.getLogger(__name__)


class EntryStore:
    """Bounded clipboard history with eviction-exempt favorites.

    Args:
        history_size: Maximum number of non-favorite entries.
    """

    def __init__(self, history_size: int) -> None:
        self.history_size = history_size
        self._entries: dict[int, Entry] = {}
        self._favorites: list[int] = []
        self._history: list[int] = []
        self._handles: Iterator[int] = itertools.count(1)
        self.last_inserted: int | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, handle: object) -> bool:
        return handle in self._entries

    def get(self, handle: int) -> Entry | None:
        return self._entries.get(handle)

    @property
    def favorites(self) -> list[int]:
        return list(self._favorites)

    @property
    def history(self) -> list[int]:
        return list(self._history)

    def non_favorite_count(self) -> int:
        return len(self._history)

    def display_order(self) -> list[int]:
        """Return all handles in navigation order: history, then favorites."""
        return self._history + self._favorites

    def find_equal(self, entry: Entry) -> int | None:
        """Find the handle of a stored entry equal to entry.

        Args:
            entry: Entry to look for. Only content type and payload matter.

        Returns:
            The matching handle, or None if no stored entry is equal.
        """
        for handle in self.display_order():
            if self._entries[handle] == entry:
                return handle
        return None

    def insert(self, entry: Entry) -> int:
        """Insert entry at the front of its ordering.

        Inserting an entry equal to a stored one is a no-op that returns the
        existing handle. Eviction is not run here; callers follow up with
        evict_oldest().

        Args:
            entry: Entry to insert. Its favorite flag selects the ordering.

        Returns:
            Handle of the inserted (or already present) entry.
        """
        existing = self.find_equal(entry)
        if existing is not None:
            logger.debug("Entry already stored as handle %d", existing)
            return existing
        handle = next(self._handles)
        self._entries[handle] = entry
        self._ordering(entry).insert(0, handle)
        self.last_inserted = handle
        return handle

    def remove(self, handle: int) -> Entry | None:
        """Remove an entry regardless of its favorite status.

        Args:
            handle: Handle of the entry to remove.

        Returns:
            The removed entry, or None if the handle is unknown.
        """
        entry = self._entries.pop(handle, None)
        if entry is None:
            logger.debug("Remove: handle %s not found", handle)
            return None
        self._ordering(entry).remove(handle)
        if self.last_inserted == handle:
            self.last_inserted = None
        return entry

    def toggle_favorite(self, handle: int) -> bool | None:
        """Flip the favorite flag and move the entry to the front of its new ordering.

        Eviction is not run here; unfavoriting can push the history over
        its cap, so callers follow up with evict_oldest().

        Args:
            handle: Handle of the entry to toggle.

        Returns:
            The new favorite state, or None if the handle is unknown.
        """
        entry = self._entries.get(handle)
        if entry is None:
            logger.debug("Toggle favorite: handle %s not found", handle)
            return None
        self._ordering(entry).remove(handle)
        toggled = entry.with_favorite(not entry.favorite)
        self._entries[handle] = toggled
        self._ordering(toggled).insert(0, handle)
        return toggled.favorite

    def move_to_front(self, handle: int) -> bool:
        """Move an entry to the head of its ordering.

        Args:
            handle: Handle of the entry to move.

        Returns:
            True if the order changed, False if the entry was already first
            or the handle is unknown.
        """
        entry = self._entries.get(handle)
        if entry is None:
            logger.debug("Move to front: handle %s not found", handle)
            return False
        ordering = self._ordering(entry)
        if ordering[0] == handle:
            return False
        ordering.remove(handle)
        ordering.insert(0, handle)
        return True

    def evict_oldest(self, keep: int | None = None) -> list[tuple[int, Entry]]:
        """Remove the oldest non-favorite entries until the cap holds.

        Args:
            keep: Handle that must survive eviction (the selected entry).
                The next oldest entry is evicted in its place.

        Returns:
            The evicted (handle, entry) pairs, oldest first.
        """
        evicted: list[tuple[int, Entry]] = []
        while len(self._history) > self.history_size:
            candidates = [h for h in reversed(self._history) if h != keep]
            if not candidates:
                break
            handle = candidates[0]
            entry = self.remove(handle)
            if entry is not None:
                evicted.append((handle, entry))
        return evicted

    def clear(self, keep: int | None = None) -> list[tuple[int, Entry]]:
        """Remove every non-favorite entry except keep.

        The selected entry is spared because the clipboard still holds its
        data and would hand it back on the next capture.

        Args:
            keep: Handle of the currently selected entry, if any.

        Returns:
            The removed (handle, entry) pairs in history order.
        """
        removed: list[tuple[int, Entry]] = []
        for handle in list(self._history):
            if handle == keep:
                continue
            entry = self.remove(handle)
            if entry is not None:
                removed.append((handle, entry))
        return removed

    def search(self, query: str) -> list[int]:
        """Return handles whose text contains query, case-insensitively.

        An empty query matches every entry. Binary entries never match a
        non-empty query.
        """
        needle = query.lower()
        if not needle:
            return self.display_order()
        return [
            h for h in self.display_order()
            if needle in self._entries[h].string_value().lower()
        ]

    def snapshot(self) -> list[Entry]:
        """Return all entries oldest first, the order load() replays."""
        ordered = list(reversed(self._favorites)) + list(reversed(self._history))
        return [self._entries[h] for h in ordered]

    def load(self, entries: Iterable[Entry]) -> list[int]:
        """Replay a snapshot by inserting entries oldest first.

        Duplicates in the snapshot collapse onto the first occurrence.

        Args:
            entries: Entries in snapshot order.

        Returns:
            Handles of the loaded entries.
        """
        handles = []
        for entry in entries:
            handle = self.insert(entry)
            if handle not in handles:
                handles.append(handle)
        # Loaded entries are not captures and cannot be undone
        self.last_inserted = None
        return handles

    def _ordering(self, entry: Entry) -> list[int]:
        return self._favorites if entry.favorite else self._history
