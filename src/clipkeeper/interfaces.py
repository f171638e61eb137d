#!/usr/bin/env python3
"""Boundary contracts between the engine and its collaborators.

The engine only talks to the outside world through these protocols:
- ClipboardBackend: the shared clipboard (read one content type, write, clear)
- PersistenceGateway: history snapshot and binary payload storage
- HistoryListener: presentation layer notifications

LoggingListener is the listener used when the application supplies none.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from clipkeeper.entry import Entry
    from clipkeeper.errors import PersistenceError

logger = logging.getLogger(__name__)


class ClipboardBackend(Protocol):
    """The external clipboard the engine observes and writes back to."""

    async def read_content(self, content_type: str) -> bytes | None:
        """Return the clipboard data offered as content_type, or None."""
        ...

    def write_content(self, content_type: str, payload: bytes) -> None:
        """Make payload the clipboard content, offered as content_type."""
        ...

    def clear(self) -> None:
        """Replace the clipboard content with nothing."""
        ...


class PersistenceGateway(Protocol):
    """Storage for the history snapshot and out-of-snapshot payloads.

    Methods that write raise PersistenceError on failure.
    """

    def load_history(self) -> list[Entry]:
        ...

    def save_history(self, entries: Sequence[Entry]) -> None:
        ...

    def store_binary_payload(self, entry: Entry) -> None:
        ...

    def delete_binary_payload(self, entry: Entry) -> None:
        ...


class HistoryListener(Protocol):
    """Read-only notifications for a presentation layer."""

    def entry_added(self, handle: int, entry: Entry) -> None:
        ...

    def entry_removed(self, handle: int, entry: Entry) -> None:
        ...

    def entry_moved(self, handle: int) -> None:
        ...

    def selection_changed(self, handle: int | None) -> None:
        ...

    def favorite_toggled(self, handle: int, entry: Entry) -> None:
        ...

    def empty_state_changed(self, empty: bool) -> None:
        ...

    def privacy_changed(self, active: bool) -> None:
        ...

    def entries_relabelled(self) -> None:
        ...

    def persistence_failed(self, error: PersistenceError) -> None:
        ...


class LoggingListener:
    """HistoryListener that logs every notification."""

    def __init__(self, preview_length: int = 50) -> None:
        self.preview_length = preview_length

    def entry_added(self, handle: int, entry: Entry) -> None:
        logger.info("Added entry %d: %s", handle, entry.preview(self.preview_length))

    def entry_removed(self, handle: int, entry: Entry) -> None:
        logger.debug("Removed entry %d (%s)", handle, entry.content_type)

    def entry_moved(self, handle: int) -> None:
        logger.debug("Moved entry %d to front", handle)

    def selection_changed(self, handle: int | None) -> None:
        logger.debug("Selection changed to %s", handle)

    def favorite_toggled(self, handle: int, entry: Entry) -> None:
        logger.info("Entry %d favorite=%s", handle, entry.favorite)

    def empty_state_changed(self, empty: bool) -> None:
        logger.debug("History empty=%s", empty)

    def privacy_changed(self, active: bool) -> None:
        logger.info("Private mode %s", "enabled" if active else "disabled")

    def entries_relabelled(self) -> None:
        logger.debug("Configuration applied, entries relabelled")

    def persistence_failed(self, error: PersistenceError) -> None:
        logger.error("Failed to persist clipboard history: %s", error)
