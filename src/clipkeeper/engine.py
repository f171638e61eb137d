#!/usr/bin/env python3
"""Clipboard history engine.

ClipboardHistory wires the store, the selection coordinator, the content
resolver, the refresh guard and the privacy gate together, and is the
single entry point for clipboard change notifications and user commands.

Capture cycle, run for every clipboard change notification:
1. RefreshGuard admits the cycle or drops the notification
2. nothing is read while private mode is active
3. ContentResolver reads the clipboard into an Entry (or nothing)
4. the entry is reconciled: an equal stored entry is reselected (and
   optionally moved to front), otherwise the entry is inserted and selected
5. eviction, persistence and listener notification follow

Every mutation is persisted through the gateway. Persistence failures never
abort an operation; they are reported to the listener.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from clipkeeper.errors import PersistenceError
from clipkeeper.guard import RefreshGuard
from clipkeeper.interfaces import LoggingListener
from clipkeeper.privacy import PrivacyGate
from clipkeeper.resolver import ContentResolver
from clipkeeper.selection import SelectionCoordinator
from clipkeeper.store import EntryStore

if TYPE_CHECKING:
    from clipkeeper.config import EngineConfig
    from clipkeeper.entry import Entry
    from clipkeeper.interfaces import ClipboardBackend, HistoryListener, PersistenceGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntryView:
    """Read-only view of a stored entry for presentation layers.

    Attributes:
        handle: Opaque handle used to address the entry in commands.
        entry: The stored entry.
        selected: True if this is the current entry. Always False while
            private mode is active.
    """

    handle: int
    entry: Entry
    selected: bool


class ClipboardHistory:
    """Clipboard history engine.

    Args:
        config: Engine configuration.
        backend: The external clipboard.
        gateway: Persistence collaborator.
        listener: Presentation layer notifications. Defaults to logging.
    """

    def __init__(
        self,
        config: EngineConfig,
        backend: ClipboardBackend,
        gateway: PersistenceGateway,
        listener: HistoryListener | None = None,
    ) -> None:
        self.config = config.validated()
        self._gateway = gateway
        self._listener = listener if listener is not None else LoggingListener(self.config.preview_length)
        self.store = EntryStore(self.config.history_size)
        self.selection = SelectionCoordinator(self.store, backend, on_pushed=self._apply_reuse)
        self.resolver = ContentResolver(
            backend, gateway, self.config, on_persistence_error=self._report_persistence_error
        )
        self.guard = RefreshGuard()
        self.privacy = PrivacyGate()
        self._empty = True

    @property
    def private_mode(self) -> bool:
        return self.privacy.active

    @property
    def selected(self) -> int | None:
        return self.selection.selected

    async def start(self) -> None:
        """Load the persisted history and reconcile with the live clipboard."""
        try:
            entries = self._gateway.load_history()
        except PersistenceError as e:
            self._report_persistence_error(e)
            entries = []
        for handle in self.store.load(entries):
            entry = self.store.get(handle)
            if entry is not None:
                self._listener.entry_added(handle, entry)
        logger.debug("Loaded %d entries from persisted history", len(self.store))

        order = self.store.display_order()
        if order:
            self.selection.select(order[0], push=False)
            self._listener.selection_changed(order[0])
        if self._evict():
            self._save()
        self._check_empty(force=True)
        await self.refresh()

    def close(self) -> None:
        """Tear down: cancel any pending deferred clipboard push."""
        self.selection.cancel_pending()

    async def on_selection_changed(self) -> int | None:
        """Handle an external clipboard change notification."""
        return await self.refresh()

    async def refresh(self) -> int | None:
        """Run one capture cycle.

        Returns:
            Handle of the entry selected by this cycle, or None if the cycle
            was dropped, suppressed by private mode, or read nothing.
        """
        with self.guard.held() as entered:
            if not entered:
                logger.debug("Refresh already in progress, dropping notification")
                return None
            if self.privacy.active:
                logger.debug("Private mode active, not reading clipboard")
                return None
            generation = self.selection.generation
            try:
                entry = await self.resolver.resolve()
            except Exception:
                logger.exception("Failed to read clipboard content")
                return None
            if entry is None:
                return None
            if self.privacy.active:
                logger.debug("Private mode enabled during read, discarding capture")
                return None
            if self.selection.generation != generation:
                logger.debug("Clipboard written during read, discarding capture")
                return None
            return self._capture(entry)

    def select(self, handle: int) -> bool:
        """Select an entry and write it to the clipboard.

        Returns:
            False if the handle is unknown or private mode is active.
        """
        if self.privacy.active:
            logger.debug("Private mode active, ignoring selection of %s", handle)
            return False
        previous = self.selection.selected
        if not self.selection.select(handle, push=True):
            logger.warning("Cannot select entry %s: not found", handle)
            return False
        if handle != previous:
            self._listener.selection_changed(handle)
        self._apply_reuse(handle)
        return True

    def next(self) -> int | None:
        return self._cycle(1)

    def previous(self) -> int | None:
        return self._cycle(-1)

    def toggle_favorite(self, handle: int) -> bool | None:
        """Flip the favorite flag of an entry.

        Returns:
            The new favorite state, or None if the handle is unknown.
        """
        favorite = self.store.toggle_favorite(handle)
        if favorite is None:
            logger.warning("Cannot toggle favorite of entry %s: not found", handle)
            return None
        entry = self.store.get(handle)
        if entry is not None:
            self._listener.favorite_toggled(handle, entry)
        if not favorite:
            self._evict()
        self._save()
        return favorite

    def delete(self, handle: int) -> bool:
        """Delete an entry, favorite or not.

        Deleting the selected entry clears the clipboard before the entry's
        payload is discarded.

        Returns:
            False if the handle is unknown.
        """
        entry = self.store.get(handle)
        if entry is None:
            logger.warning("Cannot delete entry %s: not found", handle)
            return False
        if self.selection.selected == handle:
            self.selection.clear_clipboard()
            self._listener.selection_changed(None)
        self.store.remove(handle)
        self._discard(handle, entry)
        self._save()
        self._check_empty()
        return True

    def clear_history(self) -> int:
        """Delete every non-favorite entry except the selected one.

        Returns:
            Number of deleted entries.
        """
        removed = self.store.clear(keep=self.selection.selected)
        for handle, entry in removed:
            self._discard(handle, entry)
        self._save()
        self._check_empty()
        logger.info("Clipboard history cleared (%d entries removed)", len(removed))
        return len(removed)

    def undo_capture(self) -> bool:
        """Delete the most recently captured entry.

        If it was selected, the most recent remaining entry is selected and
        written to the clipboard; with nothing left the clipboard is cleared.

        Returns:
            False if there is no capture to undo.
        """
        handle = self.store.last_inserted
        entry = self.store.get(handle) if handle is not None else None
        if handle is None or entry is None:
            return False
        if self.selection.selected == handle:
            fallback = [h for h in self.store.display_order() if h != handle]
            if fallback:
                self.selection.select(fallback[0], push=True)
                self._listener.selection_changed(fallback[0])
            else:
                self.selection.clear_clipboard()
                self._listener.selection_changed(None)
        self.store.remove(handle)
        self._discard(handle, entry)
        self._save()
        self._check_empty()
        return True

    def set_private_mode(self, active: bool) -> bool:
        """Enable or disable private mode.

        Leaving private mode writes the selected entry back to the clipboard
        or, with no selection, clears the clipboard.

        Returns:
            True if the mode changed.
        """
        if not self.privacy.set(active):
            return False
        if active:
            self.selection.cancel_pending()
        else:
            selected = self.selection.selected
            if selected is not None and self.selection.select(selected, push=True):
                logger.debug("Restored entry %d to clipboard", selected)
            else:
                self.selection.clear_clipboard()
        self._listener.privacy_changed(active)
        return True

    def apply_config(self, config: EngineConfig) -> None:
        """Replace the configuration and re-apply the history cap.

        Raises:
            ValueError: If the configuration is invalid.
        """
        config = config.validated()
        self.config = config
        self.store.history_size = config.history_size
        self.resolver.config = config
        if not config.defer_push:
            self.selection.cancel_pending()
        self._evict()
        self._save()
        self._listener.entries_relabelled()

    def entries(self) -> list[EntryView]:
        """Return all entries in navigation order."""
        return self._views(self.store.display_order())

    def search(self, query: str) -> list[EntryView]:
        """Return entries whose text contains query, case-insensitively."""
        return self._views(self.store.search(query))

    def status(self) -> dict[str, object]:
        return {
            "private": self.privacy.active,
            "entries": len(self.store),
            "favorites": len(self.store.favorites),
            "selected": None if self.privacy.active else self.selection.selected,
            "refreshing": self.guard.busy,
            "push_pending": self.selection.push_pending,
        }

    def _views(self, handles: list[int]) -> list[EntryView]:
        selected = None if self.privacy.active else self.selection.selected
        views = []
        for handle in handles:
            entry = self.store.get(handle)
            if entry is not None:
                views.append(EntryView(handle, entry, handle == selected))
        return views

    def _capture(self, entry: Entry) -> int:
        previous = self.selection.selected
        result = self.selection.reconcile(entry, self.config.move_item_first)
        if result.created:
            self._listener.entry_added(result.handle, entry)
            self._evict()
        elif result.moved:
            self._listener.entry_moved(result.handle)
        if result.handle != previous:
            self._listener.selection_changed(result.handle)
        if result.created or result.moved:
            self._save()
        self._check_empty()
        return result.handle

    def _cycle(self, step: int) -> int | None:
        if self.privacy.active:
            logger.debug("Private mode active, ignoring cycling")
            return None
        previous = self.selection.selected
        delay = self.config.push_delay if self.config.defer_push else None
        target = self.selection.cycle(step, delay)
        if target is not None and target != previous:
            self._listener.selection_changed(target)
        return target

    def _apply_reuse(self, handle: int) -> None:
        if not self.config.move_item_first:
            return
        entry = self.store.get(handle)
        if entry is None or entry.favorite:
            return
        if self.store.move_to_front(handle):
            self._listener.entry_moved(handle)
            self._save()

    def _evict(self) -> bool:
        evicted = self.store.evict_oldest(keep=self.selection.selected)
        for handle, entry in evicted:
            self._discard(handle, entry)
        if evicted:
            logger.debug("Evicted %d entries over history size %d", len(evicted), self.store.history_size)
        return bool(evicted)

    def _discard(self, handle: int, entry: Entry) -> None:
        self.selection.forget(handle)
        if not entry.is_text():
            try:
                self._gateway.delete_binary_payload(entry)
            except PersistenceError as e:
                self._report_persistence_error(e)
        self._listener.entry_removed(handle, entry)

    def _save(self) -> None:
        entries = self.store.snapshot()
        if self.config.cache_only_favorites:
            entries = [e for e in entries if e.favorite]
        try:
            self._gateway.save_history(entries)
        except PersistenceError as e:
            self._report_persistence_error(e)

    def _check_empty(self, force: bool = False) -> None:
        empty = len(self.store) == 0
        if force or empty != self._empty:
            self._empty = empty
            self._listener.empty_state_changed(empty)

    def _report_persistence_error(self, error: PersistenceError) -> None:
        logger.debug("Persistence failure: %s", error)
        self._listener.persistence_failed(error)
