#!/usr/bin/env python3
"""Single-selection state and clipboard write-back.

The SelectionCoordinator holds the one handle considered "current". Setting
a new handle implicitly deselects the previous one, so at most one entry is
ever selected. It is also the only component that writes entries back to
the external clipboard. Every write bumps a generation counter, so a
capture cycle can tell that the clipboard changed under its read.

Cycling through the history can defer the write-back: the target is marked
selected at once, and the clipboard is only written after a pause in which
no further cycling happened.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from clipkeeper.deferred import DeferredPush

if TYPE_CHECKING:
    from collections.abc import Callable

    from clipkeeper.entry import Entry
    from clipkeeper.interfaces import ClipboardBackend
    from clipkeeper.store import EntryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of reconciling an observed clipboard entry with the store.

    Attributes:
        handle: Handle of the entry now selected.
        created: True if the observed entry was new and got inserted.
        moved: True if an existing entry was moved to the front.
    """

    handle: int
    created: bool
    moved: bool = False


class SelectionCoordinator:
    """Tracks the selected entry and pushes it to the clipboard.

    Args:
        store: The entry store the handles refer to.
        backend: The external clipboard.
        on_pushed: Called with the handle after a deferred push was written.
    """

    def __init__(
        self,
        store: EntryStore,
        backend: ClipboardBackend,
        on_pushed: Callable[[int], None] | None = None,
    ) -> None:
        self._store = store
        self._backend = backend
        self._on_pushed = on_pushed
        self._selected: int | None = None
        self._deferred = DeferredPush()
        self._generation = 0

    @property
    def selected(self) -> int | None:
        return self._selected

    @property
    def push_pending(self) -> bool:
        return self._deferred.pending

    @property
    def generation(self) -> int:
        """Number of clipboard writes issued or scheduled so far."""
        return self._generation

    def select(self, handle: int, push: bool = True) -> bool:
        """Make handle the selected entry.

        Any pending deferred push is cancelled first.

        Args:
            handle: Handle of the entry to select.
            push: Write the entry to the external clipboard.

        Returns:
            False if the handle is unknown, True otherwise.
        """
        self._deferred.cancel()
        entry = self._store.get(handle)
        if entry is None:
            logger.debug("Select: handle %s not found", handle)
            return False
        self._selected = handle
        if push:
            self._push(entry)
        return True

    def deselect(self) -> None:
        self._deferred.cancel()
        self._selected = None

    def forget(self, handle: int) -> bool:
        """Drop the selection if it refers to handle.

        Returns:
            True if handle was the selected entry.
        """
        if self._selected != handle:
            return False
        self.deselect()
        return True

    def clear_clipboard(self) -> None:
        """Deselect and empty the external clipboard."""
        self.deselect()
        self._generation += 1
        self._backend.clear()
        logger.debug("Cleared clipboard")

    def reconcile(self, observed: Entry, move_item_first: bool = False) -> ReconcileResult:
        """Select the stored entry matching what the clipboard now holds.

        No write-back happens: the clipboard already holds this content.

        Args:
            observed: Entry read from the clipboard.
            move_item_first: Move a matching non-favorite entry to the front.

        Returns:
            The selected handle and whether it was inserted or moved.
        """
        existing = self._store.find_equal(observed)
        if existing is not None:
            self.select(existing, push=False)
            moved = False
            entry = self._store.get(existing)
            if move_item_first and entry is not None and not entry.favorite:
                moved = self._store.move_to_front(existing)
            return ReconcileResult(existing, created=False, moved=moved)

        handle = self._store.insert(observed)
        self.select(handle, push=False)
        return ReconcileResult(handle, created=True)

    def cycle(self, step: int, defer_delay: float | None = None) -> int | None:
        """Select the entry step positions away from the current one.

        Positions wrap around at both ends of the navigation order (history,
        then favorites). Without a current selection, step 1 starts at the
        first entry and step -1 at the last.

        Args:
            step: 1 for next, -1 for previous.
            defer_delay: If set, mark the target selected now and only write
                it to the clipboard after this many seconds.

        Returns:
            The newly selected handle, or None if the store is empty.
        """
        order = self._store.display_order()
        if not order:
            return None
        if self._selected in order:
            index = (order.index(self._selected) + step) % len(order)
        else:
            index = 0 if step > 0 else len(order) - 1
        target = order[index]

        if defer_delay is None:
            self.select(target, push=True)
            return target

        self.select(target, push=False)
        self._generation += 1
        self._deferred.schedule(defer_delay, lambda: self._push_deferred(target))
        return target

    def cancel_pending(self) -> None:
        """Cancel a pending deferred push. Required on teardown."""
        self._deferred.cancel()

    def _push_deferred(self, handle: int) -> None:
        entry = self._store.get(handle)
        if entry is None or self._selected != handle:
            logger.debug("Deferred push for handle %s is stale, skipping", handle)
            return
        self._push(entry)
        if self._on_pushed is not None:
            self._on_pushed(handle)

    def _push(self, entry: Entry) -> None:
        self._generation += 1
        self._backend.write_content(entry.content_type, entry.payload)
        logger.debug("Pushed %d bytes of %s to clipboard", len(entry.payload), entry.content_type)
