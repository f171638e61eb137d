#!/usr/bin/env python3
"""Blocking X11 event waits used by clipboard reads.

Reads run in a worker thread (asyncio.to_thread) and wait for one specific
event, such as the SelectionNotify answering our conversion request. Every
other event read while waiting is deferred so the main loop can process it
afterwards, in order.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable

    from Xlib.display import Display
    from Xlib.protocol.rq import Event

# Sleep between polls of the display's event queue, in seconds.
POLL_INTERVAL: float = 0.005


def wait_for_event(
    display: "Display",
    matches: "Callable[[Event], bool]",
    deferred_events: list["Event"],
    cancelled: "threading.Event | None" = None,
) -> "Event | None":
    """Poll the display until an event satisfying matches arrives.

    Uses pending_events() so the wait notices cancellation instead of
    blocking forever in next_event() after the caller gave up.

    Args:
        display: The X11 display connection.
        matches: Predicate selecting the awaited event.
        deferred_events: List collecting every other event read meanwhile.
        cancelled: When set, the wait returns None at the next poll.

    Returns:
        The matching event, or None if cancelled.
    """
    while cancelled is None or not cancelled.is_set():
        if display.pending_events() > 0:
            event = display.next_event()
            if matches(event):
                return event
            deferred_events.append(event)
        else:
            time.sleep(POLL_INTERVAL)
    return None


def is_owner_change(event: "Event") -> bool:
    """Return True for XFixes SetSelectionOwnerNotify events."""
    return type(event).__name__ == "SetSelectionOwnerNotify"
