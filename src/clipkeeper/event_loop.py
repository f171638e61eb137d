#!/usr/bin/env python3
"""X11 event loop feeding the history engine.

The display file descriptor is registered with add_reader(); whenever it
becomes readable (or a clipboard read deferred events) the pending events
are processed: SelectionRequests are answered from the served content and
CLIPBOARD owner changes by other clients trigger one capture cycle.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import TYPE_CHECKING, cast

from Xlib import X

from clipkeeper.clipboard import get_display_fd
from clipkeeper.clipboard_selection import handle_selection_request, process_pending_events

if TYPE_CHECKING:
    from Xlib.protocol.event import SelectionRequest

    from clipkeeper.engine import ClipboardHistory
    from clipkeeper.x11_state import ClipboardState

logger = logging.getLogger(__name__)


async def run_event_loop(
    state: ClipboardState, engine: ClipboardHistory, shutdown_event: asyncio.Event
) -> None:
    """Process X11 events until shutdown_event is set.

    Args:
        state: The X11 backend state.
        engine: The history engine notified of clipboard changes.
        shutdown_event: Ends the loop when set.
    """
    loop = asyncio.get_running_loop()
    display_fd = get_display_fd(state.display)

    loop.add_reader(display_fd, state.x11_event.set)
    # Events may already be queued by the startup reads
    state.x11_event.set()
    shutdown_task = asyncio.create_task(shutdown_event.wait())
    try:
        while not shutdown_event.is_set():
            x11_task = asyncio.create_task(state.x11_event.wait())
            done, _ = await asyncio.wait(
                {shutdown_task, x11_task}, return_when=asyncio.FIRST_COMPLETED
            )
            with suppress(asyncio.CancelledError):
                x11_task.cancel()
                await x11_task
            if x11_task in done:
                state.x11_event.clear()
                await process_x11_events(state, engine)
    finally:
        shutdown_task.cancel()
        with suppress(asyncio.CancelledError):
            await shutdown_task
        loop.remove_reader(display_fd)


async def process_x11_events(state: ClipboardState, engine: ClipboardHistory) -> None:
    """Handle one batch of pending X11 events.

    Several owner changes in one batch collapse into a single capture
    cycle, run after every SelectionRequest of the batch was answered.

    Args:
        state: The X11 backend state.
        engine: The history engine.
    """
    changed = False
    for event in process_pending_events(state):
        if event.type == X.SelectionRequest:
            handle_selection_request(state, cast("SelectionRequest", event))
            continue
        # XFixes SetSelectionOwnerNotify
        if event.owner.id == state.window.id:
            state.acquisition_time = event.selection_timestamp
        else:
            state.acquisition_time = None
            changed = True
    if changed:
        await engine.on_selection_changed()
