"""Reading X11 selection content for one target.

A read asks the selection owner to convert CLIPBOARD to a single target
(one content type), then waits off the event loop for the SelectionNotify
reply and reads the property the owner wrote. Refusals, timeouts and empty
replies all yield None: a failed read just means the resolver moves on to
the next content type.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING

from Xlib import X

from clipkeeper.clipboard_incr import receive_incr
from clipkeeper.selection_utils import wait_for_event

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.protocol.rq import Event
    from Xlib.xobject.drawable import Window

    from clipkeeper.x11_state import ClipboardState

logger = logging.getLogger(__name__)

# Timeout in seconds for one target read, so an unresponsive owner
# cannot stall the capture cycle.
CLIPBOARD_TIMEOUT: float = 2.0

# Property on our window receiving converted selection data.
SELECTION_PROPERTY = "CLIPKEEPER_SEL"


async def read_selection_target(state: ClipboardState, target_atom: int) -> bytes | None:
    """Read CLIPBOARD converted to target_atom.

    Args:
        state: The X11 backend state.
        target_atom: Atom of the requested target.

    Returns:
        Content bytes, or None on refusal, timeout, empty data or error.
    """
    display, window = state.display, state.window
    try:
        owner = display.get_selection_owner(state.clipboard_atom)
        if owner == X.NONE:
            logger.debug("CLIPBOARD has no owner")
            return None

        prop_atom = state.atom(SELECTION_PROPERTY)
        window.convert_selection(state.clipboard_atom, target_atom, prop_atom, X.CurrentTime)
        display.flush()
        return await _wait_for_selection(state, target_atom, prop_atom)
    except Exception as e:
        logger.debug("Reading target %s failed: %s", target_atom, e)
        return None


async def _wait_for_selection(
    state: ClipboardState, target_atom: int, prop_atom: int
) -> bytes | None:
    """Wait for the SelectionNotify answering our request and read the data.

    The blocking wait runs in a worker thread. On timeout the worker is told
    to stop so it does not keep consuming events. Events deferred by the
    worker are handed to the main loop through state.x11_event.

    Args:
        state: The X11 backend state.
        target_atom: The requested target.
        prop_atom: The property the owner writes to.

    Returns:
        Content bytes, or None on refusal, timeout or empty data.
    """
    cancelled = threading.Event()
    incr_atom = state.atom("INCR")

    def is_reply(event: Event) -> bool:
        return (
            event.type == X.SelectionNotify
            and event.selection == state.clipboard_atom
            and event.target == target_atom
        )

    def read() -> bytes | None:
        reply = wait_for_event(state.display, is_reply, state.deferred_events, cancelled)
        if reply is None:
            return None
        if reply.property == X.NONE:
            logger.debug("Owner refused target %s", target_atom)
            return None
        return _read_selection_property(state, prop_atom, incr_atom, cancelled)

    try:
        return await asyncio.wait_for(asyncio.to_thread(read), timeout=CLIPBOARD_TIMEOUT)
    except asyncio.TimeoutError:
        logger.debug("Clipboard read timed out after %s seconds", CLIPBOARD_TIMEOUT)
        return None
    finally:
        cancelled.set()
        if state.deferred_events:
            state.x11_event.set()


def _read_selection_property(
    state: ClipboardState, prop_atom: int, incr_atom: int, cancelled: threading.Event
) -> bytes | None:
    """Read the reply property, following INCR transfers.

    Args:
        state: The X11 backend state.
        prop_atom: The property to read.
        incr_atom: The INCR atom.
        cancelled: Abandons an INCR transfer when set.

    Returns:
        Content bytes, or None if the property is missing or empty.
    """
    display: Display = state.display
    window: Window = state.window
    prop = window.get_full_property(prop_atom, X.AnyPropertyType)
    if prop is None:
        logger.debug("Selection property was empty")
        return None

    if prop.property_type == incr_atom:
        logger.debug("Owner started INCR transfer")
        data = receive_incr(display, window, prop_atom, state.deferred_events, cancelled)
        return data or None

    window.delete_property(prop_atom)
    display.flush()
    data = prop.value
    if isinstance(data, str):
        data = data.encode("utf-8")
    return bytes(data) or None
