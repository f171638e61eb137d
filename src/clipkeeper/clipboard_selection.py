"""Serving CLIPBOARD content while we own it.

After an entry is written back, other applications read it through
SelectionRequest events. The served targets depend on the entry:

- TARGETS and TIMESTAMP always
- the entry's own content type
- for text additionally UTF8_STRING, STRING, text/plain and
  text/plain;charset=utf-8

Any other target is refused. Payloads above the maximum property size are
sent incrementally.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from clipkeeper.clipboard_incr import expire_incr_sends, handle_incr_event, max_property_size, start_incr_send
from clipkeeper.entry import is_text_type
from clipkeeper.selection_utils import is_owner_change

if TYPE_CHECKING:
    from Xlib.protocol.event import SelectionRequest
    from Xlib.protocol.rq import Event

    from clipkeeper.x11_state import ClipboardState

logger = logging.getLogger(__name__)

TEXT_TARGETS = ("UTF8_STRING", "text/plain;charset=utf-8", "text/plain", "STRING")


def content_targets(state: ClipboardState) -> list[int]:
    """Return the target atoms the served content can be converted to."""
    if state.content_type is None or not state.content:
        return []
    names = [state.content_type]
    if is_text_type(state.content_type):
        names.extend(t for t in TEXT_TARGETS if t != state.content_type)
    return [state.atom(name) for name in names]


def converted_content(state: ClipboardState, target: int) -> bytes:
    """Return the served content encoded for target.

    STRING is Latin-1 by definition; every other text target gets UTF-8.
    """
    if target == state.atom("STRING") and state.content_type != "STRING":
        text = state.content.decode("utf-8", errors="replace")
        return text.encode("latin-1", errors="replace")
    return state.content


def handle_selection_request(state: ClipboardState, event: SelectionRequest) -> None:
    """Answer a SelectionRequest for the content we own.

    Args:
        state: The X11 backend state.
        event: The SelectionRequest event.
    """
    from Xlib import X, Xatom

    display = state.display
    targets_atom = state.atom("TARGETS")
    timestamp_atom = state.atom("TIMESTAMP")
    served = content_targets(state)
    # Obsolete requestors pass None and expect the target as property
    if event.property == X.NONE:
        event.property = event.target
    logger.debug("SelectionRequest target=%s property=%s content_len=%d",
        event.target, event.property, len(state.content))

    if event.target == targets_atom:
        event.requestor.change_property(
            event.property, Xatom.ATOM, 32, [targets_atom, timestamp_atom, *served]
        )
    elif event.target == timestamp_atom and state.acquisition_time is not None:
        event.requestor.change_property(
            event.property, Xatom.INTEGER, 32, [state.acquisition_time]
        )
    elif event.target in served:
        data = converted_content(state, event.target)
        if len(data) > max_property_size(display):
            try:
                start_incr_send(display, event, data, state.pending_incr_sends, state.atom("INCR"))
            except Exception as e:
                logger.warning("Cannot start INCR send: %s", e)
                event.property = X.NONE
        else:
            event.requestor.change_property(event.property, event.target, 8, data)
    else:
        event.property = X.NONE

    send_selection_notify(state, event)


def send_selection_notify(state: ClipboardState, event: SelectionRequest) -> None:
    """Send the SelectionNotify reply for event (property None means refused)."""
    from Xlib.protocol.event import SelectionNotify as SelectionNotifyEvent

    event.requestor.send_event(
        SelectionNotifyEvent(
            time=event.time,
            requestor=event.requestor.id,
            selection=event.selection,
            target=event.target,
            property=event.property,
        ),
        event_mask=0,
    )
    state.display.flush()


def process_pending_events(state: ClipboardState) -> list[Event]:
    """Drain deferred and pending X11 events without blocking.

    INCR send progress events are handled here. SelectionRequest and
    SetSelectionOwnerNotify events are returned, deferred ones first, for
    the caller to process in order.

    Args:
        state: The X11 backend state.

    Returns:
        The SelectionRequest and owner-change events.
    """
    from Xlib import X

    display = state.display
    expire_incr_sends(display, state.pending_incr_sends)

    incoming: list[Event] = list(state.deferred_events)
    state.deferred_events.clear()
    while display.pending_events() > 0:
        incoming.append(display.next_event())

    events: list[Event] = []
    for event in incoming:
        if handle_incr_event(display, event, state.pending_incr_sends):
            continue
        if event.type == X.SelectionRequest or is_owner_change(event):
            events.append(event)
    return events
