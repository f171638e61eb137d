"""Incremental (INCR) selection transfers.

X11 limits a single property write to the server's maximum request size.
Larger payloads, which is most images, are moved in chunks:

Sending (we own CLIPBOARD):
- reply with a property of type INCR holding the total size
- each time the requestor deletes the property, write the next chunk
- a zero-length chunk marks the end

Receiving (reading another client's selection):
- delete the INCR property to start the transfer
- read and delete each chunk as PropertyNotify(NewValue) arrives
- stop at the first zero-length chunk
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from clipkeeper.selection_utils import wait_for_event

if TYPE_CHECKING:
    import threading

    from Xlib.display import Display
    from Xlib.protocol.event import SelectionRequest
    from Xlib.protocol.rq import Event
    from Xlib.xobject.drawable import Window

logger = logging.getLogger(__name__)

# Fraction of the maximum request size used for a single property write.
INCR_SAFETY_MARGIN: float = 0.9

# Chunk size for INCR sends in bytes.
INCR_CHUNK_SIZE: int = 65536

# Seconds after which an unfinished INCR send is abandoned.
INCR_SEND_TIMEOUT: float = 30.0


@dataclass
class IncrSend:
    """An in-progress INCR send to one requestor property.

    Attributes:
        requestor: Window that requested the content.
        property_atom: Property receiving the chunks.
        target_atom: Type written with each chunk.
        content: Full payload being sent.
        offset: Start of the next chunk.
        start_time: time.monotonic() when the transfer began.
        completion_sent: True once the zero-length chunk was written.
    """

    requestor: Window
    property_atom: int
    target_atom: int
    content: bytes
    offset: int
    start_time: float
    completion_sent: bool = False


def max_property_size(display: "Display") -> int:
    """Largest payload, in bytes, written with a single change_property."""
    # max_request_length is in 4-byte units
    return int(display.info.max_request_length * 4 * INCR_SAFETY_MARGIN)  # type: ignore[attr-defined]


def start_incr_send(
    display: "Display",
    event: "SelectionRequest",
    content: bytes,
    pending: dict[tuple[int, int], IncrSend],
    incr_atom: int,
) -> None:
    """Answer a SelectionRequest by starting an INCR transfer.

    Subscribes to property and structure changes on the requestor window,
    writes the INCR property and records the transfer. The caller sends
    the SelectionNotify.

    Args:
        display: The X11 display connection.
        event: The SelectionRequest being answered.
        content: Payload to transfer.
        pending: In-progress transfers; the new one is added.
        incr_atom: The INCR atom.
    """
    from Xlib import X

    event.requestor.change_attributes(event_mask=X.PropertyChangeMask | X.StructureNotifyMask)
    event.requestor.change_property(event.property, incr_atom, 32, [len(content)])
    pending[(event.requestor.id, event.property)] = IncrSend(
        requestor=event.requestor,
        property_atom=event.property,
        target_atom=event.target,
        content=content,
        offset=0,
        start_time=time.monotonic(),
    )
    logger.debug("Started INCR send of %d bytes to window %s", len(content), event.requestor.id)


def handle_incr_event(
    display: "Display", event: "Event", pending: dict[tuple[int, int], IncrSend]
) -> bool:
    """Advance or abort INCR sends affected by event.

    Args:
        display: The X11 display connection.
        event: Any X11 event.
        pending: In-progress transfers.

    Returns:
        True if the event belonged to an INCR send and was consumed.
    """
    from Xlib import X

    if not pending:
        return False
    if event.type == X.PropertyNotify and event.state == X.PropertyDelete:
        key = (event.window.id, event.atom)
        transfer = pending.get(key)
        if transfer is None:
            return False
        if transfer.completion_sent:
            _finish(display, key, pending)
        else:
            _send_chunk(display, transfer)
        return True
    if event.type == X.DestroyNotify:
        keys = [key for key in pending if key[0] == event.window.id]
        for key in keys:
            logger.debug("INCR requestor window %s destroyed", event.window.id)
            del pending[key]
        return bool(keys)
    return False


def expire_incr_sends(display: "Display", pending: dict[tuple[int, int], IncrSend]) -> None:
    """Drop INCR sends older than INCR_SEND_TIMEOUT."""
    now = time.monotonic()
    for key, transfer in list(pending.items()):
        if now - transfer.start_time > INCR_SEND_TIMEOUT:
            logger.warning("INCR send to window %s timed out", key[0])
            _finish(display, key, pending)


def cancel_incr_sends(display: "Display", pending: dict[tuple[int, int], IncrSend]) -> None:
    """Drop every INCR send, used when the served content changes."""
    for key in list(pending):
        _finish(display, key, pending)


def receive_incr(
    display: "Display",
    window: "Window",
    prop_atom: int,
    deferred_events: list["Event"],
    cancelled: "threading.Event | None" = None,
) -> bytes | None:
    """Read an INCR transfer into one payload. Blocking; runs off the event loop.

    Args:
        display: The X11 display connection.
        window: Our window holding the transfer property.
        prop_atom: The property the owner writes chunks to.
        deferred_events: List collecting unrelated events.
        cancelled: When set, the transfer is abandoned.

    Returns:
        The assembled payload, or None if cancelled.
    """
    from Xlib import X

    def is_new_chunk(event: "Event") -> bool:
        return (
            event.type == X.PropertyNotify
            and event.state == X.PropertyNewValue
            and event.window.id == window.id
            and event.atom == prop_atom
        )

    # Deleting the INCR property tells the owner to send the first chunk
    window.delete_property(prop_atom)
    display.flush()
    chunks: list[bytes] = []
    while True:
        if wait_for_event(display, is_new_chunk, deferred_events, cancelled) is None:
            return None
        prop = window.get_full_property(prop_atom, X.AnyPropertyType)
        window.delete_property(prop_atom)
        display.flush()
        chunk = _property_bytes(prop)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


def _property_bytes(prop) -> bytes:
    if prop is None:
        return b""
    data = prop.value
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _send_chunk(display: "Display", transfer: IncrSend) -> None:
    chunk = transfer.content[transfer.offset:transfer.offset + INCR_CHUNK_SIZE]
    transfer.requestor.change_property(transfer.property_atom, transfer.target_atom, 8, chunk)
    display.flush()
    if chunk:
        transfer.offset += len(chunk)
    else:
        transfer.completion_sent = True


def _finish(display: "Display", key: tuple[int, int], pending: dict[tuple[int, int], IncrSend]) -> None:
    transfer = pending.pop(key, None)
    if transfer is None:
        return
    if not any(other[0] == key[0] for other in pending):
        try:
            transfer.requestor.change_attributes(event_mask=0)
            display.flush()
        except Exception as e:
            logger.debug("Cannot unsubscribe from window %s: %s", key[0], e)
