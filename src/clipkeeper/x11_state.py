#!/usr/bin/env python3
"""X11 clipboard backend state.

ClipboardState groups everything the X11 backend and the event loop share:
the display and hidden window, the content currently served while we own
CLIPBOARD, events deferred during blocking reads, and in-progress
incremental transfers.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.xobject.drawable import Window
    from Xlib.protocol.rq import Event

    from clipkeeper.clipboard_incr import IncrSend


@dataclass
class ClipboardState:
    """State for the X11 clipboard backend.

    Attributes:
        display: The X11 display connection.
        window: The hidden window owning CLIPBOARD when we write entries.
        content_type: Content type of the served content, or None when the
            clipboard was cleared.
        content: Bytes served to other clients while we own CLIPBOARD.
        acquisition_time: X server timestamp when we acquired CLIPBOARD,
            or None if we don't own it.
        deferred_events: X11 events read during blocking waits, processed
            later by the main loop.
        x11_event: asyncio.Event signaled when X11 events need processing.
        clipboard_atom: Cached CLIPBOARD atom.
        pending_incr_sends: In-progress INCR transfers keyed by
            (requestor window id, property atom).
    """

    display: Display
    window: Window
    content_type: str | None = None
    content: bytes = b""
    acquisition_time: int | None = None
    deferred_events: list[Event] = field(default_factory=list)
    x11_event: asyncio.Event = field(default_factory=asyncio.Event)
    clipboard_atom: int = 0
    pending_incr_sends: dict[tuple[int, int], IncrSend] = field(default_factory=dict)
    _atoms: dict[str, int] = field(default_factory=dict, repr=False)

    def atom(self, name: str) -> int:
        """Return the atom for name, interning it once."""
        value = self._atoms.get(name)
        if value is None:
            value = self.display.intern_atom(name)
            self._atoms[name] = value
        return value
