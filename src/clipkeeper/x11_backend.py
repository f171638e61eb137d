#!/usr/bin/env python3
"""ClipboardBackend implementation for the X11 CLIPBOARD selection.

Content types are X11 targets of the same name, except text/plain, which is
read as UTF8_STRING first (the target every toolkit offers) and
text/plain;charset=utf-8 second.

Writing takes ownership of CLIPBOARD with our hidden window; the content is
then served from SelectionRequest events. Clearing takes ownership with no
content, so every read of the clipboard comes back empty.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from clipkeeper.clipboard_events import take_selection_ownership
from clipkeeper.clipboard_incr import cancel_incr_sends
from clipkeeper.clipboard_io import read_selection_target
from clipkeeper.entry import is_text_type

if TYPE_CHECKING:
    from clipkeeper.x11_state import ClipboardState

logger = logging.getLogger(__name__)

TEXT_READ_TARGETS = ("UTF8_STRING", "text/plain;charset=utf-8")


class X11Clipboard:
    """Reads and writes the CLIPBOARD selection.

    Args:
        state: The X11 backend state shared with the event loop.
    """

    def __init__(self, state: ClipboardState) -> None:
        self.state = state

    def owns_clipboard(self) -> bool:
        return self.state.display.get_selection_owner(self.state.clipboard_atom) == self.state.window

    async def read_content(self, content_type: str) -> bytes | None:
        """Read CLIPBOARD as content_type.

        When we own CLIPBOARD the served content is returned directly;
        converting our own selection would wait on ourselves.

        Returns:
            The content bytes, or None if not available as content_type.
        """
        if self.owns_clipboard():
            if self.state.content_type == content_type and self.state.content:
                return self.state.content
            return None

        targets = TEXT_READ_TARGETS if is_text_type(content_type) else (content_type,)
        for target in targets:
            data = await read_selection_target(self.state, self.state.atom(target))
            if data:
                return data
        return None

    def write_content(self, content_type: str, payload: bytes) -> None:
        self._serve(content_type, payload)

    def clear(self) -> None:
        self._serve(None, b"")

    def _serve(self, content_type: str | None, payload: bytes) -> None:
        cancel_incr_sends(self.state.display, self.state.pending_incr_sends)
        self.state.content_type = content_type
        self.state.content = payload
        if not take_selection_ownership(self.state.display, self.state.window, self.state.clipboard_atom):
            logger.warning("Could not take CLIPBOARD ownership, clipboard not updated")
