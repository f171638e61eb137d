#!/usr/bin/env python3
"""Round trip through a real X server: one connection serves, another reads.

Skipped unless DISPLAY points at a running X server (e.g. Xvfb).
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import has_display

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not has_display(), reason="needs an X server (DISPLAY)"),
]


def open_state():
    from clipkeeper.clipboard import create_hidden_window, validate_display
    from clipkeeper.x11_state import ClipboardState

    display = validate_display()
    window = create_hidden_window(display)
    return ClipboardState(display=display, window=window, clipboard_atom=display.intern_atom("CLIPBOARD"))


@pytest.mark.asyncio
async def test_written_entry_readable_by_other_client() -> None:
    from clipkeeper.event_loop import run_event_loop
    from clipkeeper.x11_backend import X11Clipboard

    owner, reader = open_state(), open_state()
    engine = MagicMock()
    engine.on_selection_changed = AsyncMock()
    shutdown = asyncio.Event()
    try:
        X11Clipboard(owner).write_content("text/plain", "héllo".encode("utf-8"))
        serving = asyncio.create_task(run_event_loop(owner, engine, shutdown))

        data = await X11Clipboard(reader).read_content("text/plain")
        assert data == "héllo".encode("utf-8")
        assert await X11Clipboard(reader).read_content("image/png") is None

        shutdown.set()
        await asyncio.wait_for(serving, timeout=2.0)
    finally:
        owner.display.close()
        reader.display.close()
