#!/usr/bin/env python3
"""Daemon mode: watch CLIPBOARD and serve the control socket.

On startup the daemon:
- validates the X11 display and creates the hidden window
- registers for CLIPBOARD owner changes
- loads the persisted history and reconciles it with the live clipboard
- refuses to start if another daemon owns the control socket

It runs until SIGINT or SIGTERM.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from clipkeeper.config import EngineConfig


async def run_daemon(config: EngineConfig, socket_path: str, data_dir: Path) -> None:
    """Run the clipboard history daemon until a shutdown signal arrives.

    Args:
        config: The engine configuration.
        socket_path: Path of the control socket to listen on.
        data_dir: Directory holding the persisted history.
    """
    import asyncio
    import logging
    import signal

    from clipkeeper.clipboard import create_hidden_window, validate_display
    from clipkeeper.clipboard_events import register_xfixes_events
    from clipkeeper.control import handle_control_client
    from clipkeeper.engine import ClipboardHistory
    from clipkeeper.event_loop import run_event_loop
    from clipkeeper.paths import check_socket_state, cleanup_socket
    from clipkeeper.persistence import JsonRegistry
    from clipkeeper.x11_backend import X11Clipboard
    from clipkeeper.x11_state import ClipboardState

    logger = logging.getLogger(__name__)

    # Fail on an active daemon before touching the clipboard
    check_socket_state(socket_path)

    display = validate_display()
    window = create_hidden_window(display)
    clipboard_atom = display.intern_atom("CLIPBOARD")
    register_xfixes_events(display, window, clipboard_atom)

    state = ClipboardState(display=display, window=window, clipboard_atom=clipboard_atom)
    engine = ClipboardHistory(config, X11Clipboard(state), JsonRegistry(data_dir))

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, shutdown_event.set)
    loop.add_signal_handler(signal.SIGTERM, shutdown_event.set)

    server = await asyncio.start_unix_server(
        lambda r, w: handle_control_client(engine, r, w), path=socket_path,
    )
    logger.info("Listening for control commands on %s", socket_path)
    try:
        async with server:
            await engine.start()
            await run_event_loop(state, engine, shutdown_event)
    finally:
        engine.close()
        cleanup_socket(socket_path)
        display.close()
        logger.info("clipkeeper stopped")
