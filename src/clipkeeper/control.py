#!/usr/bin/env python3
"""Control channel command handling.

Presentation layers and key-binding scripts drive the running daemon over
the control socket. Each request is one command line, each response a JSON
object with an "ok" field:

    list                     entries in navigation order
    select <handle>          select an entry and write it to the clipboard
    next / prev              cycle the selection
    favorite <handle>        toggle the favorite flag
    delete <handle>          delete an entry
    clear                    delete non-favorite entries except the selected one
    undo                     delete the most recent capture
    private on|off|toggle    switch private mode
    search <text>            entries containing text
    status                   engine summary
    config [key=value ...]   show or change settings at runtime
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from clipkeeper.errors import ProtocolError
from clipkeeper.protocol import encode_response, read_netstring

if TYPE_CHECKING:
    import asyncio

    from clipkeeper.engine import ClipboardHistory, EntryView

logger = logging.getLogger(__name__)

COMMANDS = (
    "list", "select", "next", "prev", "favorite", "delete",
    "clear", "undo", "private", "search", "status", "config",
)


def _error(message: str) -> dict[str, Any]:
    return {"ok": False, "error": message}


def _view_dict(view: EntryView, preview_length: int) -> dict[str, Any]:
    return {
        "handle": view.handle,
        "content_type": view.entry.content_type,
        "favorite": view.entry.favorite,
        "selected": view.selected,
        "preview": view.entry.preview(preview_length),
    }


def _parse_handle(argument: str) -> int | None:
    try:
        return int(argument)
    except ValueError:
        return None


def dispatch_command(engine: ClipboardHistory, line: str) -> dict[str, Any]:
    """Run one control command against the engine.

    Args:
        engine: The history engine.
        line: The command line, e.g. "select 4".

    Returns:
        The response object.
    """
    command, _, argument = line.strip().partition(" ")
    argument = argument.strip()
    preview_length = engine.config.preview_length

    if command in ("list", "search"):
        views = engine.entries() if command == "list" else engine.search(argument)
        return {"ok": True, "entries": [_view_dict(v, preview_length) for v in views]}
    if command == "status":
        return {"ok": True, **engine.status()}
    if command in ("next", "prev"):
        if engine.private_mode:
            return _error("private mode is active")
        selected = engine.next() if command == "next" else engine.previous()
        return {"ok": True, "selected": selected}
    if command == "clear":
        return {"ok": True, "removed": engine.clear_history()}
    if command == "undo":
        if not engine.undo_capture():
            return _error("nothing to undo")
        return {"ok": True}
    if command == "private":
        if argument not in ("on", "off", "toggle"):
            return _error("usage: private on|off|toggle")
        active = not engine.private_mode if argument == "toggle" else argument == "on"
        changed = engine.set_private_mode(active)
        return {"ok": True, "private": engine.private_mode, "changed": changed}
    if command == "config":
        return _config_command(engine, argument)
    if command in ("select", "favorite", "delete"):
        handle = _parse_handle(argument)
        if handle is None:
            return _error(f"usage: {command} <handle>")
        return _handle_command(engine, command, handle)
    return _error(f"unknown command: {command!r}")


def _handle_command(engine: ClipboardHistory, command: str, handle: int) -> dict[str, Any]:
    if command == "select":
        if engine.private_mode:
            return _error("private mode is active")
        if not engine.select(handle):
            return _error(f"entry {handle} not found")
        return {"ok": True, "selected": handle}
    if command == "favorite":
        favorite = engine.toggle_favorite(handle)
        if favorite is None:
            return _error(f"entry {handle} not found")
        return {"ok": True, "favorite": favorite}
    if not engine.delete(handle):
        return _error(f"entry {handle} not found")
    return {"ok": True}


def _config_command(engine: ClipboardHistory, argument: str) -> dict[str, Any]:
    settings = {}
    for pair in argument.split():
        name, sep, value = pair.partition("=")
        if not sep or not name:
            return _error("usage: config [key=value ...]")
        settings[name] = value
    if settings:
        try:
            config = engine.config.with_settings(settings)
        except ValueError as e:
            return _error(str(e))
        engine.apply_config(config)
        logger.info("Applied settings: %s", ", ".join(sorted(settings)))
    return {"ok": True, "config": engine.config.as_dict()}


async def handle_control_client(
    engine: ClipboardHistory,
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
) -> None:
    """Serve control requests from one connection until it closes.

    Args:
        engine: The history engine.
        reader: The asyncio StreamReader for the connection.
        writer: The asyncio StreamWriter for the connection.
    """
    logger.debug("Control client connected")
    try:
        while True:
            try:
                request = await read_netstring(reader)
            except ProtocolError as e:
                if reader.at_eof():
                    logger.debug("Control client disconnected")
                else:
                    logger.warning("Control protocol error: %s", e)
                return
            try:
                line = request.decode("utf-8")
            except UnicodeDecodeError:
                response = _error("request is not valid UTF-8")
            else:
                logger.debug("Control command: %s", line)
                response = dispatch_command(engine, line)
            writer.write(encode_response(response))
            await writer.drain()
    except ConnectionError as e:
        logger.debug("Control connection lost: %s", e)
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except ConnectionError:
            pass
