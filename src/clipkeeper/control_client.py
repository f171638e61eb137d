#!/usr/bin/env python3
"""Client side of the control channel, used by `clipkeeper ctl`."""

from __future__ import annotations

import asyncio
from typing import Any

from clipkeeper.protocol import decode_response, encode_netstring, read_netstring

# Seconds to wait for the daemon's answer.
RESPONSE_TIMEOUT: float = 5.0


async def send_command(socket_path: str, line: str) -> dict[str, Any]:
    """Send one command line to the daemon and return its response.

    Args:
        socket_path: Path to the control socket.
        line: The command line, e.g. "favorite 3".

    Returns:
        The decoded response object.

    Raises:
        ConnectionError: If the daemon is not running or does not answer.
        ProtocolError: On a malformed response.
    """
    try:
        reader, writer = await asyncio.open_unix_connection(socket_path)
    except FileNotFoundError as e:
        raise ConnectionError(f"clipkeeper is not running (no socket at {socket_path})") from e
    try:
        writer.write(encode_netstring(line.encode("utf-8")))
        await writer.drain()
        try:
            content = await asyncio.wait_for(read_netstring(reader), timeout=RESPONSE_TIMEOUT)
        except asyncio.TimeoutError as e:
            raise ConnectionError("Timed out waiting for clipkeeper to answer") from e
        return decode_response(content)
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except ConnectionError:
            pass
