#!/usr/bin/env python3
"""
Netstring framing for the control channel.

Every control request and response is one netstring: <length>:<content>,
where length is ASCII decimal digits, followed by a colon, the raw content
bytes and a trailing comma. Requests carry one command line, responses one
JSON object.

Example: "6:status," encodes the request "status".
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from clipkeeper.errors import ProtocolError

# Maximum size of one control message in bytes (1 MiB).
MAX_MESSAGE_SIZE: int = 1048576

# Maximum digits in the length field, enough for MAX_MESSAGE_SIZE.
MAX_LENGTH_DIGITS: int = 7


def encode_netstring(data: bytes) -> bytes:
    """
    Encode raw bytes as a netstring.

    Raises:
        ProtocolError: If data exceeds MAX_MESSAGE_SIZE.
    """
    if len(data) > MAX_MESSAGE_SIZE:
        raise ProtocolError(f"Message size {len(data)} exceeds limit {MAX_MESSAGE_SIZE}")
    return f"{len(data)}:".encode("ascii") + data + b","


async def read_netstring(reader: asyncio.StreamReader) -> bytes:
    """
    Read and decode a netstring from an async stream.

    Args:
        reader: asyncio StreamReader to read from.

    Returns:
        Decoded content bytes.

    Raises:
        ProtocolError: On invalid format, size violation, or connection closed.
    """
    length_bytes = b""
    while len(length_bytes) <= MAX_LENGTH_DIGITS:
        byte = await reader.read(1)
        if not byte:
            raise ProtocolError("Connection closed while reading length field")
        if byte == b":":
            break
        if not byte.isdigit():
            raise ProtocolError(f"Invalid character in length field: {byte!r}")
        length_bytes += byte
    else:
        raise ProtocolError("Length field exceeds maximum digits")
    if not length_bytes:
        raise ProtocolError("Empty length field")
    length = int(length_bytes.decode("ascii"))
    if length > MAX_MESSAGE_SIZE:
        raise ProtocolError(f"Message size {length} exceeds limit {MAX_MESSAGE_SIZE}")
    try:
        content = await reader.readexactly(length)
    except asyncio.IncompleteReadError as e:
        raise ProtocolError(f"Connection closed after {len(e.partial)} of {length} bytes") from e
    comma = await reader.read(1)
    if comma != b",":
        raise ProtocolError(f"Expected comma terminator, got {comma!r}")
    return content


def encode_response(response: dict[str, Any]) -> bytes:
    """Encode a response object as a netstring of compact JSON."""
    return encode_netstring(json.dumps(response, separators=(",", ":")).encode("utf-8"))


def decode_response(content: bytes) -> dict[str, Any]:
    """
    Decode a JSON response object.

    Raises:
        ProtocolError: If content is not a JSON object with an "ok" field.
    """
    try:
        response = json.loads(content.decode("utf-8"))
    except ValueError as e:
        raise ProtocolError(f"Invalid JSON response: {e}") from e
    if not isinstance(response, dict) or "ok" not in response:
        raise ProtocolError("Malformed response")
    return response
