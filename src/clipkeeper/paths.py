#!/usr/bin/env python3
"""Filesystem locations and control socket housekeeping.

- History data under $XDG_CACHE_HOME/clipkeeper
- Control socket in $XDG_RUNTIME_DIR (fallback /tmp)
- Detecting active vs stale socket files at startup
"""

from __future__ import annotations

import os
import socket
import sys
from pathlib import Path

APP_NAME = "clipkeeper"
SOCKET_FILENAME = "clipkeeper.sock"


def cache_dir() -> Path:
    base = os.environ.get("XDG_CACHE_HOME")
    if base:
        return Path(base) / APP_NAME
    return Path.home() / ".cache" / APP_NAME


def runtime_dir() -> Path:
    base = os.environ.get("XDG_RUNTIME_DIR")
    if base:
        return Path(base)
    return Path("/tmp")


def default_socket_path() -> Path:
    return runtime_dir() / SOCKET_FILENAME


def check_socket_state(socket_path: str) -> None:
    """Check socket file state and handle stale sockets.

    If the socket file exists, attempts to connect to determine if a daemon
    is already running. A refused connection means the file is stale: it is
    unlinked. An accepted connection aborts startup.

    Args:
        socket_path: Path to the control socket file.

    Raises:
        SystemExit: If the socket is in use by a running daemon or cannot be
            accessed.
    """
    if not os.path.exists(socket_path):
        return

    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.connect(socket_path)
        print(f"Error: clipkeeper is already running on {socket_path}", file=sys.stderr)
        sys.exit(1)
    except ConnectionRefusedError:
        os.unlink(socket_path)
    except OSError as e:
        print(f"Error: Cannot access socket {socket_path}: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        sock.close()


def cleanup_socket(socket_path: str) -> None:
    """Remove the socket file on shutdown; a missing file is fine."""
    try:
        os.unlink(socket_path)
    except OSError:
        pass
