"""X11 display and window setup.

Helpers to open the X11 display named by $DISPLAY, expose its file
descriptor for asyncio, and create the hidden window that owns the
CLIPBOARD selection whenever clipkeeper writes an entry back.
"""

from __future__ import annotations

import os
import sys

from Xlib import X

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.xobject.drawable import Window

WINDOW_NAME = "clipkeeper"


def validate_display() -> Display:
    """Open the X11 display named by $DISPLAY.

    Called once at startup so a missing or unreachable X server stops the
    daemon before any history is loaded.

    Returns:
        Display object for X11 operations.

    Raises:
        SystemExit: If DISPLAY is unset or the connection fails.
    """
    display_name = os.environ.get("DISPLAY")
    if not display_name:
        print("Error: DISPLAY environment variable is not set.", file=sys.stderr)
        print("clipkeeper watches the X11 CLIPBOARD selection and needs a display.", file=sys.stderr)
        sys.exit(1)

    try:
        from Xlib.display import Display as XDisplay
        return XDisplay(display_name)
    except Exception as e:
        print(f"Error: Cannot open X11 display {display_name}: {e}", file=sys.stderr)
        sys.exit(1)


def get_display_fd(display: Display) -> int:
    """Return the display connection's file descriptor for loop.add_reader()."""
    return display.fileno()


def create_hidden_window(display: Display) -> Window:
    """Create an unmapped 1x1 window.

    The window owns the CLIPBOARD selection when entries are written back
    and receives selection replies. PropertyChangeMask is required for
    incremental (INCR) reads, which are driven by PropertyNotify events.

    Args:
        display: The X11 display connection.

    Returns:
        The new window.
    """
    screen = display.screen()
    window = screen.root.create_window(
        0, 0, 1, 1, 0, screen.root_depth, event_mask=X.PropertyChangeMask,
    )
    window.set_wm_name(WINDOW_NAME)
    return window
