"""X11 selection ownership and change notifications.

- Registering for XFixes owner-change notifications on CLIPBOARD
- Taking ownership of CLIPBOARD when an entry is written back
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from Xlib.display import Display
    from Xlib.xobject.drawable import Window

logger = logging.getLogger(__name__)


def register_xfixes_events(display: Display, window: Window, clipboard_atom: int) -> None:
    """Ask XFixes to report every CLIPBOARD owner change to window.

    Args:
        display: The X11 display connection.
        window: The window receiving SetSelectionOwnerNotify events.
        clipboard_atom: The CLIPBOARD atom.
    """
    from Xlib.ext import xfixes

    xfixes.query_version(display)
    mask = xfixes.XFixesSetSelectionOwnerNotifyMask
    xfixes.select_selection_input(display, window.id, clipboard_atom, mask)
    display.flush()


def take_selection_ownership(display: Display, window: Window, selection_atom: int) -> bool:
    """Make window the owner of selection_atom.

    Content is served later, from SelectionRequest events.

    Args:
        display: The X11 display connection.
        window: The window to own the selection.
        selection_atom: The selection atom, normally CLIPBOARD.

    Returns:
        True if the server reports window as the new owner.
    """
    from Xlib import X

    try:
        window.set_selection_owner(selection_atom, X.CurrentTime)
        display.flush()
        owner = display.get_selection_owner(selection_atom)
    except Exception as e:
        logger.error("Failed to take selection ownership: %s", e)
        return False
    if owner != window:
        logger.error("Failed to acquire selection ownership")
        return False
    return True
