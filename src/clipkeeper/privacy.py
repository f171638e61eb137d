"""Privacy mode flag.

While private mode is active the engine does not read the clipboard and
does not capture anything. The history itself is left untouched.
"""


class PrivacyGate:
    """Boolean private mode switch."""

    def __init__(self, active: bool = False) -> None:
        self._active = active

    @property
    def active(self) -> bool:
        return self._active

    def set(self, active: bool) -> bool:
        """Set private mode.

        Args:
            active: New private mode state.

        Returns:
            True if the state changed.
        """
        if active == self._active:
            return False
        self._active = active
        return True
