"""Single-flight coordination for capture cycles.

Only one resolve-and-reconcile cycle may run at a time. A change
notification arriving while a cycle is in flight is dropped rather than
queued; the running cycle (or the next notification) picks up the latest
clipboard state anyway.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager


class RefreshGuard:
    """In-flight marker for the capture cycle."""

    def __init__(self) -> None:
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def try_enter(self) -> bool:
        """Mark a cycle as running.

        Returns:
            True if the caller may run a cycle and must call release(),
            False if a cycle is already running.
        """
        if self._busy:
            return False
        self._busy = True
        return True

    def release(self) -> None:
        self._busy = False

    @contextmanager
    def held(self) -> Iterator[bool]:
        """Context manager form of try_enter()/release().

        Yields whether the cycle was admitted. The marker is released on
        every exit path when it was taken here.
        """
        entered = self.try_enter()
        try:
            yield entered
        finally:
            if entered:
                self.release()
