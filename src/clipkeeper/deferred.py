"""Cancellable delayed actions.

DeferredPush owns at most one scheduled asyncio task. Scheduling a new
action cancels the previous one, so only the last action scheduled within
the delay window ever runs.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class DeferredPush:
    """A replaceable, cancellable delayed callback."""

    def __init__(self) -> None:
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, delay: float, action: Callable[[], None]) -> None:
        """Run action after delay seconds unless cancelled or replaced.

        Must be called from a running event loop.

        Args:
            delay: Seconds to wait before running action.
            action: Callable run once the delay elapses.
        """
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(delay, action))

    def cancel(self) -> None:
        """Cancel the scheduled action, if any."""
        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
            self._task = None

    async def _run(self, delay: float, action: Callable[[], None]) -> None:
        await asyncio.sleep(delay)
        self._task = None
        try:
            action()
        except Exception:
            logger.exception("Deferred clipboard push failed")
