# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Single-slot delayed action scheduler.

Each controller owns exactly one scheduler. Scheduling a new action always
replaces the outstanding one, so there is never more than one pending
timer per door.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class DelayedActionScheduler:
    """One-shot timer with a single slot.

    Example:
        scheduler = DelayedActionScheduler()
        scheduler.schedule(10, lambda: print("door should be open now"))
        scheduler.cancel()
    """

    def __init__(self, name: str = "", loop: Optional[asyncio.AbstractEventLoop] = None):
        self._name = name
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        """Whether an action is armed and has not fired yet."""
        return self._handle is not None

    def schedule(self, delay: float, action: Callable[[], None]) -> None:
        """Arm `action` to run after `delay` seconds, replacing any pending action."""
        self.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(max(0.0, delay), self._fire, action)
        logger.debug(f"{self._name}: delayed action armed for {delay}s")

    def cancel(self) -> bool:
        """Cancel the pending action, if any.

        Returns:
            True if an action was pending and has been cancelled.
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        logger.debug(f"{self._name}: delayed action cancelled")
        return True

    def _fire(self, action: Callable[[], None]) -> None:
        # Clear first so the action may schedule or cancel freely
        self._handle = None
        try:
            action()
        except Exception:
            logger.exception(f"{self._name}: delayed action failed")
