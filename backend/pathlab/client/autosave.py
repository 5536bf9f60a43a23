"""
Draft autosave
One debounced timer per form: every change restarts the countdown, and
the save runs once the form has been quiet for `interval` seconds.
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping, Optional

logger = logging.getLogger(__name__)

IDLE = "idle"
SAVING = "saving"
SAVED = "saved"
ERROR = "error"

SaveCallback = Callable[[Mapping[str, Any]], Awaitable[Any]]


def _fingerprint(values: Mapping[str, Any]) -> str:
    return json.dumps(values, sort_keys=True, default=str, ensure_ascii=False)


class Autosaver:
    def __init__(
        self,
        on_save: SaveCallback,
        get_values: Callable[[], Mapping[str, Any]],
        interval: float = 30.0,
        enabled: bool = True,
        saved_reset: float = 2.0,
        error_reset: float = 3.0):
        self.on_save = on_save
        self.get_values = get_values
        self.interval = interval
        self.enabled = enabled
        self.saved_reset = saved_reset
        self.error_reset = error_reset

        self.status = IDLE
        self.last_saved: Optional[datetime] = None

        self._saving = False
        self._last_fingerprint = ""
        self._timer: Optional[asyncio.Task] = None
        self._reset_task: Optional[asyncio.Task] = None

    def notify_change(self) -> None:
        """Restart the countdown; call on every form edit"""
        if not self.enabled:
            return
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._countdown())

    async def _countdown(self) -> None:
        await asyncio.sleep(self.interval)
        await self.save(self.get_values())

    async def save_now(self) -> bool:
        """Save the current form state immediately"""
        if not self.enabled:
            return False
        self._cancel_timer()
        return await self.save(self.get_values())

    async def save(self, values: Mapping[str, Any]) -> bool:
        """Save `values` unless a save is running or nothing changed

        Returns True when on_save ran and succeeded.
        """
        if not self.enabled or self._saving:
            return False

        fingerprint = _fingerprint(values)
        if fingerprint == self._last_fingerprint:
            return False

        self._saving = True
        self._set_status(SAVING)
        try:
            await self.on_save(values)
        except Exception:
            logger.exception("[Autosave] Failed to save draft")
            self._set_status(ERROR, reset_after=self.error_reset)
            return False
        else:
            self._last_fingerprint = fingerprint
            self.last_saved = datetime.now()
            self._set_status(SAVED, reset_after=self.saved_reset)
            return True
        finally:
            self._saving = False

    def _set_status(self, status: str, reset_after: Optional[float] = None) -> None:
        if self._reset_task and not self._reset_task.done():
            self._reset_task.cancel()
        self.status = status
        if reset_after is not None:
            self._reset_task = asyncio.get_running_loop().create_task(self._reset_later(reset_after))

    async def _reset_later(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self.status = IDLE

    def _cancel_timer(self) -> None:
        # Never cancel the task we are running in (save_now called from the countdown)
        if self._timer and not self._timer.done() and self._timer is not asyncio.current_task():
            self._timer.cancel()
        self._timer = None

    async def close(self) -> None:
        """Cancel the countdown and status reset; no further saves run"""
        self.enabled = False
        for task in (self._timer, self._reset_task):
            if task and not task.done():
                task.cancel()
        self._timer = None
        self._reset_task = None
