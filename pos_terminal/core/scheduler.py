"""Cancellable periodic and one-shot jobs for a POS session"""

import asyncio
import logging
from typing import Awaitable, Callable, Union

logger = logging.getLogger(__name__)

Callback = Callable[[], Union[None, Awaitable[None]]]


class SchedulerClosedError(RuntimeError):
    """Job scheduled on a scheduler that has been stopped"""
    pass


class Scheduler:
    """
    Owns the timers of one session.

    Periodic jobs run on an interval and can be woken early with
    `trigger`. One-shot jobs run once after a delay. Scheduling a job under
    a name already in use replaces the old job. After `stop()` no callback
    fires and new jobs are refused.
    """

    def __init__(self):
        self._tasks: dict[str, asyncio.Task] = {}
        self._wakeups: dict[str, asyncio.Event] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def job_names(self) -> list[str]:
        return [name for name, task in self._tasks.items() if not task.done()]

    def every(
        self,
        name: str,
        interval: float,
        callback: Callback,
        run_immediately: bool = True,
    ) -> None:
        """Run `callback` every `interval` seconds"""
        self._ensure_open()
        self.cancel(name)
        wakeup = asyncio.Event()
        if run_immediately:
            wakeup.set()
        self._wakeups[name] = wakeup
        self._tasks[name] = asyncio.create_task(
            self._run_periodic(name, interval, callback, wakeup),
            name=f"scheduler:{name}",
        )

    def call_later(self, name: str, delay: float, callback: Callback) -> None:
        """Run `callback` once after `delay` seconds"""
        self._ensure_open()
        self.cancel(name)
        self._tasks[name] = asyncio.create_task(
            self._run_once(name, delay, callback),
            name=f"scheduler:{name}",
        )

    def trigger(self, name: str) -> bool:
        """Wake a periodic job so it runs now; False if no such job"""
        wakeup = self._wakeups.get(name)
        if self._closed or wakeup is None:
            return False
        wakeup.set()
        return True

    def cancel(self, name: str) -> None:
        """Cancel a job if it exists"""
        task = self._tasks.pop(name, None)
        self._wakeups.pop(name, None)
        if task and not task.done():
            task.cancel()

    async def stop(self) -> None:
        """Cancel every job and wait for them to finish"""
        self._closed = True
        tasks = list(self._tasks.values())
        self._tasks.clear()
        self._wakeups.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _ensure_open(self) -> None:
        if self._closed:
            raise SchedulerClosedError("Scheduler has been stopped")

    async def _run_periodic(
        self,
        name: str,
        interval: float,
        callback: Callback,
        wakeup: asyncio.Event,
    ) -> None:
        while not self._closed:
            try:
                await asyncio.wait_for(wakeup.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
            wakeup.clear()
            if self._closed:
                return
            await self._invoke(name, callback)

    async def _run_once(self, name: str, delay: float, callback: Callback) -> None:
        await asyncio.sleep(delay)
        if self._closed:
            return
        if self._tasks.get(name) is asyncio.current_task():
            del self._tasks[name]
        await self._invoke(name, callback)

    async def _invoke(self, name: str, callback: Callback) -> None:
        # A failing job is logged and keeps its schedule
        try:
            result = callback()
            if asyncio.iscoroutine(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Scheduled job '{name}' failed")
