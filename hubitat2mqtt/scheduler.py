"""Named, cancellable timer jobs on the asyncio event loop.

Scheduling a job under a name that is already pending replaces the old
timer, so a self-rearming callback never ends up with two live cycles.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

# Type alias for scheduled callbacks
JobCallback = Callable[[], Awaitable[None]]


class Scheduler:
    """Run coroutine callbacks after a delay, keyed by job name."""

    def __init__(self):
        self._handles: dict[str, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task] = set()

    def run_in(self, delay: float, name: str, callback: JobCallback) -> None:
        """Schedule a job, replacing any pending job with the same name.

        Args:
            delay: Seconds to wait
            name: Job name
            callback: Coroutine function to run
        """
        self.cancel(name)
        loop = asyncio.get_running_loop()
        self._handles[name] = loop.call_later(delay, self._fire, name, callback)
        logger.debug(f"Scheduled {name} in {delay}s")

    def cancel(self, name: str) -> bool:
        """Cancel a pending job.

        Returns:
            True if a job was pending
        """
        handle = self._handles.pop(name, None)
        if handle is None:
            return False
        handle.cancel()
        logger.debug(f"Cancelled {name}")
        return True

    def cancel_all(self) -> None:
        """Cancel every pending job and running job task."""
        for name in list(self._handles):
            self.cancel(name)
        for task in list(self._tasks):
            task.cancel()

    def is_scheduled(self, name: str) -> bool:
        """Check whether a job is pending."""
        return name in self._handles

    def when(self, name: str) -> Optional[float]:
        """Get the loop time at which a job fires, or None."""
        handle = self._handles.get(name)
        return handle.when() if handle else None

    @property
    def pending(self) -> list[str]:
        """Names of pending jobs."""
        return list(self._handles)

    def _fire(self, name: str, callback: JobCallback) -> None:
        self._handles.pop(name, None)
        task = asyncio.ensure_future(self._run(name, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, name: str, callback: JobCallback) -> None:
        try:
            await callback()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Scheduled job {name} failed: {e}", exc_info=True)
