"""Timer-driven polling loops with a non-reentrant tick."""
import asyncio
from typing import Any, Optional, Set

from monitorify.utils.logger import logger


class PollingLoop:
    """
    Runs ``tick()`` every ``interval_seconds`` on the event loop.

    Ticks fire at a fixed rate. If the previous tick is still running when
    the next one is due, the new one is skipped, so a slow tick never
    overlaps itself. Errors raised by a tick are logged and the loop keeps
    going.
    """

    name = "poller"

    def __init__(self, interval_seconds: float, run_on_start: bool = False):
        self.interval_seconds = interval_seconds
        self.run_on_start = run_on_start
        self._in_flight = False
        self._task: Optional[asyncio.Task] = None
        self._tick_tasks: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def started(self) -> bool:
        return self._task is not None

    async def tick(self) -> Any:
        raise NotImplementedError

    async def run_once(self) -> Any:
        """
        Run one tick unless another is still in progress.

        Returns:
            The tick's result, or None if skipped or failed
        """
        if self._in_flight:
            logger.debug(f"[{self.name}] previous tick still running, skipping")
            return None

        self._in_flight = True
        try:
            return await self.tick()
        except Exception as e:
            logger.error(f"[{self.name}] tick failed: {e}", exc_info=True)
            return None
        finally:
            self._in_flight = False

    def start(self) -> None:
        """Start the loop on the running event loop (no-op if started)."""
        if self._task is not None:
            return
        logger.info(f"[{self.name}] started (every {self.interval_seconds}s)")
        self._task = asyncio.create_task(self._run(), name=f"{self.name}-loop")

    async def stop(self) -> None:
        """Cancel the loop and any tick still running."""
        tasks = list(self._tick_tasks)
        if self._task is not None:
            tasks.append(self._task)
        self._task = None

        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tick_tasks.clear()
        logger.info(f"[{self.name}] stopped")

    async def _run(self) -> None:
        if self.run_on_start:
            self._spawn_tick()
        while True:
            await asyncio.sleep(self.interval_seconds)
            self._spawn_tick()

    def _spawn_tick(self) -> None:
        task = asyncio.create_task(self.run_once(), name=f"{self.name}-tick")
        self._tick_tasks.add(task)
        task.add_done_callback(self._tick_tasks.discard)
