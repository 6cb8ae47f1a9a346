"""
Source file watcher that recompiles on change.

Changes are pushed into a queue of depth one: while a trigger is already
pending, further changes are dropped, so a burst of editor saves produces at
most one extra compile after the one currently running.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import AsyncIterator, Callable, Optional, Set, Tuple

from watchfiles import Change, awatch

from .compile_manager import CompileManager
from .errors import CompileError

logger = logging.getLogger(__name__)

ChangeBatch = Set[Tuple[Change, str]]
WatchFactory = Callable[[Path, asyncio.Event], AsyncIterator[ChangeBatch]]


def _default_watch(directory: Path, stop_event: asyncio.Event) -> AsyncIterator[ChangeBatch]:
    return awatch(directory, stop_event=stop_event, recursive=False)


class SourceWatcher:
    """Watches one source file and feeds compile triggers to a CompileManager."""

    def __init__(self, manager: CompileManager, watch_factory: Optional[WatchFactory] = None) -> None:
        self.manager = manager
        self.source_file = manager.paths.source_file
        self._watch_factory = watch_factory or _default_watch
        self._queue: asyncio.Queue[Path] = asyncio.Queue(maxsize=1)
        self._stop_event = asyncio.Event()
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks) and all(not task.done() for task in self._tasks)

    def matches(self, changed: str) -> bool:
        path = Path(changed)
        if path.name.startswith("."):
            return False
        return path.resolve() == self.source_file

    def trigger(self, changed: Path) -> bool:
        """
        Queue a compile for ``changed``.

        Returns:
            False when a trigger was already pending and this one was dropped
        """
        try:
            self._queue.put_nowait(changed)
        except asyncio.QueueFull:
            logger.info("Compile already pending, dropping trigger for %s", changed.name)
            return False
        return True

    async def _watch(self) -> None:
        logger.info("Watching %s for changes...", self.source_file)
        async for changes in self._watch_factory(self.source_file.parent, self._stop_event):
            for change, changed in changes:
                if change == Change.deleted or not self.matches(changed):
                    continue
                logger.info("File %s has been changed, recompiling...", Path(changed).name)
                self.trigger(Path(changed))
                break

    async def _consume(self) -> None:
        while True:
            changed = await self._queue.get()
            try:
                await self.manager.compile()
                logger.info("Auto-compilation completed")
            except CompileError as exc:
                logger.error("Auto-compilation failed: %s", exc)
            except Exception:
                logger.exception("Auto-compilation of %s crashed", changed.name)
            finally:
                self._queue.task_done()

    @staticmethod
    def _log_task_exit(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Source watcher task %s stopped: %s", task.get_name(), exc, exc_info=exc)

    def start(self) -> None:
        if self.running:
            return
        for task in self._tasks:
            task.cancel()
        self._stop_event.clear()
        self._tasks = [
            asyncio.create_task(self._watch(), name="source-watch"),
            asyncio.create_task(self._consume(), name="source-compile"),
        ]
        for task in self._tasks:
            task.add_done_callback(self._log_task_exit)

    async def stop(self) -> None:
        self._stop_event.set()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
