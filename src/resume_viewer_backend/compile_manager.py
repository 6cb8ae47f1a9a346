"""
Compilation orchestration and status tracking for the resume viewer.

This module owns the compile lifecycle of the single source document:
- Precondition checks (source present, output directory created)
- Walking the ordered compile strategies until one succeeds
- Recording the outcome in the compilation status
- Keeping a bounded history of compile attempts
- Serializing compiles so at most one is in flight

The CompileManager instance is created once per application and handed to the
HTTP routes (through a FastAPI dependency) and to the source watcher.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Deque, List, Optional, Sequence

from omegaconf import DictConfig

from .configuration import SourcePaths
from .errors import CompilationFailedError, OutputDirectoryError, SourceMissingError
from .models import CompilationStatus, CompileEvent, CompileMethod
from .strategies import CompileStrategy, StrategyOutcome, default_strategies
from .utils import ensure_directory

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def composite_error(failures: Sequence[tuple[str, str]]) -> str:
    """
    Build the message stored in the status when every strategy failed.

    Args:
        failures: ``(strategy name, failure detail)`` pairs in attempt order

    Returns:
        e.g. ``"Both local and online compilation failed. Local: ..., Online: ..."``
    """
    names = [name.lower() for name, _ in failures]
    if names == ["local", "online"]:
        headline = "Both local and online compilation failed."
    else:
        headline = "All compilation strategies failed."
    details = ", ".join(f"{name}: {detail}" for name, detail in failures)
    return f"{headline} {details}"


class CompileManager:
    """
    Central coordinator for compiling the source document.

    Thread Safety:
        Intended for a single asyncio event loop. ``compile()`` holds an
        ``asyncio.Lock`` for its whole run, so an HTTP-triggered compile that
        arrives while a watcher-triggered one is running waits for it to
        finish instead of interleaving on the status and the artifact.

    Attributes:
        settings: Read-only application settings
        paths: Absolute source, output and artifact locations
    """

    def __init__(
        self,
        settings: DictConfig,
        strategies: Optional[Sequence[CompileStrategy]] = None,
    ) -> None:
        """
        Initialize the compile manager.

        Args:
            settings: Application settings (see ``configuration.Settings``)
            strategies: Ordered compile strategies (default: local, then online)
        """
        self.settings = settings
        self.paths = SourcePaths.from_settings(settings)
        self._strategies: List[CompileStrategy] = list(strategies) if strategies is not None else default_strategies(settings)
        self._status = CompilationStatus()
        self._events: Deque[CompileEvent] = deque(maxlen=settings.history_size)
        self._lock: Optional[asyncio.Lock] = None

    @property
    def lock(self) -> asyncio.Lock:
        # Created lazily so it binds to the running loop, not the import-time one.
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    @property
    def is_busy(self) -> bool:
        return self._lock is not None and self._lock.locked()

    def status(self) -> CompilationStatus:
        """
        Get the current compilation status.

        Returns:
            An immutable snapshot; readers may observe an in-progress compile
        """
        return self._status

    def history(self) -> List[CompileEvent]:
        """Recent compile attempts, oldest first."""
        return list(self._events)

    def _update_status(self, **changes: object) -> CompilationStatus:
        self._status = self._status.model_copy(update=changes)
        return self._status

    def _append_event(self, message: str, success: bool, method: Optional[CompileMethod] = None) -> None:
        self._events.append(CompileEvent(timestamp=_now(), message=message, method=method, success=success))

    async def compile(self) -> CompilationStatus:
        """
        Compile the source document, waiting for any compile already in flight.

        Returns:
            The status snapshot after a successful compile

        Raises:
            SourceMissingError: if the source document does not exist; the
                status is left untouched and ``is_compiling`` is never set
            OutputDirectoryError: if the output directory cannot be created
            CompilationFailedError: if every strategy failed, including
                strategies that raised; the composite message is also stored
                in the status ``error`` field
        """
        async with self.lock:
            return await self._compile()

    async def _compile(self) -> CompilationStatus:
        source_file = self.paths.source_file
        if not source_file.exists():
            self._append_event(f"{source_file.name} not found", success=False)
            raise SourceMissingError(f"{source_file.name} not found")

        try:
            ensure_directory(self.paths.output_dir)
        except OSError as exc:
            message = f"Cannot create output directory {self.paths.output_dir}: {exc}"
            self._update_status(error=message)
            self._append_event(message, success=False)
            raise OutputDirectoryError(message) from exc
        self._update_status(is_compiling=True, error=None)

        try:
            failures: list[tuple[str, str]] = []
            for strategy in self._strategies:
                try:
                    outcome: StrategyOutcome = await strategy.run(self.paths)
                except Exception as exc:
                    logger.exception("%s compilation crashed", strategy.name)
                    outcome = StrategyOutcome.failed(strategy.method, f"{type(exc).__name__}: {exc}")
                if outcome.success:
                    self._update_status(method=outcome.method, last_compiled=_now())
                    logger.info("%s LaTeX compilation successful", strategy.name)
                    self._append_event(f"{strategy.name} compilation succeeded.", success=True, method=outcome.method)
                    return self._update_status(is_compiling=False)
                failures.append((strategy.name, outcome.detail or "unknown error"))

            message = composite_error(failures)
            self._update_status(error=message)
            logger.error(message)
            self._append_event(message, success=False)
            raise CompilationFailedError(message)
        finally:
            self._update_status(is_compiling=False)
