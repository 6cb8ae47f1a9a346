"""
Compile strategies tried in order by the compile manager.

Each strategy turns the source document into the artifact one way and reports
a typed ``StrategyOutcome`` instead of raising, so the manager can walk the
list and collect every failure detail for the composite error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol

from omegaconf import DictConfig

from .configuration import SourcePaths
from .errors import CompileError, LocalInvocationError, LocalUnavailableError
from .models import CompileMethod
from .remote import RemoteCompilerClient
from .toolchain import compile_locally, local_compiler_available
from .utils import replace_file_bytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategyOutcome:
    method: CompileMethod
    success: bool
    detail: Optional[str] = None

    @classmethod
    def ok(cls, method: CompileMethod) -> "StrategyOutcome":
        return cls(method=method, success=True)

    @classmethod
    def failed(cls, method: CompileMethod, detail: str) -> "StrategyOutcome":
        return cls(method=method, success=False, detail=detail)


class CompileStrategy(Protocol):
    name: str
    method: CompileMethod

    async def run(self, paths: SourcePaths) -> StrategyOutcome: ...


class LocalStrategy:
    """Compile with the TeX toolchain installed on this machine."""

    name = "Local"
    method = CompileMethod.LOCAL

    def __init__(self, toolchain: DictConfig) -> None:
        self.toolchain = toolchain

    async def run(self, paths: SourcePaths) -> StrategyOutcome:
        try:
            if not local_compiler_available(self.toolchain):
                raise LocalUnavailableError("Local LaTeX not available")
            await compile_locally(paths.source_file, paths.output_dir, self.toolchain)
        except LocalInvocationError as exc:
            logger.info("Local compilation failed, trying next strategy: %s", exc)
            if exc.stderr:
                logger.debug("Compiler stderr:\n%s", exc.stderr)
            return StrategyOutcome.failed(self.method, str(exc))
        except LocalUnavailableError as exc:
            logger.info("%s, trying next strategy", exc)
            return StrategyOutcome.failed(self.method, str(exc))
        return StrategyOutcome.ok(self.method)


class RemoteStrategy:
    """Compile through the remote build service and store the returned PDF."""

    name = "Online"
    method = CompileMethod.ONLINE

    def __init__(self, client: RemoteCompilerClient, enabled: bool = True) -> None:
        self.client = client
        self.enabled = enabled

    async def run(self, paths: SourcePaths) -> StrategyOutcome:
        if not self.enabled:
            return StrategyOutcome.failed(self.method, "Online compilation disabled")
        try:
            source_text = paths.source_file.read_text(encoding="utf-8")
            pdf_bytes = await self.client.compile(source_text)
            replace_file_bytes(paths.artifact_file, pdf_bytes)
        except CompileError as exc:
            return StrategyOutcome.failed(self.method, str(exc))
        except OSError as exc:
            logger.error("Online compilation I/O error: %s", exc)
            return StrategyOutcome.failed(self.method, f"Online compilation failed: {exc}")
        return StrategyOutcome.ok(self.method)


def default_strategies(settings: DictConfig) -> List[CompileStrategy]:
    return [
        LocalStrategy(settings.toolchain),
        RemoteStrategy(RemoteCompilerClient.from_settings(settings), enabled=settings.remote.enabled),
    ]
