"""Remote LaTeX build service client; compiles submitted source to PDF bytes."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx
from omegaconf import DictConfig

from .errors import RemoteCompileError

logger = logging.getLogger(__name__)


class RemoteCompilerClient:
    """Client for a synchronous ``/builds/sync`` style LaTeX build endpoint."""

    def __init__(
        self,
        url: str,
        compiler: str = "pdflatex",
        file_name: str = "resume.tex",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url
        self.compiler = compiler
        self.file_name = file_name
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: DictConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> "RemoteCompilerClient":
        return cls(
            url=settings.remote.url,
            compiler=settings.remote.compiler,
            file_name=settings.source_name,
            timeout=settings.remote.timeout,
            transport=transport,
        )

    def build_payload(self, source_text: str) -> Dict[str, Any]:
        return {
            "resources": [{"main": True, "file": self.file_name, "content": source_text}],
            "compiler": self.compiler,
        }

    async def _post(self, source_text: str) -> bytes:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                self.url,
                json=self.build_payload(source_text),
                headers={"Accept": "application/pdf"},
            )
            response.raise_for_status()
            return response.content

    async def compile(self, source_text: str) -> bytes:
        """
        Submit ``source_text`` and return the rendered PDF bytes.

        Raises:
            RemoteCompileError: on transport failure, a non-2xx status, or when
                the whole request takes longer than ``timeout`` seconds
        """
        try:
            return await asyncio.wait_for(self._post(source_text), timeout=self.timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            logger.error("Build service timeout after %ss", self.timeout)
            raise RemoteCompileError(f"Online compilation failed: timed out after {self.timeout}s") from exc
        except httpx.HTTPStatusError as exc:
            logger.error("Build service returned %s", exc.response.status_code)
            raise RemoteCompileError(
                f"Online compilation failed: build service returned status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Cannot reach build service at %s: %s", self.url, exc)
            raise RemoteCompileError(f"Online compilation failed: {exc}") from exc
