"""Tests for the remote build service client and the online strategy."""

import asyncio
import json

import httpx
import pytest

from conftest import PDF_BYTES
from resume_viewer_backend.configuration import SourcePaths
from resume_viewer_backend.errors import RemoteCompileError
from resume_viewer_backend.models import CompileMethod
from resume_viewer_backend.remote import RemoteCompilerClient
from resume_viewer_backend.strategies import RemoteStrategy

BUILD_URL = "https://latex.example.test/builds/sync"


def _client(handler) -> RemoteCompilerClient:
    return RemoteCompilerClient(BUILD_URL, transport=httpx.MockTransport(handler))


class TestRemoteCompilerClient:
    """Request shape and error wrapping."""

    @pytest.mark.asyncio
    async def test_returns_pdf_bytes(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=PDF_BYTES, headers={"Content-Type": "application/pdf"})

        result = await _client(handler).compile("\\documentclass{article}")

        assert result == PDF_BYTES
        assert seen["method"] == "POST"
        assert seen["url"] == BUILD_URL
        assert seen["body"] == {
            "resources": [{"main": True, "file": "resume.tex", "content": "\\documentclass{article}"}],
            "compiler": "pdflatex",
        }

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, text="LaTeX Error")

        with pytest.raises(RemoteCompileError, match="Online compilation failed: .*status 400"):
            await _client(handler).compile("x")

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(RemoteCompileError, match="timed out after 30.0s"):
            await _client(handler).compile("x")

    @pytest.mark.asyncio
    async def test_whole_request_is_bounded(self):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200, content=PDF_BYTES)

        client = RemoteCompilerClient(BUILD_URL, timeout=0.05, transport=httpx.MockTransport(handler))

        with pytest.raises(RemoteCompileError, match="timed out after 0.05s"):
            await client.compile("x")

    @pytest.mark.asyncio
    async def test_connect_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Name or service not known", request=request)

        with pytest.raises(RemoteCompileError, match="Name or service not known"):
            await _client(handler).compile("x")

    def test_from_settings(self, settings):
        client = RemoteCompilerClient.from_settings(settings)
        assert client.url == "https://latex.ytotech.com/builds/sync"
        assert client.file_name == "resume.tex"
        assert client.timeout == 30.0


class TestRemoteStrategy:
    """RemoteStrategy persists the artifact only on success."""

    @pytest.fixture
    def paths(self, settings, source_file):
        paths = SourcePaths.from_settings(settings)
        paths.output_dir.mkdir(parents=True, exist_ok=True)
        return paths

    @pytest.mark.asyncio
    async def test_success_writes_artifact(self, paths, source_file):
        sent = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(json.loads(request.content)["resources"][0]["content"])
            return httpx.Response(200, content=PDF_BYTES)

        outcome = await RemoteStrategy(_client(handler)).run(paths)

        assert outcome.success is True
        assert outcome.method == CompileMethod.ONLINE
        assert paths.artifact_file.read_bytes() == PDF_BYTES
        assert sent == [source_file.read_text(encoding="utf-8")]

    @pytest.mark.asyncio
    async def test_failure_leaves_artifact(self, paths):
        paths.artifact_file.write_bytes(b"previous")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        outcome = await RemoteStrategy(_client(handler)).run(paths)

        assert outcome.success is False
        assert "503" in outcome.detail
        assert paths.artifact_file.read_bytes() == b"previous"

    @pytest.mark.asyncio
    async def test_disabled(self, paths):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("remote must not be called")

        outcome = await RemoteStrategy(_client(handler), enabled=False).run(paths)

        assert outcome.success is False
        assert outcome.detail == "Online compilation disabled"

    @pytest.mark.asyncio
    async def test_artifact_write_failure_is_an_outcome(self, paths):
        paths.artifact_file.mkdir()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=PDF_BYTES)

        outcome = await RemoteStrategy(_client(handler)).run(paths)

        assert outcome.success is False
        assert outcome.detail.startswith("Online compilation failed:")
        assert paths.artifact_file.is_dir()
        assert list(paths.output_dir.iterdir()) == [paths.artifact_file]
