"""
Pytest configuration and fixtures for the resume viewer tests.
"""

import os
import shutil
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing the app
os.environ["RESUME_VIEWER_ROOT"] = tempfile.mkdtemp(prefix="resume_viewer_test_root_")
os.environ["RESUME_VIEWER_WATCH"] = "false"
os.environ["RESUME_VIEWER_COMPILE_ON_STARTUP"] = "false"
os.environ["RESUME_VIEWER_REMOTE_ENABLED"] = "false"
os.environ.pop("RESUME_VIEWER_CONFIG", None)

from resume_viewer_backend.compile_manager import CompileManager
from resume_viewer_backend.configuration import SourcePaths, make_settings
from resume_viewer_backend.main import app, get_compile_manager
from resume_viewer_backend.models import CompileMethod
from resume_viewer_backend.strategies import StrategyOutcome

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF"

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX shell script as the compiler")

FAKE_PDFLATEX = """#!/bin/sh
# Minimal pdflatex stand-in: honours -output-directory and fails on \\fail
outdir=.
for arg in "$@"; do
  case "$arg" in
    -output-directory=*) outdir="${arg#-output-directory=}" ;;
    -*) ;;
    *) src="$arg" ;;
  esac
done
if grep -q 'fail' "$src"; then
  echo "! Undefined control sequence." >&2
  exit 1
fi
echo "Output written on ${src%.tex}.pdf"
printf '%%PDF-1.4 fake' > "$outdir/${src%.tex}.pdf"
"""

SAMPLE_TEX = r"""\documentclass{article}
\begin{document}
Jane Doe \\ Software Engineer
\end{document}
"""


class FakeStrategy:
    """Compile strategy double that records calls and returns a fixed outcome."""

    def __init__(self, name, method, success=True, detail=None, artifact=None, error=None):
        self.name = name
        self.method = method
        self.success = success
        self.detail = detail
        self.artifact = artifact
        self.error = error
        self.calls = 0

    async def run(self, paths: SourcePaths) -> StrategyOutcome:
        self.calls += 1
        if self.error is not None:
            raise self.error
        if not self.success:
            return StrategyOutcome.failed(self.method, self.detail or f"{self.name} failed")
        if self.artifact is not None:
            paths.artifact_file.write_bytes(self.artifact)
        return StrategyOutcome.ok(self.method)


def local_strategy(**kwargs) -> FakeStrategy:
    return FakeStrategy("Local", CompileMethod.LOCAL, **kwargs)


def online_strategy(**kwargs) -> FakeStrategy:
    return FakeStrategy("Online", CompileMethod.ONLINE, **kwargs)


@pytest.fixture(scope="session", autouse=True)
def test_root():
    """Cleanup the import-time root directory after all tests."""
    root = os.environ["RESUME_VIEWER_ROOT"]
    yield Path(root)
    shutil.rmtree(root, ignore_errors=True)


@pytest.fixture
def settings(tmp_path):
    """Settings rooted in a per-test directory, ignoring the process environment."""
    return make_settings(
        overrides={"root_dir": str(tmp_path), "remote": {"enabled": False}, "watch": {"enabled": False}},
        environ={},
    )


@pytest.fixture
def source_file(settings):
    """Write a minimal resume.tex into the test root."""
    path = SourcePaths.from_settings(settings).source_file
    path.write_text(SAMPLE_TEX, encoding="utf-8")
    return path


@pytest.fixture
def make_manager(settings):
    """Build a CompileManager over the test root with the given strategies."""

    def _make(*strategies):
        return CompileManager(settings, strategies=list(strategies))

    return _make


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_manager():
    """Route API requests to a specific CompileManager."""

    def _use(manager: CompileManager) -> CompileManager:
        app.dependency_overrides[get_compile_manager] = lambda: manager
        return manager

    yield _use
    app.dependency_overrides.clear()


@pytest.fixture
def fake_compiler(tmp_path):
    """Executable pdflatex stand-in written into the test directory."""
    script = tmp_path / "bin" / "fake-pdflatex"
    script.parent.mkdir()
    script.write_text(FAKE_PDFLATEX)
    script.chmod(0o755)
    return script
