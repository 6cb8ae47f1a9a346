"""
Local LaTeX toolchain discovery and invocation.

The availability check and the invoker resolve the compiler binary independently, each
with the same ordered search:

1. the primary compiler (``pdflatex``) on ``PATH``
2. a fixed, well-known installation path (MacTeX)
3. the alternate compiler (``xelatex``) on ``PATH``
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from omegaconf import DictConfig

from .errors import LocalInvocationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalCompileResult:
    binary: str
    stdout: str
    stderr: str


def _candidates(toolchain: DictConfig) -> Iterator[Optional[str]]:
    yield shutil.which(toolchain.primary)
    fixed = Path(toolchain.fixed_path)
    yield str(fixed) if fixed.is_file() else None
    yield shutil.which(toolchain.alternate)


def find_local_compiler(toolchain: DictConfig) -> Optional[str]:
    """Return the first usable compiler binary, or None when nothing is installed."""
    for candidate in _candidates(toolchain):
        if candidate:
            return candidate
    return None


def local_compiler_available(toolchain: DictConfig) -> bool:
    return find_local_compiler(toolchain) is not None


async def compile_locally(input_file: Path, output_dir: Path, toolchain: DictConfig) -> LocalCompileResult:
    """
    Run the local compiler against ``input_file``, writing into ``output_dir``.

    The working directory is the input file's directory so relative
    ``\\input`` and image paths resolve the same way they do for the user.

    Raises:
        LocalInvocationError: if no binary resolves, the process cannot be
            spawned, or it exits non-zero
    """
    binary = find_local_compiler(toolchain)
    if binary is None:
        raise LocalInvocationError(f"No {toolchain.primary} or {toolchain.alternate} binary found")

    args = [*toolchain.extra_args, f"-output-directory={output_dir}", input_file.name]
    logger.debug("Running %s %s in %s", binary, " ".join(args), input_file.parent)
    try:
        process = await asyncio.create_subprocess_exec(
            binary,
            *args,
            cwd=str(input_file.parent),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise LocalInvocationError(f"Failed to start {binary}: {exc}") from exc

    raw_stdout, raw_stderr = await process.communicate()
    stdout = raw_stdout.decode("utf-8", errors="replace")
    stderr = raw_stderr.decode("utf-8", errors="replace")

    if process.returncode != 0:
        raise LocalInvocationError(
            f"Command failed: {binary} exited with status {process.returncode}",
            stdout=stdout,
            stderr=stderr,
        )
    return LocalCompileResult(binary=binary, stdout=stdout, stderr=stderr)
