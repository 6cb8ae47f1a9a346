"""
Error classes for resume compilation.

The compile manager catches these at its boundary:
- SourceMissingError: the source document is absent; nothing is attempted
- OutputDirectoryError: the output directory could not be created
- LocalUnavailableError / LocalInvocationError: trigger the remote fallback
- RemoteCompileError: terminal once the local toolchain has already failed
- CompilationFailedError: composite raised to the caller when every
  strategy failed
"""

from __future__ import annotations


class CompileError(Exception):
    """Base exception for resume compilation."""
    pass


class SourceMissingError(CompileError):
    """The source document does not exist on disk."""
    pass


class LocalUnavailableError(CompileError):
    """No local LaTeX toolchain could be located."""
    pass


class LocalInvocationError(CompileError):
    """
    The local compiler exited non-zero or could not be spawned.

    Carries both captured streams so callers can surface the compiler log.
    """

    def __init__(self, message: str, stdout: str = "", stderr: str = "") -> None:
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


class RemoteCompileError(CompileError):
    """Transport failure, timeout, or non-success status from the build service."""
    pass


class CompilationFailedError(CompileError):
    """Every compile strategy failed; the message embeds each failure detail."""
    pass


class OutputDirectoryError(CompileError):
    """The output directory could not be created."""
    pass
