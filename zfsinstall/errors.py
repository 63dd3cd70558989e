"""Installer exception hierarchy.

Every error is fatal: the sequencer stops at the first one and leaves
whatever was already written in place for the operator to inspect.
"""

from __future__ import annotations

from typing import Optional, Sequence


class InstallError(Exception):
    """Base exception for all installer failures."""

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        self.message = message
        self.hint = hint
        # Set by the sequencer to the step that was running.
        self.step: Optional[str] = None
        super().__init__(message)


class PreconditionError(InstallError):
    """A prerequisite is missing (kernel support, clean device, mount point)."""


class ConfigurationError(InstallError):
    """The requested layout or pool options are invalid."""


class OperationError(InstallError):
    """An underlying partition/pool/dataset/mount command failed."""

    def __init__(
        self,
        message: str,
        *,
        argv: Sequence[str] = (),
        returncode: int = 1,
        stderr: str = "",
        hint: Optional[str] = None,
    ) -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message, hint=hint)
