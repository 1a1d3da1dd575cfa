"""
livepreview — Exceptions

Resolver fallback has no exception here: it is a warning diagnostic, not an
error.
"""

from __future__ import annotations


class PreviewError(Exception):
    """Base class for everything the preview pipeline raises."""


class EmptyInputError(PreviewError):
    """The code string is missing or whitespace-only."""

    def __init__(self, message: str = "No code provided to render") -> None:
        super().__init__(message)


class TransformationError(PreviewError):
    """An unexpected failure inside one of the pipeline passes."""

    def __init__(self, pass_name: str, cause: BaseException) -> None:
        self.pass_name = pass_name
        self.cause = cause
        super().__init__(f"{pass_name} failed: {cause}")


class SandboxRuntimeError(PreviewError):
    """The document raised while executing in the sandbox (relayed back)."""

    def __init__(self, message: str, stack: str | None = None) -> None:
        self.stack = stack
        super().__init__(message)
