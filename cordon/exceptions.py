"""Cordon exception hierarchy.

Base exceptions for every layer of the sandbox invocation path, with
correlation ID support.

Usage:
    from cordon.exceptions import InvalidArgumentError, SandboxUnavailableError

    try:
        argv = runner.build(["/bin/echo", "hi"])
    except SandboxUnavailableError as e:
        logger.error("bwrap missing (correlation_id=%s): %s", e.correlation_id, e)
"""

import uuid


class CordonError(Exception):
    """Base exception for all Cordon errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class InvalidArgumentError(CordonError, ValueError):
    """Malformed command, path, bind or option. A caller bug, never retried."""

    pass


class InvalidPathError(InvalidArgumentError):
    """A bind mount or working directory path failed validation."""

    def __init__(self, message: str, *, context: str = "path", **kwargs):
        self.context = context
        super().__init__(message, **kwargs)


class InvalidBindFormatError(InvalidArgumentError):
    """A bind entry is neither a path string nor a from/to mapping."""

    pass


class InvalidCommandError(InvalidArgumentError):
    """The command to run inside the sandbox is empty or malformed."""

    pass


class UnknownOptionError(InvalidArgumentError):
    """A run option key is not part of the recognized set."""

    def __init__(self, message: str, *, key: object = None, **kwargs):
        self.key = key
        super().__init__(message, **kwargs)


class InvalidOptionTypeError(InvalidArgumentError):
    """A recognized run option carries a value of the wrong type."""

    def __init__(self, message: str, *, key: str | None = None, **kwargs):
        self.key = key
        super().__init__(message, **kwargs)


class SandboxUnavailableError(CordonError):
    """The sandbox helper binary is missing or not executable.

    A deployment problem: surfaced to the caller, never retried.
    """

    def __init__(self, message: str, *, binary: str | None = None, **kwargs):
        self.binary = binary
        super().__init__(message, **kwargs)


class AccessDeniedError(CordonError):
    """Gated environment access or access to a wrapper's internal fields."""

    pass


class ProcessError(CordonError):
    """Errors reported by the process execution layer."""

    pass


class ProcessFailedError(ProcessError):
    """The sandboxed process exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
        **kwargs,
    ):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(message, **kwargs)


class ProcessTimedOutError(ProcessError):
    """The sandboxed process exceeded its timeout and was killed."""

    def __init__(self, message: str, *, timeout: float | None = None, **kwargs):
        self.timeout = timeout
        super().__init__(message, **kwargs)


__all__ = [
    "AccessDeniedError",
    "CordonError",
    "InvalidArgumentError",
    "InvalidBindFormatError",
    "InvalidCommandError",
    "InvalidOptionTypeError",
    "InvalidPathError",
    "ProcessError",
    "ProcessFailedError",
    "ProcessTimedOutError",
    "SandboxUnavailableError",
    "UnknownOptionError",
]
