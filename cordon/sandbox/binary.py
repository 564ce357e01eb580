"""Sandbox helper availability checks.

Decides whether the configured bwrap binary can be invoked: through an
injected validator, a direct path check, or a PATH search.
"""

import logging
import os
from typing import Protocol, runtime_checkable

from cordon.exceptions import SandboxUnavailableError

logger = logging.getLogger(__name__)


@runtime_checkable
class BinaryValidator(Protocol):
    """Strategy deciding whether a helper binary may be used.

    When supplied, its answer replaces the filesystem checks entirely.
    """

    def __call__(self, binary: str) -> bool: ...


def _is_executable_file(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def binary_exists_in_path(binary: str) -> bool:
    """Check if a binary name resolves to an executable in PATH.

    Args:
        binary: Bare binary name (no path separator)

    Returns:
        True if some PATH entry contains an executable with that name
    """
    path_env = os.environ.get("PATH", "")
    for directory in path_env.split(os.pathsep):
        if not directory:
            continue
        candidate = os.path.join(directory, binary)
        if _is_executable_file(candidate):
            logger.debug("Resolved %s to %s", binary, candidate)
            return True
    return False


def ensure_executable(binary: str, validator: BinaryValidator | None = None) -> None:
    """Ensure the sandbox helper binary is available to execute.

    Args:
        binary: Absolute/relative path containing ``/``, or a bare name
        validator: Optional predicate whose result is authoritative

    Raises:
        SandboxUnavailableError: If the binary is missing, not executable
            or rejected by the validator
    """
    if not isinstance(binary, str) or binary == "":
        raise SandboxUnavailableError(
            "Sandbox binary path must be a non-empty string.", binary=None
        )

    if validator is not None:
        if not validator(binary):
            raise SandboxUnavailableError(
                f"Sandbox binary failed custom validation: {binary}", binary=binary
            )
        return

    # A path is checked directly, never through PATH: a non-executable local
    # file must not resolve to a same-named binary elsewhere.
    if "/" in binary:
        if not os.path.exists(binary):
            raise SandboxUnavailableError(f"Sandbox binary not found: {binary}", binary=binary)
        if not _is_executable_file(binary):
            raise SandboxUnavailableError(
                f"Sandbox binary is not executable: {binary}", binary=binary
            )
        return

    if not binary_exists_in_path(binary):
        raise SandboxUnavailableError(
            f"Sandbox binary not found in PATH: {binary}", binary=binary
        )


__all__ = [
    "BinaryValidator",
    "binary_exists_in_path",
    "ensure_executable",
]
