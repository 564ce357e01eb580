"""bwrap command line assembly.

Produces the argv handed to the process layer:

    <binary> <base_args...>
        [--ro-bind P P]*        config read-only binds
        [--bind P P]*           config writable binds
        [--ro-bind|--bind S D]* per-call binds, by their own read_only flag
        <command...>

Building never spawns anything.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from cordon.exceptions import InvalidCommandError
from cordon.sandbox.binary import ensure_executable
from cordon.sandbox.config import SandboxConfig
from cordon.sandbox.paths import BindMount, normalize_binds, validate_path

logger = logging.getLogger(__name__)


def validate_command(command: Any) -> None:
    """Ensure a command was provided and every part is a safe string.

    Raises:
        InvalidCommandError: If the command is empty, not a sequence, or
            has a part that is not a string or contains a null byte
    """
    if isinstance(command, (str, bytes)) or not isinstance(command, Sequence):
        raise InvalidCommandError(
            "The command must be a sequence of strings, e.g. ['/bin/echo', 'hi']."
        )

    if len(command) == 0:
        raise InvalidCommandError("You must provide a command to run inside the sandbox.")

    for index, part in enumerate(command):
        if not isinstance(part, str):
            raise InvalidCommandError(
                f"Command part at index {index} must be a string, got {type(part).__name__}."
            )
        if "\0" in part:
            raise InvalidCommandError(f"Command part at index {index} contains null bytes.")


def _config_binds(config: SandboxConfig) -> list[BindMount]:
    binds: list[BindMount] = []
    for path in config.read_only_binds:
        validate_path(path, "read-only bind path")
        binds.append(BindMount(source=path, target=path, read_only=True))
    for path in config.write_binds:
        validate_path(path, "writable bind path")
        binds.append(BindMount(source=path, target=path, read_only=False))
    return binds


def build_command(
    config: SandboxConfig,
    extra_binds: Iterable[Any] | None,
    command: Sequence[str],
) -> list[str]:
    """Build the complete bwrap argv.

    Checks run in a fixed order: binary availability, then the command,
    then every bind path.

    Args:
        config: Sandbox configuration
        extra_binds: Per-call binds, see ``normalize_binds`` for the shapes
        command: Program and arguments to run inside the sandbox

    Returns:
        The argv, starting with the configured binary

    Raises:
        SandboxUnavailableError: If the binary cannot be executed
        InvalidCommandError: If the command is empty or malformed
        InvalidPathError: If a bind path is unsafe
        InvalidBindFormatError: If a per-call bind has an unsupported shape
    """
    ensure_executable(config.binary, config.binary_validator)
    validate_command(command)
    binds = _config_binds(config) + normalize_binds(extra_binds)

    argv = [config.binary, *config.base_args]
    for bind in binds:
        argv.extend(bind.to_args())
    argv.extend(command)

    logger.debug(
        "Built sandbox argv: %d base args, %d binds, %d command parts",
        len(config.base_args),
        len(binds),
        len(command),
    )
    return argv


__all__ = [
    "build_command",
    "validate_command",
]
