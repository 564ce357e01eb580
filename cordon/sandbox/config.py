"""Sandbox helper configuration.

A ``SandboxConfig`` names the bwrap binary, the base arguments and the
bind mounts applied to every invocation. It is immutable once built and
can be shared freely between runners.
"""

import logging
import os
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cordon.exceptions import InvalidArgumentError
from cordon.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_BINARY = "/usr/bin/bwrap"

DEFAULT_BASE_ARGS: tuple[str, ...] = (
    "--unshare-all",
    "--die-with-parent",
    "--new-session",
    "--proc",
    "/proc",
    "--dev",
    "/dev",
    "--tmpfs",
    "/tmp",  # nosec B108
    "--tmpfs",
    "/run",
    "--setenv",
    "PATH",
    "/usr/bin:/bin:/usr/sbin:/sbin",
    "--chdir",
    "/tmp",  # nosec B108
)

_CORE_READ_ONLY_BINDS: tuple[str, ...] = (
    "/usr",
    "/bin",
    "/lib",
    "/sbin",
    "/etc/resolv.conf",
    "/etc/ssl",
)


def default_binary() -> str:
    """Absolute path of the bwrap binary shipped by distro packages."""
    return DEFAULT_BINARY


def default_base_args() -> tuple[str, ...]:
    """Full namespace isolation, private /tmp and /run, minimal PATH, cwd /tmp."""
    return DEFAULT_BASE_ARGS


def default_read_only_binds() -> tuple[str, ...]:
    """Core OS directories, plus /lib64 when the host has one."""
    # Alpine has no /lib64
    if os.path.isdir("/lib64"):
        return (*_CORE_READ_ONLY_BINDS, "/lib64")
    return _CORE_READ_ONLY_BINDS


def default_write_binds() -> tuple[str, ...]:
    """No writable binds: /tmp is already a tmpfs through the base args."""
    return ()


def _is_str_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)


class SandboxConfig(BaseModel):
    """Immutable configuration for invoking the sandbox helper."""

    model_config = ConfigDict(frozen=True)

    binary: str = Field(default_factory=default_binary, description="bwrap path or name")
    base_args: tuple[str, ...] = Field(
        default_factory=default_base_args,
        description="Arguments placed right after the binary",
    )
    read_only_binds: tuple[str, ...] = Field(
        default_factory=default_read_only_binds,
        description="Paths bound read-only onto themselves",
    )
    write_binds: tuple[str, ...] = Field(
        default_factory=default_write_binds,
        description="Paths bound writable onto themselves",
    )
    binary_validator: Callable[[str], bool] | None = Field(
        default=None,
        exclude=True,
        description="Predicate replacing the filesystem availability checks",
    )

    @field_validator("binary")
    @classmethod
    def _binary_not_empty(cls, value: str) -> str:
        if value == "":
            raise ValueError("Binary path must be a non-empty string.")
        return value

    @classmethod
    def from_config(cls, config: Mapping[str, Any] | None) -> "SandboxConfig":
        """Build a config from a loosely-typed mapping.

        Recognized keys: ``binary``, ``base_args``, ``read_only_binds``,
        ``write_binds``, ``binary_validator``. A missing or wrongly typed
        section falls back to its default; an empty binary does not.

        Raises:
            InvalidArgumentError: If ``binary`` is an empty string
        """
        config = config or {}

        binary = config.get("binary")
        if binary == "":
            raise InvalidArgumentError("Binary path must be a non-empty string.")
        if not isinstance(binary, str):
            binary = default_binary()

        sections: dict[str, tuple[str, ...]] = {}
        for key, default in (
            ("base_args", default_base_args),
            ("read_only_binds", default_read_only_binds),
            ("write_binds", default_write_binds),
        ):
            value = config.get(key)
            if _is_str_sequence(value):
                sections[key] = tuple(value)
            else:
                if value is not None:
                    logger.warning(
                        "Ignoring sandbox config %s of type %s, using defaults",
                        key,
                        type(value).__name__,
                    )
                sections[key] = default()

        validator = config.get("binary_validator")
        if not callable(validator):
            validator = None

        return cls(binary=binary, binary_validator=validator, **sections)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SandboxConfig":
        """Build a config from application settings; unset fields use defaults."""
        return cls.from_config(
            {
                "binary": settings.sandbox_binary,
                "base_args": settings.sandbox_base_args,
                "read_only_binds": settings.sandbox_read_only_binds,
                "write_binds": settings.sandbox_write_binds,
            }
        )


def get_default_config() -> SandboxConfig:
    """Config built entirely from built-in defaults."""
    return SandboxConfig()


__all__ = [
    "DEFAULT_BASE_ARGS",
    "DEFAULT_BINARY",
    "SandboxConfig",
    "default_base_args",
    "default_binary",
    "default_read_only_binds",
    "default_write_binds",
    "get_default_config",
]
