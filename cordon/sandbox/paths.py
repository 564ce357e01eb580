"""Path validation and bind mount normalization.

Every path that reaches the bwrap command line (bind sources, bind
targets, working directories) goes through ``validate_path`` first.
The check is purely syntactic: no symlink or realpath resolution.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cordon.exceptions import InvalidBindFormatError, InvalidPathError

logger = logging.getLogger(__name__)


def validate_path(path: Any, context: str = "path") -> None:
    """Validate that a path is absolute and safe for use in a bind mount.

    The ``..`` check is a substring match, so ``/data/a..b`` is rejected
    along with real traversal attempts like ``/etc/../../etc/passwd``.

    Args:
        path: Value to validate
        context: What the path is used for, included in error messages

    Raises:
        InvalidPathError: If the path is empty, not a string, relative,
            contains ``..`` or contains a null byte
    """
    if not isinstance(path, str) or path == "":
        raise InvalidPathError(
            f"Invalid {context}: path must be a non-empty string.", context=context
        )

    if not path.startswith("/"):
        raise InvalidPathError(
            f"Invalid {context}: path must be absolute (start with /), got: {path!r}",
            context=context,
        )

    if ".." in path:
        raise InvalidPathError(
            f"Invalid {context}: path contains '..' which is not allowed, got: {path!r}",
            context=context,
        )

    if "\0" in path:
        raise InvalidPathError(
            f"Invalid {context}: path contains null bytes, got: {path!r}",
            context=context,
        )


class BindMount(BaseModel):
    """A host path mapped into the sandbox filesystem view."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(..., description="Host path")
    target: str = Field(..., description="Path inside the sandbox")
    read_only: bool = Field(default=True, description="Mount with --ro-bind instead of --bind")

    @property
    def flag(self) -> str:
        """bwrap flag for this mount."""
        return "--ro-bind" if self.read_only else "--bind"

    def to_args(self) -> list[str]:
        """Render as the three bwrap tokens: flag, source, target."""
        return [self.flag, self.source, self.target]


def _normalize_bind(bind: Any) -> BindMount:
    if isinstance(bind, BindMount):
        validate_path(bind.source, "bind source path")
        validate_path(bind.target, "bind target path")
        return bind

    if isinstance(bind, str):
        validate_path(bind, "bind path")
        return BindMount(source=bind, target=bind, read_only=True)

    if isinstance(bind, Mapping) and "from" in bind and "to" in bind:
        validate_path(bind["from"], "bind source path")
        validate_path(bind["to"], "bind target path")
        return BindMount(
            source=bind["from"],
            target=bind["to"],
            read_only=bool(bind.get("read_only", True)),
        )

    # Fail fast instead of silently ignoring the entry
    logger.warning("Rejected bind entry of type %s", type(bind).__name__)
    raise InvalidBindFormatError(f"Invalid bind mount format: {bind!r}")


def normalize_binds(binds: Iterable[Any] | None) -> list[BindMount]:
    """Normalize caller-supplied bind definitions.

    Accepted entries:

    - ``"/path"``: read-only bind of the path onto itself
    - ``{"from": "/src", "to": "/dst", "read_only": False}``: ``read_only``
      defaults to ``True`` when absent
    - a ``BindMount`` instance

    Args:
        binds: Bind entries in the order they should be mounted

    Returns:
        BindMount list of the same length and order as the input

    Raises:
        InvalidBindFormatError: If an entry has an unsupported shape
        InvalidPathError: If any source or target path is invalid
    """
    if binds is None:
        return []
    if isinstance(binds, (str, bytes, Mapping)):
        raise InvalidBindFormatError(
            f"Bind mounts must be given as a sequence of entries, got {type(binds).__name__}"
        )
    return [_normalize_bind(bind) for bind in binds]


__all__ = [
    "BindMount",
    "normalize_binds",
    "validate_path",
]
