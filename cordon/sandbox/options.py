"""Run-time options accepted by ``SandboxRunner.run``.

Options are a whitelist: unknown keys and wrongly typed values are
rejected, never dropped or coerced.
"""

from collections.abc import Mapping
from typing import Any, ClassVar

from cordon.exceptions import InvalidOptionTypeError, UnknownOptionError


class RunOptions:
    """Valid option keys, their types and defaults.

    ``expose_environment``: when true, the wrapper returned by ``run()``
    hands back the environment passed to the process through
    ``get_env()``. Defaults to false, so the environment is never exposed.
    """

    EXPOSE_ENVIRONMENT: ClassVar[str] = "expose_environment"

    _TYPES: ClassVar[dict[str, type]] = {
        EXPOSE_ENVIRONMENT: bool,
    }
    _DEFAULTS: ClassVar[dict[str, Any]] = {
        EXPOSE_ENVIRONMENT: False,
    }

    @classmethod
    def valid_keys(cls) -> list[str]:
        return list(cls._TYPES)

    @classmethod
    def defaults(cls) -> dict[str, Any]:
        return dict(cls._DEFAULTS)

    @classmethod
    def is_valid_key(cls, key: Any) -> bool:
        return isinstance(key, str) and key in cls._TYPES

    @classmethod
    def validate(cls, options: Mapping[str, Any] | None) -> dict[str, Any]:
        """Validate an options mapping and merge it over the defaults.

        Args:
            options: Caller-supplied options (None is treated as empty)

        Returns:
            A new dict holding every recognized key

        Raises:
            UnknownOptionError: For a non-string or unrecognized key
            InvalidOptionTypeError: For a value of the wrong type
        """
        options = options or {}

        for key in options:
            if not isinstance(key, str):
                raise UnknownOptionError(
                    f"Option keys must be strings. Got {type(key).__name__} at key: {key!r}",
                    key=key,
                )
            if not cls.is_valid_key(key):
                raise UnknownOptionError(
                    f"Unknown option key: {key}. Valid options are: {', '.join(cls.valid_keys())}",
                    key=key,
                )

        for key, value in options.items():
            expected = cls._TYPES[key]
            # bool is an int subclass; type() keeps 1 from passing as True
            if type(value) is not expected:
                raise InvalidOptionTypeError(
                    f"Option {key} must be a {expected.__name__}. "
                    f"Got {type(value).__name__} (value: {value!r})",
                    key=key,
                )

        return {**cls.defaults(), **options}

    @classmethod
    def get(cls, options: Mapping[str, Any], key: str) -> Any:
        """Get an option value, or its default when not set.

        Raises:
            UnknownOptionError: If ``key`` is not a recognized option
        """
        if not cls.is_valid_key(key):
            raise UnknownOptionError(f"Invalid option key: {key}", key=key)
        value = options.get(key)
        return cls._DEFAULTS[key] if value is None else value


__all__ = ["RunOptions"]
