"""Secure wrapper around a sandboxed process.

The wrapper stands in for the process handle it owns and forwards the
``ProcessHandle`` operations to it. It can also hold the environment the
process was started with, but hands it back only when that was
explicitly enabled at construction.

Its own fields can be neither read nor written through attribute access:
an attempt raises ``AccessDeniedError``, so the environment cannot be
recovered by poking at the object.
"""

from collections.abc import Mapping
from typing import Any

from cordon.exceptions import AccessDeniedError
from cordon.sandbox.process import ProcessHandle

_STATE_SLOT = "_SecureProcessWrapper__state"

_PROTECTED_NAMES = frozenset(
    {
        "process",
        "env",
        "expose_environment",
        "state",
        "_process",
        "_env",
        "_expose_environment",
        "_state",
        "__dict__",
        _STATE_SLOT,
    }
)


class _WrapperState:
    __slots__ = ("process", "env", "expose_environment")

    def __init__(
        self,
        process: ProcessHandle,
        env: dict[str, str] | None,
        expose_environment: bool,
    ) -> None:
        self.process = process
        self.env = env
        self.expose_environment = expose_environment


def _state(wrapper: "SecureProcessWrapper") -> _WrapperState:
    return object.__getattribute__(wrapper, _STATE_SLOT)


class SecureProcessWrapper:
    """Process handle stand-in with opt-in environment access.

    Usage:
        wrapper = SecureProcessWrapper(process, env={"TOKEN": "x"})
        await wrapper.wait()
        wrapper.stdout
        wrapper.get_env()  # raises AccessDeniedError
    """

    __slots__ = ("__state",)

    def __init__(
        self,
        process: ProcessHandle,
        env: Mapping[str, str] | None = None,
        expose_environment: bool = False,
    ) -> None:
        """Initialize the wrapper.

        Args:
            process: Handle to wrap; owned by the wrapper from now on
            env: Environment passed to the process, kept only if exposed
            expose_environment: Whether ``get_env()`` may return ``env``
        """
        expose = bool(expose_environment)
        # Dropped right away unless exposure was requested
        kept_env = (dict(env) if env is not None else {}) if expose else None
        object.__setattr__(self, _STATE_SLOT, _WrapperState(process, kept_env, expose))

    def get_env(self) -> dict[str, str]:
        """Environment variables passed to the process.

        Raises:
            AccessDeniedError: If environment access was not enabled for
                this wrapper
        """
        state = _state(self)
        if not state.expose_environment:
            raise AccessDeniedError(
                "Environment variable access is not enabled for this process. "
                "Pass options={'expose_environment': True} to run() to enable it."
            )
        return dict(state.env or {})

    def is_env_access_enabled(self) -> bool:
        return _state(self).expose_environment

    # ProcessHandle

    @property
    def command(self) -> list[str]:
        return _state(self).process.command

    @property
    def timeout(self) -> float | None:
        return _state(self).process.timeout

    @property
    def returncode(self) -> int | None:
        return _state(self).process.returncode

    @property
    def stdout(self) -> str:
        return _state(self).process.stdout

    @property
    def stderr(self) -> str:
        return _state(self).process.stderr

    def is_running(self) -> bool:
        return _state(self).process.is_running()

    def is_successful(self) -> bool:
        return _state(self).process.is_successful()

    async def start(self) -> None:
        await _state(self).process.start()

    async def wait(self) -> int:
        return await _state(self).process.wait()

    def terminate(self) -> None:
        _state(self).process.terminate()

    def kill(self) -> None:
        _state(self).process.kill()

    # Field guard

    def __getattribute__(self, name: str) -> Any:
        if name in _PROTECTED_NAMES:
            raise AccessDeniedError(f"Cannot access protected property: {name}")
        return object.__getattribute__(self, name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AccessDeniedError(f"Cannot modify protected property: {name}")

    def __delattr__(self, name: str) -> None:
        raise AccessDeniedError(f"Cannot modify protected property: {name}")

    def __reduce_ex__(self, protocol: Any) -> Any:
        raise AccessDeniedError("SecureProcessWrapper cannot be serialized")

    def __copy__(self) -> "SecureProcessWrapper":
        raise AccessDeniedError("SecureProcessWrapper cannot be copied")

    def __deepcopy__(self, memo: Any) -> "SecureProcessWrapper":
        raise AccessDeniedError("SecureProcessWrapper cannot be copied")

    def __repr__(self) -> str:
        state = _state(self)
        return (
            f"SecureProcessWrapper(returncode={state.process.returncode!r}, "
            f"env_access={'enabled' if state.expose_environment else 'disabled'})"
        )


__all__ = ["SecureProcessWrapper"]
