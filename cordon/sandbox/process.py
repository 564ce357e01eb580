"""Process execution for sandboxed commands.

``SandboxProcess`` takes a finished argv and spawns it with
``asyncio.create_subprocess_exec``. It is created un-started by
``SandboxRunner.prepare`` so callers can inspect or adjust the run before
awaiting it. Timeouts are enforced here, not by the command builder.
"""

import asyncio
import contextlib
import logging
import os
from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

from cordon.exceptions import ProcessError, ProcessTimedOutError, SandboxUnavailableError

logger = logging.getLogger(__name__)


@runtime_checkable
class ProcessHandle(Protocol):
    """Operations callers need from a sandboxed process."""

    @property
    def command(self) -> list[str]: ...

    @property
    def timeout(self) -> float | None: ...

    @property
    def returncode(self) -> int | None: ...

    @property
    def stdout(self) -> str: ...

    @property
    def stderr(self) -> str: ...

    def is_running(self) -> bool: ...

    def is_successful(self) -> bool: ...

    async def start(self) -> None: ...

    async def wait(self) -> int: ...

    def terminate(self) -> None: ...

    def kill(self) -> None: ...


class SandboxProcess:
    """A single run of a sandboxed command.

    Usage:
        process = SandboxProcess(["bwrap", "--unshare-all", "/bin/true"], timeout=10)
        returncode = await process.wait()  # starts the process if needed
        print(process.stdout)
    """

    def __init__(
        self,
        command: Sequence[str],
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize an un-started process.

        Args:
            command: Complete argv, starting with the sandbox binary
            cwd: Working directory for the spawned helper
            env: Variables added on top of the inherited environment
            timeout: Seconds before the process is killed; None or 0
                disables it
        """
        self._command = list(command)
        self._cwd = cwd
        self._env = dict(env) if env is not None else None
        # 0 means no timeout
        self._timeout = timeout if timeout else None
        self._process: asyncio.subprocess.Process | None = None
        self._returncode: int | None = None
        self._stdout = ""
        self._stderr = ""

    @property
    def command(self) -> list[str]:
        return list(self._command)

    @property
    def cwd(self) -> str | None:
        return self._cwd

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @property
    def returncode(self) -> int | None:
        return self._returncode

    @property
    def stdout(self) -> str:
        return self._stdout

    @property
    def stderr(self) -> str:
        return self._stderr

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    def is_started(self) -> bool:
        return self._process is not None

    def is_running(self) -> bool:
        return self._process is not None and self._returncode is None

    def is_successful(self) -> bool:
        return self._returncode == 0

    def _spawn_env(self) -> dict[str, str] | None:
        if self._env is None:
            return None
        return {**os.environ, **self._env}

    async def start(self) -> None:
        """Spawn the process.

        Raises:
            ProcessError: If the process was already started
            SandboxUnavailableError: If the binary cannot be spawned
        """
        if self._process is not None:
            raise ProcessError("Process has already been started")

        logger.debug("Starting sandboxed process: %s", self._command[0] if self._command else "")
        env = self._spawn_env()
        # Not kept past the spawn
        self._env = None
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self._command,
                cwd=self._cwd,
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise SandboxUnavailableError(
                f"Sandbox binary not found: {self._command[0]}", binary=self._command[0]
            ) from e

    async def wait(self) -> int:
        """Wait for the process to finish, starting it first if needed.

        Returns:
            The exit status

        Raises:
            ProcessError: If the process could not be started
            ProcessTimedOutError: If the timeout expires; the process is killed
        """
        if self._process is None:
            await self.start()
        if self._process is None:
            raise ProcessError("Process could not be started")

        if self._returncode is not None:
            return self._returncode

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                self._process.communicate(),
                timeout=self._timeout,
            )
        except TimeoutError as e:
            self.kill()
            await self._process.wait()
            self._returncode = self._process.returncode
            logger.warning("Sandboxed process timed out after %ss", self._timeout)
            raise ProcessTimedOutError(
                f"The process exceeded the timeout of {self._timeout} seconds.",
                timeout=self._timeout,
            ) from e

        self._stdout = stdout_bytes.decode("utf-8", errors="replace")
        self._stderr = stderr_bytes.decode("utf-8", errors="replace")
        self._returncode = self._process.returncode
        logger.debug("Sandboxed process exited with %s", self._returncode)
        return self._returncode

    def terminate(self) -> None:
        """Send SIGTERM if the process is running."""
        if self.is_running():
            with contextlib.suppress(ProcessLookupError):
                self._process.terminate()

    def kill(self) -> None:
        """Send SIGKILL if the process is running."""
        if self.is_running():
            with contextlib.suppress(ProcessLookupError):
                self._process.kill()

    def __repr__(self) -> str:
        return (
            f"SandboxProcess(command={self._command!r}, cwd={self._cwd!r}, "
            f"timeout={self._timeout!r}, returncode={self._returncode!r})"
        )


__all__ = [
    "ProcessHandle",
    "SandboxProcess",
]
