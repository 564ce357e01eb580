"""bwrap sandbox runner.

Validates a run request, builds the bwrap argv, hands it to
``SandboxProcess`` and wraps the finished process so the environment is
only exposed on request.
"""

import logging
import os
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from cordon.exceptions import (
    InvalidArgumentError,
    ProcessFailedError,
    SandboxUnavailableError,
)
from cordon.sandbox.binary import ensure_executable
from cordon.sandbox.builder import build_command
from cordon.sandbox.config import SandboxConfig
from cordon.sandbox.options import RunOptions
from cordon.sandbox.paths import validate_path
from cordon.sandbox.process import SandboxProcess
from cordon.sandbox.wrapper import SecureProcessWrapper
from cordon.settings import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60

# run_command falls back to Settings.sandbox_timeout_seconds
_SETTINGS_TIMEOUT: Any = object()


def _validate_timeout(timeout: Any) -> None:
    if timeout is None:
        return
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout < 0:
        raise InvalidArgumentError("Timeout must be None or a non-negative number.")


class SandboxRunner:
    """Runs commands inside a bubblewrap sandbox.

    Usage:
        runner = SandboxRunner()
        argv = runner.build(["/bin/echo", "hi"])

        # Spawn and await; raises ProcessFailedError on non-zero exit
        result = await runner.run(["/bin/echo", "hi"])
        print(result.stdout)

        # Writable bind and exposed environment
        result = await runner.run(
            ["/bin/sh", "-c", "echo ok > /work/out"],
            extra_binds=[{"from": "/tmp/job", "to": "/work", "read_only": False}],
            env={"JOB_ID": "42"},
            options={"expose_environment": True},
        )
        result.get_env()
    """

    def __init__(self, config: SandboxConfig | None = None) -> None:
        """Initialize the runner.

        Args:
            config: Sandbox configuration (default: built-in defaults)
        """
        self.config = config or SandboxConfig()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SandboxRunner":
        """Build a runner from application settings."""
        return cls(SandboxConfig.from_settings(settings or get_settings()))

    def build(
        self,
        command: Sequence[str],
        extra_binds: Iterable[Any] | None = None,
    ) -> list[str]:
        """Build the bwrap argv for a command. See ``build_command``."""
        return build_command(self.config, extra_binds, command)

    def prepare(
        self,
        command: Sequence[str],
        extra_binds: Iterable[Any] | None = None,
        working_dir: str | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
    ) -> SandboxProcess:
        """Create a process ready to run the sandboxed command.

        The process is not started.

        Args:
            command: Program and arguments to run inside the sandbox
            extra_binds: Additional bind mounts
            working_dir: Working directory for the bwrap process
            env: Additional environment variables for the process
            timeout: Seconds before the process is killed; None disables it

        Returns:
            Un-started SandboxProcess

        Raises:
            InvalidArgumentError: If the working directory, timeout, command
                or binds are invalid
            SandboxUnavailableError: If the binary cannot be executed
        """
        if working_dir is not None:
            validate_path(working_dir, "working directory")
        _validate_timeout(timeout)

        argv = self.build(command, extra_binds)
        return SandboxProcess(argv, cwd=working_dir, env=env, timeout=timeout)

    async def run(
        self,
        command: Sequence[str],
        extra_binds: Iterable[Any] | None = None,
        working_dir: str | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
        options: Mapping[str, Any] | None = None,
    ) -> SecureProcessWrapper:
        """Run a sandboxed command to completion.

        Args:
            command: Program and arguments to run inside the sandbox
            extra_binds: Additional bind mounts
            working_dir: Working directory for the bwrap process
            env: Additional environment variables for the process
            timeout: Seconds before the process is killed; None disables it
            options: Run options, see ``RunOptions``

        Returns:
            The finished process, wrapped

        Raises:
            UnknownOptionError: For an unrecognized option key
            InvalidOptionTypeError: For a wrongly typed option value
            ProcessFailedError: If the process exits with a non-zero status
            ProcessTimedOutError: If the timeout expires
        """
        options = RunOptions.validate(options)
        process = self.prepare(command, extra_binds, working_dir, env, timeout)

        returncode = await process.wait()
        if returncode != 0:
            logger.warning("Sandboxed command exited with status %s", returncode)
            raise ProcessFailedError(
                f"The sandboxed command failed with exit code {returncode}.",
                returncode=returncode,
                stdout=process.stdout,
                stderr=process.stderr,
            )

        return SecureProcessWrapper(
            process,
            env=env,
            expose_environment=RunOptions.get(options, RunOptions.EXPOSE_ENVIRONMENT),
        )

    def check_runtime(self) -> dict[str, Any]:
        """Check if the sandbox helper is available.

        Returns:
            Dictionary with runtime status information
        """
        result: dict[str, Any] = {
            "binary": self.config.binary,
            "binary_available": False,
            "lib64_bound": "/lib64" in self.config.read_only_binds,
            "errors": [],
        }

        try:
            ensure_executable(self.config.binary, self.config.binary_validator)
            result["binary_available"] = True
        except SandboxUnavailableError as e:
            result["errors"].append(str(e))

        if not os.path.isdir("/proc/self/ns"):
            result["errors"].append("Namespaces are not exposed on this host (/proc/self/ns missing)")

        return result


# Convenience function
async def run_command(
    command: Sequence[str],
    extra_binds: Iterable[Any] | None = None,
    working_dir: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = _SETTINGS_TIMEOUT,
    options: Mapping[str, Any] | None = None,
) -> SecureProcessWrapper:
    """Run a command in the sandbox configured by application settings.

    Convenience wrapper around SandboxRunner.run(). Without an explicit
    timeout, SANDBOX_TIMEOUT_SECONDS applies.
    """
    settings = get_settings()
    runner = SandboxRunner.from_settings(settings)
    if timeout is _SETTINGS_TIMEOUT:
        timeout = settings.sandbox_timeout_seconds
    return await runner.run(
        command,
        extra_binds=extra_binds,
        working_dir=working_dir,
        env=env,
        timeout=timeout,
        options=options,
    )


__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "SandboxRunner",
    "run_command",
]
