"""Sandbox infrastructure for isolated command execution.

Builds and runs bubblewrap (bwrap) invocations. Every path, bind and
command is validated before it reaches the bwrap command line, and the
environment of a finished run is only exposed on explicit request.
"""

from cordon.sandbox.binary import BinaryValidator, binary_exists_in_path, ensure_executable
from cordon.sandbox.builder import build_command, validate_command
from cordon.sandbox.config import SandboxConfig, get_default_config
from cordon.sandbox.options import RunOptions
from cordon.sandbox.paths import BindMount, normalize_binds, validate_path
from cordon.sandbox.process import ProcessHandle, SandboxProcess
from cordon.sandbox.runner import SandboxRunner, run_command
from cordon.sandbox.wrapper import SecureProcessWrapper

__all__ = [
    # Paths
    "BindMount",
    "normalize_binds",
    "validate_path",
    # Binary
    "BinaryValidator",
    "binary_exists_in_path",
    "ensure_executable",
    # Config
    "SandboxConfig",
    "get_default_config",
    # Builder
    "build_command",
    "validate_command",
    # Options
    "RunOptions",
    # Process
    "ProcessHandle",
    "SandboxProcess",
    "SecureProcessWrapper",
    # Runner
    "SandboxRunner",
    "run_command",
]
