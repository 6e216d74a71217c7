"""Command runner for executing shell commands.

This module provides the base command execution functionality used by
all specialized command modules.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from loguru import logger

from .types import CommandResult

# Arguments whose values must never reach the log file
_SENSITIVE_PREFIXES = ("--from-literal=", "--password=")
_SENSITIVE_FLAGS = ("--password",)


def redact(cmd: Sequence[str]) -> list[str]:
    """Return a copy of cmd with credential values masked."""
    redacted: list[str] = []
    mask_next = False
    for arg in cmd:
        if mask_next:
            redacted.append("***")
            mask_next = False
            continue
        if arg.startswith(_SENSITIVE_PREFIXES):
            key = arg.split("=", 2)
            redacted.append("=".join(key[:-1]) + "=***")
            continue
        if arg in _SENSITIVE_FLAGS:
            mask_next = True
        redacted.append(arg)
    return redacted


class CommandRunner:
    """Low-level command executor with consistent result handling.

    This class provides the foundation for executing shell commands with
    proper output capture, error handling, and streaming support.

    All specialized command modules (helm, kubectl, kind, docker) use
    this runner for actual command execution.
    """

    def __init__(
        self, working_dir: Path, env: Mapping[str, str] | None = None
    ) -> None:
        """Initialize the command runner.

        Args:
            working_dir: Directory commands are executed from by default
            env: Extra environment variables for every command
                (e.g. KUBECONFIG)
        """
        self.working_dir = working_dir
        self.env = dict(env or {})

    def _environment(self) -> dict[str, str]:
        env = os.environ.copy()
        env.update(self.env)
        return env

    def run(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        capture_output: bool = True,
        check: bool = False,
    ) -> CommandResult:
        """Execute a shell command and return structured result.

        Args:
            cmd: Command and arguments as a sequence
            cwd: Working directory (defaults to working_dir)
            capture_output: Whether to capture stdout/stderr
            check: Whether to raise exception on non-zero exit code

        Returns:
            CommandResult with success status, output, and return code

        Raises:
            subprocess.CalledProcessError: If check=True and command fails
        """
        logger.debug(f"Running: {' '.join(redact(cmd))}")
        result = subprocess.run(
            list(cmd),
            cwd=cwd or self.working_dir,
            capture_output=capture_output,
            text=True,
            check=check,
            env=self._environment(),
        )
        if result.returncode != 0:
            logger.debug(f"Exit code {result.returncode}: {(result.stderr or '').strip()}")
        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )

    def run_streaming(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path | None = None,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Execute a shell command with real-time output streaming.

        This method runs a command and calls the on_output callback for each
        line of output, allowing real-time progress display. stderr is merged
        into stdout and also returned as stderr so callers can report it.

        Args:
            cmd: Command and arguments as a sequence
            cwd: Working directory (defaults to working_dir)
            on_output: Callback function called with each line of output.
                      If None, output is collected but not streamed.

        Returns:
            CommandResult with success status, collected output, and return code
        """
        logger.debug(f"Running (streaming): {' '.join(redact(cmd))}")
        process = subprocess.Popen(
            list(cmd),
            cwd=cwd or self.working_dir,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,  # Merge stderr into stdout
            text=True,
            bufsize=1,
            env=self._environment(),
        )

        stdout_lines: list[str] = []

        if process.stdout:
            for line in iter(process.stdout.readline, ""):
                line = line.rstrip("\n")
                if line:
                    stdout_lines.append(line)
                    logger.debug(line)
                    if on_output:
                        on_output(line)

        process.wait()

        output = "\n".join(stdout_lines)
        return CommandResult(
            success=process.returncode == 0,
            stdout=output,
            stderr="" if process.returncode == 0 else output,
            returncode=process.returncode or 0,
        )

    def missing_binaries(self, binaries: Sequence[str]) -> list[str]:
        """Return the binaries that cannot be found on PATH."""
        path = self._environment().get("PATH")
        return [b for b in binaries if shutil.which(b, path=path) is None]
