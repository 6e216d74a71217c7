"""Kind command abstractions."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class KindCommands:
    """Kind cluster lifecycle commands."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def create_cluster(
        self,
        name: str,
        *,
        kubeconfig: Path,
        config: Path,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Create a kind cluster and write its kubeconfig.

        Args:
            name: Cluster name
            kubeconfig: Where kind writes the cluster kubeconfig
            config: Rendered kind cluster configuration
            on_output: Optional callback for real-time output streaming

        Returns:
            CommandResult with creation status
        """
        cmd = [
            "kind",
            "create",
            "cluster",
            "--name",
            name,
            "--kubeconfig",
            str(kubeconfig),
            "--config",
            str(config),
        ]
        if on_output:
            return self._runner.run_streaming(cmd, on_output=on_output)
        return self._runner.run(cmd)

    def delete_cluster(self, name: str) -> CommandResult:
        """Delete a kind cluster."""
        return self._runner.run(["kind", "delete", "cluster", "--name", name])
