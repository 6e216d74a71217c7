"""Docker command abstractions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class DockerCommands:
    """Docker-related shell commands used against kind nodes."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    def exec_shell(self, container: str, script: str) -> CommandResult:
        """Run a shell snippet inside a running container.

        Args:
            container: Container name (e.g. validator-kind-cluster-control-plane)
            script: Script passed to `sh -c`

        Returns:
            CommandResult with exec status
        """
        return self._runner.run(["docker", "exec", container, "sh", "-c", script])

    def refresh_ca_certificates(self, container: str) -> CommandResult:
        """Rebuild the CA store in a kind node and restart containerd."""
        return self.exec_shell(
            container, "update-ca-certificates && systemctl restart containerd"
        )
