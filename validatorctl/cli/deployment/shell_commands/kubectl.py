"""Kubectl command abstractions.

Mutating operations shell out to kubectl with an explicit --kubeconfig so
their argument shapes match what an operator would type. Reads that need no
kubectl semantics go through the async Kr8sController via run_sync().
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from validatorctl.infra.k8s import Kr8sController, run_sync
from validatorctl.infra.k8s.controller import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class KubectlCommands:
    """Kubectl-related shell commands.

    Provides operations for:
    - Namespace management
    - Secret creation
    - Manifest application
    - Waiting on resource conditions
    """

    def __init__(
        self,
        runner: CommandRunner,
        controller_factory: Callable[[str], Kr8sController] = Kr8sController,
    ) -> None:
        """Initialize kubectl commands.

        Args:
            runner: Command runner for executing shell commands
            controller_factory: Builds a kr8s controller for a kubeconfig
        """
        self._runner = runner
        self._controller_factory = controller_factory

    def run(self, args: Sequence[str], *, kubeconfig: str) -> CommandResult:
        """Run an arbitrary kubectl command against a kubeconfig.

        Args:
            args: kubectl arguments without the binary name
            kubeconfig: Kubeconfig of the target cluster

        Returns:
            CommandResult of the kubectl invocation
        """
        return self._runner.run(["kubectl", *args, f"--kubeconfig={kubeconfig}"])

    # =========================================================================
    # Namespace Management
    # =========================================================================

    def namespace_exists(self, namespace: str, *, kubeconfig: str) -> bool:
        """Check if a namespace exists."""
        controller = self._controller_factory(kubeconfig)
        return run_sync(controller.namespace_exists(namespace))

    def create_namespace(self, namespace: str, *, kubeconfig: str) -> CommandResult:
        """Create a namespace."""
        return self.run(["create", "namespace", namespace], kubeconfig=kubeconfig)

    # =========================================================================
    # Resource Management
    # =========================================================================

    def apply(self, manifest: Path, *, kubeconfig: str) -> CommandResult:
        """Apply a manifest file."""
        return self.run(["apply", "-f", str(manifest)], kubeconfig=kubeconfig)

    def wait(self, args: Sequence[str], *, kubeconfig: str) -> CommandResult:
        """Run a pre-built `kubectl wait` command.

        Args:
            args: Arguments starting with "wait"
            kubeconfig: Kubeconfig of the target cluster
        """
        return self.run(args, kubeconfig=kubeconfig)
