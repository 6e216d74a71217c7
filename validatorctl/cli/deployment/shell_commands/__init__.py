"""Shell command abstractions for validator deployment operations.

This package provides a clean interface for the external tools used
during deployment. It is organized into specialized modules for each tool:

- helm: Helm release management and OCI chart pulls
- kubectl: Kubernetes resource management
- kind: Local kind cluster lifecycle
- docker: Commands run inside kind nodes

Usage:
    from validatorctl.cli.deployment.shell_commands import ShellCommands

    commands = ShellCommands(run_dir, kubeconfig="/tmp/kubeconfig")
    commands.kubectl.apply(manifest, kubeconfig="/tmp/kubeconfig")
"""

from collections.abc import Callable
from pathlib import Path

from validatorctl.errors import DeploymentError
from validatorctl.infra.k8s import Kr8sController

from .docker import DockerCommands
from .helm import HelmCommands
from .kind import KindCommands
from .kubectl import KubectlCommands
from .runner import CommandRunner, redact
from .types import CommandResult, ReleaseOptions


class ShellCommands:
    """Unified interface for all shell command operations.

    Attributes:
        helm: Helm-related commands
        kubectl: Kubernetes kubectl commands
        kind: Kind cluster commands
        docker: Docker commands

    Example:
        >>> commands = ShellCommands(Path("."))
        >>> commands.check_binaries("helm", "kubectl")
    """

    def __init__(
        self,
        working_dir: Path,
        *,
        kubeconfig: str | None = None,
        runner: CommandRunner | None = None,
        controller_factory: Callable[[str], Kr8sController] = Kr8sController,
    ) -> None:
        """Initialize the shell commands executor.

        Args:
            working_dir: Directory commands are executed from by default
            kubeconfig: Exported as KUBECONFIG for every command when set
            runner: Command runner to use instead of a subprocess runner
            controller_factory: Builds kr8s controllers for namespace reads
        """
        env = {"KUBECONFIG": kubeconfig} if kubeconfig else None
        self._runner = runner or CommandRunner(Path(working_dir), env=env)

        self.helm = HelmCommands(self._runner)
        self.kubectl = KubectlCommands(self._runner, controller_factory)
        self.kind = KindCommands(self._runner)
        self.docker = DockerCommands(self._runner)

    @property
    def runner(self) -> CommandRunner:
        return self._runner

    def check_binaries(self, *binaries: str) -> None:
        """Verify every binary is on PATH.

        Raises:
            DeploymentError: Naming every missing binary
        """
        missing = self._runner.missing_binaries(binaries)
        if missing:
            raise DeploymentError(
                f"Missing required binaries: {', '.join(missing)}",
                details="Install the missing dependencies and ensure they are "
                "available on your PATH.",
            )


__all__ = [
    "ShellCommands",
    "CommandResult",
    "ReleaseOptions",
    "CommandRunner",
    "HelmCommands",
    "KubectlCommands",
    "KindCommands",
    "DockerCommands",
    "redact",
]
