"""Plugin readiness waits."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from validatorctl.errors import ReadinessError

if TYPE_CHECKING:
    from validatorctl.cli.shared.console import CLIConsole
    from validatorctl.config.models import DeploymentSpec

    from ..shell_commands import ShellCommands


class ReadinessWaiter:
    """Waits for each enabled plugin's controller deployment.

    Waits run one at a time in declared plugin order and stop at the first
    failure; plugin controllers compete for the API server while they
    bootstrap.
    """

    def __init__(self, commands: ShellCommands, console: CLIConsole) -> None:
        self.commands = commands
        self.console = console

    def wait_for_plugins(self, spec: DeploymentSpec) -> None:
        """Block until every enabled plugin controller is available.

        Raises:
            ReadinessError: For the first plugin that does not become ready
        """
        for definition, _ in spec.enabled_plugins():
            logger.debug(f"Waiting for {definition.name}")
            with self.console.status(f"Waiting for {definition.name} to be available..."):
                result = self.commands.kubectl.wait(
                    definition.wait_args, kubeconfig=spec.kubeconfig
                )
            if not result.success:
                raise ReadinessError(
                    f"{definition.name} did not become available", result
                )
            self.console.ok(f"{definition.name} is available")
