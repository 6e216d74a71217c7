"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass

import click
import typer

from validatorctl.cli.deployment.shell_commands import ShellCommands
from validatorctl.cli.deployment.validator_deployer import ValidatorDeployer
from validatorctl.cli.shared.console import CLIConsole, console
from validatorctl.config.settings import CLISettings, load_settings
from validatorctl.config.workspace import Workspace
from validatorctl.infra.constants import ValidatorConstants
from validatorctl.utils.logging import configure_logging


@dataclass(frozen=True)
class CLIContext:
    """Runtime dependencies for CLI commands."""

    console: CLIConsole
    settings: CLISettings
    workspace: Workspace
    constants: ValidatorConstants

    def commands(self, kubeconfig: str | None = None) -> ShellCommands:
        """Shell commands executed from the run directory."""
        return ShellCommands(self.workspace.run_dir, kubeconfig=kubeconfig)

    def deployer(self, kubeconfig: str | None = None) -> ValidatorDeployer:
        return ValidatorDeployer(
            self.commands(kubeconfig),
            self.console,
            self.workspace,
            constants=self.constants,
            grace_period=self.settings.grace_period,
        )


def build_cli_context() -> CLIContext:
    """Build a fresh CLIContext with a new run workspace and log file."""
    settings = load_settings()
    workspace = Workspace.create(settings.workspace)
    configure_logging(workspace.log_file, settings.log_level)

    return CLIContext(
        console=console,
        settings=settings,
        workspace=workspace,
        constants=ValidatorConstants(),
    )


def get_cli_context(ctx: typer.Context | None = None) -> CLIContext:
    """Return the CLIContext from Typer, building one on first use."""
    context = ctx or click.get_current_context(silent=True)
    if context and isinstance(context.obj, CLIContext):
        return context.obj
    cli_context = build_cli_context()
    if context is not None:
        context.obj = cli_context
    return cli_context
