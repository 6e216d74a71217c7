"""Validator lifecycle commands.

This module provides commands for installing, upgrading and uninstalling
the validator, and for inspecting validation results.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from validatorctl.cli.context import CLIContext, get_cli_context
from validatorctl.cli.shared.console import console, with_error_handling
from validatorctl.config.loader import load_deployment_spec, save_deployment_spec
from validatorctl.config.models import DeploymentSpec
from validatorctl.errors import ConfigurationError
from validatorctl.infra.constants import ValidatorConstants
from validatorctl.infra.k8s import Kr8sController, run_sync
from validatorctl.results import format_validation_result

ConfigFileOption = Annotated[
    Path,
    typer.Option(
        "--config-file",
        "-f",
        help="Validator configuration file",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
]


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------


def _resolve_kind_kubeconfig(
    cli: CLIContext, spec: DeploymentSpec, config_file: Path
) -> DeploymentSpec:
    """Default the kubeconfig of a kind-backed spec to the run directory.

    The updated configuration is saved back so later commands target the
    same cluster.
    """
    if not spec.kind_config.use_kind_cluster or spec.kubeconfig:
        return spec
    spec = spec.model_copy(update={"kubeconfig": str(cli.workspace.kind_kubeconfig)})
    save_deployment_spec(spec, config_file)
    console.info(f"validator configuration file updated: {config_file}")
    return spec


def print_next_steps(kubeconfig: str, config_file: Path) -> None:
    """Print the commands used to inspect validation results."""
    console.print_subheader("Validation in progress")
    console.print("Plugins will now execute validation checks.\n")
    console.print("You can list validation results via the following command:\n")
    console.plain(f"kubectl -n validator get validationresults --kubeconfig {kubeconfig}\n")
    console.print(
        "And you can view all validation result details via the following command:\n"
    )
    console.plain(f"validatorctl describe -f {config_file}")


def _deploy(
    ctx: typer.Context, config_file: Path, apply: bool, *, upgrade: bool
) -> None:
    cli = get_cli_context(ctx)
    spec = load_deployment_spec(config_file)
    if upgrade and not spec.kubeconfig:
        raise ConfigurationError(
            "Invalid validator config: kubeconfig is required to upgrade",
            details="Upgrade targets an existing cluster; set kubeconfig in the file.",
        )
    spec = _resolve_kind_kubeconfig(cli, spec, config_file)

    deployer = cli.deployer(spec.kubeconfig)
    deployer.validate(spec)
    deployer.commands.check_binaries("helm", "kubectl")

    if spec.kind_config.use_kind_cluster and not upgrade:
        deployer.provision_kind_cluster(spec)

    deployer.deploy(spec, apply_rules=apply)
    console.info(f"Run directory: {cli.workspace.run_dir}")
    if apply:
        print_next_steps(spec.kubeconfig, config_file)
    else:
        console.print(
            "\nConfigure plugin rules and apply them via the following command:\n"
        )
        console.plain(f"validatorctl rules apply -f {config_file}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@with_error_handling
def install(
    ctx: typer.Context,
    config_file: ConfigFileOption,
    apply: Annotated[
        bool,
        typer.Option(
            "--apply/--no-apply",
            help="Apply plugin rules once the plugins are ready",
        ),
    ] = True,
) -> None:
    """Install the validator and its plugins, then apply plugin rules.

    Creates a kind cluster first when kindConfig.useKindCluster is set.
    Re-running the command resumes a partially completed install.
    """
    _deploy(ctx, config_file, apply, upgrade=False)


@with_error_handling
def upgrade(
    ctx: typer.Context,
    config_file: ConfigFileOption,
    apply: Annotated[
        bool,
        typer.Option(
            "--apply/--no-apply",
            help="Apply plugin rules once the plugins are ready",
        ),
    ] = True,
) -> None:
    """Upgrade an existing validator installation."""
    _deploy(ctx, config_file, apply, upgrade=True)


@with_error_handling
def uninstall(
    ctx: typer.Context,
    config_file: ConfigFileOption,
    delete_cluster: Annotated[
        bool,
        typer.Option(
            "--delete-cluster/--keep-cluster",
            help="Delete the kind cluster if one was provisioned",
        ),
    ] = True,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompt",
        ),
    ] = False,
) -> None:
    """Uninstall the validator and, optionally, its kind cluster."""
    spec = load_deployment_spec(config_file)
    details = "The validator Helm release and all plugins will be removed."
    if spec.kind_config.use_kind_cluster and delete_cluster:
        details += f"\nThe kind cluster {spec.kind_cluster_name} will be deleted."
    if not console.confirm_action("Uninstall validator", details, force=yes):
        console.print("[dim]Uninstall cancelled.[/dim]")
        raise typer.Exit(0)

    cli = get_cli_context(ctx)
    cli.deployer(spec.kubeconfig).teardown(spec, delete_cluster=delete_cluster)


@with_error_handling
def describe(
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config-file",
            "-f",
            help="Validator configuration file (for its kubeconfig)",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
) -> None:
    """Describe all validation results in the validator namespace."""
    kubeconfig = None
    if config_file is not None:
        kubeconfig = load_deployment_spec(config_file).kubeconfig or None
    controller = Kr8sController(kubeconfig)
    results = run_sync(controller.list_validation_results(ValidatorConstants.NAMESPACE))
    if not results:
        console.warn("No validation results found")
        return
    for result in results:
        console.plain(format_validation_result(result))


def docs() -> None:
    """Show supported plugins and their pinned chart versions."""
    constants = ValidatorConstants()
    table = Table(title="Validator components")
    table.add_column("Component", style="cyan")
    table.add_column("Plugin")
    table.add_column("Chart version", style="green")

    table.add_row(constants.CHART_NAME, "-", constants.CHART_VERSION)
    for definition in constants.PLUGINS:
        table.add_row(
            definition.name,
            definition.display_name,
            definition.chart_version or "[dim]unpinned[/dim]",
        )
    console.print(table)
    console.print(f"\nCharts are served from {constants.HELM_REPOSITORY}")
