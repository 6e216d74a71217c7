"""Plugin rule commands."""

import time
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from validatorctl.cli.context import get_cli_context
from validatorctl.cli.shared.console import console, with_error_handling
from validatorctl.config.loader import load_deployment_spec
from validatorctl.errors import DeploymentError
from validatorctl.infra.constants import ValidatorConstants
from validatorctl.infra.k8s import Kr8sController, ValidationResultInfo, run_sync
from validatorctl.results import format_validation_result

rules_app = typer.Typer(
    help="Apply and monitor validator plugin rules.",
    no_args_is_help=True,
)


def wait_for_results(
    controller: Kr8sController,
    expected: int,
    *,
    timeout: float,
    interval: float = 5.0,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> list[ValidationResultInfo]:
    """Poll ValidationResults until `expected` of them have completed.

    Args:
        controller: Kubernetes controller used to list results
        expected: Number of ValidationResults to wait for
        timeout: Seconds to wait before giving up
        interval: Seconds between polls
        sleep: Sleep function, injectable for tests
        clock: Monotonic clock, injectable for tests

    Returns:
        The completed results

    Raises:
        DeploymentError: If the results are not complete within `timeout`
    """
    deadline = clock() + timeout
    while True:
        results = run_sync(
            controller.list_validation_results(ValidatorConstants.NAMESPACE)
        )
        completed = [r for r in results if r.is_complete]
        logger.debug(f"{len(completed)}/{expected} validation results complete")
        if len(completed) >= expected:
            return completed
        if clock() >= deadline:
            raise DeploymentError(
                "Timed out waiting for validation results",
                details=f"{len(completed)} of {expected} results completed "
                f"within {timeout:.0f}s.",
            )
        sleep(interval)


@rules_app.command("apply")
@with_error_handling
def apply(
    ctx: typer.Context,
    config_file: Annotated[
        Path,
        typer.Option(
            "--config-file",
            "-f",
            help="Validator configuration file",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    wait: Annotated[
        bool,
        typer.Option(
            "--wait",
            help="Wait for all plugins to report validation results",
        ),
    ] = False,
    timeout: Annotated[
        int,
        typer.Option(
            "--timeout",
            help="Seconds to wait for validation results (with --wait)",
        ),
    ] = 600,
) -> None:
    """Apply the rules of every enabled plugin to an existing installation."""
    cli = get_cli_context(ctx)
    spec = load_deployment_spec(config_file)
    deployer = cli.deployer(spec.kubeconfig)
    deployer.commands.check_binaries("kubectl")
    deployer.apply_rules(spec)
    console.ok("Plugin rules applied")

    if not wait:
        return

    expected = len(deployer.rules.planned_manifests(spec))
    with console.status("Waiting for validation results..."):
        results = wait_for_results(
            Kr8sController(spec.kubeconfig), expected, timeout=timeout
        )
    for result in results:
        console.plain(format_validation_result(result))

    failed = [r.name for r in results if r.state == "Failed"]
    if failed:
        console.handle_error(
            "Validation failed", details="Failed results: " + ", ".join(failed)
        )
    console.ok("All validation rules passed")
