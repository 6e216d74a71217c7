"""Validator deployment orchestration.

This module provides the ValidatorDeployer class which drives the
install/upgrade sequence and the uninstall teardown. It coordinates
specialized components for:
- Pre-release secret provisioning
- Helm release install/upgrade (including OCI chart resolution)
- Controller and plugin readiness waits
- Rule manifest application

Install runs strictly in order and never rolls back: if a late step fails,
earlier steps stay applied and re-running the install resumes safely
because every step is idempotent.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING

from loguru import logger

from validatorctl.errors import (
    CommandFailedError,
    ConfigurationError,
    DeploymentError,
    OrchestrationAborted,
)
from validatorctl.infra.constants import ValidatorConstants
from validatorctl.rendering import ManifestRenderer

from .helm_release import HelmReleaseManager
from .kind_cluster import KindClusterManager
from .readiness import ReadinessWaiter
from .rule_applier import RuleApplier
from .secret_manager import SecretProvisioner

if TYPE_CHECKING:
    from validatorctl.cli.shared.console import CLIConsole
    from validatorctl.config.models import DeploymentSpec
    from validatorctl.config.workspace import Workspace

    from ..shell_commands import ShellCommands


class DeploymentState(StrEnum):
    """Progress of an install/upgrade run."""

    IDLE = "Idle"
    SECRETS_PROVISIONED = "SecretsProvisioned"
    RELEASE_INSTALLED = "ReleaseInstalled"
    CONTROLLER_READY = "ControllerReady"
    PLUGINS_READY = "PluginsReady"
    RULES_APPLIED = "RulesApplied"
    ABORTED = "Aborted"


class ValidatorDeployer:
    """Deploys the validator, its plugins and their rules.

    The deployment workflow consists of:
    1. Validate the spec (no side effects)
    2. Create pre-release secrets
    3. Install or upgrade the validator Helm release
    4. Wait for the validator controller
    5. Wait for each plugin controller
    6. Apply each plugin's rule manifests

    Attributes:
        state: Last state reached by the current or most recent run
        secrets: Pre-release secret provisioner
        helm_release: Helm release manager
        readiness: Plugin readiness waiter
        rules: Rule manifest applier
        kind: Kind cluster manager
    """

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        workspace: Workspace,
        *,
        renderer: ManifestRenderer | None = None,
        constants: ValidatorConstants | None = None,
        grace_period: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the validator deployer.

        Args:
            commands: Shell command executor
            console: Console for user-facing output
            workspace: Run workspace for values, charts and manifests
            renderer: Template renderer (default: embedded templates)
            constants: Deployment constants
            grace_period: Seconds to sleep after the controller is available
            sleep: Sleep function, replaceable in tests
        """
        self.commands = commands
        self.console = console
        self.workspace = workspace
        self.constants = constants or ValidatorConstants()
        self.renderer = renderer or ManifestRenderer()
        self.state = DeploymentState.IDLE

        self.secrets = SecretProvisioner(commands, console, self.constants)
        self.helm_release = HelmReleaseManager(
            commands,
            console,
            self.renderer,
            workspace.run_dir,
            self.constants,
            grace_period=grace_period,
            sleep=sleep,
        )
        self.readiness = ReadinessWaiter(commands, console)
        self.rules = RuleApplier(
            commands,
            console,
            self.renderer,
            workspace.manifests_dir,
            self.constants,
        )
        self.kind = KindClusterManager(commands, console, self.renderer, self.constants)

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self, spec: DeploymentSpec) -> None:
        """Reject a spec that cannot be deployed.

        Raises:
            ConfigurationError: If no plugin is enabled, no kubeconfig is set,
                or a chart reference is incomplete
        """
        if not spec.any_plugin_enabled():
            raise ConfigurationError(
                "Invalid validator config: at least one plugin must be enabled",
                details="Set enabled: true on at least one of "
                + ", ".join(d.config_key for d in self.constants.PLUGINS)
                + ".",
            )
        if not spec.kubeconfig:
            raise ConfigurationError(
                "Invalid validator config: kubeconfig is required",
                details="Set kubeconfig, or kindConfig.useKindCluster: true "
                "to create a local cluster.",
            )
        self.helm_release.validate_charts(spec)

    # =========================================================================
    # Install / Upgrade
    # =========================================================================

    def _run_steps(
        self,
        spec: DeploymentSpec,
        steps: list[tuple[str, Callable[[DeploymentSpec], object], DeploymentState]],
    ) -> None:
        for step_name, step, next_state in steps:
            logger.info(f"Step '{step_name}' starting from state {self.state}")
            try:
                step(spec)
            except DeploymentError as e:
                last_state = self.state
                self.state = DeploymentState.ABORTED
                logger.error(f"Step '{step_name}' failed: {e}")
                raise OrchestrationAborted(step_name, last_state.value, e) from e
            self.state = next_state

    def deploy(self, spec: DeploymentSpec, *, apply_rules: bool = True) -> None:
        """Install or upgrade the validator and apply plugin rules.

        Args:
            spec: Fully resolved deployment spec (never mutated)
            apply_rules: Apply rule manifests once plugins are ready

        Raises:
            ConfigurationError: Before any side effect, for an invalid spec
            OrchestrationAborted: When a step fails; earlier steps stay applied
        """
        self.state = DeploymentState.IDLE
        self.validate(spec)

        self.console.print_header("Installing/Upgrading validator and plugin(s)")
        steps: list[tuple[str, Callable[[DeploymentSpec], object], DeploymentState]] = [
            (
                "Provision secrets",
                self.secrets.provision,
                DeploymentState.SECRETS_PROVISIONED,
            ),
            (
                "Install validator release",
                self.helm_release.install,
                DeploymentState.RELEASE_INSTALLED,
            ),
            (
                "Wait for validator controller",
                self.helm_release.wait_for_controller,
                DeploymentState.CONTROLLER_READY,
            ),
            (
                "Wait for plugins",
                self.readiness.wait_for_plugins,
                DeploymentState.PLUGINS_READY,
            ),
        ]
        if apply_rules:
            steps.append(
                ("Apply plugin rules", self.rules.apply_all, DeploymentState.RULES_APPLIED)
            )
        self._run_steps(spec, steps)
        self.console.ok("validator and validator plugin(s) installed successfully")

    def apply_rules(self, spec: DeploymentSpec) -> None:
        """Apply plugin rules against an existing installation.

        Raises:
            ConfigurationError: For an invalid spec or plugins without rules
            OrchestrationAborted: When a wait or apply fails
        """
        self.validate(spec)
        missing = spec.plugins_without_rules()
        if missing:
            raise ConfigurationError(
                "Enabled plugins have no rules configured",
                details="Configure at least one rule for: " + ", ".join(missing),
            )
        self.state = DeploymentState.RELEASE_INSTALLED
        self.console.print_header("Configuring validator plugin(s)")
        self._run_steps(
            spec,
            [
                (
                    "Wait for plugins",
                    self.readiness.wait_for_plugins,
                    DeploymentState.PLUGINS_READY,
                ),
                (
                    "Apply plugin rules",
                    self.rules.apply_all,
                    DeploymentState.RULES_APPLIED,
                ),
            ],
        )

    # =========================================================================
    # Kind
    # =========================================================================

    def provision_kind_cluster(self, spec: DeploymentSpec) -> None:
        """Create the kind cluster described by the spec."""
        self.commands.check_binaries("docker", "kind")
        self.kind.create(spec, self.workspace.kind_config_file)

    # =========================================================================
    # Teardown
    # =========================================================================

    def teardown(self, spec: DeploymentSpec, *, delete_cluster: bool = True) -> None:
        """Uninstall the validator release, then optionally the kind cluster.

        Raises:
            ConfigurationError: If no kubeconfig is set
            CommandFailedError: If helm or kind fails
        """
        if not spec.kubeconfig:
            raise ConfigurationError("Invalid validator config: kubeconfig is required")

        remove_cluster = spec.kind_config.use_kind_cluster and delete_cluster
        self.commands.check_binaries("helm", *(["kind"] if remove_cluster else []))

        self.console.print_header("Uninstalling validator")
        result = self.commands.helm.uninstall(
            self.constants.RELEASE_NAME,
            self.constants.NAMESPACE,
            kubeconfig=spec.kubeconfig,
        )
        if not result.success:
            raise CommandFailedError("Failed to delete validator Helm release", result)
        self.console.ok("Uninstalled validator and validator plugin(s) successfully")

        if remove_cluster:
            self.kind.delete(spec)
