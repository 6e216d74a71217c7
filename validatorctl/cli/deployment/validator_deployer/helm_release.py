"""Helm release management for the validator chart.

Builds the merged values document and performs the idempotent
install-or-upgrade, then waits for the validator controller.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from loguru import logger

from validatorctl.errors import CommandFailedError, ConfigurationError, ReadinessError
from validatorctl.infra.constants import PluginDefinition, ValidatorConstants

from ..shell_commands import ReleaseOptions
from .chart_resolver import ChartResolver

if TYPE_CHECKING:
    from validatorctl.cli.shared.console import CLIConsole
    from validatorctl.config.models import (
        ChartRef,
        DeploymentSpec,
        PluginSpec,
        SecretDescriptor,
    )
    from validatorctl.rendering import ManifestRenderer

    from ..shell_commands import ShellCommands


class BlockStyleDumper(yaml.SafeDumper):
    """SafeDumper that writes multi-line strings as literal blocks."""


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    style = "|" if "\n" in data else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=style)


BlockStyleDumper.add_representer(str, _represent_str)


def dump_yaml(data: Any) -> str:
    return yaml.dump(data, Dumper=BlockStyleDumper, sort_keys=False)


def chart_auth_secret_name(chart: ChartRef, secret: SecretDescriptor | None) -> str:
    """The secret holding chart pull credentials, if any.

    An explicit authSecretName wins; otherwise a release secret carrying
    credentials or a CA certificate is used.
    """
    if chart.auth_secret_name:
        return chart.auth_secret_name
    if secret is None:
        return ""
    has_auth = secret.basic_auth is not None and secret.basic_auth.configured
    return secret.name if has_auth or secret.ca_cert_file else ""


def strip_null_sink(document: str) -> str:
    """Drop the top-level `sink: null` line emitted for an unset sink."""
    lines = document.splitlines(keepends=True)
    return "".join(line for line in lines if line.rstrip() != "sink: null")


class HelmReleaseManager:
    """Installs or upgrades the validator Helm release.

    Handles:
    - Rendering base and per-plugin values and merging them
    - Deriving ReleaseOptions from the deployment spec
    - OCI chart resolution around the Helm call
    - Waiting for the validator controller deployment
    """

    VALUES_FILE = "validator-values.yaml"
    BASE_VALUES_TEMPLATE = "validator-base-values.yaml.j2"

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        renderer: ManifestRenderer,
        run_dir: Path,
        constants: ValidatorConstants | None = None,
        *,
        grace_period: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the Helm release manager.

        Args:
            commands: Shell command executor
            console: Console for user-facing output
            renderer: Template renderer for values documents
            run_dir: Run directory for the values file and pulled charts
            constants: Deployment constants
            grace_period: Seconds to sleep once the controller is available
            sleep: Sleep function, replaceable in tests
        """
        self.commands = commands
        self.console = console
        self.renderer = renderer
        self.run_dir = run_dir
        self.constants = constants or ValidatorConstants()
        self.grace_period = (
            self.constants.GRACE_PERIOD_SECONDS if grace_period is None else grace_period
        )
        self._sleep = sleep
        self.chart_resolver = ChartResolver(commands, console, run_dir)

    # =========================================================================
    # Chart References
    # =========================================================================

    def validator_chart(self, spec: DeploymentSpec) -> ChartRef:
        """The validator chart reference with defaults applied.

        Raises:
            ConfigurationError: If no chart version can be determined
        """
        chart = spec.helm_release.chart
        version = self.constants.CHART_VERSION if spec.use_fixed_versions else chart.version
        if not version:
            raise ConfigurationError(
                "Missing validator chart version",
                details="Set helmRelease.chart.version or useFixedVersions: true.",
            )
        return chart.model_copy(
            update={
                "name": chart.name or self.constants.CHART_NAME,
                "repository": chart.repository
                or f"{self.constants.HELM_REPOSITORY}/{self.constants.CHART_NAME}",
                "version": version,
                "auth_secret_name": chart_auth_secret_name(
                    chart, spec.helm_release_secret
                ),
            }
        )

    def plugin_chart(
        self, definition: PluginDefinition, plugin: PluginSpec, fixed: bool
    ) -> ChartRef:
        """A plugin chart reference with defaults applied.

        Raises:
            ConfigurationError: If no chart version can be determined
        """
        chart = plugin.helm_release.chart
        version = chart.version
        if fixed and definition.chart_version:
            version = definition.chart_version
        if not version:
            raise ConfigurationError(
                f"Missing chart version for {definition.name}",
                details=f"Set {definition.config_key}.helmRelease.chart.version.",
            )
        return chart.model_copy(
            update={
                "name": chart.name or definition.name,
                "repository": chart.repository
                or f"{self.constants.HELM_REPOSITORY}/{definition.name}",
                "version": version,
                "auth_secret_name": chart_auth_secret_name(
                    chart, plugin.helm_release_secret
                ),
            }
        )

    def validate_charts(self, spec: DeploymentSpec) -> None:
        """Resolve every chart reference up front so gaps fail before side effects."""
        self.validator_chart(spec)
        for definition, plugin in spec.enabled_plugins():
            self.plugin_chart(definition, plugin, spec.use_fixed_versions)

    # =========================================================================
    # Values
    # =========================================================================

    def render_plugin_values(
        self, spec: DeploymentSpec, definition: PluginDefinition, plugin: PluginSpec
    ) -> str:
        chart = self.plugin_chart(definition, plugin, spec.use_fixed_versions)
        return self.renderer.render(
            definition.values_template,
            {
                "config": plugin,
                "tag": chart.version,
                "plugin_name": definition.name,
                "image_registry": spec.image_registry,
                "proxy_config": spec.proxy_config,
            },
        )

    def build_values(self, spec: DeploymentSpec) -> str:
        """Build the merged Helm values document.

        The base document comes from the values template; the plugins
        document lists each enabled plugin's chart with its rendered values.
        The two must not share top-level keys because they are concatenated.
        """
        chart = self.validator_chart(spec)
        plugins: list[dict[str, Any]] = []
        for definition, plugin in spec.enabled_plugins():
            plugin_chart = self.plugin_chart(definition, plugin, spec.use_fixed_versions)
            plugins.append(
                {
                    "chart": plugin_chart.to_yaml_dict(),
                    "values": self.render_plugin_values(spec, definition, plugin),
                }
            )

        # Plugin charts fall back to the validator chart's pull credentials
        helm_config = spec.helm_config.model_copy(
            update={
                "auth_secret_name": spec.helm_config.auth_secret_name
                or chart.auth_secret_name
            }
        )
        base_values = self.renderer.render(
            self.BASE_VALUES_TEMPLATE,
            {
                "image_registry": spec.image_registry,
                "tag": chart.version,
                "proxy_config": spec.proxy_config,
                "sink_config": spec.sink_config,
                "proxy_ca_cert_lines": spec.proxy_config.ca_cert_lines,
            },
        )
        plugin_values = dump_yaml(
            {
                "helmConfig": helm_config.to_yaml_dict(),
                "plugins": plugins,
                "sink": None,
            }
        )
        if not base_values.endswith("\n"):
            base_values += "\n"
        values = base_values + strip_null_sink(plugin_values)
        logger.debug(f"Applying validator helm chart with values:\n{values}")
        return values

    def build_release_options(self, spec: DeploymentSpec, values: str) -> ReleaseOptions:
        chart = self.validator_chart(spec)
        helm_config = spec.helm_config
        repo = chart.repository
        if helm_config.registry.startswith("oci://"):
            repo = helm_config.registry

        username = password = ""
        secret = spec.helm_release_secret
        if secret is not None and secret.basic_auth is not None:
            username = secret.basic_auth.username
            password = secret.basic_auth.password

        return ReleaseOptions(
            release_name=self.constants.RELEASE_NAME,
            namespace=self.constants.NAMESPACE,
            chart=chart.name,
            repo=repo,
            version=chart.version,
            values=values,
            ca_file=helm_config.ca_file,
            insecure_skip_tls_verify=helm_config.insecure_skip_tls_verify
            or chart.insecure_skip_tls_verify,
            username=username,
            password=password,
        )

    # =========================================================================
    # Release
    # =========================================================================

    def install(self, spec: DeploymentSpec) -> ReleaseOptions:
        """Install or upgrade the validator release.

        Returns:
            The options used for the Helm call

        Raises:
            CommandFailedError: If the chart pull or Helm call fails
        """
        values = self.build_values(spec)
        options = self.build_release_options(spec, values)

        values_file = self.run_dir / self.VALUES_FILE
        # Values may embed credentials; never expose them through the umask
        values_file.touch(mode=0o600)
        values_file.chmod(0o600)
        values_file.write_text(values)

        with self.chart_resolver.resolve(options) as resolved:
            self.console.info("Installing/upgrading validator Helm chart")
            result = self.commands.helm.upgrade_install(
                resolved,
                kubeconfig=spec.kubeconfig,
                value_files=[values_file],
            )
            if not result.success:
                raise CommandFailedError(
                    "Failed to install validator helm chart", result
                )

        self.console.ok(
            f"Release {options.release_name} deployed to namespace {options.namespace}"
        )
        return options

    def wait_for_controller(self, spec: DeploymentSpec) -> None:
        """Wait for the validator controller, then the leader-election grace period.

        Raises:
            ReadinessError: If the controller deployment never becomes available
        """
        with self.console.status("Waiting for validator controller to be available..."):
            result = self.commands.kubectl.wait(
                self.constants.controller_wait_args, kubeconfig=spec.kubeconfig
            )
        if not result.success:
            raise ReadinessError("Validator controller did not become available", result)
        self.console.ok("Validator controller is available")

        # TODO: poll the controller's leader-election Lease instead of sleeping
        logger.debug(f"Sleeping {self.grace_period}s for leader election")
        self._sleep(self.grace_period)
