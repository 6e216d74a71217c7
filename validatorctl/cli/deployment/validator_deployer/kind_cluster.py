"""Local kind cluster provisioning."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

from validatorctl.errors import CommandFailedError
from validatorctl.infra.constants import ValidatorConstants

if TYPE_CHECKING:
    from validatorctl.cli.shared.console import CLIConsole
    from validatorctl.config.models import DeploymentSpec
    from validatorctl.rendering import ManifestRenderer

    from ..shell_commands import ShellCommands


class KindClusterManager:
    """Creates and deletes the kind cluster a validator can be installed into."""

    TEMPLATE = "kind-cluster-config.yaml.j2"

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        renderer: ManifestRenderer,
        constants: ValidatorConstants | None = None,
    ) -> None:
        self.commands = commands
        self.console = console
        self.renderer = renderer
        self.constants = constants or ValidatorConstants()

    def _config_context(self, spec: DeploymentSpec) -> dict[str, Any]:
        """Template arguments for the cluster config.

        Proxy and registry CA certificates are mounted into the node's CA
        directory; registry mirrors point every upstream at the configured
        registry.
        """
        env = spec.proxy_config.env if spec.proxy_config.enabled else None
        ca_certs = []
        if env is not None and env.proxy_ca_cert and env.proxy_ca_cert.path:
            ca_certs.append(env.proxy_ca_cert)

        context: dict[str, Any] = {
            "env": env,
            "image": self.constants.KIND_IMAGE,
            "ca_certs": ca_certs,
            "ca_cert_dir": self.constants.KIND_CA_CERT_DIR,
            "registry_endpoint": "",
            "registry_mirrors": [],
            "registry_insecure": False,
            "registry_username": "",
            "registry_password": "",
        }

        registry_config = spec.registry_config
        if registry_config is None or not registry_config.enabled:
            return context

        registry = registry_config.registry
        endpoint = registry.endpoint
        mirror_endpoint = f"https://{endpoint}/v2"
        if registry.base_content_path:
            mirror_endpoint = f"{mirror_endpoint}/{registry.base_content_path}"
        context.update(
            {
                "registry_endpoint": endpoint,
                "registry_mirrors": [
                    {"host": host, "endpoint": mirror_endpoint}
                    for host in self.constants.REGISTRY_MIRRORS
                ],
                "registry_insecure": registry.insecure_skip_tls_verify,
            }
        )
        if registry.basic_auth is not None:
            context["registry_username"] = registry.basic_auth.username
            context["registry_password"] = registry.basic_auth.password
        if (
            registry.ca_cert is not None
            and registry.ca_cert.path
            and not registry.reuse_proxy_ca_cert
        ):
            ca_certs.append(registry.ca_cert)
        return context

    def render_config(self, spec: DeploymentSpec, path: Path) -> Path:
        return self.renderer.render_to_file(self.TEMPLATE, path, self._config_context(spec))

    def create(self, spec: DeploymentSpec, config_path: Path) -> None:
        """Create the kind cluster and refresh node CA certificates if mounted.

        Raises:
            CommandFailedError: If kind or the CA refresh fails
        """
        name = spec.kind_cluster_name
        self.render_config(spec, config_path)
        self.console.info(f"Creating kind cluster {name}")
        result = self.commands.kind.create_cluster(
            name,
            kubeconfig=Path(spec.kubeconfig),
            config=config_path,
            on_output=lambda line: self.console.print(f"[dim]{line}[/dim]"),
        )
        if not result.success:
            raise CommandFailedError("Failed to start validator kind cluster", result)

        if self.constants.KIND_CA_CERT_DIR in config_path.read_text():
            logger.debug("Kind config mounts CA certificates; refreshing trust store")
            result = self.commands.docker.refresh_ca_certificates(f"{name}-control-plane")
            if not result.success:
                raise CommandFailedError(
                    "Failed to update CA certificates in kind cluster", result
                )

        self.console.ok(f"Created kind cluster; kubeconfig: {spec.kubeconfig}")

    def delete(self, spec: DeploymentSpec) -> None:
        """Delete the kind cluster.

        Raises:
            CommandFailedError: If kind fails to delete the cluster
        """
        name = spec.kind_cluster_name
        result = self.commands.kind.delete_cluster(name)
        if not result.success:
            raise CommandFailedError(f"Failed to delete kind cluster {name}", result)
        self.console.ok(f"Deleted local kind cluster: {name}")
