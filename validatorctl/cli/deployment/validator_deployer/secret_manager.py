"""Pre-release secret provisioning.

Secrets referenced by the validator and plugin charts must exist before the
Helm release is installed. Creation is idempotent: a secret left behind by
an earlier partial run is accepted as-is.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from validatorctl.errors import CommandFailedError, is_already_exists
from validatorctl.infra.constants import ValidatorConstants

if TYPE_CHECKING:
    from validatorctl.cli.shared.console import CLIConsole
    from validatorctl.config.models import DeploymentSpec, SecretDescriptor

    from ..shell_commands import ShellCommands


def secret_create_args(secret: SecretDescriptor, namespace: str) -> list[str]:
    """Build `kubectl create secret generic` arguments for a descriptor.

    Username and password literals are always present, even when empty,
    because plugin controllers expect both keys.
    """
    basic_auth = secret.basic_auth
    username = basic_auth.username if basic_auth else ""
    password = basic_auth.password if basic_auth else ""
    args = [
        "create",
        "secret",
        "generic",
        secret.name,
        "-n",
        namespace,
        f"--from-literal=username={username}",
        f"--from-literal=password={password}",
    ]
    for key, value in secret.data.items():
        args.append(f"--from-literal={key}={value}")
    if secret.ca_cert_file:
        args.append(f"--from-file=caCert={secret.ca_cert_file}")
    return args


class SecretProvisioner:
    """Creates the secrets the Helm release depends on."""

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        constants: ValidatorConstants | None = None,
    ) -> None:
        """Initialize the secret provisioner.

        Args:
            commands: Shell command executor
            console: Console for user-facing output
            constants: Deployment constants
        """
        self.commands = commands
        self.console = console
        self.constants = constants or ValidatorConstants()

    def pending_secrets(self, spec: DeploymentSpec) -> list[SecretDescriptor]:
        """Secrets that should be created, in release-then-plugin order.

        Descriptors sharing a name are created once.
        """
        candidates: list[SecretDescriptor] = []
        if spec.helm_release_secret is not None:
            candidates.append(spec.helm_release_secret)
        for _, plugin in spec.enabled_plugins():
            candidates.extend(plugin.secret_descriptors())

        pending: list[SecretDescriptor] = []
        seen: set[str] = set()
        for secret in candidates:
            if secret.should_create() and secret.name not in seen:
                pending.append(secret)
                seen.add(secret.name)
        return pending

    def build_commands(self, spec: DeploymentSpec) -> list[list[str]]:
        """kubectl argument lists to run before the release, without the
        namespace check."""
        return [
            secret_create_args(secret, self.constants.NAMESPACE)
            for secret in self.pending_secrets(spec)
        ]

    def provision(self, spec: DeploymentSpec) -> int:
        """Create pending secrets, creating the namespace first if absent.

        Returns:
            Number of secret commands executed

        Raises:
            CommandFailedError: On any failure other than "already exists"
        """
        commands = self.build_commands(spec)
        if not commands:
            logger.debug("No pre-release secrets to create")
            return 0

        namespace = self.constants.NAMESPACE
        if not self.commands.kubectl.namespace_exists(
            namespace, kubeconfig=spec.kubeconfig
        ):
            commands.insert(0, ["create", "namespace", namespace])

        for args in commands:
            result = self.commands.kubectl.run(args, kubeconfig=spec.kubeconfig)
            if result.success:
                continue
            if is_already_exists(result.stderr):
                logger.debug(result.stderr.strip())
                continue
            raise CommandFailedError(
                f"Failed to run 'kubectl {' '.join(args[:4])}'", result
            )

        secret_count = len(self.pending_secrets(spec))
        self.console.ok(f"Provisioned {secret_count} secret(s) in namespace {namespace}")
        return secret_count
