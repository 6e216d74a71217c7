"""Validator deployment constants.

This module centralizes the release identity, the plugin registry and the
pinned chart versions used throughout the deployment process.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class PluginKind(StrEnum):
    """Supported validator plugin kinds.

    Member order is the declaration order used for plugin readiness waits
    and rule application.
    """

    AWS = "aws"
    AZURE = "azure"
    MAAS = "maas"
    NETWORK = "network"
    OCI = "oci"
    VSPHERE = "vsphere"


def controller_wait_args(deployment: str, timeout: str = "600s") -> tuple[str, ...]:
    """Build the kubectl wait arguments for a controller-manager deployment."""
    return (
        "wait",
        "--for=condition=available",
        f"--timeout={timeout}",
        f"deployment/{deployment}-controller-manager",
        "-n",
        ValidatorConstants.NAMESPACE,
    )


@dataclass(frozen=True)
class PluginDefinition:
    """Static, per-kind facts about a validator plugin.

    Attributes:
        kind: Plugin kind
        display_name: Human readable plugin name
        config_key: Key of the plugin block in the configuration file
        chart_version: Pinned chart version, or None when unpinned
    """

    kind: PluginKind
    display_name: str
    config_key: str
    chart_version: str | None = None

    @property
    def name(self) -> str:
        """Chart, release and manifest name (e.g. validator-plugin-aws)."""
        return f"validator-plugin-{self.kind.value}"

    @property
    def values_template(self) -> str:
        return f"validator-plugin-{self.kind.value}-values.yaml.j2"

    @property
    def rules_template(self) -> str:
        return f"validator-rules-{self.kind.value}.yaml.j2"

    @property
    def wait_args(self) -> tuple[str, ...]:
        return controller_wait_args(self.name)


@dataclass(frozen=True)
class ValidatorConstants:
    """Constants for the validator Helm release and its surroundings.

    All attributes are class-level and immutable.
    """

    # Release identity
    NAMESPACE: str = "validator"
    RELEASE_NAME: str = "validator"
    CHART_NAME: str = "validator"
    CHART_VERSION: str = "v0.0.49"
    HELM_REPOSITORY: str = "https://validator-labs.github.io"
    IMAGE_REGISTRY: str = "quay.io/validator-labs"

    # Custom resources
    API_GROUP: str = "validation.spectrocloud.labs"
    API_VERSION: str = "v1alpha1"

    # Readiness
    WAIT_TIMEOUT: str = "600s"
    GRACE_PERIOD_SECONDS: float = 20.0

    # Rule manifests are embedded two spaces deep under `spec:`
    RULES_INDENT: int = 2

    # Kind
    KIND_CLUSTER_NAME: str = "validator-kind-cluster"
    KIND_IMAGE: str = "kindest/node:v1.30.2"
    KIND_CA_CERT_DIR: str = "/usr/local/share/ca-certificates"
    REGISTRY_MIRRORS: tuple[str, ...] = (
        "docker.io",
        "gcr.io",
        "ghcr.io",
        "k8s.gcr.io",
        "registry.k8s.io",
        "quay.io",
        "*",
    )

    # Workspace
    WORKSPACE_PREFIX: str = "validator"
    MANIFESTS_DIR: str = "manifests"
    LOGS_DIR: str = "logs"
    LOG_FILE: str = "validator.log"

    PLUGINS: tuple[PluginDefinition, ...] = field(
        default_factory=lambda: (
            PluginDefinition(PluginKind.AWS, "AWS", "awsPlugin", "v0.1.1"),
            PluginDefinition(PluginKind.AZURE, "Azure", "azurePlugin", "v0.0.13"),
            PluginDefinition(PluginKind.MAAS, "MAAS", "maasPlugin"),
            PluginDefinition(
                PluginKind.NETWORK, "Network", "networkPlugin", "v0.0.19"
            ),
            PluginDefinition(PluginKind.OCI, "OCI", "ociPlugin", "v0.0.11"),
            PluginDefinition(
                PluginKind.VSPHERE, "vSphere", "vspherePlugin", "v0.0.27"
            ),
        )
    )

    @property
    def api_version(self) -> str:
        return f"{self.API_GROUP}/{self.API_VERSION}"

    @property
    def controller_wait_args(self) -> tuple[str, ...]:
        """kubectl wait arguments for the validator's own controller."""
        return controller_wait_args(self.RELEASE_NAME, self.WAIT_TIMEOUT)

    def plugin(self, kind: PluginKind) -> PluginDefinition:
        """Look up the definition for a plugin kind."""
        for definition in self.PLUGINS:
            if definition.kind == kind:
                return definition
        raise KeyError(kind)


@dataclass(frozen=True)
class ExtraRuleManifest:
    """A rule list applied through its own manifest and template.

    Attributes:
        rules_key: Rule list moved out of the main manifest
        suffix: Appended to the plugin name to name the manifest
        template: Template rendering the manifest
        shared_keys: Plugin-level settings copied alongside the rules
    """

    rules_key: str
    suffix: str
    template: str
    shared_keys: tuple[str, ...] = ()


EXTRA_RULE_MANIFESTS: dict[PluginKind, tuple[ExtraRuleManifest, ...]] = {
    PluginKind.AWS: (
        ExtraRuleManifest(
            rules_key="iamRoleRules",
            suffix="iam-role",
            template="validator-rules-aws-iam-role.yaml.j2",
            shared_keys=("auth", "defaultRegion"),
        ),
    ),
}
