"""Deployment configuration models.

The configuration file is camelCase YAML; the models expose snake_case
attributes through pydantic aliases. Every model is frozen once validated:
the deployment flow only ever reads a DeploymentSpec, and callers derive
adjusted copies with ``model_copy(update=...)``.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from validatorctl.infra.constants import (
    PluginDefinition,
    PluginKind,
    ValidatorConstants,
)


class ConfigModel(BaseModel):
    """Base for all configuration models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_yaml_dict(self, **kwargs: Any) -> dict[str, Any]:
        """Dump with camelCase keys, the way the YAML file spells them."""
        return self.model_dump(by_alias=True, exclude_none=True, **kwargs)


# =============================================================================
# Credentials
# =============================================================================


class BasicAuth(ConfigModel):
    username: str = ""
    password: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.username or self.password)


class SecretDescriptor(ConfigModel):
    """A Kubernetes secret that may need to exist before the release.

    Attributes:
        name: Secret name in the validator namespace
        basic_auth: Username/password pair stored under those keys
        data: Additional literal key/value pairs
        ca_cert_file: Path of a CA certificate stored under ``caCert``
        exists: The secret is managed outside this tool
    """

    name: str
    basic_auth: BasicAuth | None = None
    data: dict[str, str] = Field(default_factory=dict)
    ca_cert_file: str = ""
    exists: bool = False

    def should_create(self) -> bool:
        """A secret is provisioned only if absent and carrying any credential."""
        has_auth = self.basic_auth is not None and self.basic_auth.configured
        return not self.exists and (
            has_auth or bool(self.data) or bool(self.ca_cert_file)
        )


class CACert(ConfigModel):
    data: str = ""
    name: str = ""
    path: str = ""


class PublicKeySecret(ConfigModel):
    """Public keys for OCI artifact signature verification.

    Attributes:
        name: Secret name in the validator namespace
        keys: PEM-encoded public keys, stored as key1.pub, key2.pub, ...
    """

    name: str
    keys: list[str] = Field(default_factory=list)

    def to_descriptor(self) -> SecretDescriptor:
        return SecretDescriptor(
            name=self.name,
            data={f"key{i}.pub": key for i, key in enumerate(self.keys, start=1)},
        )


# =============================================================================
# Helm
# =============================================================================


class ChartRef(ConfigModel):
    """A Helm chart reference.

    ``repository`` is either a classic HTTP(S) chart repository URL or an
    ``oci://`` registry reference.
    """

    name: str = ""
    repository: str = ""
    version: str = ""
    insecure_skip_tls_verify: bool = Field(default=False, alias="insecureSkipTLSVerify")
    auth_secret_name: str = ""


class HelmRelease(ConfigModel):
    chart: ChartRef = Field(default_factory=ChartRef)
    values: str = ""


class HelmConfig(ConfigModel):
    """Chart source settings shared by the validator and its plugins."""

    registry: str = ""
    ca_file: str = ""
    insecure_skip_tls_verify: bool = Field(default=False, alias="insecureSkipTLSVerify")
    auth_secret_name: str = ""


# =============================================================================
# Environment
# =============================================================================


class KindConfig(ConfigModel):
    use_kind_cluster: bool = False
    kind_cluster_name: str = ""


class ProxyEnv(ConfigModel):
    http_proxy: str = ""
    https_proxy: str = ""
    no_proxy: str = ""
    pod_cidr: str | None = Field(default=None, alias="podCIDR")
    service_ip_range: str | None = Field(default=None, alias="serviceIPRange")
    proxy_ca_cert: CACert | None = None


class ProxyConfig(ConfigModel):
    enabled: bool = False
    env: ProxyEnv = Field(default_factory=ProxyEnv)

    @property
    def ca_cert_lines(self) -> list[str]:
        if not self.enabled or self.env.proxy_ca_cert is None:
            return []
        return self.env.proxy_ca_cert.data.split("\n")


class Registry(ConfigModel):
    host: str = ""
    port: int | None = None
    base_content_path: str = ""
    insecure_skip_tls_verify: bool = Field(default=False, alias="insecureSkipTLSVerify")
    reuse_proxy_ca_cert: bool = Field(default=False, alias="reuseProxyCACert")
    basic_auth: BasicAuth | None = None
    ca_cert: CACert | None = None

    @property
    def endpoint(self) -> str:
        return f"{self.host}:{self.port}" if self.port else self.host


class RegistryConfig(ConfigModel):
    enabled: bool = False
    registry: Registry = Field(default_factory=Registry)


class SinkConfig(ConfigModel):
    enabled: bool = False
    create_secret: bool = False
    secret_name: str = ""
    type: str = ""
    values: dict[str, str] = Field(default_factory=dict)


# =============================================================================
# Rules
# =============================================================================


class Rule(ConfigModel):
    """A single named validation rule.

    Rule bodies are plugin specific; fields beyond ``name`` are carried
    through untouched into the rendered manifest.
    """

    model_config = ConfigDict(extra="allow")

    name: str


class ValidatorSpec(ConfigModel):
    """Base for a plugin's RuleSet container.

    Subclasses list their rule fields in ``RULE_FIELDS``; any other keys are
    plugin-level settings (auth blocks, hosts, regions) kept verbatim.
    """

    model_config = ConfigDict(extra="allow")

    RULE_FIELDS: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _check_rule_lists(self) -> ValidatorSpec:
        unknown = sorted(key for key in self.model_extra or {} if key.endswith("Rules"))
        if unknown:
            raise ValueError(f"unknown rule list(s): {', '.join(unknown)}")
        return self

    @model_validator(mode="after")
    def _check_unique_rule_names(self) -> ValidatorSpec:
        seen: set[str] = set()
        for rule in self.rules():
            if rule.name in seen:
                raise ValueError(f"duplicate rule name '{rule.name}'")
            seen.add(rule.name)
        return self

    def rules(self) -> Iterator[Rule]:
        for field_name in self.RULE_FIELDS:
            yield from getattr(self, field_name)

    def rule_count(self) -> int:
        return sum(1 for _ in self.rules())


class AwsValidatorSpec(ValidatorSpec):
    RULE_FIELDS: ClassVar[tuple[str, ...]] = (
        "ami_rules",
        "iam_group_rules",
        "iam_policy_rules",
        "iam_role_rules",
        "iam_user_rules",
        "service_quota_rules",
        "tag_rules",
    )

    auth: dict[str, Any] = Field(default_factory=dict)
    default_region: str = ""
    ami_rules: list[Rule] = Field(default_factory=list)
    iam_group_rules: list[Rule] = Field(default_factory=list)
    iam_policy_rules: list[Rule] = Field(default_factory=list)
    iam_role_rules: list[Rule] = Field(default_factory=list)
    iam_user_rules: list[Rule] = Field(default_factory=list)
    service_quota_rules: list[Rule] = Field(default_factory=list)
    tag_rules: list[Rule] = Field(default_factory=list)


class AzureValidatorSpec(ValidatorSpec):
    RULE_FIELDS: ClassVar[tuple[str, ...]] = (
        "rbac_rules",
        "community_gallery_image_rules",
        "quota_rules",
    )

    auth: dict[str, Any] = Field(default_factory=dict)
    rbac_rules: list[Rule] = Field(default_factory=list)
    community_gallery_image_rules: list[Rule] = Field(default_factory=list)
    quota_rules: list[Rule] = Field(default_factory=list)


class MaasValidatorSpec(ValidatorSpec):
    RULE_FIELDS: ClassVar[tuple[str, ...]] = (
        "image_rules",
        "internal_dns_rules",
        "upstream_dns_rules",
        "resource_availability_rules",
    )

    host: str = ""
    auth: dict[str, Any] = Field(default_factory=dict)
    image_rules: list[Rule] = Field(default_factory=list)
    internal_dns_rules: list[Rule] = Field(default_factory=list, alias="internalDNSRules")
    upstream_dns_rules: list[Rule] = Field(default_factory=list, alias="upstreamDNSRules")
    resource_availability_rules: list[Rule] = Field(default_factory=list)


class NetworkValidatorSpec(ValidatorSpec):
    RULE_FIELDS: ClassVar[tuple[str, ...]] = (
        "dns_rules",
        "icmp_rules",
        "ip_range_rules",
        "mtu_rules",
        "tcp_conn_rules",
        "http_file_rules",
    )

    dns_rules: list[Rule] = Field(default_factory=list)
    icmp_rules: list[Rule] = Field(default_factory=list)
    ip_range_rules: list[Rule] = Field(default_factory=list)
    mtu_rules: list[Rule] = Field(default_factory=list)
    tcp_conn_rules: list[Rule] = Field(default_factory=list)
    http_file_rules: list[Rule] = Field(default_factory=list)
    ca_certs: dict[str, Any] | None = None


class OciValidatorSpec(ValidatorSpec):
    RULE_FIELDS: ClassVar[tuple[str, ...]] = ("oci_registry_rules",)

    oci_registry_rules: list[Rule] = Field(default_factory=list)


class VsphereValidatorSpec(ValidatorSpec):
    RULE_FIELDS: ClassVar[tuple[str, ...]] = (
        "compute_resource_rules",
        "entity_privilege_validation_rules",
        "ntp_validation_rules",
        "role_privilege_validation_rules",
        "tag_validation_rules",
    )

    auth: dict[str, Any] = Field(default_factory=dict)
    datacenter: str = ""
    compute_resource_rules: list[Rule] = Field(default_factory=list)
    entity_privilege_validation_rules: list[Rule] = Field(default_factory=list)
    ntp_validation_rules: list[Rule] = Field(default_factory=list)
    role_privilege_validation_rules: list[Rule] = Field(default_factory=list)
    tag_validation_rules: list[Rule] = Field(default_factory=list)


# =============================================================================
# Plugins
# =============================================================================


class PluginSpec(ConfigModel):
    """Configuration of one validator plugin.

    Attributes:
        enabled: Whether the plugin is installed and configured
        helm_release: The plugin's own chart reference and extra values
        helm_release_secret: Optional credential secret for the plugin chart
        validator: The plugin's RuleSet
    """

    enabled: bool = False
    helm_release: HelmRelease = Field(default_factory=HelmRelease)
    helm_release_secret: SecretDescriptor | None = None
    validator: ValidatorSpec = Field(default_factory=ValidatorSpec)

    def secret_descriptors(self) -> list[SecretDescriptor]:
        """Secrets that must exist before this plugin is installed."""
        if self.helm_release_secret is None:
            return []
        return [self.helm_release_secret]


class AwsPluginSpec(PluginSpec):
    access_key_id: str = ""
    secret_access_key: str = ""
    session_token: str = ""
    service_account_name: str = ""
    validator: AwsValidatorSpec = Field(default_factory=AwsValidatorSpec)


class AzurePluginSpec(PluginSpec):
    service_account_name: str = ""
    cloud: str = ""
    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = ""
    validator: AzureValidatorSpec = Field(default_factory=AzureValidatorSpec)


class MaasPluginSpec(PluginSpec):
    validator: MaasValidatorSpec = Field(default_factory=MaasValidatorSpec)


class NetworkPluginSpec(PluginSpec):
    """Network plugin configuration.

    ``http_file_auths`` holds one [username, password] pair per HTTP file
    rule, by position; a rule with an ``authSecretRef`` gets a secret holding
    its pair under the referenced keys.
    """

    http_file_auths: list[list[str]] = Field(default_factory=list)
    validator: NetworkValidatorSpec = Field(default_factory=NetworkValidatorSpec)

    def http_file_secrets(self) -> list[SecretDescriptor]:
        secrets: list[SecretDescriptor] = []
        for rule, auth in zip(
            self.validator.http_file_rules, self.http_file_auths, strict=False
        ):
            ref = (rule.model_extra or {}).get("authSecretRef") or {}
            if not ref.get("name") or len(auth) != 2:
                continue
            username_key = ref.get("usernameKey") or "username"
            password_key = ref.get("passwordKey") or "password"
            values = {username_key: auth[0], password_key: auth[1]}
            # Keys named username/password ride on the always-present literals
            basic_auth = BasicAuth(
                username=values.pop("username", ""),
                password=values.pop("password", ""),
            )
            secrets.append(
                SecretDescriptor(name=ref["name"], basic_auth=basic_auth, data=values)
            )
        return secrets

    def secret_descriptors(self) -> list[SecretDescriptor]:
        return [*super().secret_descriptors(), *self.http_file_secrets()]


class OciPluginSpec(PluginSpec):
    secrets: list[SecretDescriptor] = Field(default_factory=list)
    public_key_secrets: list[PublicKeySecret] = Field(default_factory=list)
    validator: OciValidatorSpec = Field(default_factory=OciValidatorSpec)

    def secret_descriptors(self) -> list[SecretDescriptor]:
        return [
            *super().secret_descriptors(),
            *self.secrets,
            *(s.to_descriptor() for s in self.public_key_secrets),
        ]


class VspherePluginSpec(PluginSpec):
    validator: VsphereValidatorSpec = Field(default_factory=VsphereValidatorSpec)


# =============================================================================
# Deployment
# =============================================================================


class DeploymentSpec(ConfigModel):
    """The fully resolved configuration handed to the deployer."""

    helm_config: HelmConfig = Field(default_factory=HelmConfig)
    helm_release: HelmRelease = Field(default_factory=HelmRelease)
    helm_release_secret: SecretDescriptor | None = None
    kind_config: KindConfig = Field(default_factory=KindConfig)
    kubeconfig: str = ""
    registry_config: RegistryConfig | None = None
    sink_config: SinkConfig | None = None
    proxy_config: ProxyConfig = Field(default_factory=ProxyConfig)
    image_registry: str = ValidatorConstants.IMAGE_REGISTRY
    use_fixed_versions: bool = False

    aws_plugin: AwsPluginSpec | None = None
    azure_plugin: AzurePluginSpec | None = None
    maas_plugin: MaasPluginSpec | None = None
    network_plugin: NetworkPluginSpec | None = None
    oci_plugin: OciPluginSpec | None = None
    vsphere_plugin: VspherePluginSpec | None = None

    def plugin(self, kind: PluginKind) -> PluginSpec | None:
        return getattr(self, f"{kind.value}_plugin")

    def enabled_plugins(self) -> list[tuple[PluginDefinition, PluginSpec]]:
        """Enabled plugins paired with their definitions, in declared order."""
        enabled = []
        for definition in ValidatorConstants().PLUGINS:
            spec = self.plugin(definition.kind)
            if spec is not None and spec.enabled:
                enabled.append((definition, spec))
        return enabled

    def any_plugin_enabled(self) -> bool:
        return bool(self.enabled_plugins())

    def plugins_without_rules(self) -> list[str]:
        """Names of enabled plugins that have no rules configured."""
        return [
            definition.name
            for definition, spec in self.enabled_plugins()
            if spec.validator.rule_count() == 0
        ]

    @property
    def kind_cluster_name(self) -> str:
        return self.kind_config.kind_cluster_name or ValidatorConstants.KIND_CLUSTER_NAME
