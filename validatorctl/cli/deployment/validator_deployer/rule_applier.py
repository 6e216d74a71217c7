"""Rendering and applying plugin rule manifests.

Each enabled plugin's RuleSet is serialized to YAML, embedded in the
plugin's custom-resource template and applied with kubectl. Rule lists
listed in EXTRA_RULE_MANIFESTS are moved into manifests of their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

from validatorctl.errors import CommandFailedError
from validatorctl.infra.constants import (
    EXTRA_RULE_MANIFESTS,
    PluginDefinition,
    ValidatorConstants,
)

from .helm_release import dump_yaml

if TYPE_CHECKING:
    from validatorctl.cli.shared.console import CLIConsole
    from validatorctl.config.models import DeploymentSpec, PluginSpec
    from validatorctl.rendering import ManifestRenderer

    from ..shell_commands import ShellCommands


def indent(text: str, spaces: int) -> str:
    """Prefix every line of text, including a trailing empty one, with spaces."""
    prefix = " " * spaces
    return "".join(f"{prefix}{line}\n" for line in text.split("\n"))


@dataclass(frozen=True)
class RuleManifest:
    """A manifest to render and apply.

    Attributes:
        name: Resource and file name
        template: Template used to render the manifest
        spec: The custom resource spec
    """

    name: str
    template: str
    spec: dict[str, Any]


class RuleApplier:
    """Renders and applies plugin rule manifests."""

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        renderer: ManifestRenderer,
        manifests_dir: Path,
        constants: ValidatorConstants | None = None,
    ) -> None:
        """Initialize the rule applier.

        Args:
            commands: Shell command executor
            console: Console for user-facing output
            renderer: Template renderer for manifests
            manifests_dir: Directory rendered manifests are written to
            constants: Deployment constants
        """
        self.commands = commands
        self.console = console
        self.renderer = renderer
        self.manifests_dir = manifests_dir
        self.constants = constants or ValidatorConstants()

    def plan(self, definition: PluginDefinition, plugin: PluginSpec) -> list[RuleManifest]:
        """Split a plugin's RuleSet into the manifests to apply.

        Manifests without any rules are left out.
        """
        spec = plugin.validator.to_yaml_dict()
        manifests: list[RuleManifest] = []
        extras = EXTRA_RULE_MANIFESTS.get(definition.kind, ())

        for extra in extras:
            rules = spec.pop(extra.rules_key, None)
            if not rules:
                continue
            extra_spec = {k: spec[k] for k in extra.shared_keys if k in spec}
            extra_spec[extra.rules_key] = rules
            manifests.append(
                RuleManifest(
                    name=f"{definition.name}-{extra.suffix}",
                    template=extra.template,
                    spec=extra_spec,
                )
            )

        extra_keys = {extra.rules_key for extra in extras}
        validator_type = type(plugin.validator)
        main_rule_count = sum(
            len(getattr(plugin.validator, field))
            for field in validator_type.RULE_FIELDS
            if validator_type.model_fields[field].alias not in extra_keys
        )
        if main_rule_count:
            manifests.insert(
                0,
                RuleManifest(
                    name=definition.name,
                    template=definition.rules_template,
                    spec=spec,
                ),
            )
        return manifests

    def render(self, manifest: RuleManifest) -> Path:
        """Render a manifest to <manifests-dir>/<name>.yaml."""
        path = self.manifests_dir / f"{manifest.name}.yaml"
        return self.renderer.render_to_file(
            manifest.template,
            path,
            {
                "name": manifest.name,
                "namespace": self.constants.NAMESPACE,
                "spec": indent(dump_yaml(manifest.spec), self.constants.RULES_INDENT),
            },
        )

    def apply_plugin(
        self, spec: DeploymentSpec, definition: PluginDefinition, plugin: PluginSpec
    ) -> list[Path]:
        """Render and apply every manifest for one plugin.

        Raises:
            CommandFailedError: On the first manifest kubectl rejects
        """
        manifests = self.plan(definition, plugin)
        if not manifests:
            logger.info(f"No rules configured for {definition.name}; skipping")
            return []

        applied: list[Path] = []
        for manifest in manifests:
            path = self.render(manifest)
            result = self.commands.kubectl.apply(path, kubeconfig=spec.kubeconfig)
            if not result.success:
                raise CommandFailedError(
                    f"Failed to apply {manifest.name} validator", result
                )
            logger.debug(f"Applied {path}")
            applied.append(path)
        return applied

    def apply_all(self, spec: DeploymentSpec) -> list[Path]:
        """Apply rule manifests for every enabled plugin in declared order."""
        applied: list[Path] = []
        for definition, plugin in spec.enabled_plugins():
            self.console.info(f"Applying {definition.display_name} plugin validator(s)")
            applied.extend(self.apply_plugin(spec, definition, plugin))
        return applied

    def planned_manifests(self, spec: DeploymentSpec) -> list[RuleManifest]:
        """All manifests apply_all would apply, one ValidationResult each."""
        return [
            manifest
            for definition, plugin in spec.enabled_plugins()
            for manifest in self.plan(definition, plugin)
        ]
