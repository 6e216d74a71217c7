"""Jinja2 rendering of Helm values and custom-resource manifests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from validatorctl.utils.paths import get_templates_dir


def to_yaml(value: Any) -> str:
    """Jinja2 filter dumping a value as block-style YAML."""
    return yaml.safe_dump(value, sort_keys=False, default_flow_style=False).rstrip(
        "\n"
    )


def get_template_env(template_dir: Path | None = None) -> Environment:
    """Get Jinja2 environment for template rendering."""
    env = Environment(
        loader=FileSystemLoader(Path(template_dir or get_templates_dir())),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["to_yaml"] = to_yaml
    return env


class ManifestRenderer:
    """Renders named templates to bytes or files."""

    def __init__(self, template_dir: Path | None = None) -> None:
        self._env = get_template_env(template_dir)

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        template = self._env.get_template(template_name)
        return template.render(**context)

    def render_to_file(
        self, template_name: str, output_path: Path, context: dict[str, Any]
    ) -> Path:
        """Render a template to a file, replacing any previous content."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.render(template_name, context))
        return output_path
