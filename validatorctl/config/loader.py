"""Loading and saving the deployment configuration file."""

from __future__ import annotations

from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError

from validatorctl.errors import ConfigurationError

from .models import DeploymentSpec


def load_deployment_spec(path: Path) -> DeploymentSpec:
    """Load a DeploymentSpec from a YAML file.

    Args:
        path: Path to the configuration file

    Returns:
        The validated, immutable deployment spec

    Raises:
        ConfigurationError: If the file is missing, malformed or invalid
    """
    logger.info(f"Loading validator configuration from {path}")
    try:
        raw = yaml.safe_load(path.read_text())
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            details="Pass an existing file with --config-file/-f.",
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse configuration file: {path}", details=str(e)
        ) from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Invalid configuration file: {path}",
            details="The top level of the file must be a mapping.",
        )

    try:
        spec = DeploymentSpec.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration file: {path}", details=str(e)
        ) from e

    logger.debug(
        "Enabled plugins: "
        + ", ".join(d.name for d, _ in spec.enabled_plugins())
    )
    return spec


def save_deployment_spec(spec: DeploymentSpec, path: Path) -> None:
    """Write a DeploymentSpec back to disk as YAML.

    Credentials are written as-is; the file is created with owner-only
    permissions.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(spec.to_yaml_dict(), sort_keys=False))
    path.chmod(0o600)
    logger.info(f"Saved validator configuration to {path}")
