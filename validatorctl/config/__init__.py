"""Configuration models, loading and workspace handling."""

from .loader import load_deployment_spec, save_deployment_spec
from .models import DeploymentSpec, PluginSpec, SecretDescriptor
from .settings import CLISettings, load_settings
from .workspace import Workspace

__all__ = [
    "DeploymentSpec",
    "PluginSpec",
    "SecretDescriptor",
    "CLISettings",
    "Workspace",
    "load_deployment_spec",
    "load_settings",
    "save_deployment_spec",
]
