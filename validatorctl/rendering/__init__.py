from .renderer import ManifestRenderer, get_template_env

__all__ = ["ManifestRenderer", "get_template_env"]
