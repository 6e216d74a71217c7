from pathlib import Path


def get_package_root() -> Path:
    """Get the installed validatorctl package directory."""
    return Path(__file__).resolve().parent.parent


def get_templates_dir() -> Path:
    """Get the directory holding the embedded Jinja2 templates."""
    return get_package_root() / "templates"
