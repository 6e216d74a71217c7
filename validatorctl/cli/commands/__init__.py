"""CLI command modules.

Command Groups:
- validator lifecycle: install, upgrade, uninstall, describe, docs
- rules: Apply and monitor plugin rules
"""

from .rules import rules_app
from .validator import describe, docs, install, uninstall, upgrade

__all__ = [
    "rules_app",
    "install",
    "upgrade",
    "uninstall",
    "describe",
    "docs",
]
