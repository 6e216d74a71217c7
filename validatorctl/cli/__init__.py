"""Main CLI application module.

This module provides the main entry point for validatorctl, which deploys
the validator and its plugins to a Kubernetes cluster.

Commands:
- install: Install the validator, its plugins and their rules
- upgrade: Upgrade an existing installation
- uninstall: Remove the validator (and its kind cluster)
- rules: Apply and monitor plugin rules
- describe: Show validation results
- docs: Show supported plugins and versions
"""

import typer

from validatorctl import __version__

from ..utils.logging import configure_logging
from .commands import describe, docs, install, rules_app, uninstall, upgrade
from .shared.console import console

# Create the main CLI application
app = typer.Typer(
    help="🛡️  validatorctl - Deploy and configure the validator",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command()(install)
app.command()(upgrade)
app.command()(uninstall)
app.command()(describe)
app.command()(docs)

app.add_typer(rules_app, name="rules")


@app.command()
def version() -> None:
    """Print the validatorctl version."""
    console.print(f"validatorctl {__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    # Commands that create a run workspace switch this to the run log file
    configure_logging(None)
    app()


if __name__ == "__main__":
    main()
