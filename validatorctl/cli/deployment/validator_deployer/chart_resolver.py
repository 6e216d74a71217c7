"""Helm chart source resolution.

Classic HTTP(S) repositories are handed to Helm as-is. OCI registries are
pulled into the run directory first and the release is installed from the
extracted chart, which is removed again however the release step ends.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from validatorctl.errors import CommandFailedError

if TYPE_CHECKING:
    from validatorctl.cli.shared.console import CLIConsole

    from ..shell_commands import ReleaseOptions, ShellCommands


def normalize_oci_version(version: str) -> str:
    """Strip a leading "v"; OCI chart tags are bare semver."""
    return version.removeprefix("v")


class ChartResolver:
    """Resolves ReleaseOptions to a chart Helm can install."""

    CHART_DIR = "chart"

    def __init__(
        self,
        commands: ShellCommands,
        console: CLIConsole,
        run_dir: Path,
    ) -> None:
        """Initialize the chart resolver.

        Args:
            commands: Shell command executor
            console: Console for user-facing output
            run_dir: Run directory OCI charts are extracted into
        """
        self.commands = commands
        self.console = console
        self.run_dir = run_dir

    @contextmanager
    def resolve(self, options: ReleaseOptions) -> Iterator[ReleaseOptions]:
        """Yield options pointing at an installable chart.

        For an OCI repository the chart is pulled and extracted under the
        run directory and the yielded options reference the local path.
        The extracted directory is removed when the block exits, on success
        and on error alike.

        Raises:
            CommandFailedError: If the OCI pull fails
        """
        if not options.is_oci:
            yield options
            return

        destination = self.run_dir / self.CHART_DIR
        version = normalize_oci_version(options.version)
        try:
            self.console.info(
                f"Pulling {options.chart} Helm chart from OCI registry {options.repo}"
            )
            result = self.commands.helm.pull(
                options.oci_chart_ref,
                destination,
                version=version,
                ca_file=options.ca_file,
                insecure_skip_tls_verify=options.insecure_skip_tls_verify,
                username=options.username,
                password=options.password,
            )
            if not result.success:
                raise CommandFailedError(
                    "Failed to pull Helm chart from OCI registry", result
                )
            logger.debug(f"Reconfigured Helm options to deploy local chart {destination}")
            yield options.with_local_chart(destination / options.chart, version)
        finally:
            self._cleanup(destination)

    def _cleanup(self, path: Path) -> None:
        if not path.exists():
            return
        try:
            shutil.rmtree(path)
        except OSError as e:
            logger.warning(f"Failed to remove local chart directory {path}: {e}")
            self.console.warn(f"Failed to remove local chart directory {path}: {e}")
            return
        logger.debug(f"Cleaned up local chart directory: {path}")
