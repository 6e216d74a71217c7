"""Helm command abstractions.

This module provides commands for Helm release management,
including install-or-upgrade, OCI chart pulls and uninstallation.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult, ReleaseOptions

if TYPE_CHECKING:
    from .runner import CommandRunner


class HelmCommands:
    """Helm-related shell commands.

    Provides operations for:
    - Release management (install, upgrade, uninstall)
    - Chart retrieval from OCI registries
    """

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize Helm commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    @staticmethod
    def _tls_and_auth_args(
        *,
        ca_file: str = "",
        insecure_skip_tls_verify: bool = False,
        username: str = "",
        password: str = "",
    ) -> list[str]:
        args: list[str] = []
        if ca_file:
            args.extend(["--ca-file", ca_file])
        if insecure_skip_tls_verify:
            args.append("--insecure-skip-tls-verify")
        if username:
            args.extend(["--username", username])
        if password:
            args.extend(["--password", password])
        return args

    # =========================================================================
    # Release Management
    # =========================================================================

    def upgrade_install(
        self,
        options: ReleaseOptions,
        *,
        kubeconfig: str,
        value_files: list[Path] | None = None,
        on_output: Callable[[str], None] | None = None,
    ) -> CommandResult:
        """Deploy or upgrade a Helm release.

        Uses `helm upgrade --install` to idempotently deploy a chart.
        If the release doesn't exist, it will be installed. If it exists,
        it will be upgraded.

        When ``options.local_path`` is set the extracted chart directory is
        deployed and repository flags are omitted.

        Args:
            options: Release identity, chart source, TLS and auth settings
            kubeconfig: Kubeconfig of the target cluster
            value_files: values.yaml files to pass with -f
            on_output: Optional callback for real-time output streaming.

        Returns:
            CommandResult with deployment status

        Example:
            >>> helm.upgrade_install(
            ...     ReleaseOptions("validator", "validator", "validator",
            ...                    repo="https://validator-labs.github.io/validator",
            ...                    version="v0.0.49"),
            ...     kubeconfig="/tmp/kubeconfig",
            ...     value_files=[Path("values.yaml")],
            ... )
        """
        chart = str(options.local_path) if options.local_path else options.chart
        cmd = [
            "helm",
            "upgrade",
            "--install",
            options.release_name,
            chart,
            "--namespace",
            options.namespace,
            "--create-namespace",
        ]

        if options.local_path is None:
            if options.repo:
                cmd.extend(["--repo", options.repo])
            if options.version:
                cmd.extend(["--version", options.version])
            cmd.extend(
                self._tls_and_auth_args(
                    ca_file=options.ca_file,
                    insecure_skip_tls_verify=options.insecure_skip_tls_verify,
                    username=options.username,
                    password=options.password,
                )
            )

        for vf in value_files or []:
            cmd.extend(["-f", str(vf)])
        cmd.extend(["--kubeconfig", kubeconfig])

        if on_output:
            return self._runner.run_streaming(cmd, on_output=on_output)
        return self._runner.run(cmd, capture_output=True)

    def uninstall(
        self,
        release_name: str,
        namespace: str,
        *,
        kubeconfig: str,
        wait: bool = True,
    ) -> CommandResult:
        """Uninstall a Helm release.

        Args:
            release_name: Name of the release to uninstall
            namespace: Kubernetes namespace
            kubeconfig: Kubeconfig of the target cluster
            wait: Whether to wait for resources to be deleted

        Returns:
            CommandResult with uninstall status
        """
        cmd = ["helm", "uninstall", release_name, "-n", namespace]
        if wait:
            cmd.append("--wait")
        cmd.extend(["--kubeconfig", kubeconfig])
        return self._runner.run(cmd)

    # =========================================================================
    # Chart Retrieval
    # =========================================================================

    def pull(
        self,
        chart_ref: str,
        destination: Path,
        *,
        version: str = "",
        ca_file: str = "",
        insecure_skip_tls_verify: bool = False,
        username: str = "",
        password: str = "",
    ) -> CommandResult:
        """Pull a chart and untar it into a local directory.

        Args:
            chart_ref: Chart reference (e.g. oci://registry/charts/validator)
            destination: Directory the chart is extracted into
            version: Chart version, passed verbatim
            ca_file: CA bundle used to verify the registry
            insecure_skip_tls_verify: Skip registry TLS verification
            username: Registry username
            password: Registry password

        Returns:
            CommandResult with pull status
        """
        cmd = ["helm", "pull", chart_ref]
        if version:
            cmd.extend(["--version", version])
        cmd.extend(["--untar", "--untardir", str(destination)])
        cmd.extend(
            self._tls_and_auth_args(
                ca_file=ca_file,
                insecure_skip_tls_verify=insecure_skip_tls_verify,
                username=username,
                password=password,
            )
        )
        return self._runner.run(cmd)
