"""Data types for shell command results and Helm release options.

CommandResult is re-exported from validatorctl.infra.k8s.controller.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from validatorctl.infra.k8s.controller import CommandResult

__all__ = [
    "CommandResult",
    "ReleaseOptions",
]

OCI_SCHEME = "oci://"


@dataclass(frozen=True)
class ReleaseOptions:
    """Options for one Helm install-or-upgrade call.

    Built fresh for every call from the deployment spec; never persisted.

    Attributes:
        release_name: Helm release name
        namespace: Target namespace (created if missing)
        chart: Chart name within the repository
        repo: Classic chart repository URL or an oci:// registry reference
        version: Chart version
        values: Merged values document
        ca_file: CA bundle used to verify the chart repository
        insecure_skip_tls_verify: Skip chart repository TLS verification
        username: Basic-auth username for a protected chart repository
        password: Basic-auth password for a protected chart repository
        local_path: Extracted chart directory, set once an OCI chart is pulled
    """

    release_name: str
    namespace: str
    chart: str
    repo: str = ""
    version: str = ""
    values: str = ""
    ca_file: str = ""
    insecure_skip_tls_verify: bool = False
    username: str = ""
    password: str = ""
    local_path: Path | None = None

    @property
    def is_oci(self) -> bool:
        return self.repo.startswith(OCI_SCHEME)

    @property
    def oci_chart_ref(self) -> str:
        """Full OCI reference of the chart (oci://host/path/chart)."""
        return f"{self.repo.rstrip('/')}/{self.chart}"

    def with_local_chart(self, path: Path, version: str) -> ReleaseOptions:
        """Point the options at an extracted local chart."""
        return replace(self, local_path=path, version=version)
