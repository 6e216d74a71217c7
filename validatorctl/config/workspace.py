"""Per-run workspace directories."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from validatorctl.infra.constants import ValidatorConstants


@dataclass(frozen=True)
class Workspace:
    """A timestamped run directory holding manifests, charts and logs.

    Layout::

        <root>/validator-<YYYYmmddHHMMSS>/
            manifests/
            logs/validator.log
    """

    run_dir: Path

    @classmethod
    def create(cls, root: Path, now: datetime | None = None) -> Workspace:
        """Create a new run directory under ``root``."""
        constants = ValidatorConstants()
        stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
        run_dir = root / f"{constants.WORKSPACE_PREFIX}-{stamp}"
        for subdir in (constants.MANIFESTS_DIR, constants.LOGS_DIR):
            (run_dir / subdir).mkdir(parents=True, exist_ok=True)
        return cls(run_dir)

    @property
    def manifests_dir(self) -> Path:
        return self.run_dir / ValidatorConstants.MANIFESTS_DIR

    @property
    def log_file(self) -> Path:
        return self.run_dir / ValidatorConstants.LOGS_DIR / ValidatorConstants.LOG_FILE

    @property
    def kind_config_file(self) -> Path:
        return self.run_dir / "kind-cluster-config.yaml"

    @property
    def kind_kubeconfig(self) -> Path:
        return self.run_dir / "kind-cluster.kubeconfig"

    def manifest_path(self, name: str) -> Path:
        """Deterministic manifest path for a named resource."""
        return self.manifests_dir / f"{name}.yaml"
