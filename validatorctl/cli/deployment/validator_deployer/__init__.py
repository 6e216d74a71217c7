"""Components for deploying the validator and its plugins.

- chart_resolver: Classic vs. OCI chart sources
- secret_manager: Secrets required before the Helm release
- helm_release: Values merging, install/upgrade and controller wait
- readiness: Plugin controller waits
- rule_applier: Rule manifest rendering and application
- kind_cluster: Local kind cluster lifecycle
- deployer: The ValidatorDeployer orchestrator
"""

from validatorctl.errors import DeploymentError

from .deployer import DeploymentState, ValidatorDeployer

__all__ = ["ValidatorDeployer", "DeploymentState", "DeploymentError"]
