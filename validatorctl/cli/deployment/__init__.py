"""Deployment package for the validator.

The package is organized into subpackages for modularity:
- shell_commands: Abstractions for shell command execution
- validator_deployer: Components for validator deployment
"""

from .validator_deployer import DeploymentError, DeploymentState, ValidatorDeployer

__all__ = ["ValidatorDeployer", "DeploymentState", "DeploymentError"]
