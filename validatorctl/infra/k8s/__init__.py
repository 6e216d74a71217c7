"""Kubernetes infrastructure layer.

Example:
    from validatorctl.infra.k8s import Kr8sController, run_sync

    controller = Kr8sController(kubeconfig)
    exists = run_sync(controller.namespace_exists("validator"))
"""

from .controller import CommandResult, ValidationCondition, ValidationResultInfo
from .kr8s_controller import Kr8sController
from .utils import run_sync

__all__ = [
    "Kr8sController",
    "CommandResult",
    "ValidationCondition",
    "ValidationResultInfo",
    "run_sync",
]
