"""Kubernetes data types shared by the command and controller layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CommandResult:
    """Result of a command execution."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0


@dataclass
class ValidationCondition:
    """A single rule outcome reported on a ValidationResult."""

    validation_rule: str = ""
    validation_type: str = ""
    status: str = ""
    last_validation_time: str = "0001-01-01T00:00:00Z"
    message: str = ""
    details: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationCondition:
        return cls(
            validation_rule=data.get("validationRule", ""),
            validation_type=data.get("validationType", ""),
            status=data.get("status", ""),
            last_validation_time=data.get("lastValidationTime")
            or "0001-01-01T00:00:00Z",
            message=data.get("message", ""),
            details=list(data.get("details") or []),
            failures=list(data.get("failures") or []),
        )


@dataclass
class ValidationResultInfo:
    """Information about a ValidationResult custom resource."""

    name: str
    namespace: str
    plugin: str = ""
    state: str = ""
    sink_state: str | None = None
    conditions: list[ValidationCondition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationResultInfo:
        """Build from the raw object returned by the Kubernetes API."""
        metadata = data.get("metadata") or {}
        spec = data.get("spec") or {}
        status = data.get("status") or {}

        sink_state = None
        for condition in status.get("conditions") or []:
            if condition.get("type") == "SinkEmission":
                sink_state = condition.get("reason", "")
                break

        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            plugin=spec.get("plugin", ""),
            state=status.get("state", ""),
            sink_state=sink_state,
            conditions=[
                ValidationCondition.from_dict(c)
                for c in status.get("validationConditions") or []
            ],
        )

    @property
    def is_complete(self) -> bool:
        """Whether the plugin has finished evaluating all rules."""
        return self.state in ("Succeeded", "Failed")
