"""Plain-text formatting of ValidationResult objects."""

from __future__ import annotations

from collections.abc import Sequence

from validatorctl.infra.k8s.controller import ValidationResultInfo

# Spaces between the longest key and the value column
_KEY_PADDING = 8


def format_table(keys: Sequence[str], values: Sequence[str]) -> str:
    """Format aligned `Key:    value` rows preceded by a blank line."""
    width = max(len(k) for k in keys) + 1 + _KEY_PADDING
    rows = "".join(f"{key + ':':<{width}}{value}\n" for key, value in zip(keys, values))
    return "\n" + rows


def _bullets(title: str, items: Sequence[str]) -> str:
    if not items:
        return ""
    rule = "-" * len(title)
    return f"\n{rule}\n{title}\n{rule}\n" + "".join(f"- {item}\n" for item in items)


def format_validation_result(result: ValidationResultInfo) -> str:
    """Render one ValidationResult with its rule outcomes."""
    keys = ["Plugin", "Name", "Namespace", "State"]
    values = [result.plugin, result.name, result.namespace, result.state]
    if result.sink_state is not None:
        keys.append("Sink State")
        values.append(result.sink_state)

    parts = [
        "\n=================\nValidation Result\n=================\n",
        format_table(keys, values),
        "\n------------\nRule Results\n------------\n",
    ]
    for condition in result.conditions:
        parts.append(
            format_table(
                [
                    "Validation Rule",
                    "Validation Type",
                    "Status",
                    "Last Validated",
                    "Message",
                ],
                [
                    condition.validation_rule,
                    condition.validation_type,
                    condition.status,
                    condition.last_validation_time,
                    condition.message.strip(),
                ],
            )
        )
        parts.append(_bullets("Details", condition.details))
        parts.append(_bullets("Failures", condition.failures))
    return "".join(parts)
