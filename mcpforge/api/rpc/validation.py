"""Rule-based structural and semantic validation of request envelopes."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Literal

from loguru import logger

from mcpforge.protocol.types import JSONRPC_VERSION, PRIORITY_VALUES

Severity = Literal["error", "warning"]
RuleCheck = Callable[[dict[str, Any], "ValidationSettings"], "bool | str"]

_SEMVER_RE = re.compile(r"^\d+\.\d+(\.\d+)?$")

# Stable order: suggestions follow this order regardless of rule order.
_SUGGESTIONS: dict[str, str] = {
    "request": "Send each request as a JSON object",
    "jsonrpc": 'Ensure jsonrpc field is set to "2.0"',
    "id": "Include a unique id field (string or number) for request tracking",
    "method": "Specify a valid method name; call listMethods to see registered methods",
    "params": "Verify parameter structure matches method requirements",
    "metadata": "Send metadata as an object if provided",
    "priority": "Set priority to one of: low, normal, high, critical",
    "retry": "Ensure retry count is an integer that does not exceed the maximum allowed",
}


@dataclass(slots=True)
class ValidationSettings:
    """Inputs the rules need besides the request itself."""

    known_methods: Callable[[], Iterable[str]]
    jsonrpc: str = JSONRPC_VERSION
    max_retry_count: int = 5
    retry_warning_threshold: int = 3


@dataclass(slots=True)
class ValidationRule:
    name: str
    check: RuleCheck
    severity: Severity
    description: str
    category: str


@dataclass(slots=True)
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "suggestions": list(self.suggestions),
        }


def _metadata(data: dict[str, Any]) -> dict[str, Any]:
    meta = data.get("metadata")
    return meta if isinstance(meta, dict) else {}


def _is_int(value: Any) -> bool:
    if isinstance(value, float):
        return value.is_integer()
    return isinstance(value, int) and not isinstance(value, bool)


def _check_jsonrpc(data: dict[str, Any], s: ValidationSettings) -> bool:
    return data.get("jsonrpc") == s.jsonrpc


def _check_id(data: dict[str, Any], _s: ValidationSettings) -> bool:
    rid = data.get("id")
    if isinstance(rid, float):
        return math.isfinite(rid)
    return isinstance(rid, str) or _is_int(rid)


def _check_method(data: dict[str, Any], _s: ValidationSettings) -> bool:
    method = data.get("method")
    return isinstance(method, str) and len(method) > 0


def _check_known_method(data: dict[str, Any], s: ValidationSettings) -> bool | str:
    method = data.get("method")
    if not isinstance(method, str) or not method:
        return True
    if method in set(s.known_methods()):
        return True
    return f"method '{method}' is not a registered MCP method"


def _check_params(data: dict[str, Any], _s: ValidationSettings) -> bool:
    params = data.get("params")
    return params is None or isinstance(params, dict)


def _check_metadata(data: dict[str, Any], _s: ValidationSettings) -> bool:
    meta = data.get("metadata")
    return meta is None or isinstance(meta, dict)


def _check_priority(data: dict[str, Any], _s: ValidationSettings) -> bool:
    priority = _metadata(data).get("priority")
    return priority is None or (isinstance(priority, str) and priority in PRIORITY_VALUES)


def _check_retry_count(data: dict[str, Any], s: ValidationSettings) -> bool:
    retry = _metadata(data).get("retryCount")
    return retry is None or (_is_int(retry) and 0 <= retry <= s.max_retry_count)


def _check_retry_threshold(data: dict[str, Any], s: ValidationSettings) -> bool | str:
    retry = _metadata(data).get("retryCount")
    if _is_int(retry) and s.retry_warning_threshold < retry <= s.max_retry_count:
        return f"retry count {retry} is above the recommended threshold of {s.retry_warning_threshold}"
    return True


def _non_empty_string_or_absent(key: str) -> RuleCheck:
    def check(data: dict[str, Any], _s: ValidationSettings) -> bool:
        value = _metadata(data).get(key)
        return value is None or (isinstance(value, str) and len(value) > 0)

    return check


def _check_version(data: dict[str, Any], _s: ValidationSettings) -> bool:
    version = _metadata(data).get("version")
    return version is None or (isinstance(version, str) and bool(_SEMVER_RE.match(version)))


def default_rules(settings: ValidationSettings) -> list[ValidationRule]:
    return [
        ValidationRule("JSON-RPC Version", _check_jsonrpc, "error", f'jsonrpc field must be "{settings.jsonrpc}"', "jsonrpc"),
        ValidationRule("Request ID", _check_id, "error", "id field is required and must be a string or number", "id"),
        ValidationRule("Method", _check_method, "error", "method field must be a non-empty string", "method"),
        ValidationRule("Valid Method Names", _check_known_method, "error", "method must be a registered MCP method", "method"),
        ValidationRule("Parameters Type", _check_params, "error", "params must be an object if provided", "params"),
        ValidationRule("Metadata Structure", _check_metadata, "error", "metadata must be an object if provided", "metadata"),
        ValidationRule("Priority Validation", _check_priority, "error", "priority must be one of: low, normal, high, critical", "priority"),
        ValidationRule(
            "Retry Count Validation",
            _check_retry_count,
            "error",
            f"retry count must be an integer between 0 and {settings.max_retry_count}",
            "retry",
        ),
        ValidationRule("Retry Count Threshold", _check_retry_threshold, "warning", "retry count is high", "retry"),
        ValidationRule(
            "Correlation ID Format",
            _non_empty_string_or_absent("correlationId"),
            "warning",
            "correlation ID should be a non-empty string",
            "metadata",
        ),
        ValidationRule(
            "Source Validation",
            _non_empty_string_or_absent("source"),
            "warning",
            "source should be a non-empty string",
            "metadata",
        ),
        ValidationRule(
            "Version Format",
            _check_version,
            "warning",
            'version should follow semantic versioning format (e.g., "1.0.0")',
            "metadata",
        ),
    ]


class RequestValidator:
    """Evaluates every rule independently; errors block, warnings never do."""

    def __init__(self, settings: ValidationSettings, rules: list[ValidationRule] | None = None):
        self.settings = settings
        self.rules = rules if rules is not None else default_rules(settings)

    def validate(self, data: Any) -> ValidationResult:
        if not isinstance(data, dict):
            return ValidationResult(
                is_valid=False,
                errors=[f"Request Object: request must be a JSON object, got {type(data).__name__}"],
                suggestions=[_SUGGESTIONS["request"]],
            )

        errors: list[str] = []
        warnings: list[str] = []
        failed: set[str] = set()
        for rule in self.rules:
            try:
                outcome = rule.check(data, self.settings)
            except Exception as e:
                logger.error("Validation rule {} failed: {}", rule.name, e)
                outcome = "validation rule execution failed"
            if outcome is True:
                continue
            message = f"{rule.name}: {outcome if isinstance(outcome, str) else rule.description}"
            if rule.severity == "error":
                errors.append(message)
                failed.add(rule.category)
            else:
                warnings.append(message)

        suggestions = [text for category, text in _SUGGESTIONS.items() if category in failed]
        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings, suggestions=suggestions)
