"""Shared protocol version operations: catalogue, compatibility, migration guides."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

CURRENT_VERSION = "2.0.0"


@dataclass(frozen=True, slots=True)
class ProtocolVersion:
    version: str
    features: tuple[str, ...]
    release_date: str
    deprecated_features: tuple[str, ...] = ()
    breaking_changes: tuple[str, ...] = ()
    end_of_life: str | None = None
    migration_steps: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def is_end_of_life(self, today: date) -> bool:
        return bool(self.end_of_life) and today > date.fromisoformat(self.end_of_life)


_BASE_FEATURES = ("basic-mcp", "project-analysis", "standards-validation")

SUPPORTED_VERSIONS: tuple[ProtocolVersion, ...] = (
    ProtocolVersion(
        version="1.0.0",
        features=_BASE_FEATURES,
        release_date="2024-01-01",
        end_of_life="2025-01-01",
    ),
    ProtocolVersion(
        version="1.5.0",
        features=_BASE_FEATURES + ("batch-processing", "caching"),
        deprecated_features=("legacy-validation",),
        release_date="2024-06-01",
        end_of_life="2025-06-01",
    ),
    ProtocolVersion(
        version="2.0.0",
        features=_BASE_FEATURES + (
            "batch-processing",
            "caching",
            "priority-queuing",
            "retry-mechanism",
            "advanced-metrics",
            "protocol-versioning",
            "enhanced-validation",
            "correlation-tracking",
        ),
        deprecated_features=("legacy-validation", "basic-batch-processing"),
        breaking_changes=("validation-middleware-changes", "rate-limiting-updates"),
        release_date="2024-12-01",
        migration_steps={
            "1.0.0": (
                "Update validation middleware usage",
                "Review rate limiting configuration",
                "Update batch processing implementation",
                "Check for deprecated feature usage",
                "Review breaking changes documentation",
            ),
            "1.5.0": (
                "Update to new validation system",
                "Review priority queuing configuration",
                "Update retry mechanism implementation",
                "Check for deprecated features",
            ),
        },
    ),
)


def _today(now: datetime | None) -> date:
    return (now or datetime.now(timezone.utc)).date()


def parse_version(version: str) -> tuple[int, int, int]:
    """Parse "M.m[.p]"; missing or non-numeric parts count as 0."""
    parts: list[int] = []
    for raw in str(version).split(".")[:3]:
        try:
            parts.append(int(raw))
        except ValueError:
            parts.append(0)
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def find_version(version: str) -> ProtocolVersion | None:
    return next((v for v in SUPPORTED_VERSIONS if v.version == version), None)


def _supported_list() -> list[str]:
    return [v.version for v in SUPPORTED_VERSIONS]


def find_fallback_version(requested: str) -> str | None:
    """Closest catalogue version by weighted distance, if different from the request."""
    req = parse_version(requested)
    best, best_score = CURRENT_VERSION, None
    for v in SUPPORTED_VERSIONS:
        cand = parse_version(v.version)
        score = abs(cand[0] - req[0]) * 1000 + abs(cand[1] - req[1]) * 100 + abs(cand[2] - req[2])
        if best_score is None or score < best_score:
            best, best_score = v.version, score
    return best if best != requested else None


def check_version_compatibility(requested: str, *, now: datetime | None = None) -> dict[str, Any]:
    info = find_version(requested)
    if info is None:
        return {
            "isCompatible": False,
            "requestedVersion": requested,
            "supportedVersions": _supported_list(),
            "compatibilityLevel": "none",
            "warnings": [f"Version {requested} is not supported"],
            "suggestions": [
                "Use one of the supported versions",
                "Check the latest version documentation",
            ],
        }
    if info.is_end_of_life(_today(now)):
        return {
            "isCompatible": False,
            "requestedVersion": requested,
            "supportedVersions": _supported_list(),
            "compatibilityLevel": "none",
            "warnings": [f"Version {requested} has reached end-of-life"],
            "suggestions": [
                "Upgrade to a supported version",
                "Check migration guides for the latest version",
            ],
        }

    level = "full"
    warnings: list[str] = []
    suggestions: list[str] = []
    if info.deprecated_features:
        level = "partial"
        warnings.append(f"Version {requested} contains deprecated features")
        suggestions.append("Consider upgrading to remove deprecated features")
    if info.breaking_changes:
        level = "partial"
        warnings.append(f"Version {requested} has breaking changes from previous versions")
        suggestions.append("Review breaking changes documentation")
    if parse_version(requested)[0] < parse_version(CURRENT_VERSION)[0]:
        level = "partial"
        warnings.append("Major version difference detected")
        suggestions.append("Consider upgrading to the latest major version")

    result: dict[str, Any] = {
        "isCompatible": True,
        "requestedVersion": requested,
        "supportedVersions": _supported_list(),
        "compatibilityLevel": level,
        "warnings": warnings,
        "suggestions": suggestions,
    }
    fallback = find_fallback_version(requested)
    if fallback:
        result["fallbackVersion"] = fallback
    return result


def is_feature_supported(feature: str, version: str) -> bool:
    info = find_version(version)
    return info is not None and feature in info.features


def feature_matrix() -> dict[str, dict[str, bool]]:
    features = sorted({f for v in SUPPORTED_VERSIONS for f in v.features})
    return {f: {v.version: f in v.features for v in SUPPORTED_VERSIONS} for f in features}


def migration_guides(from_version: str) -> list[dict[str, Any]]:
    if find_version(from_version) is None:
        return []
    src = parse_version(from_version)
    guides = []
    for target in SUPPORTED_VERSIONS:
        dst = parse_version(target.version)
        if dst[0] > src[0] or (dst[0] == src[0] and dst[1] > src[1]):
            guides.append({
                "from": from_version,
                "to": target.version,
                "type": "major" if dst[0] > src[0] else "minor",
                "breakingChanges": list(target.breaking_changes),
                "deprecatedFeatures": list(target.deprecated_features),
                "migrationSteps": list(target.migration_steps.get(from_version, ())),
            })
    return guides


def compatibility_recommendations(
    version: str,
    features: list[str] | None = None,
    *,
    now: datetime | None = None,
) -> list[str]:
    compat = check_version_compatibility(version, now=now)
    out: list[str] = []
    if compat["compatibilityLevel"] == "none":
        out.append("Upgrade to a supported version")
    elif compat["compatibilityLevel"] == "partial":
        out.append("Consider upgrading for full compatibility")
    for feature in features or []:
        if not is_feature_supported(feature, version):
            out.append(f"Feature '{feature}' is not supported in version {version}")
    if compat.get("fallbackVersion"):
        out.append(f"Consider using version {compat['fallbackVersion']} as fallback")
    return out


def get_version_info(requested: str | None = None, *, now: datetime | None = None) -> dict[str, Any]:
    """Payload for the getVersionInfo operator method."""
    requested = requested or CURRENT_VERSION
    today = _today(now)
    return {
        "currentVersion": CURRENT_VERSION,
        "requestedVersion": requested,
        "supportedVersions": [
            {
                "version": v.version,
                "features": list(v.features),
                "deprecatedFeatures": list(v.deprecated_features),
                "breakingChanges": list(v.breaking_changes),
                "releaseDate": v.release_date,
                "endOfLife": v.end_of_life,
                "isCurrent": v.version == CURRENT_VERSION,
                "isDeprecated": v.is_end_of_life(today),
            }
            for v in SUPPORTED_VERSIONS
        ],
        "compatibility": check_version_compatibility(requested, now=now),
        "migrationGuides": migration_guides(requested),
        "featureMatrix": feature_matrix(),
    }


def check_compatibility(
    version: str,
    features: list[str] | None = None,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Payload for the checkCompatibility operator method."""
    return {
        "version": version,
        "compatibility": check_version_compatibility(version, now=now),
        "featureCompatibility": {f: is_feature_supported(f, version) for f in features or []},
        "recommendations": compatibility_recommendations(version, features, now=now),
    }
