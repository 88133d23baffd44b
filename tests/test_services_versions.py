from datetime import datetime, timezone

from mcpforge.services.versions.version_service import (
    CURRENT_VERSION,
    check_compatibility,
    check_version_compatibility,
    feature_matrix,
    find_fallback_version,
    get_version_info,
    is_feature_supported,
    migration_guides,
    parse_version,
)

_BEFORE_EOL = datetime(2024, 12, 15, tzinfo=timezone.utc)
_AFTER_EOL = datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_parse_version_pads_and_tolerates_garbage():
    assert parse_version("2.1") == (2, 1, 0)
    assert parse_version("1.x.3") == (1, 0, 3)


def test_current_version_is_partial_due_to_deprecations():
    res = check_version_compatibility(CURRENT_VERSION, now=_BEFORE_EOL)
    assert res["isCompatible"] is True
    assert res["compatibilityLevel"] == "partial"
    assert "fallbackVersion" not in res


def test_older_major_is_partial_before_end_of_life():
    res = check_version_compatibility("1.5.0", now=_BEFORE_EOL)
    assert res["isCompatible"] is True
    assert "Major version difference detected" in res["warnings"]


def test_end_of_life_version_is_incompatible():
    res = check_version_compatibility("1.0.0", now=_AFTER_EOL)
    assert res["isCompatible"] is False
    assert res["compatibilityLevel"] == "none"
    assert "end-of-life" in res["warnings"][0]


def test_unknown_version_is_incompatible():
    res = check_version_compatibility("9.9.9", now=_BEFORE_EOL)
    assert res["isCompatible"] is False
    assert res["supportedVersions"] == ["1.0.0", "1.5.0", "2.0.0"]


def test_fallback_is_nearest_by_weighted_distance():
    assert find_fallback_version("1.4.0") == "1.5.0"
    assert find_fallback_version("2.0.0") is None


def test_features_and_matrix():
    assert is_feature_supported("caching", "1.5.0") is True
    assert is_feature_supported("caching", "1.0.0") is False
    assert is_feature_supported("caching", "0.1.0") is False
    matrix = feature_matrix()
    assert matrix["priority-queuing"] == {"1.0.0": False, "1.5.0": False, "2.0.0": True}


def test_migration_guides_cover_newer_versions():
    guides = migration_guides("1.0.0")
    assert [(g["to"], g["type"]) for g in guides] == [("1.5.0", "minor"), ("2.0.0", "major")]
    assert len(guides[1]["migrationSteps"]) == 5
    assert migration_guides("2.0.0") == []
    assert migration_guides("unknown") == []


def test_version_info_and_compatibility_payloads():
    info = get_version_info(now=_BEFORE_EOL)
    assert info["currentVersion"] == CURRENT_VERSION
    assert info["requestedVersion"] == CURRENT_VERSION
    assert [v["isCurrent"] for v in info["supportedVersions"]] == [False, False, True]

    res = check_compatibility("1.5.0", ["caching", "priority-queuing"], now=_BEFORE_EOL)
    assert res["featureCompatibility"] == {"caching": True, "priority-queuing": False}
    assert "Feature 'priority-queuing' is not supported in version 1.5.0" in res["recommendations"]
