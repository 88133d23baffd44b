"""Protocol version catalogue and compatibility checks."""

from mcpforge.services.versions.version_service import (
    SUPPORTED_VERSIONS,
    ProtocolVersion,
    check_compatibility,
    check_version_compatibility,
    get_version_info,
)

__all__ = [
    "SUPPORTED_VERSIONS",
    "ProtocolVersion",
    "check_compatibility",
    "check_version_compatibility",
    "get_version_info",
]
