"""API components for coverage-lens."""

from coverage_lens.api.mcp import CallToolResponse, GetFileCoverageRequest, get_mcp_manifest

__all__ = [
    "CallToolResponse",
    "GetFileCoverageRequest",
    "get_mcp_manifest",
]
