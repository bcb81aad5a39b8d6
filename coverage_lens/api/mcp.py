"""
Model Context Protocol (MCP) tool definitions and schemas.
"""

import json
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from coverage_lens.core.errors import CoverageLensError

PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", "2025-06-18")


class MCPToolRequest(BaseModel):
    """Base model for MCP tool requests."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class MCPToolResponse(BaseModel):
    """Base model for MCP tool responses."""

    model_config = ConfigDict(populate_by_name=True)


class GetFileCoverageRequest(MCPToolRequest):
    """Request for the coverage record of one file."""

    target_file: str = Field(
        ...,
        alias="targetFile",
        description="File name to get coverage for",
    )


class TextContent(BaseModel):
    """A text content block."""

    type: str = Field(default="text")
    text: str


class CallToolResponse(MCPToolResponse):
    """Result of a tools/call request."""

    content: List[TextContent] = Field(..., description="Content blocks")
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def from_text(cls, text: str) -> "CallToolResponse":
        return cls(content=[TextContent(text=text)])

    @classmethod
    def from_error(cls, error: CoverageLensError) -> "CallToolResponse":
        return cls(
            content=[TextContent(text=json.dumps(error.to_payload()))],
            is_error=True,
        )


# MCP Manifest

class MCPToolSchema(BaseModel):
    """MCP tool schema definition."""

    name: str = Field(..., description="Tool name")
    description: str = Field(..., description="Tool description")
    input_schema: Dict[str, Any] = Field(..., description="JSON schema for input")


class MCPManifest(BaseModel):
    """MCP server manifest."""

    version: str = Field(default=PROTOCOL_VERSIONS[0], description="MCP version")
    name: str = Field(default="coverage-lens", description="Server name")
    description: str = Field(
        default="Extracts per-file records from Clover coverage reports",
        description="Server description",
    )
    tools: List[MCPToolSchema] = Field(..., description="Available tools")


def get_mcp_manifest() -> MCPManifest:
    """Generate MCP manifest with tool schemas."""

    tools = [
        MCPToolSchema(
            name="get_file_coverage",
            description="Returns coverage data for a specific file from the test report",
            input_schema={
                "type": "object",
                "properties": {
                    "targetFile": {
                        "type": "string",
                        "description": "File name to get coverage for",
                    }
                },
                "required": ["targetFile"],
            },
        ),
    ]

    return MCPManifest(tools=tools)
