"""
Stdio-based MCP server implementation for coverage-lens.

This module implements the Model Context Protocol (MCP) over stdin/stdout
using JSON-RPC 2.0. Stdout carries protocol messages only; all logging goes
to stderr.
"""

import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, TextIO

from pydantic import ValidationError

from coverage_lens.api.mcp import (
    PROTOCOL_VERSIONS,
    CallToolResponse,
    GetFileCoverageRequest,
    get_mcp_manifest,
)
from coverage_lens.core.config import LensConfig, get_default_config
from coverage_lens.core.errors import CoverageLensError
from coverage_lens.core.lookup import lookup_file_coverage

# Set up stderr-only logging to avoid interfering with stdout
stderr_handler = logging.StreamHandler(sys.stderr)
stderr_handler.setFormatter(
    logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
)
package_logger = logging.getLogger("coverage_lens")
package_logger.addHandler(stderr_handler)
package_logger.setLevel(logging.INFO)
package_logger.propagate = False
logger = logging.getLogger(__name__)


class JSONRPCError(Exception):
    """JSON-RPC error response."""

    def __init__(self, code: int, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class MCPStdioServer:
    """MCP server using stdio transport with JSON-RPC 2.0."""

    def __init__(
        self,
        config: Optional[LensConfig] = None,
        input_stream: Optional[TextIO] = None,
        output_stream: Optional[TextIO] = None,
        environ: Optional[Mapping[str, str]] = None,
        cwd: Optional[Path] = None,
    ):
        self.config = config or get_default_config()
        self.input_stream = input_stream or sys.stdin
        self.output_stream = output_stream or sys.stdout
        self.environ = environ
        self.cwd = cwd
        self.client_info: Optional[Dict[str, Any]] = None
        self.initialized = False

        # MCP tools
        self.tools = {
            "get_file_coverage": self._get_file_coverage,
        }

        # Built-in MCP methods
        self.methods = {
            "initialize": self._initialize,
            "notifications/initialized": self._initialized_notification,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "ping": self._ping,
        }

    async def run(self):
        """Main server loop reading from stdin and writing to stdout."""
        logger.info(f"{self.config.server.name} MCP server running on stdio")
        loop = asyncio.get_running_loop()

        try:
            while True:
                try:
                    line = await loop.run_in_executor(None, self.input_stream.readline)
                    if not line:
                        # EOF reached
                        break

                    line = line.strip()
                    if not line:
                        continue

                    try:
                        message = json.loads(line)
                    except json.JSONDecodeError as e:
                        logger.error(f"Invalid JSON received: {e}")
                        await self._send_error_response(
                            None, -32700, "Parse error", {"details": str(e)}
                        )
                        continue

                    await self._handle_message(message)

                except Exception as e:
                    logger.error(f"Error in server loop: {e}")
                    await self._send_error_response(
                        None, -32603, "Internal error", {"details": str(e)}
                    )

        except KeyboardInterrupt:
            logger.info("Server interrupted by user")
        finally:
            logger.info("MCP stdio server shutting down")

    async def _handle_message(self, message: Any):
        """Handle incoming JSON-RPC message."""
        if not isinstance(message, dict) or "jsonrpc" not in message:
            message_id = message.get("id") if isinstance(message, dict) else None
            await self._send_error_response(message_id, -32600, "Invalid Request")
            return

        if message["jsonrpc"] != "2.0":
            await self._send_error_response(
                message.get("id"), -32600, "Invalid Request",
                {"details": "Only JSON-RPC 2.0 is supported"}
            )
            return

        method = message.get("method")
        if not method:
            # Responses from the client are not expected; ignore them
            if "result" in message or "error" in message:
                return
            await self._send_error_response(
                message.get("id"), -32600, "Invalid Request",
                {"details": "Missing method"}
            )
            return

        message_id = message.get("id")
        params = message.get("params") or {}

        if method not in ("initialize", "ping") and not self.initialized:
            if message_id is not None:
                await self._send_error_response(message_id, -32002, "Not initialized")
            return

        try:
            if method in self.methods:
                result = await self.methods[method](params)
                if message_id is not None:  # Only respond if not notification
                    await self._send_success_response(message_id, result)
            elif message_id is not None:
                await self._send_error_response(
                    message_id, -32601, "Method not found", {"method": method}
                )
        except JSONRPCError as e:
            await self._send_error_response(message_id, e.code, e.message, e.data)
        except Exception as e:
            logger.error(f"Error handling method {method}: {e}")
            await self._send_error_response(
                message_id, -32603, "Internal error", {"details": str(e)}
            )

    async def _send_success_response(self, message_id: Any, result: Any):
        """Send successful JSON-RPC response."""
        response = {
            "jsonrpc": "2.0",
            "id": message_id,
            "result": result
        }
        await self._send_message(response)

    async def _send_error_response(self, message_id: Any, code: int, message: str, data: Optional[Any] = None):
        """Send error JSON-RPC response."""
        error = {
            "code": code,
            "message": message
        }
        if data is not None:
            error["data"] = data

        response = {
            "jsonrpc": "2.0",
            "id": message_id,
            "error": error
        }
        await self._send_message(response)

    async def _send_message(self, message: Dict[str, Any]):
        """Send JSON-RPC message to stdout."""
        try:
            json_str = json.dumps(message, separators=(',', ':'))
            self.output_stream.write(json_str + '\n')
            self.output_stream.flush()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to send message: {e}")

    async def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Handle MCP initialize request."""
        client_info = params.get("clientInfo")
        if not client_info:
            raise JSONRPCError(-32602, "Missing clientInfo")

        requested = params.get("protocolVersion")
        if not requested:
            raise JSONRPCError(-32602, "Missing protocolVersion")
        protocol_version = requested if requested in PROTOCOL_VERSIONS else PROTOCOL_VERSIONS[-1]

        self.client_info = client_info
        self.initialized = True

        logger.info(f"Initialized with client: {client_info.get('name', 'Unknown')}")

        return {
            "protocolVersion": protocol_version,
            "capabilities": {
                "tools": {}
            },
            "serverInfo": {
                "name": self.config.server.name,
                "version": self.config.server.version
            }
        }

    async def _initialized_notification(self, params: Dict[str, Any]) -> None:
        logger.debug("Client finished initialization")

    async def _list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """List available MCP tools."""
        manifest = get_mcp_manifest()
        tools = []

        for tool in manifest.tools:
            tools.append({
                "name": tool.name,
                "description": tool.description,
                "inputSchema": tool.input_schema
            })

        return {"tools": tools}

    async def _call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Call an MCP tool."""
        name = params.get("name")
        if not name:
            raise JSONRPCError(-32602, "Missing tool name")

        if name not in self.tools:
            raise JSONRPCError(-32602, f"Tool not found: {name}")

        arguments = params.get("arguments") or {}

        try:
            response = await self.tools[name](arguments)
        except JSONRPCError:
            raise
        except Exception as e:
            logger.error(f"Tool {name} failed: {e}")
            raise JSONRPCError(-32603, f"Tool execution failed: {str(e)}")

        return response.model_dump(by_alias=True)

    async def _get_file_coverage(self, arguments: Dict[str, Any]) -> CallToolResponse:
        """Extract the coverage record for one file."""
        try:
            request = GetFileCoverageRequest.model_validate(arguments)
        except ValidationError as e:
            raise JSONRPCError(
                -32602, "Invalid params",
                {"details": e.errors(include_url=False, include_context=False)}
            )

        try:
            result = await lookup_file_coverage(
                request.target_file,
                self.config,
                environ=self.environ,
                cwd=self.cwd,
            )
        except CoverageLensError as e:
            logger.info(f"get_file_coverage({request.target_file!r}) failed: {e.message}")
            return CallToolResponse.from_error(e)

        logger.info(
            f"Found coverage for '{result.target}' by {result.mode.value} in {result.report_path}"
        )
        return CallToolResponse.from_text(result.record)

    async def _ping(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Ping the server."""
        return {
            "time": str(time.time()),
            "status": "ok"
        }


async def run_stdio_server(config: Optional[LensConfig] = None):
    """Run the stdio MCP server."""
    config = config or get_default_config()
    package_logger.setLevel(config.log_level)
    server = MCPStdioServer(config)
    await server.run()


def main():
    """Main entry point for stdio server."""
    config = get_default_config()

    try:
        asyncio.run(run_stdio_server(config))
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Fatal error in main(): {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
