"""
Run chuk-mcp-wms MCP tools as plain async functions.

The demos use ToolRunner to call the registered tools without an MCP
transport. An in-memory artifact store backs the fetch tools.

Usage:
    from tool_runner import ToolRunner

    async def main():
        runner = ToolRunner()
        print(await runner.run_text("wms_status"))
"""

from __future__ import annotations

import json
from typing import Any

from chuk_artifacts import ArtifactStore
from chuk_mcp_server import set_global_artifact_store

from chuk_mcp_wms.core.wms_manager import WMSManager
from chuk_mcp_wms.tools.discovery import register_discovery_tools
from chuk_mcp_wms.tools.tiles import register_tile_tools


class _ToolCollector:
    """Stands in for ChukMCPServer and keeps every function passed to @mcp.tool()."""

    def __init__(self) -> None:
        self.tools: dict[str, Any] = {}

    def tool(self) -> Any:
        def decorator(fn: Any) -> Any:
            self.tools[fn.__name__] = fn
            return fn

        return decorator


class ToolRunner:
    """Registers the discovery and tile tools against a fresh WMSManager."""

    def __init__(self) -> None:
        set_global_artifact_store(
            ArtifactStore(storage_provider="memory", session_provider="memory")
        )
        self._collector = _ToolCollector()
        self.manager = WMSManager.from_env()
        register_discovery_tools(self._collector, self.manager)
        register_tile_tools(self._collector, self.manager)

    @property
    def tool_names(self) -> list[str]:
        return sorted(self._collector.tools)

    async def run(self, tool_name: str, **kwargs: Any) -> dict[str, Any]:
        """Call a tool and parse its JSON reply."""
        raw = await self._collector.tools[tool_name](**kwargs)
        return json.loads(raw)

    async def run_text(self, tool_name: str, **kwargs: Any) -> str:
        return await self._collector.tools[tool_name](output_mode="text", **kwargs)
