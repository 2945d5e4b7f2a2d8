#!/usr/bin/env python3
"""
Async WMS MCP Server using chuk-mcp-server

Opens WMS endpoints as tiled sources, synthesizes GetMap request URIs for
tile keys, and fetches imagery and heightfield tiles into chuk-artifacts.

Storage is managed through chuk-mcp-server's built-in artifact store context.
"""

import logging

from chuk_mcp_server import ChukMCPServer

from .constants import ServerConfig
from .core.wms_manager import WMSManager
from .tools.discovery import register_discovery_tools
from .tools.tiles import register_tile_tools

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

mcp = ChukMCPServer(ServerConfig.NAME)

# Tile size, HTTP timeout and user agent come from WMS_* env vars
manager = WMSManager.from_env()

register_discovery_tools(mcp, manager)
register_tile_tools(mcp, manager)

if __name__ == "__main__":
    logger.info("Starting WMS MCP Server...")
    mcp.run(stdio=True)
