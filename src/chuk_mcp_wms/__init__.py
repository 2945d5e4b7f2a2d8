"""
chuk-mcp-wms: WMS Tile Addressing, Request Synthesis & Elevation Tile MCP Server

Opens Web Map Service endpoints as tiled sources, resolves a tiling profile
from GetCapabilities (and the JPL TileService extension where offered),
synthesizes GetMap request URIs for tile keys, and fetches imagery and
heightfield tiles into chuk-artifacts.
"""
