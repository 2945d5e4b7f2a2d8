"""MCP tool modules for chuk-mcp-wms."""
