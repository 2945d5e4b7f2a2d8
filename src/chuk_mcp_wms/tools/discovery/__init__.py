"""Discovery tools: status, capabilities and WMS source management."""

from .api import register_discovery_tools

__all__ = ["register_discovery_tools"]
