"""Response models for chuk-mcp-wms."""

from .responses import (
    CapabilitiesResponse,
    ErrorResponse,
    HeightFieldResponse,
    SourceDetailResponse,
    SourceInfo,
    SourcesResponse,
    StatusResponse,
    TileFetchResponse,
    TileUriResponse,
    format_response,
)

__all__ = [
    "ErrorResponse",
    "SourceInfo",
    "SourcesResponse",
    "SourceDetailResponse",
    "TileUriResponse",
    "TileFetchResponse",
    "HeightFieldResponse",
    "StatusResponse",
    "CapabilitiesResponse",
    "format_response",
]
