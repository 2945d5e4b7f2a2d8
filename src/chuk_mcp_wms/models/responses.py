"""
Response models for chuk-mcp-wms tools.

All tool responses are Pydantic models for type safety and consistent API.
"""

from pydantic import BaseModel, ConfigDict, Field


def format_response(model: BaseModel, output_mode: str = "json") -> str:
    """Format a response model as JSON or human-readable text.

    Args:
        model: Pydantic response model instance
        output_mode: "json" (default) or "text"

    Returns:
        Formatted string
    """
    if output_mode == "text" and hasattr(model, "to_text"):
        return str(model.to_text())
    return str(model.model_dump_json())


def _fmt_bounds(bounds: list[float]) -> str:
    return ", ".join(f"{b:.6f}" for b in bounds)


class ErrorResponse(BaseModel):
    """Error response model for tool failures."""

    model_config = ConfigDict(extra="forbid")

    error: str = Field(..., description="Error message describing what went wrong")

    def to_text(self) -> str:
        return f"Error: {self.error}"


class SourceInfo(BaseModel):
    """Summary information about an open WMS source."""

    model_config = ConfigDict(extra="forbid")

    source_id: str = Field(..., description="Source identifier returned by wms_open_source")
    url: str = Field(..., description="WMS base url")
    layers: str = Field(..., description="Requested layer names")
    state: str = Field(..., description="Initialization state (ready, failed, ...)")
    profile_kind: str | None = Field(
        default=None, description="Resolved profile (global-mercator, global-geodetic, custom)"
    )

    def to_text(self) -> str:
        profile = self.profile_kind or "no profile"
        return f"{self.source_id}: {self.url} [{self.layers}] ({self.state}, {profile})"


class SourcesResponse(BaseModel):
    """Response model for listing open WMS sources."""

    model_config = ConfigDict(extra="forbid")

    sources: list[SourceInfo] = Field(..., description="Open WMS sources")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message]
        for s in self.sources:
            lines.append(f"  {s.to_text()}")
        return "\n".join(lines)


class SourceDetailResponse(BaseModel):
    """Response model for an opened or described WMS source."""

    model_config = ConfigDict(extra="forbid")

    source_id: str = Field(..., description="Source identifier")
    url: str = Field(..., description="WMS base url")
    state: str = Field(..., description="Initialization state")
    layers: str = Field(..., description="Requested layer names")
    srs: str | None = Field(default=None, description="Resolved spatial reference")
    format: str | None = Field(default=None, description="Resolved image extension")
    mime_type: str | None = Field(default=None, description="FORMAT parameter sent to the server")
    tile_size: int = Field(..., description="Tile size in pixels", gt=0)
    elevation_unit: str = Field(..., description="Elevation unit of heightfield tiles")
    profile_kind: str | None = Field(default=None, description="Resolved profile kind")
    profile_extent: list[float] | None = Field(
        default=None, description="Profile extent [minx, miny, maxx, maxy] in its SRS"
    )
    tiles_at_level0: list[int] | None = Field(
        default=None, description="Tiles wide and high at level 0"
    )
    prototype: str | None = Field(default=None, description="Request prototype template")
    tile_service: bool = Field(default=False, description="Whether a TileService pattern matched")
    failure_reason: str | None = Field(default=None, description="Why initialization failed")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, f"State: {self.state}", f"URL: {self.url}"]
        if self.profile_kind:
            extent = _fmt_bounds(self.profile_extent or [])
            lines.append(f"Profile: {self.profile_kind} {self.srs} [{extent}]")
            if self.tiles_at_level0:
                lines.append(f"Level 0: {self.tiles_at_level0[0]}x{self.tiles_at_level0[1]} tiles")
            lines.append(f"Format: {self.format} ({self.mime_type}), {self.tile_size}px")
            lines.append(f"Elevation unit: {self.elevation_unit}")
            if self.tile_service:
                lines.append("TileService: pattern matched")
            lines.append(f"Prototype: {self.prototype}")
        if self.failure_reason:
            lines.append(f"Failure: {self.failure_reason}")
        return "\n".join(lines)


class TileUriResponse(BaseModel):
    """Response model for request URI synthesis."""

    model_config = ConfigDict(extra="forbid")

    source_id: str = Field(..., description="Source identifier")
    tile: str | None = Field(default=None, description="Tile key level/x/y, if addressed by key")
    bounds: list[float] = Field(..., description="Tile bounds [minx, miny, maxx, maxy]")
    uri: str = Field(..., description="Fetchable request URI")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        return "\n".join(
            [self.message, f"Bounds: {_fmt_bounds(self.bounds)}", f"URI: {self.uri}"]
        )


class TileFetchResponse(BaseModel):
    """Response model for an imagery tile fetch."""

    model_config = ConfigDict(extra="forbid")

    source_id: str = Field(..., description="Source identifier")
    tile: str | None = Field(default=None, description="Tile key level/x/y")
    bounds: list[float] = Field(..., description="Tile bounds [minx, miny, maxx, maxy]")
    uri: str = Field(..., description="Request URI that was fetched")
    artifact_ref: str = Field(..., description="Artifact reference of the stored PNG")
    width: int = Field(..., description="Image width in pixels", ge=0)
    height: int = Field(..., description="Image height in pixels", ge=0)
    mode: str = Field(..., description="Pillow image mode of the fetched tile")
    size_bytes: int = Field(..., description="Stored PNG size in bytes", ge=0)
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"Fetched tile: {self.artifact_ref}",
            f"Size: {self.width}x{self.height} ({self.mode})",
            f"Bounds: {_fmt_bounds(self.bounds)}",
            f"URI: {self.uri}",
        ]
        return "\n".join(lines)


class HeightFieldResponse(BaseModel):
    """Response model for a heightfield tile fetch."""

    model_config = ConfigDict(extra="forbid")

    source_id: str = Field(..., description="Source identifier")
    tile: str | None = Field(default=None, description="Tile key level/x/y")
    bounds: list[float] = Field(..., description="Tile bounds [minx, miny, maxx, maxy]")
    uri: str = Field(..., description="Request URI that was fetched")
    artifact_ref: str | None = Field(default=None, description="GeoTIFF artifact reference")
    preview_ref: str | None = Field(default=None, description="Greyscale PNG preview reference")
    shape: list[int] = Field(..., description="Grid shape [rows, cols]")
    elevation_range: list[float] = Field(..., description="[min, max] height in metres")
    scale_factor: float = Field(..., description="Unit to metres scale applied")
    nodata: bool = Field(default=False, description="True when the server returned no sample")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        if self.nodata:
            return "\n".join([self.message, f"No sample returned by {self.uri}"])
        lines = [
            f"Fetched heightfield: {self.artifact_ref}",
            f"Shape: {self.shape[0]}x{self.shape[1]}",
            f"Elevation: {self.elevation_range[0]:.1f}m to {self.elevation_range[1]:.1f}m",
            f"Scale: {self.scale_factor}",
            f"Bounds: {_fmt_bounds(self.bounds)}",
        ]
        if self.preview_ref:
            lines.append(f"Preview: {self.preview_ref}")
        return "\n".join(lines)


class StatusResponse(BaseModel):
    """Response model for server status queries."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(default="chuk-mcp-wms", description="Server name")
    version: str = Field(default="0.1.0", description="Server version")
    open_sources: int = Field(..., description="Number of open WMS sources", ge=0)
    ready_sources: int = Field(..., description="Number of sources ready for tiles", ge=0)
    default_tile_size: int = Field(..., description="Tile size used when none is given")
    storage_provider: str = Field(..., description="Active storage provider (memory/filesystem/s3)")
    artifact_store_available: bool = Field(
        default=False, description="Whether artifact store is available"
    )

    def to_text(self) -> str:
        store_status = "available" if self.artifact_store_available else "not available"
        lines = [
            f"{self.server} v{self.version}",
            f"Sources: {self.ready_sources}/{self.open_sources} ready",
            f"Default tile size: {self.default_tile_size}px",
            f"Storage: {self.storage_provider}",
            f"Artifact store: {store_status}",
        ]
        return "\n".join(lines)


class CapabilitiesResponse(BaseModel):
    """Response model for server capabilities listing."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(..., description="Server name")
    version: str = Field(..., description="Server version")
    tools: list[str] = Field(..., description="Available tool names")
    tool_count: int = Field(..., description="Number of available tools", ge=0)
    profile_kinds: list[str] = Field(..., description="Profile kinds a source can resolve to")
    elevation_units: list[str] = Field(..., description="Accepted elevation units")
    output_formats: list[str] = Field(..., description="Stored artifact formats")
    llm_guidance: str = Field(..., description="LLM-friendly usage guidance for the server")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"{self.server} v{self.version}",
            f"Tools: {self.tool_count}",
            f"Profiles: {', '.join(self.profile_kinds)}",
            f"Elevation units: {', '.join(self.elevation_units)}",
            f"Output formats: {', '.join(self.output_formats)}",
            f"Guidance: {self.llm_guidance}",
        ]
        return "\n".join(lines)
