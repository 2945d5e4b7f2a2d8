"""
Discovery tools: server status, capabilities, WMS source open/list/describe.

wms_open_source performs network I/O (GetCapabilities and the TileService
request) once per distinct configuration; the other tools only report on
state already held by the manager.
"""

import logging
import os
from dataclasses import asdict

from ...constants import (
    ELEVATION_UNIT_ALIASES,
    OUTPUT_FORMATS,
    TOOL_NAMES,
    ConfigKey,
    EnvVar,
    ServerConfig,
    StorageProvider,
    SuccessMessages,
)
from ...core.profile import ProfileKind
from ...models.responses import (
    CapabilitiesResponse,
    ErrorResponse,
    SourceDetailResponse,
    SourceInfo,
    SourcesResponse,
    StatusResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_discovery_tools(mcp, manager):
    """Register discovery tools with the MCP server."""

    @mcp.tool()
    async def wms_open_source(
        url: str,
        layers: str = "",
        style: str = "",
        format: str | None = None,
        wms_format: str | None = None,
        wms_version: str | None = None,
        srs: str | None = None,
        tile_size: int | None = None,
        elevation_unit: str | None = None,
        capabilities_url: str | None = None,
        tileservice_url: str | None = None,
        output_mode: str = "json",
    ) -> str:
        """Open a WMS endpoint as a tiled source. Reads GetCapabilities, looks for a
        TileService, and resolves the tiling profile. Opening the same configuration
        twice returns the same source_id without further network access.

        Args:
            url: WMS base url (query parameters already on the url are kept)
            layers: Comma-separated layer names
            style: Style name(s)
            format: Image extension (png, jpg, tiff...); suggested by the server if omitted
            wms_format: Explicit FORMAT parameter, e.g. "image/png; mode=8bit"
            wms_version: WMS version (default 1.1.1)
            srs: Spatial reference, e.g. EPSG:4326 or EPSG:3857 (default EPSG:4326)
            tile_size: Tile width and height in pixels (default from server config)
            elevation_unit: "m" or "ft" for heightfield sources
            capabilities_url: Override the GetCapabilities url
            tileservice_url: Override the GetTileService url
            output_mode: "json" or "text"

        Returns:
            Source id, state and resolved profile
        """
        try:
            options = {
                ConfigKey.URL: url,
                ConfigKey.LAYERS: layers,
                ConfigKey.STYLE: style,
                ConfigKey.FORMAT: format,
                ConfigKey.WMS_FORMAT: wms_format,
                ConfigKey.WMS_VERSION: wms_version,
                ConfigKey.SRS: srs,
                ConfigKey.TILE_SIZE: tile_size,
                ConfigKey.ELEVATION_UNIT: elevation_unit,
                ConfigKey.CAPABILITIES_URL: capabilities_url,
                ConfigKey.TILESERVICE_URL: tileservice_url,
            }
            options = {k: v for k, v in options.items() if v is not None}

            source_id, source = await manager.open_source(options)
            description = manager.describe_source(source_id)

            if source.is_ready:
                message = SuccessMessages.SOURCE_OPENED.format(
                    source_id, description.profile_kind, description.srs
                )
            else:
                message = SuccessMessages.SOURCE_FAILED.format(source_id)

            response = SourceDetailResponse(**asdict(description), message=message)
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"wms_open_source failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def wms_list_sources(output_mode: str = "json") -> str:
        """List WMS sources opened in this session with their state and profile.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            List of open sources
        """
        try:
            sources = [SourceInfo(**s) for s in manager.list_sources()]
            response = SourcesResponse(
                sources=sources,
                message=SuccessMessages.SOURCES_LIST.format(len(sources)),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"wms_list_sources failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def wms_describe_source(source_id: str, output_mode: str = "json") -> str:
        """Describe an open WMS source: resolved SRS, format, profile extent,
        level-0 tile layout, request prototype, and failure reason if any.

        Args:
            source_id: Identifier returned by wms_open_source
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Detailed source description
        """
        try:
            description = manager.describe_source(source_id)
            response = SourceDetailResponse(
                **asdict(description),
                message=SuccessMessages.SOURCE_DESCRIBE.format(source_id, description.state),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"wms_describe_source failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def wms_status(output_mode: str = "json") -> str:
        """Get server status including version, open sources, and storage configuration.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Server status information
        """
        try:
            provider = os.environ.get(EnvVar.ARTIFACTS_PROVIDER, StorageProvider.MEMORY)

            store_available = False
            try:
                manager._get_store()
                store_available = True
            except Exception as e:
                logger.debug(f"Artifact store unavailable: {e}")

            sources = manager.list_sources()
            ready = sum(1 for s in sources if s["state"] == "ready")

            response = StatusResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                open_sources=len(sources),
                ready_sources=ready,
                default_tile_size=manager.default_tile_size,
                storage_provider=provider,
                artifact_store_available=store_available,
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"wms_status failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def wms_capabilities(output_mode: str = "json") -> str:
        """Get server capabilities: tools, profile kinds, elevation units and output formats.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Complete server capabilities
        """
        try:
            response = CapabilitiesResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                tools=TOOL_NAMES,
                tool_count=len(TOOL_NAMES),
                profile_kinds=[kind.value for kind in ProfileKind],
                elevation_units=sorted(set(ELEVATION_UNIT_ALIASES.values())),
                output_formats=OUTPUT_FORMATS,
                llm_guidance=(
                    "Use wms_open_source with a WMS url and layer names to get a source_id. "
                    "Check the profile with wms_describe_source. "
                    "Tiles are addressed as level/x/y with y counted from the north; "
                    "level 0 is 2x1 tiles for EPSG:4326 and 1x1 for EPSG:3857. "
                    "Use wms_tile_uri to build a request url without fetching, "
                    "wms_fetch_tile for imagery, and wms_fetch_heightfield for elevation "
                    "(returned in metres as GeoTIFF)."
                ),
                message=f"{ServerConfig.NAME} v{ServerConfig.VERSION} capabilities",
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"wms_capabilities failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
