"""
Tile tools: request URI synthesis, imagery and heightfield tile fetch.

Tiles are addressed either by a level/x/y key in the source's profile or
by an explicit bounding box in the source SRS. Fetch tools perform network
I/O and store results in the artifact store.
"""

import logging

from ...constants import SuccessMessages
from ...models.responses import (
    ErrorResponse,
    HeightFieldResponse,
    TileFetchResponse,
    TileUriResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_tile_tools(mcp, manager):
    """Register tile tools with the MCP server."""

    @mcp.tool()
    async def wms_tile_uri(
        source_id: str,
        level: int | None = None,
        x: int | None = None,
        y: int | None = None,
        bbox: list[float] | None = None,
        output_mode: str = "json",
    ) -> str:
        """Build the GetMap request URI for a tile without fetching it.

        Args:
            source_id: Identifier returned by wms_open_source
            level: Tile level (0 = coarsest)
            x: Tile column, 0 at the western edge
            y: Tile row, 0 at the northern edge
            bbox: Explicit bounds [minx, miny, maxx, maxy] in the source SRS (overrides level/x/y)
            output_mode: "json" or "text"

        Returns:
            Tile bounds and request URI
        """
        try:
            if bbox is not None:
                result = manager.bbox_uri(source_id, bbox)
                message = SuccessMessages.BBOX_URI.format(result.bounds)
            else:
                if level is None or x is None or y is None:
                    raise ValueError("Provide either level, x and y, or bbox")
                result = manager.tile_uri(source_id, level, x, y)
                message = SuccessMessages.TILE_URI.format(result.tile)

            response = TileUriResponse(
                source_id=result.source_id,
                tile=result.tile,
                bounds=result.bounds,
                uri=result.uri,
                message=message,
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"wms_tile_uri failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def wms_fetch_tile(
        source_id: str,
        level: int | None = None,
        x: int | None = None,
        y: int | None = None,
        bbox: list[float] | None = None,
        output_mode: str = "json",
    ) -> str:
        """Fetch an imagery tile and store it as a PNG artifact.

        Args:
            source_id: Identifier returned by wms_open_source
            level: Tile level (0 = coarsest)
            x: Tile column, 0 at the western edge
            y: Tile row, 0 at the northern edge
            bbox: Explicit bounds [minx, miny, maxx, maxy] in the source SRS (overrides level/x/y)
            output_mode: "json" or "text"

        Returns:
            Artifact reference, image size and request URI
        """
        try:
            result = await manager.fetch_tile(source_id, level=level, x=x, y=y, bbox=bbox)

            response = TileFetchResponse(
                source_id=result.source_id,
                tile=result.tile,
                bounds=result.bounds,
                uri=result.uri,
                artifact_ref=result.artifact_ref,
                width=result.width,
                height=result.height,
                mode=result.mode,
                size_bytes=result.size_bytes,
                message=SuccessMessages.TILE_FETCHED.format(
                    result.width, result.height, result.size_bytes
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"wms_fetch_tile failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def wms_fetch_heightfield(
        source_id: str,
        level: int | None = None,
        x: int | None = None,
        y: int | None = None,
        bbox: list[float] | None = None,
        output_mode: str = "json",
    ) -> str:
        """Fetch an elevation tile, convert it to metres, and store it as a GeoTIFF
        with a greyscale PNG preview. A tile the server cannot deliver is reported
        as nodata rather than an error.

        Args:
            source_id: Identifier returned by wms_open_source
            level: Tile level (0 = coarsest)
            x: Tile column, 0 at the western edge
            y: Tile row, 0 at the northern edge
            bbox: Explicit bounds [minx, miny, maxx, maxy] in the source SRS (overrides level/x/y)
            output_mode: "json" or "text"

        Returns:
            GeoTIFF artifact reference, grid shape and elevation range
        """
        try:
            result = await manager.fetch_heightfield(source_id, level=level, x=x, y=y, bbox=bbox)

            if result.nodata:
                message = f"No heightfield returned for {result.tile or result.bounds}"
            else:
                message = SuccessMessages.HEIGHTFIELD_FETCHED.format(
                    result.shape[1], result.shape[0], result.scale_factor
                )

            response = HeightFieldResponse(
                source_id=result.source_id,
                tile=result.tile,
                bounds=result.bounds,
                uri=result.uri,
                artifact_ref=result.artifact_ref,
                preview_ref=result.preview_ref,
                shape=result.shape,
                elevation_range=result.elevation_range,
                scale_factor=result.scale_factor,
                nodata=result.nodata,
                message=message,
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"wms_fetch_heightfield failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
