"""
WMS Manager: central orchestrator for WMS tile sources.

Opens and registers sources, synthesizes tile URIs, fetches imagery and
heightfield tiles, and stores fetched rasters in the artifact store.
All public async methods wrap blocking I/O via asyncio.to_thread().
"""

import asyncio
import hashlib
import logging
import os
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np

from ..constants import (
    DEFAULT_HTTP_TIMEOUT_S,
    DEFAULT_TILE_SIZE,
    DEFAULT_USER_AGENT,
    SOURCE_ID_LENGTH,
    ConfigKey,
    EnvVar,
    ErrorMessages,
)
from .config import SourceConfig
from .http_client import FetchClient, FetchOptions, ProgressCallback
from .profile import Bounds, TileKey
from .wms_source import ReadyWMSSource, SourceState, WMSSource

logger = logging.getLogger(__name__)


@dataclass
class SourceDescription:
    """Snapshot of a source's resolved state."""

    source_id: str
    url: str
    state: str
    layers: str
    srs: str | None
    format: str | None
    mime_type: str | None
    tile_size: int
    elevation_unit: str
    profile_kind: str | None
    profile_extent: list[float] | None
    tiles_at_level0: list[int] | None
    prototype: str | None
    tile_service: bool
    failure_reason: str | None


@dataclass
class TileUriResult:
    """Result of a URI synthesis."""

    source_id: str
    tile: str | None
    bounds: list[float]
    uri: str


@dataclass
class TileResult:
    """Result of an imagery tile fetch."""

    source_id: str
    tile: str | None
    bounds: list[float]
    uri: str
    artifact_ref: str
    width: int
    height: int
    mode: str
    size_bytes: int


@dataclass
class HeightFieldResult:
    """Result of a heightfield tile fetch."""

    source_id: str
    tile: str | None
    bounds: list[float]
    uri: str
    artifact_ref: str | None
    preview_ref: str | None
    shape: list[int]
    elevation_range: list[float]
    scale_factor: float
    nodata: bool


def make_source_id(config: SourceConfig) -> str:
    """Deterministic identifier of a configuration."""
    digest = hashlib.sha1(config.model_dump_json().encode("utf-8")).hexdigest()
    return digest[:SOURCE_ID_LENGTH]


class WMSManager:
    """Central manager for WMS tile sources."""

    def __init__(
        self,
        default_tile_size: int = DEFAULT_TILE_SIZE,
        fetch_options: FetchOptions | None = None,
        client: FetchClient | None = None,
    ) -> None:
        self.default_tile_size = default_tile_size
        self.fetch_options = fetch_options or FetchOptions()
        self.client = client or FetchClient(self.fetch_options)

        self._sources: dict[str, WMSSource] = {}
        self._open_locks: dict[str, asyncio.Lock] = {}

    @classmethod
    def from_env(cls) -> "WMSManager":
        """Build a manager tuned by the WMS_* environment variables."""
        tile_size = int(os.environ.get(EnvVar.DEFAULT_TILE_SIZE, DEFAULT_TILE_SIZE))
        if tile_size <= 0:
            raise ValueError(ErrorMessages.INVALID_TILE_SIZE.format(tile_size))
        options = FetchOptions(
            timeout_s=float(os.environ.get(EnvVar.HTTP_TIMEOUT, DEFAULT_HTTP_TIMEOUT_S)),
            user_agent=os.environ.get(EnvVar.USER_AGENT, DEFAULT_USER_AGENT),
        )
        logger.debug(f"WMS manager: tile size {tile_size}, timeout {options.timeout_s}s")
        return cls(default_tile_size=tile_size, fetch_options=options)

    # ------------------------------------------------------------------
    # Source registry
    # ------------------------------------------------------------------

    async def open_source(self, options: Mapping[str, Any]) -> tuple[str, WMSSource]:
        """Validate, initialize (once per distinct config) and register a source."""
        values = dict(options)
        values.setdefault(ConfigKey.DEFAULT_TILE_SIZE, self.default_tile_size)
        config = SourceConfig.from_options(values)
        source_id = make_source_id(config)

        # concurrent opens of one config share a single initialization
        async with self._open_locks.setdefault(source_id, asyncio.Lock()):
            existing = self._sources.get(source_id)
            if existing is not None:
                return source_id, existing

            source = WMSSource(config, client=self.client, fetch_options=self.fetch_options)
            await asyncio.to_thread(source.initialize)
            self._sources[source_id] = source

        if source.is_ready:
            logger.info(f"Opened WMS source {source_id} ({config.url})")
        else:
            logger.warning(f"WMS source {source_id} failed: {source.failure_reason}")
        return source_id, source

    def get_source(self, source_id: str) -> WMSSource:
        if source_id not in self._sources:
            raise ValueError(ErrorMessages.UNKNOWN_SOURCE.format(source_id))
        return self._sources[source_id]

    def list_sources(self) -> list[dict]:
        """List open sources."""
        return [
            {
                "source_id": source_id,
                "url": source.config.url,
                "layers": source.config.layers,
                "state": source.state.value,
                "profile_kind": source.profile.kind.value if source.profile else None,
            }
            for source_id, source in self._sources.items()
        ]

    def describe_source(self, source_id: str) -> SourceDescription:
        source = self.get_source(source_id)
        config = source.config
        ready = source.ready if source.is_ready else None

        profile = ready.profile if ready else None
        return SourceDescription(
            source_id=source_id,
            url=config.url,
            state=source.state.value,
            layers=config.layers,
            srs=ready.srs if ready else config.srs,
            format=ready.extension if ready else config.format,
            mime_type=ready.mime_type if ready else None,
            tile_size=config.tile_size,
            elevation_unit=config.elevation_unit,
            profile_kind=profile.kind.value if profile else None,
            profile_extent=list(profile.extent) if profile else None,
            tiles_at_level0=list(profile.num_tiles(0)) if profile else None,
            prototype=ready.prototype.template if ready else None,
            tile_service=ready.tile_service_matched if ready else False,
            failure_reason=source.failure_reason,
        )

    # ------------------------------------------------------------------
    # URI synthesis (sync, no I/O)
    # ------------------------------------------------------------------

    def tile_uri(self, source_id: str, level: int, x: int, y: int) -> TileUriResult:
        ready = self._ready(source_id)
        key = TileKey(level, x, y, ready.profile)
        return TileUriResult(
            source_id=source_id,
            tile=str(key),
            bounds=list(key.bounds),
            uri=ready.create_uri(key),
        )

    def bbox_uri(self, source_id: str, bbox: list[float]) -> TileUriResult:
        ready = self._ready(source_id)
        bounds = self._validate_bbox(bbox)
        return TileUriResult(
            source_id=source_id,
            tile=None,
            bounds=list(bounds),
            uri=ready.create_uri(bounds),
        )

    # ------------------------------------------------------------------
    # Fetch (async)
    # ------------------------------------------------------------------

    async def fetch_tile(
        self,
        source_id: str,
        level: int | None = None,
        x: int | None = None,
        y: int | None = None,
        bbox: list[float] | None = None,
        progress: ProgressCallback | None = None,
    ) -> TileResult:
        """Fetch an imagery tile and store it as a PNG artifact."""
        from . import raster_io

        ready = self._ready(source_id)
        key, bounds = self._tile_target(ready, level, x, y, bbox)
        uri = ready.create_uri(bounds)

        image = await asyncio.to_thread(ready.image_at, uri, progress)
        if image is None:
            raise ValueError(ErrorMessages.NO_IMAGE.format(uri))

        png_bytes = await asyncio.to_thread(raster_io.image_to_png, image)
        artifact_ref = await self._store_raster(
            png_bytes,
            {
                "schema_version": "1.0",
                "type": "wms_tile",
                "source_id": source_id,
                "url": ready.config.url,
                "layers": ready.config.layers,
                "tile": str(key) if key else None,
                "bounds": list(bounds),
                "srs": ready.srs,
                "uri": uri,
            },
            suffix=".png",
        )

        return TileResult(
            source_id=source_id,
            tile=str(key) if key else None,
            bounds=list(bounds),
            uri=uri,
            artifact_ref=artifact_ref,
            width=image.width,
            height=image.height,
            mode=image.mode,
            size_bytes=len(png_bytes),
        )

    async def fetch_heightfield(
        self,
        source_id: str,
        level: int | None = None,
        x: int | None = None,
        y: int | None = None,
        bbox: list[float] | None = None,
        progress: ProgressCallback | None = None,
    ) -> HeightFieldResult:
        """Fetch an elevation tile, scale it to metres and store it as GeoTIFF.

        A missing sample is not an error: the result reports ``nodata`` and
        carries no artifact.
        """
        from . import raster_io

        ready = self._ready(source_id)
        key, bounds = self._tile_target(ready, level, x, y, bbox)
        uri = ready.create_uri(bounds)
        scale = ready.elevation_scale

        heights = await asyncio.to_thread(ready.heightfield_at, uri, progress)
        if heights is None:
            return HeightFieldResult(
                source_id=source_id,
                tile=str(key) if key else None,
                bounds=list(bounds),
                uri=uri,
                artifact_ref=None,
                preview_ref=None,
                shape=[0, 0],
                elevation_range=[0.0, 0.0],
                scale_factor=scale,
                nodata=True,
            )

        valid = heights[~np.isnan(heights)]
        if len(valid) > 0:
            elev_range = [float(np.min(valid)), float(np.max(valid))]
        else:
            elev_range = [0.0, 0.0]

        geotiff_bytes = await asyncio.to_thread(
            raster_io.heightfield_to_geotiff, heights, ready.profile.srs.crs, bounds
        )

        preview_ref = None
        try:
            preview_bytes = await asyncio.to_thread(raster_io.heightfield_to_preview_png, heights)
            preview_ref = await self._store_raster(
                preview_bytes,
                {"type": "heightfield_preview", "source_id": source_id, "format": "png"},
                suffix="_preview.png",
            )
        except Exception as e:
            logger.warning(f"Failed to generate heightfield preview: {e}")

        artifact_ref = await self._store_raster(
            geotiff_bytes,
            {
                "schema_version": "1.0",
                "type": "wms_heightfield",
                "source_id": source_id,
                "url": ready.config.url,
                "layers": ready.config.layers,
                "tile": str(key) if key else None,
                "bounds": list(bounds),
                "srs": ready.srs,
                "uri": uri,
                "elevation_unit": ready.config.elevation_unit,
                "scale_factor": scale,
                "shape": list(heights.shape),
                "elevation_range": elev_range,
            },
            suffix=".tif",
        )

        return HeightFieldResult(
            source_id=source_id,
            tile=str(key) if key else None,
            bounds=list(bounds),
            uri=uri,
            artifact_ref=artifact_ref,
            preview_ref=preview_ref,
            shape=list(heights.shape),
            elevation_range=elev_range,
            scale_factor=scale,
            nodata=False,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ready(self, source_id: str) -> ReadyWMSSource:
        source = self.get_source(source_id)
        if source.state is SourceState.FAILED:
            raise ValueError(
                ErrorMessages.SOURCE_FAILED.format(source_id, source.failure_reason)
            )
        return source.ready

    def _tile_target(
        self,
        ready: ReadyWMSSource,
        level: int | None,
        x: int | None,
        y: int | None,
        bbox: list[float] | None,
    ) -> tuple[TileKey | None, Bounds]:
        if bbox is not None:
            return None, self._validate_bbox(bbox)
        if level is None or x is None or y is None:
            raise ValueError(ErrorMessages.INVALID_TILE_KEY.format(level, x, y))
        key = TileKey(level, x, y, ready.profile)
        return key, key.bounds

    def _validate_bbox(self, bbox: list[float]) -> Bounds:
        """Shape check only; values pass through unvalidated to the server."""
        if len(bbox) != 4:
            raise ValueError(ErrorMessages.INVALID_BBOX)
        return Bounds(*(float(v) for v in bbox))

    def _get_store(self) -> Any:
        """Get the artifact store instance."""
        from chuk_mcp_server import get_artifact_store

        store = get_artifact_store()
        if store is None:
            raise RuntimeError(ErrorMessages.NO_ARTIFACT_STORE)
        return store

    async def _store_raster(
        self,
        data: bytes,
        metadata: dict,
        suffix: str = ".tif",
    ) -> str:
        """Store raster data in the artifact store."""
        try:
            store = self._get_store()
            ref = f"wms/{uuid.uuid4().hex[:12]}{suffix}"
            mime = "image/tiff" if suffix.endswith(".tif") else "image/png"

            await store.store(
                ref,
                data,
                mime_type=mime,
                metadata=metadata,
                summary=f"WMS raster ({metadata.get('type', 'unknown')})",
            )
            return ref
        except Exception as e:
            logger.error(f"Failed to store raster: {e}")
            raise
