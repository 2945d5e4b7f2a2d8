"""
WMS tile source: one-time initialization and ready-only tile requests.

Initialization runs as a small state machine::

    UNCONFIGURED -> AWAITING_CAPABILITIES -> PROFILE_RESOLVED -> READY
                           |                        |
                           +--------> FAILED <------+

It performs blocking network I/O and never raises for a remote failure; the
outcome is the state plus an optional ReadyWMSSource. Only a ReadyWMSSource
can serve tiles, and it holds no mutable state, so tile requests may run
concurrently from any number of threads.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..constants import DEFAULT_FORMAT, DEFAULT_SRS, ErrorMessages
from .capabilities import CapabilitiesReader
from .config import SourceConfig
from .elevation import elevation_scale_factor, image_to_heightfield
from .http_client import FetchClient, FetchOptions, ProgressCallback
from .profile import Profile, ProfileRegistry
from .profile_resolver import ProfileResolver
from .raster_io import FloatArray
from .request import (
    RequestPrototype,
    build_getmap_template,
    build_tileservice_template,
    request_mime_type,
    synthesize_uri,
)
from .spatial import SpatialReferenceFactory
from .tileservice import TileServiceReader

logger = logging.getLogger(__name__)


class SourceState(str, Enum):
    UNCONFIGURED = "unconfigured"
    AWAITING_CAPABILITIES = "awaiting_capabilities"
    PROFILE_RESOLVED = "profile_resolved"
    READY = "ready"
    FAILED = "failed"


class SourceNotReadyError(RuntimeError):
    """A tile operation was requested before initialization succeeded."""


@dataclass(frozen=True)
class ReadyWMSSource:
    """An initialized source: profile and prototype are always present."""

    config: SourceConfig
    profile: Profile
    prototype: RequestPrototype
    extension: str
    srs: str
    mime_type: str
    client: FetchClient
    fetch_options: FetchOptions | None = None
    tile_service_matched: bool = False

    @property
    def pixels_per_tile(self) -> int:
        return self.config.tile_size

    @property
    def elevation_scale(self) -> float:
        return elevation_scale_factor(self.config.elevation_unit)

    def create_uri(self, key: Any) -> str:
        """Request URI for a TileKey or a (minx, miny, maxx, maxy) box."""
        return synthesize_uri(self.prototype, key)

    def create_image(self, key: Any, progress: ProgressCallback | None = None) -> Any | None:
        """Fetch the tile image; None when the server returned nothing usable."""
        return self.image_at(self.create_uri(key), progress)

    def image_at(self, uri: str, progress: ProgressCallback | None = None) -> Any | None:
        """Fetch an already synthesized request URI."""
        return self.client.fetch_image(uri, self.fetch_options, progress)

    def create_heightfield(
        self, key: Any, progress: ProgressCallback | None = None
    ) -> FloatArray | None:
        """Fetch the tile and convert it to heights in metres."""
        return self.heightfield_at(self.create_uri(key), progress)

    def heightfield_at(
        self, uri: str, progress: ProgressCallback | None = None
    ) -> FloatArray | None:
        image = self.image_at(uri, progress)
        if image is None:
            logger.info(f"Failed to read heightfield from {uri}")
        return image_to_heightfield(image, self.elevation_scale)


class WMSSource:
    """A WMS tile source built from a SourceConfig.

    Collaborators are injected; defaults use one shared httpx-backed
    FetchClient and a fresh pyproj-backed profile registry.
    """

    def __init__(
        self,
        config: SourceConfig,
        *,
        client: FetchClient | None = None,
        capabilities_reader: CapabilitiesReader | None = None,
        tile_service_reader: TileServiceReader | None = None,
        registry: ProfileRegistry | None = None,
        srs_factory: SpatialReferenceFactory | None = None,
        fetch_options: FetchOptions | None = None,
    ) -> None:
        self.config = config
        self.client = client or FetchClient(fetch_options)
        self.capabilities_reader = capabilities_reader or CapabilitiesReader(self.client)
        self.tile_service_reader = tile_service_reader or TileServiceReader(self.client)
        self.srs_factory = srs_factory or SpatialReferenceFactory()
        self.registry = registry or ProfileRegistry(self.srs_factory)
        self.resolver = ProfileResolver(self.registry, self.srs_factory)
        self.fetch_options = fetch_options

        self.state = SourceState.UNCONFIGURED
        self.failure_reason: str | None = None
        self._ready: ReadyWMSSource | None = None

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize(self) -> ReadyWMSSource | None:
        """Run the one-time initialization; None when the source is unusable."""
        if self.state is not SourceState.UNCONFIGURED:
            raise RuntimeError(ErrorMessages.ALREADY_INITIALIZED.format(self.state.value))

        config = self.config
        self.state = SourceState.AWAITING_CAPABILITIES

        capabilities_url = config.resolved_capabilities_url()
        capabilities = self.capabilities_reader.read(capabilities_url, self.fetch_options)
        if capabilities is None:
            logger.warning(f"Unable to read WMS GetCapabilities from {capabilities_url}; failing.")
            return self._fail(ErrorMessages.CAPABILITIES_UNAVAILABLE.format(capabilities_url))

        logger.info(f"Got capabilities from {capabilities_url}")

        extension = config.format
        if not extension:
            extension = capabilities.suggest_extension()
            logger.info(f"No format specified, capabilities suggested extension '{extension}'")
        if not extension:
            extension = DEFAULT_FORMAT

        srs = config.srs or DEFAULT_SRS
        mime_type = request_mime_type(extension, config.wms_format)

        template = build_getmap_template(
            config.url,
            config.wms_version,
            config.layers,
            mime_type,
            config.style,
            srs,
            config.tile_size,
        )
        profile = self.resolver.resolve(srs, config.layers, capabilities)

        matched = False
        tile_service_url = config.resolved_tileservice_url()
        logger.info(f"Testing for TileService at {tile_service_url}")
        tile_service = self.tile_service_reader.read(tile_service_url, self.fetch_options)
        if tile_service is not None:
            logger.info("Found TileService description")
            patterns = tile_service.get_matching_patterns(
                config.layers,
                mime_type,
                config.style,
                srs,
                config.tile_size,
                config.tile_size,
            )
            if patterns:
                # first match wins when several patterns qualify
                profile = tile_service.create_profile(patterns, self.registry)
                template = build_tileservice_template(config.url, patterns[0].prototype)
                matched = True
        else:
            logger.info("No TileService description found; assuming standard WMS")

        if profile is None:
            logger.warning(f"Unable to resolve a profile for SRS {srs}; failing.")
            return self._fail(ErrorMessages.NO_PROFILE.format(srs))

        self.state = SourceState.PROFILE_RESOLVED

        self._ready = ReadyWMSSource(
            config=config,
            profile=profile,
            prototype=RequestPrototype.from_template(template, extension),
            extension=extension,
            srs=srs,
            mime_type=mime_type,
            client=self.client,
            fetch_options=self.fetch_options,
            tile_service_matched=matched,
        )
        self.state = SourceState.READY
        return self._ready

    def _fail(self, reason: str) -> None:
        self.state = SourceState.FAILED
        self.failure_reason = reason
        return None

    # ------------------------------------------------------------------
    # Ready-only access
    # ------------------------------------------------------------------

    @property
    def is_ready(self) -> bool:
        return self.state is SourceState.READY

    @property
    def profile(self) -> Profile | None:
        return self._ready.profile if self._ready else None

    @property
    def ready(self) -> ReadyWMSSource:
        if self._ready is None:
            raise SourceNotReadyError(ErrorMessages.SOURCE_NOT_READY.format(self.state.value))
        return self._ready

    def create_uri(self, key: Any) -> str:
        return self.ready.create_uri(key)

    def create_image(self, key: Any, progress: ProgressCallback | None = None) -> Any | None:
        return self.ready.create_image(key, progress)

    def create_heightfield(
        self, key: Any, progress: ProgressCallback | None = None
    ) -> FloatArray | None:
        return self.ready.create_heightfield(key, progress)
