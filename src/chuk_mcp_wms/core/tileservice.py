"""
JPL-style TileService (``request=GetTileService``) support.

A tile service advertises fixed GetMap request patterns per tiled group.
Each pattern names its layers, format, styles, SRS and image size and carries
the bbox of its top-left tile, which fixes the tile size in SRS units. A
matching pattern lets us issue requests exactly as the server pre-renders
them instead of deriving our own.
"""

import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from urllib.parse import unquote

from ..constants import (
    BBOX_PLACEHOLDERS,
    GEODETIC_EXTENT,
    MERCATOR_EXTENT,
    MERCATOR_MAX_LATITUDE,
)
from .capabilities import _child, _children, _float_attr, _local, _text
from .http_client import FetchClient, FetchOptions
from .profile import Bounds, Profile, ProfileRegistry
from .spatial import SpatialReference

logger = logging.getLogger(__name__)

TILE_SERVICE_ROOT = "WMS_Tile_Service"


@dataclass(frozen=True)
class TilePattern:
    """One pre-rendered GetMap request pattern."""

    pattern: str
    layers: str
    format: str
    styles: str
    srs: str
    image_width: int
    image_height: int
    top_left: Bounds
    prototype: str

    @property
    def tile_width(self) -> float:
        return self.top_left.width

    @property
    def tile_height(self) -> float:
        return self.top_left.height

    @classmethod
    def parse(cls, pattern: str) -> "TilePattern":
        """
        Parse a pattern query string such as
        ``request=GetMap&layers=global_mosaic&srs=EPSG:4326&format=image/jpeg&styles=
        &width=512&height=512&bbox=-180,-38,-52,90``.

        Raises:
            ValueError: if the bbox or image size is missing or not numeric
        """
        params: dict[str, str] = {}
        prototype_parts = []
        for part in pattern.split("&"):
            key, sep, value = part.partition("=")
            if sep and key.strip().lower() == "bbox":
                prototype_parts.append(key + "=" + BBOX_PLACEHOLDERS)
            else:
                # literal "%" must survive printf substitution
                prototype_parts.append(part.replace("%", "%%"))
            if sep:
                params[key.strip().lower()] = value

        bbox_raw = params.get("bbox", "")

        coords = [float(v) for v in unquote(bbox_raw).split(",")] if bbox_raw else []
        if len(coords) != 4:
            raise ValueError(f"Tile pattern has no usable bbox: {pattern}")

        return cls(
            pattern=pattern,
            layers=unquote(params.get("layers", "")),
            format=unquote(params.get("format", "")),
            styles=unquote(params.get("styles", "")),
            srs=unquote(params.get("srs", params.get("crs", ""))),
            image_width=int(params.get("width", "0")),
            image_height=int(params.get("height", "0")),
            top_left=Bounds(*coords),
            prototype="&".join(prototype_parts),
        )

    def matches(
        self,
        layers: str,
        format: str,
        styles: str,
        srs: str,
        width: int,
        height: int,
    ) -> bool:
        return (
            self.layers.lower() == layers.lower()
            and self.format.lower() == format.lower()
            and self.styles.lower() == styles.lower()
            and self.srs.lower() == srs.lower()
            and self.image_width == width
            and self.image_height == height
        )


@dataclass
class TiledGroup:
    name: str = ""
    title: str = ""
    abstract: str = ""
    latlon_extents: Bounds = Bounds(0.0, 0.0, 0.0, 0.0)
    patterns: list[TilePattern] = field(default_factory=list)


@dataclass
class TileService:
    """Parsed GetTileService document."""

    name: str = ""
    title: str = ""
    abstract: str = ""
    online_resource: str = ""
    groups: list[TiledGroup] = field(default_factory=list)

    @property
    def patterns(self) -> list[TilePattern]:
        return [p for g in self.groups for p in g.patterns]

    def get_matching_patterns(
        self,
        layers: str,
        format: str,
        styles: str,
        srs: str,
        width: int,
        height: int,
    ) -> list[TilePattern]:
        """Patterns matching every criterion, in document order."""
        return [
            p for p in self.patterns if p.matches(layers, format, styles, srs, width, height)
        ]

    def create_profile(
        self, patterns: list[TilePattern], registry: ProfileRegistry
    ) -> Profile | None:
        """
        Profile whose level-0 grid is exactly the coarsest pattern's tiles.

        The grid is anchored at that pattern's top-left tile and extended
        east and south until it covers the group's data extent, so every
        tile key addresses a pre-rendered tile. All patterns are assumed to
        share layers, format and SRS; only their tile sizes differ.
        """
        if not patterns:
            return None

        coarsest = max(patterns, key=lambda p: (p.tile_width, p.tile_height))
        tile_w, tile_h = coarsest.tile_width, coarsest.tile_height
        if tile_w <= 0 or tile_h <= 0:
            logger.warning("Tile patterns have empty bounding boxes; no profile")
            return None

        srs = registry.srs_factory.create(coarsest.srs)
        if srs is None:
            return None

        minx, maxy = coarsest.top_left.minx, coarsest.top_left.maxy
        data = self._data_extent(coarsest, srs, registry)
        num_wide = _tiles_to_cover(data.maxx - minx, tile_w)
        num_high = _tiles_to_cover(maxy - data.miny, tile_h)

        profile = registry.create_profile(
            coarsest.srs,
            minx,
            maxy - num_high * tile_h,
            minx + num_wide * tile_w,
            maxy,
            num_wide,
            num_high,
        )
        if profile is not None and profile.is_equivalent_to(registry.global_geodetic):
            return registry.global_geodetic
        return profile

    def _data_extent(
        self, pattern: TilePattern, srs: SpatialReference, registry: ProfileRegistry
    ) -> Bounds:
        """Extent of the pattern's group in the pattern SRS."""
        group = next((g for g in self.groups if pattern in g.patterns), None)
        latlon = None
        if group is not None and not group.latlon_extents.is_degenerate():
            latlon = tuple(group.latlon_extents)

        mercator = srs.is_equivalent_to(registry.global_mercator.srs)
        if latlon is None:
            if mercator:
                return Bounds(*MERCATOR_EXTENT)
            if srs.is_geographic:
                return Bounds(*GEODETIC_EXTENT)
            latlon = srs.area_of_use()
            if latlon is None:
                return pattern.top_left

        if mercator:
            minx, miny, maxx, maxy = latlon
            latlon = (
                minx,
                max(miny, -MERCATOR_MAX_LATITUDE),
                maxx,
                min(maxy, MERCATOR_MAX_LATITUDE),
            )
        data = Bounds(*srs.from_geographic(latlon))
        if not all(math.isfinite(v) for v in data):
            logger.warning(f"Group extent does not project into {srs.init_string}")
            return pattern.top_left
        return data

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def from_xml(cls, data: bytes | str) -> "TileService":
        """
        Parse a tile-service document.

        Raises:
            ValueError: if the payload is not a ``WMS_Tile_Service`` document
        """
        try:
            root = ET.fromstring(data)
        except ET.ParseError as e:
            raise ValueError(f"Tile service document is not valid XML: {e}") from e

        if _local(root.tag) != TILE_SERVICE_ROOT:
            raise ValueError(f"Not a tile service document (root <{_local(root.tag)}>)")

        service = cls()
        service_elem = _child(root, "Service")
        if service_elem is not None:
            service.name = _text(_child(service_elem, "Name"))
            service.title = _text(_child(service_elem, "Title"))
            service.abstract = _text(_child(service_elem, "Abstract"))

        tiled = _child(root, "TiledPatterns")
        if tiled is None:
            return service

        resource = _child(tiled, "OnlineResource")
        if resource is not None:
            service.online_resource = next(
                (v for k, v in resource.attrib.items() if _local(k) == "href"), ""
            )

        service.groups = [_parse_group(g) for g in _iter_groups(tiled)]
        return service


def _tiles_to_cover(span: float, tile_size: float) -> int:
    """Whole tiles needed to span `span`, ignoring float noise; at least 1."""
    return max(1, math.ceil(round(span / tile_size, 9)))


def _iter_groups(elem: ET.Element):
    """TiledGroup elements, including those nested in TiledGroups."""
    for c in elem:
        name = _local(c.tag)
        if name == "TiledGroup":
            yield c
        elif name == "TiledGroups":
            yield from _iter_groups(c)


def _parse_group(elem: ET.Element) -> TiledGroup:
    group = TiledGroup(
        name=_text(_child(elem, "Name")),
        title=_text(_child(elem, "Title")),
        abstract=_text(_child(elem, "Abstract")),
    )
    latlon = _child(elem, "LatLonBoundingBox")
    if latlon is not None:
        group.latlon_extents = Bounds(
            _float_attr(latlon, "minx"),
            _float_attr(latlon, "miny"),
            _float_attr(latlon, "maxx"),
            _float_attr(latlon, "maxy"),
        )

    for pattern_elem in _children(elem, "TilePattern"):
        for token in _text(pattern_elem).split():
            try:
                group.patterns.append(TilePattern.parse(token))
            except ValueError as e:
                logger.debug(f"Skipping tile pattern in {group.name}: {e}")
    return group


class TileServiceReader:
    """Probes a tile-service URL; absence is normal and returns None."""

    def __init__(self, client: FetchClient) -> None:
        self.client = client

    def read(self, url: str, options: FetchOptions | None = None) -> TileService | None:
        data = self.client.fetch_bytes(url, options)
        if not data:
            return None
        try:
            return TileService.from_xml(data)
        except ValueError as e:
            logger.info(f"No tile service at {url}: {e}")
            return None
