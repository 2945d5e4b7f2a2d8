"""
Tiling profiles and tile addressing.

A Profile is a spatial reference plus the extent that is split into
``num_tiles_wide x num_tiles_high`` tiles at level 0; every further level
doubles the tile count along both axes. Tile rows are counted from the
north edge.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from ..constants import (
    GEODETIC_EXTENT,
    GEODETIC_SRS,
    MERCATOR_EXTENT,
    MERCATOR_SRS,
    ErrorMessages,
)
from .spatial import SpatialReference, SpatialReferenceFactory

logger = logging.getLogger(__name__)


class Bounds(NamedTuple):
    """Bounding box in a profile's SRS."""

    minx: float
    miny: float
    maxx: float
    maxy: float

    @property
    def width(self) -> float:
        return self.maxx - self.minx

    @property
    def height(self) -> float:
        return self.maxy - self.miny

    def is_degenerate(self) -> bool:
        """True when every coordinate is zero (an unset extent)."""
        return self.minx == 0 and self.miny == 0 and self.maxx == 0 and self.maxy == 0


class ProfileKind(str, Enum):
    GLOBAL_MERCATOR = "global-mercator"
    GLOBAL_GEODETIC = "global-geodetic"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Profile:
    """Spatial reference and tiling scheme of a tile source."""

    srs: SpatialReference
    extent: Bounds
    num_tiles_wide: int = 1
    num_tiles_high: int = 1
    kind: ProfileKind = ProfileKind.CUSTOM

    @property
    def srs_id(self) -> str:
        return self.srs.init_string

    def num_tiles(self, level: int) -> tuple[int, int]:
        factor = 1 << level
        return self.num_tiles_wide * factor, self.num_tiles_high * factor

    def tile_dimensions(self, level: int) -> tuple[float, float]:
        """Width and height of one tile at ``level`` in SRS units."""
        wide, high = self.num_tiles(level)
        return self.extent.width / wide, self.extent.height / high

    def tile_bounds(self, level: int, x: int, y: int) -> Bounds:
        """Bounds of tile (x, y) at ``level``; y = 0 is the northernmost row."""
        if level < 0 or x < 0 or y < 0:
            raise ValueError(ErrorMessages.INVALID_TILE_KEY.format(level, x, y))
        wide, high = self.num_tiles(level)
        if x >= wide or y >= high:
            raise ValueError(ErrorMessages.TILE_OUT_OF_RANGE.format(x, y, level, wide, high))
        width, height = self.tile_dimensions(level)
        minx = self.extent.minx + width * x
        maxy = self.extent.maxy - height * y
        return Bounds(minx, maxy - height, minx + width, maxy)

    def is_equivalent_to(self, other: "Profile | None") -> bool:
        if other is None:
            return False
        return (
            self.srs.is_equivalent_to(other.srs)
            and self.extent == other.extent
            and self.num_tiles_wide == other.num_tiles_wide
            and self.num_tiles_high == other.num_tiles_high
        )


@dataclass(frozen=True)
class TileKey:
    """Address of one tile in a profile."""

    level: int
    x: int
    y: int
    profile: Profile

    @property
    def bounds(self) -> Bounds:
        return self.profile.tile_bounds(self.level, self.x, self.y)

    def __str__(self) -> str:
        return f"{self.level}/{self.x}/{self.y}"


def _tile_counts_for(extent: Bounds) -> tuple[int, int]:
    """Level-0 tile counts giving roughly square tiles over ``extent``."""
    if extent.width <= 0 or extent.height <= 0:
        return 1, 1
    ratio = extent.width / extent.height
    if ratio >= 1.0:
        return max(1, round(ratio)), 1
    return 1, max(1, round(1.0 / ratio))


class ProfileRegistry:
    """Holds the well-known global profiles and builds custom ones.

    One registry is shared read-only by every resolver it is injected into.
    """

    def __init__(self, srs_factory: SpatialReferenceFactory | None = None) -> None:
        self.srs_factory = srs_factory or SpatialReferenceFactory()

        geodetic_srs = self.srs_factory.create(GEODETIC_SRS)
        mercator_srs = self.srs_factory.create(MERCATOR_SRS)
        if geodetic_srs is None or mercator_srs is None:
            raise RuntimeError("pyproj could not create the global profile spatial references")

        self.global_geodetic = Profile(
            srs=geodetic_srs,
            extent=Bounds(*GEODETIC_EXTENT),
            num_tiles_wide=2,
            num_tiles_high=1,
            kind=ProfileKind.GLOBAL_GEODETIC,
        )
        self.global_mercator = Profile(
            srs=mercator_srs,
            extent=Bounds(*MERCATOR_EXTENT),
            num_tiles_wide=1,
            num_tiles_high=1,
            kind=ProfileKind.GLOBAL_MERCATOR,
        )

    def create_profile(
        self,
        srs: str,
        minx: float,
        miny: float,
        maxx: float,
        maxy: float,
        num_tiles_wide: int | None = None,
        num_tiles_high: int | None = None,
    ) -> Profile | None:
        """Build a custom profile, or None when the SRS is unknown."""
        spatial_ref = self.srs_factory.create(srs)
        if spatial_ref is None:
            return None

        extent = Bounds(float(minx), float(miny), float(maxx), float(maxy))
        if num_tiles_wide is None or num_tiles_high is None:
            num_tiles_wide, num_tiles_high = _tile_counts_for(extent)

        logger.debug(
            f"Custom profile {srs} {tuple(extent)} ({num_tiles_wide}x{num_tiles_high} tiles)"
        )
        return Profile(
            srs=spatial_ref,
            extent=extent,
            num_tiles_wide=num_tiles_wide,
            num_tiles_high=num_tiles_high,
            kind=ProfileKind.CUSTOM,
        )
