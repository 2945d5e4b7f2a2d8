"""
Spatial reference handling backed by pyproj.

SpatialReferenceFactory.create() never raises for an unknown identifier; it
logs and returns None so the profile resolver can treat it as "no match".
"""

import logging

from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError

from ..constants import SRS_ALIASES

logger = logging.getLogger(__name__)


def normalize_srs(srs: str) -> str:
    """Upper-case an identifier and map well-known aliases to EPSG codes."""
    key = srs.strip().upper()
    return SRS_ALIASES.get(key, key)


class SpatialReference:
    """A named coordinate reference system."""

    def __init__(self, init_string: str, crs: CRS) -> None:
        self.init_string = init_string
        self.crs = crs

    @property
    def is_geographic(self) -> bool:
        return bool(self.crs.is_geographic)

    @property
    def name(self) -> str:
        return str(self.crs.name)

    def from_geographic(self, bounds: tuple[float, float, float, float]) -> tuple[float, ...]:
        """Transform a lon/lat box into this reference's units."""
        if self.is_geographic:
            return tuple(bounds)
        transformer = Transformer.from_crs(CRS.from_epsg(4326), self.crs, always_xy=True)
        return tuple(transformer.transform_bounds(*bounds))

    def area_of_use(self) -> tuple[float, float, float, float] | None:
        """Lon/lat bounds the CRS is defined for, if pyproj knows them."""
        area = self.crs.area_of_use
        return tuple(area.bounds) if area is not None else None

    def is_equivalent_to(self, other: "SpatialReference | None") -> bool:
        """True when both references describe the same CRS, ignoring axis order."""
        if other is None:
            return False
        if normalize_srs(self.init_string) == normalize_srs(other.init_string):
            return True
        return bool(self.crs.equals(other.crs, ignore_axis_order=True))

    def __repr__(self) -> str:
        return f"SpatialReference({self.init_string!r})"


class SpatialReferenceFactory:
    """Creates SpatialReference objects from SRS identifiers."""

    def create(self, srs: str | None) -> SpatialReference | None:
        if not srs:
            return None
        try:
            crs = CRS.from_user_input(normalize_srs(srs))
        except CRSError as e:
            logger.warning(f"Unrecognised spatial reference '{srs}': {e}")
            return None
        return SpatialReference(srs, crs)
