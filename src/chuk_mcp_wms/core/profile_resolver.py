"""
Profile resolution for a WMS source.

Well-known global profiles win over profiles computed from layer extents:
capabilities documents disagree about native vs. geographic boxes, and a
computed global box drifts at tile edges.
"""

import logging

from .capabilities import Capabilities
from .profile import Profile, ProfileRegistry
from .spatial import SpatialReferenceFactory

logger = logging.getLogger(__name__)


class ProfileResolver:
    """Chooses exactly one profile; pure apart from logging."""

    def __init__(
        self,
        registry: ProfileRegistry,
        srs_factory: SpatialReferenceFactory | None = None,
    ) -> None:
        self.registry = registry
        self.srs_factory = srs_factory or registry.srs_factory

    def resolve(
        self,
        srs: str,
        layer_name: str,
        capabilities: Capabilities | None,
    ) -> Profile | None:
        """
        Resolve the profile for ``srs`` in this order:

        1. SRS equivalent to spherical Mercator -> global Mercator
        2. SRS equivalent to WGS84 geodetic -> global geodetic
        3. layer ``layer_name`` found -> custom profile from its native box;
           for a geographic SRS a zero box falls back to the layer's
           lat/lon box, then to global geodetic
        4. geographic SRS -> global geodetic

        Returns None for a projected SRS with no matching layer.
        """
        wms_srs = self.srs_factory.create(srs)
        if wms_srs is None:
            return None

        if wms_srs.is_equivalent_to(self.registry.global_mercator.srs):
            return self.registry.global_mercator
        if wms_srs.is_equivalent_to(self.registry.global_geodetic.srs):
            return self.registry.global_geodetic

        layer = capabilities.get_layer_by_name(layer_name) if capabilities else None
        if layer is not None:
            extents = layer.get_extents(srs)

            if wms_srs.is_geographic:
                if extents.is_degenerate():
                    extents = layer.get_latlon_extents()
                if extents.is_degenerate():
                    logger.info(f"Layer {layer_name} has no extents; using global geodetic")
                    return self.registry.global_geodetic

            profile = self.registry.create_profile(srs, *extents)
            if profile is not None:
                return profile

        if wms_srs.is_geographic:
            # only meaningful for whole-globe layers
            return self.registry.global_geodetic

        logger.warning(f"No layer '{layer_name}' advertised for projected SRS {srs}")
        return None
