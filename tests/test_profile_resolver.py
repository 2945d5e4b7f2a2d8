"""Tests for ProfileResolver precedence."""

import pytest

from chuk_mcp_wms.core.capabilities import Capabilities
from chuk_mcp_wms.core.profile import ProfileKind, ProfileRegistry
from chuk_mcp_wms.core.profile_resolver import ProfileResolver
from conftest import CAPABILITIES_111, CAPABILITIES_130


@pytest.fixture(scope="module")
def registry():
    return ProfileRegistry()


@pytest.fixture(scope="module")
def resolver(registry):
    return ProfileResolver(registry)


@pytest.fixture(scope="module")
def caps():
    return Capabilities.from_xml(CAPABILITIES_111)


class TestWellKnownProfiles:
    @pytest.mark.parametrize("srs", ["EPSG:3857", "EPSG:900913", "epsg:102100"])
    def test_mercator(self, resolver, registry, caps, srs):
        assert resolver.resolve(srs, "elevation", caps) is registry.global_mercator

    @pytest.mark.parametrize("srs", ["EPSG:4326", "CRS:84"])
    def test_geodetic_beats_layer_extents(self, resolver, registry, caps, srs):
        # layer "elevation" advertises a small box, but the global profile wins
        assert resolver.resolve(srs, "elevation", caps) is registry.global_geodetic

    def test_geodetic_with_zero_native_box(self, resolver, registry, caps):
        profile = resolver.resolve("EPSG:4326", "zeroed", caps)
        assert tuple(profile.extent) == (-180.0, -90.0, 180.0, 90.0)

    def test_mercator_without_capabilities(self, resolver, registry):
        assert resolver.resolve("EPSG:3857", "L1", None) is registry.global_mercator


class TestLayerExtents:
    def test_projected_layer_uses_native_box(self, resolver, caps):
        profile = resolver.resolve("EPSG:32633", "elevation", caps)
        assert profile.kind is ProfileKind.CUSTOM
        assert tuple(profile.extent) == (500000.0, 5000000.0, 600000.0, 5100000.0)

    def test_geographic_layer_falls_back_to_latlon_box(self, resolver, caps):
        profile = resolver.resolve("EPSG:4269", "zeroed", caps)
        assert profile.kind is ProfileKind.CUSTOM
        assert tuple(profile.extent) == (-180.0, -90.0, 180.0, 90.0)
        assert profile.srs.init_string == "EPSG:4269"

    def test_geographic_layer_without_any_box(self, resolver, registry, caps):
        assert resolver.resolve("EPSG:4269", "empty", caps) is registry.global_geodetic

    def test_geographic_layer_native_box(self, resolver):
        caps = Capabilities.from_xml(
            b'<WMT_MS_Capabilities version="1.1.1"><Capability><Layer><Name>n</Name>'
            b'<BoundingBox SRS="EPSG:4269" minx="-100" miny="30" maxx="-80" maxy="40"/>'
            b"</Layer></Capability></WMT_MS_Capabilities>"
        )
        profile = resolver.resolve("EPSG:4269", "n", caps)
        assert tuple(profile.extent) == (-100.0, 30.0, -80.0, 40.0)
        assert profile.num_tiles(0) == (2, 1)


class TestFallbacks:
    def test_unknown_layer_geographic(self, resolver, registry, caps):
        assert resolver.resolve("EPSG:4269", "missing", caps) is registry.global_geodetic

    def test_unknown_layer_projected(self, resolver, caps):
        assert resolver.resolve("EPSG:32633", "missing", caps) is None

    def test_unknown_srs(self, resolver, caps):
        assert resolver.resolve("EPSG:999999", "elevation", caps) is None

    def test_namespaced_capabilities(self, resolver, registry):
        caps = Capabilities.from_xml(CAPABILITIES_130)
        assert resolver.resolve("EPSG:3857", "dem", caps) is registry.global_mercator

    def test_deterministic(self, resolver, caps):
        first = resolver.resolve("EPSG:32633", "elevation", caps)
        second = resolver.resolve("EPSG:32633", "elevation", caps)
        assert first.is_equivalent_to(second)
