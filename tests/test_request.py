"""Tests for chuk_mcp_wms.core.request: prototypes and URI synthesis."""

import pytest

from chuk_mcp_wms.core.profile import Bounds, ProfileRegistry, TileKey
from chuk_mcp_wms.core.request import (
    RequestPrototype,
    build_getmap_template,
    build_tileservice_template,
    count_placeholders,
    escape_percent,
    request_mime_type,
    synthesize_uri,
)


def _template(base_url="http://x/wms", **overrides):
    args = dict(
        version="1.1.1",
        layers="L1",
        mime_type="image/png",
        style="",
        srs="EPSG:4326",
        tile_size=256,
    )
    args.update(overrides)
    return build_getmap_template(base_url, **args)


class TestHelpers:
    def test_escape_percent(self):
        assert escape_percent("a%20b%") == "a%%20b%%"

    def test_count_placeholders(self):
        assert count_placeholders("x=%f,%f,%f,%f") == 4

    def test_escaped_percent_is_not_a_placeholder(self):
        assert count_placeholders("a=%%f&b=%f") == 1

    def test_other_conversion_is_rejected(self):
        assert count_placeholders("a=%s&%f,%f,%f,%f") == -1

    def test_mime_type_from_format(self):
        assert request_mime_type("jpg") == "image/jpg"

    def test_mime_type_override(self):
        assert request_mime_type("png", "image/png; mode=8bit") == "image/png; mode=8bit"


class TestGetMapTemplate:
    def test_parameter_order(self):
        assert _template() == (
            "http://x/wms?SERVICE=WMS&VERSION=1.1.1&REQUEST=GetMap&LAYERS=L1"
            "&FORMAT=image/png&STYLES=&SRS=EPSG:4326&WIDTH=256&HEIGHT=256"
            "&BBOX=%f,%f,%f,%f"
        )

    def test_existing_query_uses_ampersand(self):
        assert _template("http://x/wms?map=a.map").startswith("http://x/wms?map=a.map&SERVICE=")

    def test_static_percent_is_doubled(self):
        template = _template(layers="a%2Cb")
        assert "LAYERS=a%%2Cb" in template
        assert count_placeholders(template) == 4

    def test_tileservice_template(self):
        template = build_tileservice_template("http://x/wms", "layers=L1&bbox=%f,%f,%f,%f")
        assert template == "http://x/wms?layers=L1&bbox=%f,%f,%f,%f"


class TestRequestPrototype:
    def test_from_template_adds_suffix(self):
        proto = RequestPrototype.from_template(_template(), "png")
        assert proto.template.endswith("&BBOX=%f,%f,%f,%f&.png")
        assert proto.extension == "png"

    def test_dynamic_prefix(self):
        proto = RequestPrototype.from_template(_template(), "png")
        assert proto.dynamic_prefix == _template()

    @pytest.mark.parametrize(
        "template",
        ["http://x/wms?BBOX=%f,%f,%f", "http://x/wms?BBOX=%f,%f,%f,%f,%f", "http://x/%s%f%f%f%f"],
    )
    def test_wrong_placeholder_count_rejected(self, template):
        with pytest.raises(ValueError, match="exactly 4"):
            RequestPrototype(template)

    def test_substitute_six_decimals(self):
        proto = RequestPrototype.from_template(_template(), "png")
        uri = proto.substitute(-180, -90, 0, 90)
        assert "BBOX=-180.000000,-90.000000,0.000000,90.000000&.png" in uri


class TestSynthesizeUri:
    def test_tile_key(self):
        registry = ProfileRegistry()
        proto = RequestPrototype.from_template(_template(), "png")
        uri = synthesize_uri(proto, TileKey(0, 1, 0, registry.global_geodetic))
        assert uri.endswith("BBOX=0.000000,-90.000000,180.000000,90.000000&.png")

    def test_plain_bounds(self):
        proto = RequestPrototype.from_template(_template(), "png")
        uri = synthesize_uri(proto, Bounds(1.5, 2.25, 3.125, 4.0))
        assert "BBOX=1.500000,2.250000,3.125000,4.000000" in uri

    def test_round_trip_is_exact_for_static_part(self):
        template = _template(layers="a%2Cb", style="x y")
        proto = RequestPrototype.from_template(template, "png")
        uri = synthesize_uri(proto, (0, 0, 1, 1))
        assert uri.startswith(
            "http://x/wms?SERVICE=WMS&VERSION=1.1.1&REQUEST=GetMap&LAYERS=a%2Cb"
            "&FORMAT=image/png&STYLES=x%20y&SRS=EPSG:4326"
        )

    def test_network_uri_escapes_spaces(self):
        proto = RequestPrototype.from_template(_template(layers="my layer"), "png")
        uri = synthesize_uri(proto, (0, 0, 1, 1))
        assert "LAYERS=my%20layer" in uri
        assert " " not in uri

    def test_local_uri_keeps_spaces(self):
        proto = RequestPrototype.from_template(_template("/data/my tiles/wms"), "png")
        uri = synthesize_uri(proto, (0, 0, 1, 1))
        assert uri.startswith("/data/my tiles/wms?")

    def test_bounds_are_not_validated(self):
        proto = RequestPrototype.from_template(_template(), "png")
        uri = synthesize_uri(proto, (10, 10, -10, -10))
        assert "BBOX=10.000000,10.000000,-10.000000,-10.000000" in uri

    def test_deterministic(self):
        proto = RequestPrototype.from_template(_template(), "jpg")
        assert synthesize_uri(proto, (1, 2, 3, 4)) == synthesize_uri(proto, (1, 2, 3, 4))


HALF = 20037508.342789244

ROUND_TRIP_BOUNDS = [
    (-180.0, -90.0, 180.0, 90.0),
    (-12.5, -45.25, -0.125, -0.0625),
    (0.1234567, 1.0000004, 2.7182818, 3.1415926),
    (-HALF, -HALF, HALF, HALF),
    (-HALF, 0.0, 0.0, HALF),
    (-73.985428, 40.748817, 151.209296, -33.865143),
    (500000.0, 5000000.0, 600000.0, 5100000.0),
]


def _parse_bbox(uri: str) -> list[float]:
    lowered = uri.lower()
    start = lowered.index("bbox=") + len("bbox=")
    end = uri.index("&", start)
    return [float(v) for v in uri[start:end].split(",")]


class TestUriRoundTrip:
    @pytest.mark.parametrize("bounds", ROUND_TRIP_BOUNDS)
    def test_getmap_prototype(self, bounds):
        proto = RequestPrototype.from_template(_template(), "png")
        parsed = _parse_bbox(synthesize_uri(proto, bounds))
        assert parsed == [pytest.approx(v, abs=1e-6) for v in bounds]

    @pytest.mark.parametrize("bounds", ROUND_TRIP_BOUNDS)
    def test_tileservice_prototype(self, bounds):
        template = build_tileservice_template(
            "http://x/wms",
            "request=GetMap&layers=elevation&srs=EPSG:4326&format=image/png"
            "&styles=&width=256&height=256&bbox=%f,%f,%f,%f",
        )
        proto = RequestPrototype.from_template(template, "png")
        parsed = _parse_bbox(synthesize_uri(proto, bounds))
        assert parsed == [pytest.approx(v, abs=1e-6) for v in bounds]

    def test_tile_keys_of_a_profile(self):
        profile = ProfileRegistry().global_mercator
        proto = RequestPrototype.from_template(_template(srs="EPSG:3857"), "png")
        for x in range(4):
            for y in range(4):
                key = TileKey(2, x, y, profile)
                parsed = _parse_bbox(synthesize_uri(proto, key))
                assert parsed == [pytest.approx(v, abs=1e-6) for v in key.bounds]
