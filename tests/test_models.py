"""
Tests for chuk-mcp-wms response models.

Covers valid creation, extra="forbid", to_text() output, and
format_response() in json/text modes.
"""

import json

import pytest
from pydantic import ValidationError

from chuk_mcp_wms.models.responses import (
    CapabilitiesResponse,
    ErrorResponse,
    HeightFieldResponse,
    SourceDetailResponse,
    SourceInfo,
    SourcesResponse,
    StatusResponse,
    TileFetchResponse,
    TileUriResponse,
    format_response,
)


def _detail(**overrides) -> SourceDetailResponse:
    defaults = dict(
        source_id="abc123",
        url="http://x/wms",
        state="ready",
        layers="elevation",
        srs="EPSG:4326",
        format="png",
        mime_type="image/png",
        tile_size=256,
        elevation_unit="m",
        profile_kind="global-geodetic",
        profile_extent=[-180.0, -90.0, 180.0, 90.0],
        tiles_at_level0=[2, 1],
        prototype="http://x/wms?BBOX=%f,%f,%f,%f&.png",
        message="Opened",
    )
    defaults.update(overrides)
    return SourceDetailResponse(**defaults)


class TestFormatResponse:
    def test_json(self):
        data = json.loads(format_response(ErrorResponse(error="boom")))
        assert data == {"error": "boom"}

    def test_text(self):
        assert format_response(ErrorResponse(error="boom"), "text") == "Error: boom"

    def test_unknown_mode_is_json(self):
        assert json.loads(format_response(ErrorResponse(error="x"), "xml")) == {"error": "x"}


class TestExtraForbid:
    def test_error_response(self):
        with pytest.raises(ValidationError):
            ErrorResponse(error="x", detail="y")

    def test_source_info(self):
        with pytest.raises(ValidationError):
            SourceInfo(source_id="a", url="u", layers="", state="ready", extra=1)


class TestSourceModels:
    def test_source_info_text(self):
        info = SourceInfo(source_id="a", url="http://x/wms", layers="L1", state="failed")
        assert info.to_text() == "a: http://x/wms [L1] (failed, no profile)"

    def test_sources_text(self):
        info = SourceInfo(
            source_id="a", url="u", layers="L1", state="ready", profile_kind="custom"
        )
        text = SourcesResponse(sources=[info], message="1 WMS sources open").to_text()
        assert text.splitlines() == ["1 WMS sources open", "  a: u [L1] (ready, custom)"]

    def test_detail_text_ready(self):
        text = _detail().to_text()
        assert "Profile: global-geodetic EPSG:4326" in text
        assert "Level 0: 2x1 tiles" in text
        assert "Format: png (image/png), 256px" in text

    def test_detail_text_failed(self):
        text = _detail(
            state="failed",
            profile_kind=None,
            profile_extent=None,
            tiles_at_level0=None,
            prototype=None,
            failure_reason="no capabilities",
        ).to_text()
        assert "Failure: no capabilities" in text
        assert "Profile:" not in text

    def test_detail_rejects_zero_tile_size(self):
        with pytest.raises(ValidationError):
            _detail(tile_size=0)


class TestTileModels:
    def test_tile_uri_text(self):
        resp = TileUriResponse(
            source_id="a", tile="0/0/0", bounds=[0, 0, 1, 1], uri="http://u", message="m"
        )
        assert "URI: http://u" in resp.to_text()
        assert "Bounds: 0.000000, 0.000000, 1.000000, 1.000000" in resp.to_text()

    def test_tile_fetch_rejects_negative_size(self):
        with pytest.raises(ValidationError):
            TileFetchResponse(
                source_id="a",
                bounds=[0, 0, 1, 1],
                uri="u",
                artifact_ref="wms/x.png",
                width=-1,
                height=1,
                mode="RGB",
                size_bytes=1,
                message="m",
            )

    def test_heightfield_nodata_text(self):
        resp = HeightFieldResponse(
            source_id="a",
            bounds=[0, 0, 1, 1],
            uri="http://u",
            shape=[0, 0],
            elevation_range=[0.0, 0.0],
            scale_factor=1.0,
            nodata=True,
            message="No heightfield",
        )
        assert "No sample returned by http://u" in resp.to_text()

    def test_heightfield_text(self):
        resp = HeightFieldResponse(
            source_id="a",
            bounds=[0, 0, 1, 1],
            uri="u",
            artifact_ref="wms/x.tif",
            preview_ref="wms/x_preview.png",
            shape=[4, 8],
            elevation_range=[12.34, 567.89],
            scale_factor=0.3048,
            message="m",
        )
        text = resp.to_text()
        assert "Shape: 4x8" in text
        assert "Elevation: 12.3m to 567.9m" in text
        assert "Preview: wms/x_preview.png" in text


class TestServerModels:
    def test_status_defaults(self):
        resp = StatusResponse(
            open_sources=1, ready_sources=1, default_tile_size=256, storage_provider="memory"
        )
        assert resp.server == "chuk-mcp-wms"
        assert "Artifact store: not available" in resp.to_text()

    def test_status_rejects_negative_counts(self):
        with pytest.raises(ValidationError):
            StatusResponse(
                open_sources=-1, ready_sources=0, default_tile_size=256, storage_provider="m"
            )

    def test_capabilities_text(self):
        resp = CapabilitiesResponse(
            server="s",
            version="1",
            tools=["a"],
            tool_count=1,
            profile_kinds=["custom"],
            elevation_units=["m"],
            output_formats=["png"],
            llm_guidance="g",
            message="m",
        )
        assert "Profiles: custom" in resp.to_text()
