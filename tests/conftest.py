"""Shared test fixtures for chuk-mcp-wms."""

import io

import httpx
import numpy as np
import pytest
from PIL import Image
from unittest.mock import AsyncMock, MagicMock

from chuk_mcp_wms.core.http_client import FetchClient


CAPABILITIES_111 = b"""<?xml version="1.0" encoding="UTF-8"?>
<WMT_MS_Capabilities version="1.1.1">
  <Service>
    <Name>OGC:WMS</Name>
    <Title>Test Elevation WMS</Title>
  </Service>
  <Capability>
    <Request>
      <GetMap>
        <Format>application/vnd.ogc.se_xml</Format>
        <Format>image/jpeg</Format>
        <Format>image/png</Format>
      </GetMap>
    </Request>
    <Layer>
      <Title>Root</Title>
      <SRS>EPSG:4326 EPSG:4269 EPSG:32633</SRS>
      <LatLonBoundingBox minx="-180" miny="-90" maxx="180" maxy="90"/>
      <Layer>
        <Name>elevation</Name>
        <Title>Elevation</Title>
        <SRS>EPSG:4326</SRS>
        <LatLonBoundingBox minx="5" miny="45" maxx="15" maxy="50"/>
        <BoundingBox SRS="EPSG:4326" minx="5" miny="45" maxx="15" maxy="50"/>
        <BoundingBox SRS="EPSG:32633" minx="500000" miny="5000000" maxx="600000" maxy="5100000"/>
      </Layer>
      <Layer>
        <Name>zeroed</Name>
        <Title>Zero native box</Title>
        <LatLonBoundingBox minx="-180" miny="-90" maxx="180" maxy="90"/>
        <BoundingBox SRS="EPSG:4269" minx="0" miny="0" maxx="0" maxy="0"/>
      </Layer>
      <Layer>
        <Name>empty</Name>
        <Title>No extents</Title>
      </Layer>
    </Layer>
  </Capability>
</WMT_MS_Capabilities>
"""

CAPABILITIES_130 = b"""<?xml version="1.0" encoding="UTF-8"?>
<WMS_Capabilities version="1.3.0" xmlns="http://www.opengis.net/wms">
  <Service>
    <Name>WMS</Name>
    <Title>Namespaced WMS</Title>
  </Service>
  <Capability>
    <Request>
      <GetMap>
        <Format>image/png; mode=8bit</Format>
        <Format>image/tiff</Format>
      </GetMap>
    </Request>
    <Layer>
      <Name>dem</Name>
      <Title>DEM</Title>
      <CRS>EPSG:3857</CRS>
      <CRS>CRS:84</CRS>
      <EX_GeographicBoundingBox>
        <westBoundLongitude>-10</westBoundLongitude>
        <eastBoundLongitude>30</eastBoundLongitude>
        <southBoundLatitude>35</southBoundLatitude>
        <northBoundLatitude>60</northBoundLatitude>
      </EX_GeographicBoundingBox>
      <BoundingBox CRS="EPSG:3857" minx="-1113194" miny="4163881" maxx="3339584" maxy="8399737"/>
    </Layer>
  </Capability>
</WMS_Capabilities>
"""

TILESERVICE_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<WMS_Tile_Service version="0.1.0">
  <Service>
    <Name>OnEarth</Name>
    <Title>Tiled elevation</Title>
    <Abstract>Pre-rendered tiles</Abstract>
  </Service>
  <TiledPatterns>
    <OnlineResource xmlns:xlink="http://www.w3.org/1999/xlink" xlink:type="simple" xlink:href="http://x/wms?"/>
    <TiledGroup>
      <Name>elevation</Name>
      <Title>Elevation</Title>
      <LatLonBoundingBox minx="-180" miny="-90" maxx="180" maxy="90"/>
      <TilePattern>
request=GetMap&amp;layers=elevation&amp;srs=EPSG:4326&amp;format=image/png&amp;styles=&amp;width=256&amp;height=256&amp;bbox=-180,-38,-52,90
request=GetMap&amp;layers=elevation&amp;srs=EPSG:4326&amp;format=image/png&amp;styles=&amp;width=256&amp;height=256&amp;bbox=-180,26,-116,90
      </TilePattern>
    </TiledGroup>
    <TiledGroups>
      <TiledGroup>
        <Name>imagery</Name>
        <Title>Imagery</Title>
        <TilePattern>request=GetMap&amp;layers=imagery&amp;srs=EPSG:4326&amp;format=image/jpeg&amp;styles=&amp;width=512&amp;height=512&amp;bbox=-180,-90,0,90</TilePattern>
      </TiledGroup>
    </TiledGroups>
  </TiledPatterns>
</WMS_Tile_Service>
"""


def image_bytes(image: Image.Image, format: str = "PNG") -> bytes:
    buf = io.BytesIO()
    image.save(buf, format=format)
    return buf.getvalue()


def wms_transport(capabilities=None, tileservice=None, getmap=None, calls=None):
    """MockTransport answering GetCapabilities, GetTileService and GetMap requests.

    A ``None`` body answers 404 for that request kind.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(str(request.url))
        params = {k.lower(): v for k, v in request.url.params.items()}
        kind = params.get("request", "").lower()
        body = {
            "getcapabilities": capabilities,
            "gettileservice": tileservice,
            "getmap": getmap,
        }.get(kind)
        if body is None:
            return httpx.Response(404, content=b"not found")
        return httpx.Response(200, content=body)

    return httpx.MockTransport(handler)


@pytest.fixture
def rgb_png():
    """256x256 RGB PNG tile."""
    return image_bytes(Image.new("RGB", (256, 256), (10, 20, 30)))


@pytest.fixture
def float_tiff():
    """4x4 float32 TIFF with every sample at 1000.0."""
    return image_bytes(Image.fromarray(np.full((4, 4), 1000.0, dtype=np.float32)), "TIFF")


@pytest.fixture
def make_client():
    """Factory for a FetchClient served by wms_transport()."""
    clients = []

    def _make(**kwargs) -> FetchClient:
        client = FetchClient(client=httpx.Client(transport=wms_transport(**kwargs)))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture
def mock_artifact_store():
    """Mock artifact store."""
    store = AsyncMock()
    store.store = AsyncMock(return_value=None)
    store.retrieve = AsyncMock(return_value=b"fake-bytes")
    return store


@pytest.fixture
def mock_manager(mock_artifact_store, make_client, rgb_png):
    """WMSManager over a mock WMS server, with a mocked artifact store."""
    from chuk_mcp_wms.core.wms_manager import WMSManager

    client = make_client(capabilities=CAPABILITIES_111, getmap=rgb_png)
    manager = WMSManager(client=client)
    manager._get_store = MagicMock(return_value=mock_artifact_store)
    return manager


@pytest.fixture
def mock_mcp():
    """Mock ChukMCPServer."""
    mcp = MagicMock()
    mcp.tool = MagicMock(return_value=lambda fn: fn)
    return mcp
