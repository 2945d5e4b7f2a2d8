"""
WMS GetCapabilities document model and reader.

Understands WMS 1.1.1 (no namespace, SRS / LatLonBoundingBox) and 1.3.0
(``http://www.opengis.net/wms`` namespace, CRS / EX_GeographicBoundingBox).
Only what tile addressing needs is kept: the GetMap formats and the layer
tree with its extents.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

from ..constants import SUPPORTED_IMAGE_EXTENSIONS
from .http_client import FetchClient, FetchOptions
from .profile import Bounds
from .spatial import normalize_srs

logger = logging.getLogger(__name__)

_ZERO_BOUNDS = Bounds(0.0, 0.0, 0.0, 0.0)


def _local(tag: str) -> str:
    """Strip an ElementTree ``{namespace}`` prefix."""
    return tag.rsplit("}", 1)[-1]


def _child(elem: ET.Element, name: str) -> ET.Element | None:
    for c in elem:
        if _local(c.tag) == name:
            return c
    return None


def _children(elem: ET.Element, name: str) -> list[ET.Element]:
    return [c for c in elem if _local(c.tag) == name]


def _text(elem: ET.Element | None) -> str:
    if elem is None or elem.text is None:
        return ""
    return elem.text.strip()


def _float_attr(elem: ET.Element, name: str) -> float:
    value = elem.get(name)
    return float(value) if value not in (None, "") else 0.0


@dataclass
class Layer:
    """One entry of the capabilities layer tree."""

    name: str = ""
    title: str = ""
    srs_list: list[str] = field(default_factory=list)
    bounding_boxes: dict[str, Bounds] = field(default_factory=dict)
    latlon_extents: Bounds = _ZERO_BOUNDS
    layers: list["Layer"] = field(default_factory=list)

    def get_extents(self, srs: str | None = None) -> Bounds:
        """Native bounding box for ``srs``, else the first one listed, else zeros."""
        if srs is not None:
            match = self.bounding_boxes.get(normalize_srs(srs))
            if match is not None:
                return match
        for bounds in self.bounding_boxes.values():
            return bounds
        return _ZERO_BOUNDS

    def get_latlon_extents(self) -> Bounds:
        return self.latlon_extents

    def find(self, name: str) -> "Layer | None":
        """Depth-first search of this layer and its sublayers."""
        if self.name == name:
            return self
        for sub in self.layers:
            found = sub.find(name)
            if found is not None:
                return found
        return None


@dataclass
class Capabilities:
    """Parsed GetCapabilities document."""

    version: str = ""
    title: str = ""
    formats: list[str] = field(default_factory=list)
    layers: list[Layer] = field(default_factory=list)

    def get_layer_by_name(self, name: str) -> Layer | None:
        if not name:
            return None
        for layer in self.layers:
            found = layer.find(name)
            if found is not None:
                return found
        return None

    def suggest_extension(self) -> str:
        """First ``image/<ext>`` GetMap format we can decode, else ''."""
        for fmt in self.formats:
            mime = fmt.strip().lower()
            if not mime.startswith("image/"):
                continue
            # e.g. "image/png; mode=8bit"
            ext = mime[len("image/") :].split(";", 1)[0].strip()
            if ext in SUPPORTED_IMAGE_EXTENSIONS:
                return ext
        return ""

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def from_xml(cls, data: bytes | str) -> "Capabilities":
        """
        Parse a capabilities document.

        Raises:
            ValueError: if the payload is not XML or not a WMS capabilities
                document
        """
        try:
            root = ET.fromstring(data)
        except ET.ParseError as e:
            raise ValueError(f"Capabilities document is not valid XML: {e}") from e

        if not _local(root.tag).endswith("Capabilities"):
            raise ValueError(f"Not a WMS capabilities document (root <{_local(root.tag)}>)")

        caps = cls(version=root.get("version", ""))

        service = _child(root, "Service")
        if service is not None:
            caps.title = _text(_child(service, "Title"))

        capability = _child(root, "Capability")
        if capability is None:
            return caps

        request = _child(capability, "Request")
        get_map = _child(request, "GetMap") if request is not None else None
        if get_map is not None:
            caps.formats = [_text(f) for f in _children(get_map, "Format") if _text(f)]

        caps.layers = [_parse_layer(e) for e in _children(capability, "Layer")]
        return caps


def _parse_layer(elem: ET.Element) -> Layer:
    layer = Layer(
        name=_text(_child(elem, "Name")),
        title=_text(_child(elem, "Title")),
    )

    for tag in ("SRS", "CRS"):
        for srs_elem in _children(elem, tag):
            # 1.1.1 allows several space separated codes in one element
            layer.srs_list.extend(_text(srs_elem).split())

    for bbox in _children(elem, "BoundingBox"):
        srs = bbox.get("SRS") or bbox.get("CRS") or ""
        bounds = Bounds(
            _float_attr(bbox, "minx"),
            _float_attr(bbox, "miny"),
            _float_attr(bbox, "maxx"),
            _float_attr(bbox, "maxy"),
        )
        layer.bounding_boxes.setdefault(normalize_srs(srs), bounds)

    latlon = _child(elem, "LatLonBoundingBox")
    if latlon is not None:
        layer.latlon_extents = Bounds(
            _float_attr(latlon, "minx"),
            _float_attr(latlon, "miny"),
            _float_attr(latlon, "maxx"),
            _float_attr(latlon, "maxy"),
        )
    else:
        geo = _child(elem, "EX_GeographicBoundingBox")
        if geo is not None:
            layer.latlon_extents = Bounds(
                float(_text(_child(geo, "westBoundLongitude")) or 0),
                float(_text(_child(geo, "southBoundLatitude")) or 0),
                float(_text(_child(geo, "eastBoundLongitude")) or 0),
                float(_text(_child(geo, "northBoundLatitude")) or 0),
            )

    layer.layers = [_parse_layer(e) for e in _children(elem, "Layer")]
    return layer


class CapabilitiesReader:
    """Fetches and parses capabilities documents; returns None on any failure."""

    def __init__(self, client: FetchClient) -> None:
        self.client = client

    def read(self, url: str, options: FetchOptions | None = None) -> Capabilities | None:
        data = self.client.fetch_bytes(url, options)
        if not data:
            return None
        try:
            return Capabilities.from_xml(data)
        except ValueError as e:
            logger.warning(f"Unable to parse capabilities from {url}: {e}")
            return None
