"""
GetMap request prototype and per-tile URI synthesis.

The prototype is a printf-style template built once per source: static
parameters with any literal ``%`` doubled, four ``%f`` bounds placeholders in
minx,miny,maxx,maxy order, then an ``&.<format>`` suffix that lets the fetch
layer sniff the image type. ``synthesize_uri`` is the per-tile hot path.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ..constants import BBOX_PLACEHOLDERS, ErrorMessages
from .config import request_separator
from .http_client import contains_server_address

PLACEHOLDER_COUNT = 4


def escape_percent(text: str) -> str:
    """Double every ``%`` so ``text`` is inert in a printf template."""
    return text.replace("%", "%%")


def count_placeholders(template: str) -> int:
    """Number of ``%f`` conversions in ``template``; -1 if any other conversion appears."""
    stripped = template.replace("%%", "")
    if stripped.count("%") != stripped.count("%f"):
        return -1
    return stripped.count("%f")


def request_mime_type(format: str, wms_format: str | None = None) -> str:
    """The FORMAT parameter value: explicit override, else ``image/<format>``."""
    return wms_format if wms_format else "image/" + format


def build_getmap_template(
    base_url: str,
    version: str,
    layers: str,
    mime_type: str,
    style: str,
    srs: str,
    tile_size: int,
) -> str:
    """
    Build the dynamic part of a GetMap prototype.

    Parameter order is fixed. Values are not validated; an illegal request
    surfaces as a server error at fetch time.
    """
    static = (
        f"{base_url}{request_separator(base_url)}"
        f"SERVICE=WMS&VERSION={version}&REQUEST=GetMap"
        f"&LAYERS={layers}"
        f"&FORMAT={mime_type}"
        f"&STYLES={style}"
        f"&SRS={srs}"
        f"&WIDTH={tile_size}"
        f"&HEIGHT={tile_size}"
        f"&BBOX="
    )
    return escape_percent(static) + BBOX_PLACEHOLDERS


def build_tileservice_template(base_url: str, pattern_prototype: str) -> str:
    """Dynamic prototype part taken from a tile-service pattern."""
    return escape_percent(base_url + request_separator(base_url)) + pattern_prototype


@dataclass(frozen=True)
class RequestPrototype:
    """Immutable request template with exactly four bounds placeholders."""

    template: str
    extension: str = ""

    def __post_init__(self) -> None:
        found = count_placeholders(self.template)
        if found != PLACEHOLDER_COUNT:
            raise ValueError(ErrorMessages.INVALID_PROTOTYPE.format(found))

    @classmethod
    def from_template(cls, template: str, extension: str) -> "RequestPrototype":
        """Append the ``&.<extension>`` suffix to a dynamic template."""
        return cls(template=template + "&." + escape_percent(extension), extension=extension)

    @property
    def dynamic_prefix(self) -> str:
        """The template without its format suffix."""
        suffix = "&." + escape_percent(self.extension)
        if self.extension and self.template.endswith(suffix):
            return self.template[: -len(suffix)]
        return self.template

    def substitute(self, minx: float, miny: float, maxx: float, maxy: float) -> str:
        return self.template % (minx, miny, maxx, maxy)


def _bounds_of(bounds: Any) -> Sequence[float]:
    # accept a TileKey-like object or a plain (minx, miny, maxx, maxy)
    return bounds.bounds if hasattr(bounds, "bounds") else bounds


def synthesize_uri(prototype: RequestPrototype, bounds: Any) -> str:
    """
    Substitute tile bounds into the prototype.

    ``bounds`` is a TileKey (anything with a ``bounds`` attribute) or a
    ``(minx, miny, maxx, maxy)`` sequence in the profile SRS. Values are
    written with fixed six-decimal formatting and are not validated. Network
    URIs get spaces escaped as ``%20``; nothing else is escaped.
    """
    minx, miny, maxx, maxy = _bounds_of(bounds)
    uri = prototype.substitute(minx, miny, maxx, maxy)
    if contains_server_address(uri):
        uri = uri.replace(" ", "%20")
    return uri
