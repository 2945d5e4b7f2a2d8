"""
Source configuration for a WMS tile source.

SourceConfig is built once from a plain options mapping and never mutated.
Validation is strict: bad numeric values raise instead of being coerced.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import (
    CAPABILITIES_REQUEST,
    DEFAULT_ELEVATION_UNIT,
    DEFAULT_TILE_SIZE,
    DEFAULT_WMS_VERSION,
    ELEVATION_UNIT_ALIASES,
    TILESERVICE_REQUEST,
    ConfigKey,
    ErrorMessages,
)


def request_separator(base_url: str) -> str:
    """Return the query separator to append parameters to ``base_url``."""
    return "?" if "?" not in base_url else "&"


class SourceConfig(BaseModel):
    """Immutable configuration of one WMS source."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str = Field(..., min_length=1, description="WMS base endpoint")
    capabilities_url: str | None = Field(default=None, description="GetCapabilities override")
    tileservice_url: str | None = Field(default=None, description="GetTileService override")
    layers: str = Field(default="", description="Comma separated layer names")
    style: str = Field(default="", description="Layer style")
    format: str | None = Field(default=None, description="Output image extension")
    wms_format: str | None = Field(default=None, description="Protocol-level format override")
    wms_version: str = Field(default=DEFAULT_WMS_VERSION, description="WMS protocol version")
    tile_size: int = Field(default=DEFAULT_TILE_SIZE, gt=0, description="Tile size in pixels")
    srs: str | None = Field(default=None, description="Spatial reference identifier")
    elevation_unit: str = Field(default=DEFAULT_ELEVATION_UNIT, description="Height unit (m/ft)")

    @field_validator(
        "capabilities_url", "tileservice_url", "format", "wms_format", "srs", mode="before"
    )
    @classmethod
    def _blank_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("layers", "style", mode="before")
    @classmethod
    def _none_is_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("wms_version", mode="before")
    @classmethod
    def _default_version(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_WMS_VERSION
        return value

    @field_validator("tile_size", mode="before")
    @classmethod
    def _strict_tile_size(cls, value: Any) -> Any:
        # bool is an int subclass; "256" is accepted, "256px" or 256.5 are not
        if isinstance(value, bool):
            raise ValueError(ErrorMessages.INVALID_TILE_SIZE.format(value))
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(ErrorMessages.INVALID_TILE_SIZE.format(value))
        if isinstance(value, str):
            text = value.strip()
            if not text.lstrip("+-").isdigit():
                raise ValueError(ErrorMessages.INVALID_TILE_SIZE.format(value))
            return int(text)
        return value

    @field_validator("elevation_unit", mode="before")
    @classmethod
    def _normalize_unit(cls, value: Any) -> str:
        key = "" if value is None else str(value).strip().lower()
        if key not in ELEVATION_UNIT_ALIASES:
            raise ValueError(
                ErrorMessages.INVALID_ELEVATION_UNIT.format(
                    value, ", ".join(sorted(set(ELEVATION_UNIT_ALIASES.values())))
                )
            )
        return ELEVATION_UNIT_ALIASES[key]

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "SourceConfig":
        """Build a config from a plugin-style options mapping.

        ``tile_size`` falls back to ``default_tile_size`` when absent. Unknown
        keys are rejected.
        """
        values = dict(options)
        default_size = values.pop(ConfigKey.DEFAULT_TILE_SIZE, None)
        if values.get(ConfigKey.TILE_SIZE) is None:
            values.pop(ConfigKey.TILE_SIZE, None)
            if default_size is not None:
                values[ConfigKey.TILE_SIZE] = default_size
        if not values.get(ConfigKey.URL):
            raise ValueError(ErrorMessages.MISSING_URL)
        return cls(**values)

    @property
    def separator(self) -> str:
        return request_separator(self.url)

    def resolved_capabilities_url(self) -> str:
        """Explicit capabilities URL, or one derived from the base url."""
        if self.capabilities_url:
            return self.capabilities_url
        return self.url + self.separator + CAPABILITIES_REQUEST.format(self.wms_version)

    def resolved_tileservice_url(self) -> str:
        """Explicit tile-service URL, or one derived from the base url."""
        if self.tileservice_url:
            return self.tileservice_url
        return self.url + self.separator + TILESERVICE_REQUEST
