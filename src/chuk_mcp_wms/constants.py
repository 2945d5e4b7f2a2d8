"""
Constants for chuk-mcp-wms server.

All magic strings, protocol defaults, and configuration values live here.
"""


class ServerConfig:
    NAME = "chuk-mcp-wms"
    VERSION = "0.1.0"
    DESCRIPTION = "WMS Tile Addressing, Request Synthesis & Elevation Tile MCP Server"


class StorageProvider:
    MEMORY = "memory"
    S3 = "s3"
    FILESYSTEM = "filesystem"


class SessionProvider:
    MEMORY = "memory"
    REDIS = "redis"


class EnvVar:
    ARTIFACTS_PROVIDER = "CHUK_ARTIFACTS_PROVIDER"
    BUCKET_NAME = "BUCKET_NAME"
    REDIS_URL = "REDIS_URL"
    ARTIFACTS_PATH = "CHUK_ARTIFACTS_PATH"
    AWS_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
    AWS_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
    AWS_ENDPOINT_URL_S3 = "AWS_ENDPOINT_URL_S3"
    MCP_STDIO = "MCP_STDIO"
    DEFAULT_TILE_SIZE = "WMS_DEFAULT_TILE_SIZE"
    HTTP_TIMEOUT = "WMS_HTTP_TIMEOUT"
    USER_AGENT = "WMS_USER_AGENT"


class ConfigKey:
    """Option keys accepted when opening a WMS source."""

    URL = "url"
    CAPABILITIES_URL = "capabilities_url"
    TILESERVICE_URL = "tileservice_url"
    LAYERS = "layers"
    STYLE = "style"
    FORMAT = "format"
    WMS_FORMAT = "wms_format"
    WMS_VERSION = "wms_version"
    TILE_SIZE = "tile_size"
    DEFAULT_TILE_SIZE = "default_tile_size"
    ELEVATION_UNIT = "elevation_unit"
    SRS = "srs"


class ElevationUnit:
    METRES = "m"
    FEET = "ft"


# Protocol defaults
DEFAULT_WMS_VERSION = "1.1.1"
DEFAULT_TILE_SIZE = 256
DEFAULT_FORMAT = "png"
DEFAULT_SRS = "EPSG:4326"
DEFAULT_ELEVATION_UNIT = ElevationUnit.METRES

ELEVATION_UNIT_ALIASES: dict[str, str] = {
    "": ElevationUnit.METRES,
    "m": ElevationUnit.METRES,
    "meter": ElevationUnit.METRES,
    "meters": ElevationUnit.METRES,
    "metre": ElevationUnit.METRES,
    "metres": ElevationUnit.METRES,
    "ft": ElevationUnit.FEET,
    "foot": ElevationUnit.FEET,
    "feet": ElevationUnit.FEET,
}

FEET_TO_METRES = 0.3048

# Request construction
CAPABILITIES_REQUEST = "SERVICE=WMS&VERSION={}&REQUEST=GetCapabilities"
TILESERVICE_REQUEST = "request=GetTileService"
BBOX_PLACEHOLDERS = "%f,%f,%f,%f"
SERVER_ADDRESS_PREFIXES = ("http://", "https://", "ftp://")

# Image extensions a capabilities document may suggest (Pillow decodable)
SUPPORTED_IMAGE_EXTENSIONS = ["png", "jpeg", "jpg", "gif", "tiff", "tif", "bmp", "webp"]

# Spatial references
GEODETIC_SRS = "EPSG:4326"
MERCATOR_SRS = "EPSG:3857"
SRS_ALIASES: dict[str, str] = {
    "EPSG:900913": MERCATOR_SRS,
    "EPSG:3785": MERCATOR_SRS,
    "EPSG:102100": MERCATOR_SRS,
    "EPSG:102113": MERCATOR_SRS,
    "OSGEO:41001": MERCATOR_SRS,
    "CRS:84": GEODETIC_SRS,
}
GEODETIC_EXTENT = (-180.0, -90.0, 180.0, 90.0)
MERCATOR_HALF_EXTENT = 20037508.342789244
MERCATOR_EXTENT = (
    -MERCATOR_HALF_EXTENT,
    -MERCATOR_HALF_EXTENT,
    MERCATOR_HALF_EXTENT,
    MERCATOR_HALF_EXTENT,
)
MERCATOR_MAX_LATITUDE = 85.0511287798066

# HTTP
DEFAULT_HTTP_TIMEOUT_S = 30.0
DEFAULT_USER_AGENT = f"{ServerConfig.NAME}/{ServerConfig.VERSION}"
HTTP_CHUNK_SIZE = 64 * 1024

# Tools
TOOL_NAMES = [
    "wms_status",
    "wms_capabilities",
    "wms_list_sources",
    "wms_open_source",
    "wms_describe_source",
    "wms_tile_uri",
    "wms_fetch_tile",
    "wms_fetch_heightfield",
]
OUTPUT_FORMATS = ["png", "geotiff"]

SOURCE_ID_LENGTH = 12


class ErrorMessages:
    MISSING_URL = "A WMS base url is required"
    INVALID_TILE_SIZE = "tile_size must be a positive integer, got {}"
    INVALID_ELEVATION_UNIT = "Unknown elevation unit '{}'. Available: {}"
    INVALID_BBOX = "Invalid bounding box: must be [minx, miny, maxx, maxy]"
    INVALID_TILE_KEY = "Invalid tile key: level, x and y must be >= 0, got ({}, {}, {})"
    TILE_OUT_OF_RANGE = "Tile ({}, {}) is outside level {} of the profile ({}x{} tiles)"
    INVALID_PROTOTYPE = "Request prototype must contain exactly 4 bounds placeholders, found {}"
    UNKNOWN_SOURCE = "Unknown WMS source '{}'. Open it first with wms_open_source"
    SOURCE_NOT_READY = "WMS source is not ready (state: {}); check the profile before tile use"
    SOURCE_FAILED = "WMS source {} failed to initialize: {}"
    ALREADY_INITIALIZED = "WMS source already initialized (state: {})"
    CAPABILITIES_UNAVAILABLE = "Unable to read WMS GetCapabilities from {}"
    NO_PROFILE = "Unable to resolve a tiling profile for SRS {}"
    NO_ARTIFACT_STORE = (
        "No artifact store available. Configure CHUK_ARTIFACTS_PROVIDER "
        "environment variable (memory, filesystem, or s3)."
    )
    NO_IMAGE = "No image returned for {}"


class SuccessMessages:
    SOURCE_OPENED = "Opened WMS source {} ({} profile, {})"
    SOURCE_FAILED = "WMS source {} could not be initialized"
    SOURCES_LIST = "{} WMS sources open"
    SOURCE_DESCRIBE = "Source {}: {}"
    TILE_URI = "Request URI for tile {}"
    BBOX_URI = "Request URI for bounds {}"
    TILE_FETCHED = "Fetched {}x{} tile ({} bytes)"
    HEIGHTFIELD_FETCHED = "Fetched {}x{} heightfield (scale {})"
    STATUS = "WMS MCP Server v{} ({} sources, storage: {})"
