import os
import logging # Needed for the log level constants
import re


__all__ = [
    # Project paths
    "CURRENT_FILE_PATH", "SRC_DIR", "PROJECT_ROOT",
    # Scratch & logging dirs
    "SCRATCH_DIR", "LOG_DIR",
    # Logging config
    "LOG_FILE_NAME", "DEFAULT_LOG_LEVEL_STR", "LOG_LEVEL_STR",
    "LOG_LEVEL_MAP", "EFFECTIVE_LOG_LEVEL",
    "LOG_FORMAT", "LOG_DATE_FORMAT", "NOISY_LOGGERS",
    # Export defaults
    "DEFAULT_FILE_BASE_NAME", "DEFAULT_MAX_WORKERS",
    "DEFAULT_EXTERNAL_TOOL_CONCURRENCY", "DEFAULT_TOOL_TIMEOUT",
    "JPEG_QUALITY", "WEBP_QUALITY",
    # External tools
    "INKSCAPE_BIN", "PSTOEDIT_BIN",
    # Archive taxonomy
    "COLOR_SPACE_FOLDERS", "VARIANT_FOLDERS", "ARCHIVE_CONTENT_TYPE",
    # Geometry
    "MEASURE_RASTER_SIZE", "MEASURE_MAX_ATTEMPTS", "DEFAULT_VIEWBOX_SIZE",
    # Other constants
    "DEFAULT_ENCODING",
    # Namespaces & elements
    "_SVG_NS", "_XLINK_NS", "_NON_RENDERING_TAGS", "_GROUPING_TAGS",
    "_UNSUPPORTED_TAGS",
    "_CSS_COMMENT_REGEX", "_CSS_RULE_REGEX", "_NUMBER_REGEX", "_ICC_COLOR_REGEX",
    "FILE_BASE_NAME_PATTERN",
]

# --- Project Root Directory ---
try:
    CURRENT_FILE_PATH = os.path.abspath(__file__)
    SRC_DIR = os.path.dirname(CURRENT_FILE_PATH)
    PROJECT_ROOT = os.path.dirname(SRC_DIR)
except NameError:
    PROJECT_ROOT = os.path.abspath(".")
    print(f"Warning: __file__ not defined, using current working directory as PROJECT_ROOT: {PROJECT_ROOT}")


def _env_int(name: str, default: int) -> int:
    """Reads a positive integer from the environment, falling back to the default."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        print(f"Warning: {name}={raw!r} is not an integer, using {default}")
        return default
    return value if value > 0 else default


# --- Scratch and Logging Directories ---
# Per-request scratch directories are created below SCRATCH_DIR and removed at the end of the request.
SCRATCH_DIR = os.environ.get("LOGO_PACK_SCRATCH_DIR", os.path.join(PROJECT_ROOT, "scratch"))
LOG_DIR = os.environ.get("LOGO_PACK_LOG_DIR", os.path.join(PROJECT_ROOT, "logs"))

# --- Logging Configuration ---
LOG_FILE_NAME = "logo_pack.log"
DEFAULT_LOG_LEVEL_STR = "INFO"
LOG_LEVEL_STR = os.environ.get("LOGO_PACK_LOG_LEVEL", DEFAULT_LOG_LEVEL_STR).upper()

LOG_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}
EFFECTIVE_LOG_LEVEL = LOG_LEVEL_MAP.get(LOG_LEVEL_STR, logging.INFO)

LOG_FORMAT = '%(asctime)s - %(name)s - [%(levelname)s] - [%(funcName)s:%(lineno)d] - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
NOISY_LOGGERS = ["PIL", "svglib", "cairosvg", "reportlab", "fontTools"]

# --- Export Defaults ---
DEFAULT_FILE_BASE_NAME = "logopack"
DEFAULT_MAX_WORKERS = _env_int("LOGO_PACK_MAX_WORKERS", min(8, (os.cpu_count() or 1) + 2))
# Process spawning is the scarce resource, not CPU
DEFAULT_EXTERNAL_TOOL_CONCURRENCY = _env_int("LOGO_PACK_EXTERNAL_TOOL_CONCURRENCY", 2)
DEFAULT_TOOL_TIMEOUT = _env_int("LOGO_PACK_TOOL_TIMEOUT", 120) # seconds
JPEG_QUALITY = 95
WEBP_QUALITY = 95

# --- External Tools ---
INKSCAPE_BIN = os.environ.get("LOGO_PACK_INKSCAPE_BIN", "inkscape")
PSTOEDIT_BIN = os.environ.get("LOGO_PACK_PSTOEDIT_BIN", "pstoedit")

# --- Archive Taxonomy ---
# {base}/{color space folder}/{variant folder}/{file}
COLOR_SPACE_FOLDERS = {
    "RGB": "RGB",
    "CMYK": "CMYK",
}
VARIANT_FOLDERS = {
    "Full_Color": "01_full_color",
    "White": "02_white_logo",
    "Black": "03_black_logo",
}
ARCHIVE_CONTENT_TYPE = "application/zip"

# --- Geometry ---
MEASURE_RASTER_SIZE = 1024 # Long side (px) of the off-screen raster used for bbox measurement
MEASURE_MAX_ATTEMPTS = 3 # Window doublings when content touches the measurement edge
DEFAULT_VIEWBOX_SIZE = 100.0

# --- Other Constants ---
DEFAULT_ENCODING = "utf-8"


# --- Namespaces & Elements ---
_SVG_NS = "{http://www.w3.org/2000/svg}"
_XLINK_NS = "{http://www.w3.org/1999/xlink}"
_GROUPING_TAGS = {"svg", "g"}
_NON_RENDERING_TAGS = {
    "title", "desc", "metadata", "style", "defs", "script",
    "linearGradient", "radialGradient", "stop", "pattern", "filter",
    "clipPath", "mask", "marker", "symbol",
}
_UNSUPPORTED_TAGS = {"style", "defs"} # Dropped: raster/vector converters do not honour them reliably

# Matches one CSS rule: "selector[, selector] { declarations }"
_CSS_RULE_REGEX = re.compile(r'([^{}]+)\{([^{}]*)\}')
_CSS_COMMENT_REGEX = re.compile(r"/\*.*?\*/", re.DOTALL)
_NUMBER_REGEX = re.compile(r'[-+]?(?:\d*\.?\d+|\d+\.?\d*)(?:[eE][-+]?\d+)?')
_ICC_COLOR_REGEX = re.compile(r'\s*icc-color\([^)]*\)', re.IGNORECASE)

# Output base names: letters, digits, space, dot, dash, underscore
FILE_BASE_NAME_PATTERN = r'^[\w][\w .-]{0,127}$'
