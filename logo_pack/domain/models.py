import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


def format_number(value: float) -> str:
    """Formats a float without a trailing '.0' (100.0 -> '100', 12.5 -> '12.5')."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return f"{value:.4f}".rstrip("0").rstrip(".")


# --- Palette ---

class ColorRole(str, Enum):
    PRIMARY = "Primary"
    SECONDARY = "Secondary"
    OTHER = "Other"


@dataclass(frozen=True)
class ColorEntry:
    hex: str
    occurrence_count: int
    role: ColorRole


@dataclass(frozen=True)
class Palette:
    entries: Tuple[ColorEntry, ...]

    @property
    def primary(self) -> Optional[ColorEntry]:
        return self.entries[0] if self.entries else None

    @property
    def secondary(self) -> Optional[ColorEntry]:
        return self.entries[1] if len(self.entries) > 1 else None

    def hex_values(self) -> List[str]:
        return [entry.hex for entry in self.entries]

    def to_dict(self) -> List[Dict[str, object]]:
        return [
            {"hex": e.hex, "occurrence_count": e.occurrence_count, "role": e.role.value}
            for e in self.entries
        ]


# --- Colors ---

@dataclass(frozen=True)
class CmykColor:
    """CMYK channels as percentages (0-100)."""
    c: float
    m: float
    y: float
    k: float

    def __post_init__(self):
        for channel in (self.c, self.m, self.y, self.k):
            if not 0 <= channel <= 100:
                raise ValueError(f"CMYK channels must be within 0-100, got {self}")

    def icc_color(self) -> str:
        values = ", ".join(f"{format_number(v)}%" for v in (self.c, self.m, self.y, self.k))
        return f"icc-color(#CMYK, {values})"


@dataclass(frozen=True)
class ColorTarget:
    """Replacement for one original palette color."""
    new_hex: str
    cmyk: Optional[CmykColor] = None

    @classmethod
    def from_cmyk(cls, cmyk: CmykColor, color_converter) -> "ColorTarget":
        """Builds a target for callers that only supply print values."""
        return cls(new_hex=color_converter.cmyk_to_hex(cmyk), cmyk=cmyk)


# Original canonical hex -> replacement
ColorMapping = Dict[str, ColorTarget]


# --- Sizes ---

@dataclass(frozen=True)
class Width:
    px: float

    def __post_init__(self):
        if not self.px > 0:
            raise ValueError(f"Width must be > 0, got {self.px}")


@dataclass(frozen=True)
class Height:
    px: float

    def __post_init__(self):
        if not self.px > 0:
            raise ValueError(f"Height must be > 0, got {self.px}")


@dataclass(frozen=True)
class Dimensions:
    width: float
    height: float

    def __post_init__(self):
        if not (self.width > 0 and self.height > 0):
            raise ValueError(f"Dimensions require width and height > 0, got {self.width}x{self.height}")


SizeSpec = Union[Width, Height, Dimensions]

_SIZE_TOKEN_REGEX = re.compile(r'^\s*(?:(\d+(?:\.\d+)?)\s*([WwHh])|(\d+(?:\.\d+)?)\s*[xX]\s*(\d+(?:\.\d+)?))\s*$')


def size_token(size: SizeSpec) -> str:
    """Returns the file name token of a size: '100W', '80H' or '300x200'."""
    if isinstance(size, Width):
        return f"{format_number(size.px)}W"
    if isinstance(size, Height):
        return f"{format_number(size.px)}H"
    if isinstance(size, Dimensions):
        return f"{format_number(size.width)}x{format_number(size.height)}"
    raise TypeError(f"Unknown size spec: {size!r}")


def size_sort_key(size: SizeSpec) -> Tuple[int, float, float]:
    if isinstance(size, Width):
        return (0, float(size.px), 0.0)
    if isinstance(size, Height):
        return (1, float(size.px), 0.0)
    if isinstance(size, Dimensions):
        return (2, float(size.width), float(size.height))
    raise TypeError(f"Unknown size spec: {size!r}")


def parse_size_token(token: str) -> SizeSpec:
    """Parses '100W', '80h' or '300x200' into a size spec."""
    match = _SIZE_TOKEN_REGEX.match(token or "")
    if not match:
        raise ValueError(f"Invalid size '{token}'. Expected e.g. 100W, 80H or 300x200.")
    if match.group(1):
        value = float(match.group(1))
        return Width(value) if match.group(2).upper() == "W" else Height(value)
    return Dimensions(float(match.group(3)), float(match.group(4)))


# --- Export selections ---

class ColorVariantKind(str, Enum):
    FULL_COLOR = "Full_Color"
    WHITE = "White"
    BLACK = "Black"


class ColorSpace(str, Enum):
    RGB = "RGB"
    CMYK = "CMYK"


class ExportFormat(str, Enum):
    PNG = "png"
    JPG = "jpg"
    WEBP = "webp"
    PDF = "pdf"
    EPS = "eps"
    AI = "ai"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES[self]

    @property
    def requires_external_tool(self) -> bool:
        return self in (ExportFormat.EPS, ExportFormat.AI)


_CONTENT_TYPES = {
    ExportFormat.PNG: "image/png",
    ExportFormat.JPG: "image/jpeg",
    ExportFormat.WEBP: "image/webp",
    ExportFormat.PDF: "application/pdf",
    ExportFormat.EPS: "application/postscript",
    ExportFormat.AI: "application/postscript",
}


# --- Jobs ---

@dataclass(frozen=True)
class ExportJob:
    name: str
    svg_content: str
    format: ExportFormat
    variant: ColorVariantKind
    color_space: ColorSpace
    size: Optional[SizeSpec] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def filename(self) -> str:
        return f"{self.name}.{self.format.extension}"


class JobState(str, Enum):
    PENDING = "Pending"
    RENDERING = "Rendering"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


@dataclass
class ExportResult:
    job: ExportJob
    state: JobState = JobState.PENDING
    data: Optional[bytes] = None
    reason: str = ""
    duration: Optional[float] = None

    @property
    def succeeded(self) -> bool:
        return self.state is JobState.SUCCEEDED and self.data is not None


# --- Requests ---

@dataclass
class UploadRequest:
    svg_text: str
    file_name: str = ""


@dataclass
class UploadResult:
    canonical_svg: str
    palette: Palette
    file_base_name: str


@dataclass
class ExportRequest:
    canonical_svg: str
    selected_variants: List[ColorVariantKind]
    formats: List[ExportFormat]
    color_spaces: List[ColorSpace] = field(default_factory=lambda: [ColorSpace.RGB])
    color_mapping: ColorMapping = field(default_factory=dict)
    sizes: List[SizeSpec] = field(default_factory=list)
    padding_x: float = 0.0
    padding_y: float = 0.0
    file_base_name: str = "logopack"


@dataclass
class ExportArtifact:
    filename: str
    content_type: str
    data: bytes
    file_count: int
    failed_jobs: List[str] = field(default_factory=list)

    @property
    def is_archive(self) -> bool:
        return self.filename.endswith(".zip")

    def headers(self) -> Dict[str, str]:
        return {
            "Content-Type": self.content_type,
            "Content-Disposition": f'attachment; filename="{self.filename}"',
        }


@dataclass
class ExportSettings:
    max_workers: int = 4
    external_tool_concurrency: int = 2
    tool_timeout: float = 120.0

    def __post_init__(self):
        if self.max_workers <= 0:
            raise ValueError("max_workers must be a positive integer.")
        if self.external_tool_concurrency <= 0:
            raise ValueError("external_tool_concurrency must be a positive integer.")
        if self.tool_timeout <= 0:
            raise ValueError("tool_timeout must be positive.")
