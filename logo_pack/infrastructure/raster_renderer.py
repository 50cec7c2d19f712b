# logo_pack/infrastructure/raster_renderer.py
"""
Raster backends (PNG / JPG / WEBP) and off-screen bounding-box measurement.

cairosvg needs the native libcairo. The import is guarded so the rest of the
pipeline still loads without it; raster jobs then fail individually and
geometry normalization falls back to the declared geometry.
"""

import io
import logging
from typing import Optional, Tuple

import cv2
import numpy as np
from PIL import Image

from logo_pack.config import JPEG_QUALITY, WEBP_QUALITY, MEASURE_RASTER_SIZE, MEASURE_MAX_ATTEMPTS, DEFAULT_ENCODING
from logo_pack.domain.exceptions import RenderError, SvgParseError
from logo_pack.domain.models import ColorVariantKind, ExportFormat, ExportJob
from logo_pack.utils import svg_utils
from logo_pack.utils.color_utils import strip_icc_color

try:
    import cairosvg
    CAIRO_AVAILABLE = True
    CAIRO_ERROR = None
except (ImportError, OSError) as import_err:
    cairosvg = None
    CAIRO_AVAILABLE = False
    CAIRO_ERROR = (
        f"cairosvg import failed: {import_err}. "
        "Raster export requires libcairo (Linux: apt install libcairo2, macOS: brew install cairo)."
    )

logger = logging.getLogger(__name__)

ViewBox = Tuple[float, float, float, float]

_BLACK = (0, 0, 0)
_WHITE = (255, 255, 255)


def svg_to_png(svg_content: str, width: Optional[int] = None, height: Optional[int] = None) -> bytes:
    """Rasterizes SVG text to PNG bytes. Output size follows width/height when given, else the SVG's own size."""
    if not CAIRO_AVAILABLE:
        raise RenderError(CAIRO_ERROR)
    try:
        png = cairosvg.svg2png(
            bytestring=svg_content.encode(DEFAULT_ENCODING),
            output_width=width,
            output_height=height,
        )
    except Exception as e:
        raise RenderError(f"cairosvg could not rasterize SVG: {e}") from e
    if not isinstance(png, bytes) or not png:
        raise RenderError("cairosvg returned no PNG data.")
    return png


def strip_icc_paints(svg_content: str) -> str:
    """Drops icc-color(...) suffixes from fill/stroke values; raster output is RGB only."""
    root, _ = svg_utils.parse_svg_content(svg_content)
    for elem in root.iter():
        for prop in ("fill", "stroke"):
            value = svg_utils.get_paint(elem, prop)
            if value and "icc-color" in value.lower():
                svg_utils.set_paint(elem, prop, strip_icc_color(value))
    return svg_utils.serialize_svg(root)


def jpg_background(variant: ColorVariantKind) -> Tuple[int, int, int]:
    """JPG has no alpha: white ink goes onto black, everything else onto white."""
    return _BLACK if variant is ColorVariantKind.WHITE else _WHITE


class RasterRenderer:
    """Renders PNG, JPG and WEBP jobs in-process."""

    requires_external_tool = False

    def __init__(self, jpeg_quality: int = JPEG_QUALITY, webp_quality: int = WEBP_QUALITY):
        self.jpeg_quality = jpeg_quality
        self.webp_quality = webp_quality

    def render(self, job: ExportJob, svg_path: str, workspace) -> bytes:
        svg_content = strip_icc_paints(workspace.read_file_text(svg_path))
        png = svg_to_png(svg_content, job.width, job.height)

        if job.format is ExportFormat.PNG:
            return png

        image = Image.open(io.BytesIO(png)).convert("RGBA")
        buffer = io.BytesIO()
        if job.format is ExportFormat.JPG:
            background = Image.new("RGB", image.size, jpg_background(job.variant))
            background.paste(image, mask=image.split()[3])
            background.save(buffer, format="JPEG", quality=self.jpeg_quality)
        elif job.format is ExportFormat.WEBP:
            image.save(buffer, format="WEBP", quality=self.webp_quality)
        else:
            raise RenderError(f"RasterRenderer cannot produce {job.format.value}.")
        return buffer.getvalue()


class RasterBBoxMeasurer:
    """
    Measures the tight bounding box of SVG content by rendering it off-screen
    and bounding the non-transparent pixels.
    """

    def __init__(self, raster_size: int = MEASURE_RASTER_SIZE, max_attempts: int = MEASURE_MAX_ATTEMPTS):
        self.raster_size = raster_size
        self.max_attempts = max_attempts

    @property
    def available(self) -> bool:
        return CAIRO_AVAILABLE

    def measure(self, svg_content: str, window: ViewBox) -> Optional[ViewBox]:
        """
        Args:
            svg_content: SVG text without width/height/viewBox on the root.
            window: Region (user units) to render. Grown when content touches its edge.

        Returns:
            (x, y, width, height) in user units, or None when nothing could be measured.
        """
        if not self.available:
            logger.warning(f"Bounding-box measurement unavailable: {CAIRO_ERROR}")
            return None

        wx, wy, ww, wh = window
        for attempt in range(self.max_attempts):
            if ww <= 0 or wh <= 0:
                return None
            scale = self.raster_size / max(ww, wh)
            px_w, px_h = max(1, int(round(ww * scale))), max(1, int(round(wh * scale)))

            try:
                alpha = self._render_alpha(svg_content, (wx, wy, ww, wh), px_w, px_h)
            except (RenderError, SvgParseError, OSError) as e:
                logger.warning(f"Bounding-box render failed: {e}")
                return None

            points = cv2.findNonZero((alpha > 0).astype(np.uint8))
            if points is None:
                logger.warning("Nothing visible rendered; cannot measure bounding box.")
                return None
            x, y, bw, bh = cv2.boundingRect(points)

            touches_edge = x == 0 or y == 0 or x + bw >= px_w or y + bh >= px_h
            if touches_edge and attempt < self.max_attempts - 1:
                logger.debug(f"Content touches measurement edge (attempt {attempt + 1}). Growing window.")
                wx, wy, ww, wh = wx - ww / 2, wy - wh / 2, ww * 2, wh * 2
                continue

            sx, sy = px_w / ww, px_h / wh
            bbox = (
                round(wx + x / sx, 3),
                round(wy + y / sy, 3),
                round(bw / sx, 3),
                round(bh / sy, 3),
            )
            logger.debug(f"Measured bounding box {bbox} on a {px_w}x{px_h} raster.")
            return bbox
        return None

    @staticmethod
    def _render_alpha(svg_content: str, window: ViewBox, px_w: int, px_h: int) -> np.ndarray:
        root, _ = svg_utils.parse_svg_content(svg_content)
        root.set("viewBox", svg_utils.format_viewbox(window))
        root.set("width", str(px_w))
        root.set("height", str(px_h))
        root.set("preserveAspectRatio", "none")
        png = svg_to_png(strip_icc_paints(svg_utils.serialize_svg(root)))
        image = Image.open(io.BytesIO(png)).convert("RGBA")
        return np.array(image)[:, :, 3]
