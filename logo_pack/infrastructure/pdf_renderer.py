# logo_pack/infrastructure/pdf_renderer.py
"""
PDF backend: svglib turns the SVG into a reportlab Drawing which reportlab
writes as vector PDF. Paints tagged with an icc-color(#CMYK, ...) suffix are
written as reportlab CMYKColor so print jobs carry real CMYK values.
"""

import logging
import re
from typing import Dict, Optional

from reportlab.graphics import renderPDF
from reportlab.graphics.shapes import Drawing, Rect
from reportlab.lib import colors
from svglib.svglib import svg2rlg

from logo_pack.domain.exceptions import RenderError
from logo_pack.domain.models import CmykColor, ColorSpace, ColorVariantKind, ExportFormat, ExportJob
from logo_pack.infrastructure.raster_renderer import strip_icc_paints
from logo_pack.utils import svg_utils
from logo_pack.utils.color_utils import canonicalize_color, rgb_to_hex

logger = logging.getLogger(__name__)

_ICC_CMYK_REGEX = re.compile(
    r'icc-color\(\s*#CMYK\s*,\s*([\d.]+)%?\s*,\s*([\d.]+)%?\s*,\s*([\d.]+)%?\s*,\s*([\d.]+)%?\s*\)',
    re.IGNORECASE,
)


def icc_cmyk_paints(svg_content: str) -> Dict[str, CmykColor]:
    """Collects '#rrggbb icc-color(#CMYK, ...)' paints as hex -> CMYK."""
    root, _ = svg_utils.parse_svg_content(svg_content)
    found: Dict[str, CmykColor] = {}
    for elem in root.iter():
        for prop in ("fill", "stroke"):
            value = svg_utils.get_paint(elem, prop)
            if not value:
                continue
            match = _ICC_CMYK_REGEX.search(value)
            hex_value = canonicalize_color(value)
            if match and hex_value:
                found[hex_value] = CmykColor(*(float(group) for group in match.groups()))
    return found


def _color_hex(color) -> Optional[str]:
    if color is None or isinstance(color, colors.CMYKColor):
        return None
    r, g, b = color.rgb()
    return rgb_to_hex((r * 255, g * 255, b * 255))


def apply_cmyk_colors(node, cmyk_by_hex: Dict[str, CmykColor]) -> int:
    """Replaces RGB fill/stroke colors in a reportlab drawing tree with their CMYK values."""
    replaced = 0
    for attr in ("fillColor", "strokeColor"):
        color = getattr(node, attr, None)
        hex_value = _color_hex(color)
        if hex_value in cmyk_by_hex:
            cmyk = cmyk_by_hex[hex_value]
            setattr(node, attr, colors.CMYKColor(
                cmyk.c / 100.0, cmyk.m / 100.0, cmyk.y / 100.0, cmyk.k / 100.0,
                alpha=getattr(color, "alpha", 1),
            ))
            replaced += 1
    for child in getattr(node, "contents", None) or []:
        replaced += apply_cmyk_colors(child, cmyk_by_hex)
    return replaced


class PdfRenderer:
    """Vector PDF through svglib + reportlab."""

    requires_external_tool = False

    def render(self, job: ExportJob, svg_path: str, workspace) -> bytes:
        if job.format is not ExportFormat.PDF:
            raise RenderError(f"PdfRenderer cannot produce {job.format.value}.")

        svg_content = workspace.read_file_text(svg_path)
        cmyk_by_hex = icc_cmyk_paints(svg_content) if job.color_space is ColorSpace.CMYK else {}

        # svglib does not understand icc-color(); it reads the RGB fallback instead
        plain_path = workspace.path_for(job.filename, ".plain.svg")
        try:
            workspace.write_file_text(plain_path, strip_icc_paints(svg_content))
            drawing = svg2rlg(plain_path)
        finally:
            workspace.delete_file(plain_path)

        if drawing is None:
            raise RenderError(f"svglib could not convert '{job.filename}' to a drawing.")

        if cmyk_by_hex:
            count = apply_cmyk_colors(drawing, cmyk_by_hex)
            logger.debug(f"{job.filename}: {count} paints written as CMYK.")

        if job.variant is ColorVariantKind.WHITE:
            self._add_black_background(drawing, job.color_space)

        if job.width and job.height:
            self._resize(drawing, job.width, job.height)

        try:
            return renderPDF.drawToString(drawing)
        except Exception as e:
            raise RenderError(f"reportlab could not write PDF for '{job.filename}': {e}") from e

    @staticmethod
    def _add_black_background(drawing: Drawing, color_space: ColorSpace) -> None:
        # White ink on a white page would be invisible
        fill = colors.CMYKColor(0, 0, 0, 1) if color_space is ColorSpace.CMYK else colors.black
        drawing.insert(0, Rect(0, 0, drawing.width, drawing.height, fillColor=fill, strokeColor=None))

    @staticmethod
    def _resize(drawing: Drawing, width: int, height: int) -> None:
        if not drawing.width or not drawing.height:
            return
        drawing.scale(width / drawing.width, height / drawing.height)
        drawing.width, drawing.height = width, height
