# logo_pack/core/geometry_transformer.py

import logging
from typing import Tuple, Union

import xml.etree.ElementTree as ET

from logo_pack.config import DEFAULT_VIEWBOX_SIZE
from logo_pack.domain.models import Dimensions, Height, SizeSpec, Width
from logo_pack.utils import svg_utils

logger = logging.getLogger(__name__)


class GeometryTransformer:
    """Padding and output sizing on the root <svg> element."""

    def apply_padding(self, svg_content: Union[str, bytes], padding_x: float, padding_y: float) -> str:
        """
        Inflates the viewBox symmetrically: half of each padding goes on either side.
        A missing viewBox is synthesized from width/height first.
        """
        if padding_x < 0 or padding_y < 0:
            raise ValueError(f"Padding must be non-negative, got ({padding_x}, {padding_y})")

        root, _ = svg_utils.parse_svg_content(svg_content)
        x, y, w, h = svg_utils.declared_viewbox(root, DEFAULT_VIEWBOX_SIZE)
        padded = (x - padding_x / 2, y - padding_y / 2, w + padding_x, h + padding_y)
        root.set("viewBox", svg_utils.format_viewbox(padded))
        logger.debug(f"Padded viewBox {(x, y, w, h)} by ({padding_x}, {padding_y}) -> {padded}")
        return svg_utils.serialize_svg(root)

    def apply_size(self, svg_content: Union[str, bytes], size: SizeSpec) -> str:
        """Writes root width/height for `size`. The viewBox is kept."""
        root, _ = svg_utils.parse_svg_content(svg_content)
        width, height = self._dimensions(root, size)
        root.set("width", str(width))
        root.set("height", str(height))
        return svg_utils.serialize_svg(root)

    def resolve_dimensions(self, svg_content: Union[str, bytes], size: SizeSpec) -> Tuple[int, int]:
        root, _ = svg_utils.parse_svg_content(svg_content)
        return self._dimensions(root, size)

    @staticmethod
    def _dimensions(root: ET.Element, size: SizeSpec) -> Tuple[int, int]:
        _, _, vb_w, vb_h = svg_utils.declared_viewbox(root, DEFAULT_VIEWBOX_SIZE)
        if vb_w <= 0 or vb_h <= 0:
            raise ValueError(f"Cannot size an SVG with a degenerate viewBox ({vb_w}x{vb_h}).")
        aspect = vb_w / vb_h

        if isinstance(size, Width):
            width = max(1, int(round(size.px)))
            return width, max(1, int(round(width / aspect)))
        if isinstance(size, Height):
            height = max(1, int(round(size.px)))
            return max(1, int(round(height * aspect))), height
        if isinstance(size, Dimensions):
            # Both given: aspect ratio is not enforced
            return max(1, int(round(size.width))), max(1, int(round(size.height)))
        raise TypeError(f"Unknown size spec: {size!r}")
