# logo_pack/core/geometry_normalizer.py

import logging
from typing import Optional, Tuple, Union

from logo_pack.config import DEFAULT_VIEWBOX_SIZE
from logo_pack.utils import svg_utils

logger = logging.getLogger(__name__)

_GEOMETRY_ATTRS = ("width", "height", "viewBox")


class GeometryNormalizer:
    """
    Replaces whatever geometry an SVG declares with a content-tight viewBox.

    The bounding box comes from an injected measurer (see
    `infrastructure.raster_renderer.RasterBBoxMeasurer`). Without one, or when
    it cannot measure, the declared width/height/viewBox are kept as they were.
    """

    def __init__(self, bbox_measurer=None, measure_margin: float = 0.5, preserve_intrinsic_height: bool = True):
        """
        Args:
            bbox_measurer: Object with `measure(svg_content, window) -> Optional[(x, y, w, h)]`.
            measure_margin: Extra room around the declared viewBox (fraction of its size, per side)
                            rendered while measuring, for content that overflows its declared box.
            preserve_intrinsic_height: Keep the declared height when it exceeds the measured height,
                                       centering the content vertically within it.
        """
        if measure_margin < 0:
            raise ValueError("measure_margin must be non-negative.")
        self.bbox_measurer = bbox_measurer
        self.measure_margin = measure_margin
        self.preserve_intrinsic_height = preserve_intrinsic_height

    def normalize(self, svg_content: Union[str, bytes]) -> str:
        root, _ = svg_utils.parse_svg_content(svg_content)
        original = {attr: root.get(attr) for attr in _GEOMETRY_ATTRS}
        declared = svg_utils.declared_viewbox(root, DEFAULT_VIEWBOX_SIZE)

        for attr in _GEOMETRY_ATTRS:
            root.attrib.pop(attr, None)

        bbox = self._measure(svg_utils.serialize_svg(root), declared)
        if bbox is None:
            logger.warning("Falling back to the declared geometry without bbox-tightening.")
            for attr, value in original.items():
                if value is not None:
                    root.set(attr, value)
        else:
            viewbox = self._fit(bbox, declared)
            root.set("viewBox", svg_utils.format_viewbox(viewbox))
            logger.info(f"Normalized viewBox from {original.get('viewBox')!r} to {root.get('viewBox')!r}.")

        root.set("preserveAspectRatio", "xMidYMid meet")
        return svg_utils.serialize_svg(root)

    def _measure(self, stripped_svg: str, declared: Tuple[float, float, float, float]):
        if self.bbox_measurer is None:
            return None
        x, y, w, h = declared
        window = (
            x - w * self.measure_margin,
            y - h * self.measure_margin,
            w * (1 + 2 * self.measure_margin),
            h * (1 + 2 * self.measure_margin),
        )
        bbox: Optional[Tuple[float, float, float, float]] = self.bbox_measurer.measure(stripped_svg, window)
        if bbox is None or bbox[2] <= 0 or bbox[3] <= 0:
            return None
        return bbox

    def _fit(self, bbox, declared):
        x, y, w, h = bbox
        intrinsic_height = declared[3]
        if self.preserve_intrinsic_height and intrinsic_height > h:
            # Keeps the baseline position of typographic logos
            y = y + h / 2 - intrinsic_height / 2
            h = intrinsic_height
        return x, y, w, h
