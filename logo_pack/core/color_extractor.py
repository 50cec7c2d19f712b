# logo_pack/core/color_extractor.py

import logging
from collections import Counter
from typing import Dict, Optional, Set, Tuple, Union

import xml.etree.ElementTree as ET

from logo_pack.config import _NON_RENDERING_TAGS
from logo_pack.domain.models import ColorEntry, ColorRole, Palette
from logo_pack.utils import svg_utils
from logo_pack.utils.color_utils import canonicalize_color, is_canonical_hex, is_none_paint

logger = logging.getLogger(__name__)

_DEFAULT_FILL = "#000000"
_PAINT_PROPS = ("fill", "stroke")


class ColorExtractor:
    """
    Builds the palette of an uploaded SVG and rewrites it into canonical form.

    Canonical form: class rules flattened, <style>/<defs> removed, every
    plain-color fill/stroke written as a lowercase '#rrggbb' presentation
    attribute, and every shape with no paint at all given an explicit black
    fill so converters never fall back to their own defaults.
    """

    def extract(self, svg_content: Union[str, bytes]) -> Tuple[Palette, str]:
        """
        Args:
            svg_content: Raw SVG text.

        Returns:
            (palette, canonical_svg).

        Raises:
            SvgParseError: If the SVG is malformed.
        """
        root, _ = svg_utils.parse_svg_content(svg_content)
        matched_elements = svg_utils.flatten_style_blocks(root)
        class_matched = {id(elem) for elem in matched_elements}

        counts: Counter = Counter()
        first_seen: Dict[str, int] = {}

        root_fill = self._resolve(root, "fill", None)
        root_stroke = self._resolve(root, "stroke", None)
        self._visit(root, root_fill, root_stroke, counts, first_seen, class_matched)

        palette = self._build_palette(counts, first_seen)
        logger.info(
            f"Extracted {len(palette.entries)} colors from {sum(counts.values())} paint applications. "
            f"Primary={palette.primary.hex if palette.primary else None}"
        )
        return palette, svg_utils.serialize_svg(root)

    # --- Traversal ---

    def _visit(self,
               parent: ET.Element,
               inherited_fill: Optional[str],
               inherited_stroke: Optional[str],
               counts: Counter,
               first_seen: Dict[str, int],
               class_matched: Set[int]) -> None:
        for elem in parent:
            if not svg_utils.is_svg_element(elem):
                continue
            if svg_utils.local_name(elem.tag) in _NON_RENDERING_TAGS:
                continue

            fill = self._resolve(elem, "fill", inherited_fill)
            stroke = self._resolve(elem, "stroke", inherited_stroke)

            if svg_utils.is_paintable(elem):
                if fill is None and stroke is None and id(elem) not in class_matched:
                    fill = _DEFAULT_FILL
                    logger.debug(f"<{svg_utils.local_name(elem.tag)}> has no paint. Defaulting fill to {_DEFAULT_FILL}.")
                for prop, value in zip(_PAINT_PROPS, (fill, stroke)):
                    self._write_back(elem, prop, value, counts, first_seen)

            self._visit(elem, fill, stroke, counts, first_seen, class_matched)

    def _resolve(self, elem: ET.Element, prop: str, inherited: Optional[str]) -> Optional[str]:
        """
        Effective paint of `elem` for `prop`.

        Returns canonical hex, 'none', an untouched non-color token
        (url(...), currentColor) or None when nothing is set anywhere.
        Grouping elements get their own values canonicalized in place.
        """
        raw = svg_utils.get_paint(elem, prop)
        if raw is None or raw.strip().lower() == "inherit":
            return inherited
        if is_none_paint(raw):
            value = "none"
        else:
            value = canonicalize_color(raw) or raw.strip()
        if not svg_utils.is_paintable(elem):
            svg_utils.set_paint(elem, prop, value)
        return value

    @staticmethod
    def _write_back(elem: ET.Element,
                    prop: str,
                    value: Optional[str],
                    counts: Counter,
                    first_seen: Dict[str, int]) -> None:
        if value is None:
            return
        svg_utils.set_paint(elem, prop, value)
        if is_canonical_hex(value):
            counts[value] += 1
            first_seen.setdefault(value, len(first_seen))

    # --- Palette ---

    @staticmethod
    def _build_palette(counts: Counter, first_seen: Dict[str, int]) -> Palette:
        if not counts:
            logger.warning(f"No colors found in SVG. Falling back to a single {_DEFAULT_FILL} entry.")
            return Palette((ColorEntry(_DEFAULT_FILL, 0, ColorRole.PRIMARY),))

        ranked = sorted(counts, key=lambda hex_value: (-counts[hex_value], first_seen[hex_value]))
        roles = [ColorRole.PRIMARY, ColorRole.SECONDARY]
        entries = tuple(
            ColorEntry(hex_value, counts[hex_value], roles[idx] if idx < len(roles) else ColorRole.OTHER)
            for idx, hex_value in enumerate(ranked)
        )
        return Palette(entries)
