# logo_pack/core/color_substitution.py

import logging
import re
from typing import Dict, Optional, Union

import xml.etree.ElementTree as ET

from logo_pack.config import _NON_RENDERING_TAGS
from logo_pack.domain.models import CmykColor, ColorMapping, ColorVariantKind
from logo_pack.utils import svg_utils
from logo_pack.utils.color_utils import ColorConverter, canonicalize_color, is_none_paint

logger = logging.getLogger(__name__)

WHITE_HEX = "#ffffff"
BLACK_HEX = "#000000"

FLOOD_COLORS = {
    ColorVariantKind.WHITE: WHITE_HEX,
    ColorVariantKind.BLACK: BLACK_HEX,
}

_PAINT_PROPS = ("fill", "stroke")
_CSS_PAINT_REGEX = re.compile(r'(?P<prop>\b(?:fill|stroke))\s*:\s*(?P<value>[^;}]+)', re.IGNORECASE)


class ColorSubstitutionEngine:
    """
    Paint rewriting for color variants.

    Every public method parses its own copy of the input and returns new SVG
    text; nothing is shared between calls.
    """

    def __init__(self, color_converter: Optional[ColorConverter] = None):
        self.color_converter = color_converter or ColorConverter()

    # --- Variants ---

    def variant(self, svg_content: Union[str, bytes], kind: ColorVariantKind, mapping: Optional[ColorMapping] = None) -> str:
        if kind is ColorVariantKind.FULL_COLOR:
            return self.substitute(svg_content, mapping or {})
        if kind in FLOOD_COLORS:
            return self.flood(svg_content, FLOOD_COLORS[kind])
        raise TypeError(f"Unknown color variant: {kind!r}")

    def white(self, svg_content: Union[str, bytes]) -> str:
        return self.flood(svg_content, WHITE_HEX)

    def black(self, svg_content: Union[str, bytes]) -> str:
        return self.flood(svg_content, BLACK_HEX)

    # --- Full-color substitution ---

    def substitute(self, svg_content: Union[str, bytes], mapping: ColorMapping) -> str:
        """
        Replaces every fill/stroke whose canonical hex is a key of `mapping`
        with the mapped color. Matching is exact; other colors pass through.
        <style> rules are rewritten the same way, then flattened and removed.
        """
        lookup = self._hex_lookup(mapping)
        root, _ = svg_utils.parse_svg_content(svg_content)

        for style_elem in root.iter():
            if svg_utils.local_name(style_elem.tag) == "style" and style_elem.text:
                style_elem.text = self._rewrite_css(style_elem.text, lookup)
        svg_utils.flatten_style_blocks(root)

        replaced = 0
        for elem in root.iter():
            for prop in _PAINT_PROPS:
                canonical = canonicalize_color(svg_utils.get_paint(elem, prop))
                if canonical is not None and canonical in lookup:
                    svg_utils.set_paint(elem, prop, lookup[canonical])
                    replaced += 1

        logger.debug(f"Substituted {replaced} paint values using {len(lookup)} mapping entries.")
        return svg_utils.serialize_svg(root)

    @staticmethod
    def _hex_lookup(mapping: ColorMapping) -> Dict[str, str]:
        lookup = {}
        for original, target in mapping.items():
            source_hex = canonicalize_color(original)
            new_hex = canonicalize_color(target.new_hex)
            if source_hex is None or new_hex is None:
                raise ValueError(f"Color mapping entries must be plain colors: {original!r} -> {target.new_hex!r}")
            lookup[source_hex] = new_hex
        return lookup

    @staticmethod
    def _rewrite_css(css_text: str, lookup: Dict[str, str]) -> str:
        def replace(match):
            canonical = canonicalize_color(match.group("value"))
            if canonical is not None and canonical in lookup:
                return f"{match.group('prop')}:{lookup[canonical]}"
            return match.group(0)
        return _CSS_PAINT_REGEX.sub(replace, css_text)

    # --- Monochrome flood ---

    def flood(self, svg_content: Union[str, bytes], flood_hex: str) -> str:
        """
        Repaints every shape with a single color.

        Fill wins: any fill that is not `none` (an absent fill renders as the
        default black, so it counts) becomes `flood_hex`. Only when the fill is
        `none` and a stroke is painted does the stroke take the flood color,
        which keeps outline-only glyphs visible.
        """
        flood_value = canonicalize_color(flood_hex)
        if flood_value is None:
            raise ValueError(f"Flood color must be a plain color, got {flood_hex!r}")

        root, _ = svg_utils.parse_svg_content(svg_content)
        svg_utils.flatten_style_blocks(root)
        stats = {"fill": 0, "stroke": 0}
        self._flood_children(
            root,
            svg_utils.get_paint(root, "fill"),
            svg_utils.get_paint(root, "stroke"),
            flood_value,
            stats,
        )
        logger.debug(f"Flooded {stats['fill']} fills and {stats['stroke']} outline-only strokes with {flood_value}.")
        return svg_utils.serialize_svg(root)

    def _flood_children(self, parent: ET.Element, inherited_fill, inherited_stroke, flood_value: str, stats) -> None:
        for elem in parent:
            if not svg_utils.is_svg_element(elem) or svg_utils.local_name(elem.tag) in _NON_RENDERING_TAGS:
                continue

            fill = svg_utils.get_paint(elem, "fill")
            stroke = svg_utils.get_paint(elem, "stroke")
            fill = inherited_fill if fill is None or fill.strip().lower() == "inherit" else fill
            stroke = inherited_stroke if stroke is None or stroke.strip().lower() == "inherit" else stroke

            if svg_utils.is_paintable(elem):
                if not is_none_paint(fill):
                    svg_utils.set_paint(elem, "fill", flood_value)
                    fill = flood_value
                    stats["fill"] += 1
                elif stroke is not None and not is_none_paint(stroke):
                    svg_utils.set_paint(elem, "stroke", flood_value)
                    stroke = flood_value
                    stats["stroke"] += 1

            self._flood_children(elem, fill, stroke, flood_value, stats)

    # --- ICC / CMYK tagging ---

    def cmyk_targets(self, kind: ColorVariantKind, mapping: Optional[ColorMapping] = None) -> Dict[str, CmykColor]:
        """
        CMYK values for the paint colors a variant ends up with. Mapping entries
        without an explicit CMYK tuple get one from the color converter.
        """
        if kind in FLOOD_COLORS:
            flood_hex = FLOOD_COLORS[kind]
            return {flood_hex: self.color_converter.hex_to_cmyk(flood_hex)}
        if kind is not ColorVariantKind.FULL_COLOR:
            raise TypeError(f"Unknown color variant: {kind!r}")

        targets: Dict[str, CmykColor] = {}
        for target in (mapping or {}).values():
            new_hex = canonicalize_color(target.new_hex)
            if new_hex is None:
                continue
            targets[new_hex] = target.cmyk or self.color_converter.hex_to_cmyk(new_hex)
        return targets

    def embed_icc(self, svg_content: Union[str, bytes], cmyk_by_hex: Dict[str, CmykColor]) -> str:
        """
        Appends ' icc-color(#CMYK, c%, m%, y%, k%)' after every matching RGB
        paint value. The RGB value stays first; values already tagged are left alone.
        """
        lookup = {canonicalize_color(k): v for k, v in cmyk_by_hex.items() if canonicalize_color(k)}
        root, _ = svg_utils.parse_svg_content(svg_content)

        tagged = 0
        for elem in root.iter():
            for prop in _PAINT_PROPS:
                value = svg_utils.get_paint(elem, prop)
                if not value or "icc-color" in value.lower():
                    continue
                canonical = canonicalize_color(value)
                if canonical in lookup:
                    svg_utils.set_paint(elem, prop, f"{canonical} {lookup[canonical].icc_color()}")
                    tagged += 1

        logger.debug(f"Embedded ICC CMYK tags on {tagged} paint values.")
        return svg_utils.serialize_svg(root)
