import logging
import math
import re
from typing import Optional, Tuple

from PIL import ImageColor

from logo_pack.config import _ICC_COLOR_REGEX
from logo_pack.domain.models import CmykColor

logger = logging.getLogger(__name__)

NONE_PAINTS = {"none", "transparent"}
_CANONICAL_HEX_REGEX = re.compile(r"^#[0-9a-f]{6}$")
# rgba()/hsla() and the space-separated "rgb(r g b / a)" form; Pillow only reads the three-channel form
_ALPHA_FUNCTION_REGEX = re.compile(
    r"^(rgb|hsl)a?\(\s*([^,\s/()]+)\s*[,\s]\s*([^,\s/()]+)\s*[,\s]\s*([^,\s/()]+)\s*(?:[,/]\s*[^)]*)?\)$",
    re.IGNORECASE,
)


def rgb_to_hex(rgb: Tuple[int, int, int]) -> str:
    """Converts an RGB tuple to a HEX color string."""
    if not (isinstance(rgb, tuple) and len(rgb) == 3):
        logger.error(f"Invalid RGB tuple for hex conversion: {rgb}")
        return '#000000' # Return black as default for invalid input
    # Clamp values to 0-255 and convert to int
    r, g, b = [max(0, min(255, int(round(c)))) for c in rgb]
    return '#{:02x}{:02x}{:02x}'.format(r, g, b)


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Converts '#rrggbb' (or any token Pillow understands) to an (R, G, B) tuple."""
    rgb = ImageColor.getrgb(hex_color.strip())
    return rgb[0], rgb[1], rgb[2]


def strip_icc_color(value: str) -> str:
    """Removes any 'icc-color(...)' suffix from a paint value."""
    return _ICC_COLOR_REGEX.sub("", value).strip()


def is_canonical_hex(value: Optional[str]) -> bool:
    return value is not None and bool(_CANONICAL_HEX_REGEX.match(value))


def is_none_paint(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in NONE_PAINTS


def canonicalize_color(value: Optional[str]) -> Optional[str]:
    """
    Canonicalizes a paint token to lowercase 6-digit hex.

    Accepts CSS color names, rgb()/rgba(), hsl()/hsla(), '#rgb', '#rrggbb' and
    '#rrggbbaa'. Alpha is dropped. An ICC suffix is ignored.

    Returns:
        The '#rrggbb' string, or None for 'none', url(...) references,
        'currentColor' and anything else that is not a plain color.
    """
    if value is None:
        return None
    token = strip_icc_color(value)
    if not token or token.lower() in NONE_PAINTS:
        return None
    alpha_function = _ALPHA_FUNCTION_REGEX.match(token)
    if alpha_function:
        name, first, second, third = alpha_function.groups()
        token = f"{name.lower()}({first}, {second}, {third})"
    try:
        rgb = ImageColor.getrgb(token)
    except ValueError:
        logger.debug(f"Paint value '{token}' is not a plain color. Leaving it untouched.")
        return None
    return rgb_to_hex((rgb[0], rgb[1], rgb[2]))


class ColorConverter:
    """
    RGB <-> CMYK approximation used for print tagging.

    Passed explicitly to every component that needs it; holds no state.
    """

    def rgb_to_cmyk(self, rgb: Tuple[int, int, int]) -> CmykColor:
        r, g, b = (max(0, min(255, int(c))) / 255.0 for c in rgb)
        k = 1.0 - max(r, g, b)
        if 1.0 - k == 0:
            c = m = y = 0.0 # Pure black: chromatic channels are undefined
        else:
            c = (1.0 - r - k) / (1.0 - k)
            m = (1.0 - g - k) / (1.0 - k)
            y = (1.0 - b - k) / (1.0 - k)
        return CmykColor(*(self._to_percent(v) for v in (c, m, y, k)))

    def hex_to_cmyk(self, hex_color: str) -> CmykColor:
        return self.rgb_to_cmyk(hex_to_rgb(hex_color))

    def cmyk_to_rgb(self, cmyk: CmykColor) -> Tuple[int, int, int]:
        c, m, y, k = (v / 100.0 for v in (cmyk.c, cmyk.m, cmyk.y, cmyk.k))
        return (
            int(round(255 * (1 - c) * (1 - k))),
            int(round(255 * (1 - m) * (1 - k))),
            int(round(255 * (1 - y) * (1 - k))),
        )

    def cmyk_to_hex(self, cmyk: CmykColor) -> str:
        return rgb_to_hex(self.cmyk_to_rgb(cmyk))

    @staticmethod
    def _to_percent(value: float) -> float:
        # Halves round up; the 6-digit pre-round absorbs float noise such as 0.49999999
        return float(max(0, min(100, math.floor(round(value * 100, 6) + 0.5))))
