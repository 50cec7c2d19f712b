# logo_pack/utils/svg_utils.py

import logging
from typing import Dict, Iterator, List, Optional, Tuple, Union

import xml.etree.ElementTree as ET

from logo_pack.config import (
    _SVG_NS, _XLINK_NS, _GROUPING_TAGS, _NON_RENDERING_TAGS, _UNSUPPORTED_TAGS,
    _CSS_COMMENT_REGEX, _CSS_RULE_REGEX, _NUMBER_REGEX, DEFAULT_ENCODING,
)
from logo_pack.domain.exceptions import SvgParseError
from logo_pack.domain.models import format_number

logger = logging.getLogger(__name__)

# Avoids 'ns0:' prefixes when serializing
ET.register_namespace('', _SVG_NS.strip('{}'))
ET.register_namespace('xlink', _XLINK_NS.strip('{}'))

ViewBox = Tuple[float, float, float, float]

# --- Parsing & Serialization ---

def parse_svg_content(svg_content: Union[str, bytes]) -> Tuple[ET.Element, ET.ElementTree]:
    """
    Parses SVG text into a fresh tree. Every call returns an independent copy,
    so callers may mutate the result freely.

    Raises:
        SvgParseError: If the content is not well-formed XML or the root is not <svg>.
    """
    if isinstance(svg_content, str):
        svg_bytes = svg_content.encode(DEFAULT_ENCODING)
    elif isinstance(svg_content, bytes):
        svg_bytes = svg_content
    else:
        raise SvgParseError(f"svg_content must be str or bytes, got {type(svg_content).__name__}")

    if not svg_bytes.strip():
        raise SvgParseError("SVG content is empty.")

    try:
        parser = ET.XMLParser(encoding=DEFAULT_ENCODING)
        root = ET.fromstring(svg_bytes, parser=parser)
    except ET.ParseError as parse_err:
        logger.error(f"XML Parsing Error in SVG: {parse_err}")
        raise SvgParseError(f"Malformed SVG: {parse_err}") from parse_err

    if local_name(root.tag) != "svg":
        raise SvgParseError(f"Root element must be <svg>, got <{local_name(root.tag)}>.")

    logger.debug("SVG content parsed successfully.")
    return root, ET.ElementTree(root)


def serialize_svg(root: ET.Element) -> str:
    return ET.tostring(root, encoding="unicode")


# --- Element helpers ---

def local_name(tag) -> str:
    """'{http://www.w3.org/2000/svg}path' -> 'path'. Comments and PIs yield ''."""
    if not isinstance(tag, str):
        return ""
    return tag.split('}')[-1]


def is_svg_element(elem: ET.Element) -> bool:
    """True for elements in the SVG namespace (or with no namespace at all)."""
    tag = elem.tag
    if not isinstance(tag, str):
        return False
    return tag.startswith(_SVG_NS) or not tag.startswith('{')


def is_paintable(elem: ET.Element) -> bool:
    """Elements that carry their own paint: not grouping, not non-rendering, SVG namespace only."""
    if not is_svg_element(elem):
        return False
    name = local_name(elem.tag)
    return name not in _GROUPING_TAGS and name not in _NON_RENDERING_TAGS


def iter_paintable(root: ET.Element) -> Iterator[ET.Element]:
    """Pre-order walk over paintable elements, skipping non-rendering subtrees."""
    for child in root:
        if not is_svg_element(child):
            continue
        if local_name(child.tag) in _NON_RENDERING_TAGS:
            continue
        if is_paintable(child):
            yield child
        yield from iter_paintable(child)


def remove_elements(root: ET.Element, tags) -> int:
    """Removes every descendant whose local name is in `tags`. Returns the count."""
    removed = 0
    for parent in list(root.iter()):
        for child in list(parent):
            if local_name(child.tag) in tags:
                parent.remove(child)
                removed += 1
    return removed


# --- Inline style ---

def parse_style(style: Optional[str]) -> List[Tuple[str, str]]:
    """'fill: red; stroke:#000' -> [('fill', 'red'), ('stroke', '#000')]."""
    declarations = []
    if not style:
        return declarations
    for part in style.split(';'):
        if ':' not in part:
            continue
        prop, value = part.split(':', 1)
        prop, value = prop.strip().lower(), value.strip()
        if prop:
            declarations.append((prop, value))
    return declarations


def format_style(declarations: List[Tuple[str, str]]) -> str:
    return ";".join(f"{prop}:{value}" for prop, value in declarations)


def get_paint(elem: ET.Element, prop: str) -> Optional[str]:
    """Effective own value of `fill`/`stroke`: inline style wins over the attribute."""
    value = None
    for style_prop, style_value in parse_style(elem.get("style")):
        if style_prop == prop:
            value = style_value # Last declaration wins
    if value is not None:
        return value
    return elem.get(prop)


def set_paint(elem: ET.Element, prop: str, value: str) -> None:
    """Writes `prop` as a presentation attribute and drops it from the inline style."""
    elem.set(prop, value)
    style = elem.get("style")
    if style is None:
        return
    remaining = [(p, v) for p, v in parse_style(style) if p != prop]
    if remaining:
        elem.set("style", format_style(remaining))
    else:
        del elem.attrib["style"]


# --- <style> blocks ---

def collect_style_text(root: ET.Element) -> str:
    return "\n".join(
        (elem.text or "") for elem in root.iter() if local_name(elem.tag) == "style"
    )


def parse_css_rules(css_text: str) -> Dict[str, List[Tuple[str, str]]]:
    """
    Extracts class-selector rules from CSS text.

    Only plain class selectors ('.cls-1', '.a, .b') are supported; other
    selectors are skipped. Later rules are appended after earlier ones so a
    straightforward in-order application reproduces the cascade.
    """
    rules: Dict[str, List[Tuple[str, str]]] = {}
    css_text = _CSS_COMMENT_REGEX.sub("", css_text or "")
    for match in _CSS_RULE_REGEX.finditer(css_text):
        selectors, body = match.group(1), match.group(2)
        declarations = parse_style(body)
        for selector in selectors.split(','):
            selector = selector.strip()
            if selector.startswith('.') and selector[1:] and all(ch.isalnum() or ch in "-_" for ch in selector[1:]):
                rules.setdefault(selector[1:], []).extend(declarations)
            elif selector:
                logger.debug(f"Skipping unsupported CSS selector '{selector}'.")
    return rules


def flatten_style_blocks(root: ET.Element) -> List[ET.Element]:
    """
    Applies class rules from <style> blocks as presentation attributes on the
    matching elements, then removes <style>, <defs> and every `class` attribute.

    A class rule overrides the element's presentation attribute; the inline
    `style` attribute is left alone and therefore still wins.

    Returns:
        The elements that matched at least one class rule, in document order.
    """
    rules = parse_css_rules(collect_style_text(root))
    matched: List[ET.Element] = []
    for elem in root.iter():
        classes = (elem.get("class") or "").split()
        if not classes:
            continue
        for cls in classes:
            for prop, value in rules.get(cls, []):
                elem.set(prop, value)
            if cls in rules and (not matched or matched[-1] is not elem):
                matched.append(elem)
        del elem.attrib["class"]

    removed = remove_elements(root, _UNSUPPORTED_TAGS)
    logger.debug(f"Flattened {len(rules)} class rules onto {len(matched)} elements; removed {removed} style/defs elements.")
    return matched


# --- Geometry attributes ---

def parse_length(value: Optional[str]) -> Optional[float]:
    """'120', '120px', '12.5mm' -> leading number. Percentages and garbage -> None."""
    if value is None or value.strip().endswith('%'):
        return None
    match = _NUMBER_REGEX.search(value)
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def parse_viewbox(root: ET.Element) -> Optional[ViewBox]:
    raw = root.get("viewBox")
    if not raw:
        return None
    try:
        values = [float(v) for v in _NUMBER_REGEX.findall(raw)]
    except ValueError:
        values = []
    if len(values) != 4:
        logger.warning(f"Ignoring malformed viewBox '{raw}'.")
        return None
    return values[0], values[1], values[2], values[3]


def format_viewbox(viewbox: ViewBox) -> str:
    return " ".join(format_number(v) for v in viewbox)


def declared_viewbox(root: ET.Element, default_size: float) -> ViewBox:
    """The viewBox, or one synthesized from width/height (each defaulting to `default_size`)."""
    viewbox = parse_viewbox(root)
    if viewbox is not None:
        return viewbox
    width = parse_length(root.get("width")) or default_size
    height = parse_length(root.get("height")) or default_size
    return 0.0, 0.0, width, height
