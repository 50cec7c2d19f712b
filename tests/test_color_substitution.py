import pytest

from conftest import find_all
from logo_pack.core.color_extractor import ColorExtractor
from logo_pack.core.color_substitution import ColorSubstitutionEngine
from logo_pack.domain import CmykColor, ColorTarget, ColorVariantKind
from logo_pack.utils import svg_utils
from logo_pack.utils.color_utils import is_none_paint


def wrap(body):
    return f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 100 100">{body}</svg>'


@pytest.fixture
def engine():
    return ColorSubstitutionEngine()


def test_substitute_exact_match_only(engine, red_blue_svg):
    _, canonical = ColorExtractor().extract(red_blue_svg)
    result = engine.substitute(canonical, {"#ff0000": ColorTarget("#00AA00")})

    assert [r.get("fill") for r in find_all(result, "rect")] == ["#00aa00", "#00aa00"]
    assert find_all(result, "circle")[0].get("fill") == "#00aa00"
    assert find_all(result, "path")[0].get("fill") == "#0000ff"


def test_substitute_rewrites_inline_styles_and_strokes(engine):
    svg = wrap('<rect style="fill:red;stroke:#F00;stroke-width:2"/>')
    result = engine.substitute(svg, {"#ff0000": ColorTarget("#000080")})

    rect = find_all(result, "rect")[0]
    assert rect.get("fill") == "#000080"
    assert rect.get("stroke") == "#000080"
    assert rect.get("style") == "stroke-width:2"


def test_substitute_rewrites_style_blocks(engine):
    svg = wrap('<style>.a{fill:#FF0000}.b{fill:#00ff00}</style><rect class="a"/><rect class="b"/>')
    result = engine.substitute(svg, {"#ff0000": ColorTarget("#123456")})

    assert [r.get("fill") for r in find_all(result, "rect")] == ["#123456", "#00ff00"]
    assert not find_all(result, "style")


def test_substitute_empty_mapping_keeps_colors(engine, red_blue_svg):
    _, canonical = ColorExtractor().extract(red_blue_svg)
    result = engine.substitute(canonical, {})

    assert ColorExtractor().extract(result)[0] == ColorExtractor().extract(canonical)[0]


def test_substitute_rejects_non_color_mapping(engine):
    with pytest.raises(ValueError):
        engine.substitute(wrap("<rect/>"), {"url(#a)": ColorTarget("#000000")})


def test_flood_fills_painted_and_default_fills(engine):
    svg = wrap('<rect fill="#ff0000" stroke="#00ff00"/><rect/><circle fill="none" stroke="blue"/>')
    result = engine.white(svg)

    rects = find_all(result, "rect")
    assert rects[0].get("fill") == "#ffffff"
    # Stroke of a filled shape is left alone
    assert rects[0].get("stroke") == "#00ff00"
    assert rects[1].get("fill") == "#ffffff"

    circle = find_all(result, "circle")[0]
    assert circle.get("fill") == "none"
    assert circle.get("stroke") == "#ffffff"


def test_flood_respects_inherited_none_fill(engine):
    svg = wrap('<g fill="none"><path d="M0 0 L1 1" stroke="red"/></g>')
    result = engine.black(svg)

    path = find_all(result, "path")[0]
    assert path.get("fill") is None
    assert path.get("stroke") == "#000000"


def test_flood_leaves_no_other_fill_color(engine):
    svg = wrap('<g fill="#abcdef"><rect/><rect fill="none" stroke="#111111"/>'
               '<rect fill="none"/><text style="fill:#222222">A</text></g><ellipse/>')
    result = engine.flood(svg, "#ffffff")

    root, _ = svg_utils.parse_svg_content(result)
    for elem in svg_utils.iter_paintable(root):
        fill = svg_utils.get_paint(elem, "fill")
        assert fill in ("#ffffff", "none")


def test_variant_dispatch(engine, red_blue_svg):
    _, canonical = ColorExtractor().extract(red_blue_svg)

    black = engine.variant(canonical, ColorVariantKind.BLACK)
    assert ColorExtractor().extract(black)[0].hex_values() == ["#000000"]

    full = engine.variant(canonical, ColorVariantKind.FULL_COLOR, {"#0000ff": ColorTarget("#ffff00")})
    assert ColorExtractor().extract(full)[0].hex_values() == ["#ff0000", "#ffff00"]


def test_embed_icc_appends_after_rgb(engine):
    svg = wrap('<rect fill="#ff0000" stroke="#0000ff"/>')
    result = engine.embed_icc(svg, {"#ff0000": CmykColor(0, 100, 100, 0)})

    rect = find_all(result, "rect")[0]
    assert rect.get("fill") == "#ff0000 icc-color(#CMYK, 0%, 100%, 100%, 0%)"
    assert rect.get("stroke") == "#0000ff"


def test_embed_icc_is_idempotent(engine):
    svg = wrap('<rect fill="#ff0000"/>')
    targets = {"#ff0000": CmykColor(0, 100, 100, 0)}
    once = engine.embed_icc(svg, targets)

    assert engine.embed_icc(once, targets) == once


def test_embedded_icc_keeps_palette(engine, red_blue_svg):
    _, canonical = ColorExtractor().extract(red_blue_svg)
    tagged = engine.embed_icc(canonical, {"#ff0000": CmykColor(0, 100, 100, 0)})

    assert ColorExtractor().extract(tagged)[0].hex_values() == ["#ff0000", "#0000ff"]


def test_cmyk_targets_for_mono_variants(engine):
    assert engine.cmyk_targets(ColorVariantKind.WHITE) == {"#ffffff": CmykColor(0, 0, 0, 0)}
    assert engine.cmyk_targets(ColorVariantKind.BLACK) == {"#000000": CmykColor(0, 0, 0, 100)}


def test_cmyk_targets_prefer_explicit_values(engine):
    mapping = {
        "#ff0000": ColorTarget("#00ff00"),
        "#0000ff": ColorTarget("#000000", CmykColor(60, 40, 40, 100)),
    }
    targets = engine.cmyk_targets(ColorVariantKind.FULL_COLOR, mapping)

    assert targets == {
        "#00ff00": CmykColor(100, 0, 100, 0),
        "#000000": CmykColor(60, 40, 40, 100),
    }


def test_flood_result_has_only_flood_or_none(engine):
    svg = wrap('<rect fill="#010203"/><circle stroke="#040506" fill="none"/><line stroke="#070809"/>')
    root, _ = svg_utils.parse_svg_content(engine.flood(svg, "#000000"))

    for elem in svg_utils.iter_paintable(root):
        fill = svg_utils.get_paint(elem, "fill")
        assert fill == "#000000" or is_none_paint(fill)
