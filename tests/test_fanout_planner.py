import itertools

import pytest

from conftest import svg_root
from logo_pack.core.color_substitution import ColorSubstitutionEngine
from logo_pack.core.fanout_planner import VariantFanoutPlanner
from logo_pack.core.geometry_transformer import GeometryTransformer
from logo_pack.domain import (
    CmykColor, ColorSpace, ColorVariantKind, Dimensions, ExportFormat, Height, RequestValidationError, Width,
)

BASE_SVG = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 200 100"><rect fill="#ff0000"/></svg>'
FULL, WHITE, BLACK = ColorVariantKind.FULL_COLOR, ColorVariantKind.WHITE, ColorVariantKind.BLACK


@pytest.fixture
def planner():
    return VariantFanoutPlanner(GeometryTransformer(), ColorSubstitutionEngine())


def test_spec_example_job_set(planner):
    jobs = planner.plan({FULL: BASE_SVG, WHITE: BASE_SVG}, [Width(100)], [ColorSpace.RGB], [ExportFormat.PNG], "logo")

    assert sorted(job.filename for job in jobs) == [
        "logo_RGB_100W_Full_Color.png",
        "logo_RGB_100W_White.png",
        "logo_RGB_Full_Color.png",
        "logo_RGB_White.png",
    ]


def test_job_count_is_full_product(planner):
    jobs = planner.plan(
        {FULL: BASE_SVG, WHITE: BASE_SVG, BLACK: BASE_SVG},
        [Width(100), Height(40)],
        [ColorSpace.RGB, ColorSpace.CMYK],
        [ExportFormat.PNG, ExportFormat.PDF],
        "logo",
    )
    assert len(jobs) == 3 * 3 * 2 * 2
    assert len({job.filename for job in jobs}) == len(jobs)


def test_job_name_tokens():
    assert VariantFanoutPlanner.job_name("logo", ColorSpace.CMYK, Dimensions(300, 200), BLACK) == "logo_CMYK_300x200_Black"
    assert VariantFanoutPlanner.job_name("logo", ColorSpace.RGB, Height(80), WHITE) == "logo_RGB_80H_White"
    assert VariantFanoutPlanner.job_name("logo", ColorSpace.RGB, None, FULL) == "logo_RGB_Full_Color"


def test_input_order_does_not_change_result(planner):
    sizes = [Width(100), Dimensions(300, 200), Height(80)]
    spaces = [ColorSpace.CMYK, ColorSpace.RGB]
    formats = [ExportFormat.PDF, ExportFormat.PNG, ExportFormat.JPG]
    targets = {FULL: {"#ff0000": CmykColor(0, 100, 100, 0)}}

    reference = None
    for size_order, space_order, format_order in itertools.product(
            itertools.permutations(sizes), itertools.permutations(spaces), itertools.permutations(formats)):
        base_svgs = {BLACK: BASE_SVG, FULL: BASE_SVG}
        jobs = planner.plan(base_svgs, list(size_order), list(space_order), list(format_order), "logo", targets)
        snapshot = [(job.filename, job.svg_content, job.width, job.height) for job in jobs]
        if reference is None:
            reference = snapshot
        assert snapshot == reference


def test_duplicate_inputs_are_collapsed(planner):
    jobs = planner.plan({FULL: BASE_SVG}, [Width(100), Width(100)], [ColorSpace.RGB, ColorSpace.RGB],
                        [ExportFormat.PNG, ExportFormat.PNG], "logo")
    assert [job.filename for job in jobs] == ["logo_RGB_Full_Color.png", "logo_RGB_100W_Full_Color.png"]


def test_sized_jobs_carry_dimensions(planner):
    jobs = planner.plan({FULL: BASE_SVG}, [Width(100)], [ColorSpace.RGB], [ExportFormat.PNG], "logo")
    native, sized = jobs

    assert (native.width, native.height) == (None, None)
    assert svg_root(native.svg_content).get("width") is None
    assert (sized.width, sized.height) == (100, 50)
    root = svg_root(sized.svg_content)
    assert (root.get("width"), root.get("height")) == ("100", "50")
    assert root.get("viewBox") == "0 0 200 100"


def test_only_cmyk_jobs_are_icc_tagged(planner):
    targets = {FULL: {"#ff0000": CmykColor(0, 100, 100, 0)}}
    jobs = planner.plan({FULL: BASE_SVG}, [], [ColorSpace.RGB, ColorSpace.CMYK], [ExportFormat.PDF], "logo", targets)
    by_space = {job.color_space: job for job in jobs}

    assert "icc-color" not in by_space[ColorSpace.RGB].svg_content
    assert "icc-color(#CMYK, 0%, 100%, 100%, 0%)" in by_space[ColorSpace.CMYK].svg_content


def test_empty_formats_rejected(planner):
    with pytest.raises(RequestValidationError):
        planner.plan({FULL: BASE_SVG}, [], [ColorSpace.RGB], [], "logo")


def test_empty_variants_rejected(planner):
    with pytest.raises(RequestValidationError) as excinfo:
        planner.plan({}, [], [ColorSpace.RGB], [], "logo")
    assert len(excinfo.value.messages) == 2


def test_plan_names_match_plan(planner):
    args = ([Width(50)], [ColorSpace.RGB, ColorSpace.CMYK], [ExportFormat.AI, ExportFormat.PNG], "brand")
    names = planner.plan_names([WHITE, FULL], *args)
    jobs = planner.plan({FULL: BASE_SVG, WHITE: BASE_SVG}, *args)

    assert names == sorted(job.filename for job in jobs)
