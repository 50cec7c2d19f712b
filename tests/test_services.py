import io
import os
import zipfile

import pytest

from conftest import FakeBackend
from logo_pack.application.services import ExportSvgService, UploadSvgService
from logo_pack.core import (
    ColorExtractor, ColorSubstitutionEngine, GeometryNormalizer, GeometryTransformer, VariantFanoutPlanner,
)
from logo_pack.domain import (
    ColorSpace, ColorTarget, ColorVariantKind, ExportFormat, ExportRequest, ExportSettings, FatalExportError,
    RequestValidationError, UploadRequest, Width,
)
from logo_pack.infrastructure.external_tool import ExternalTool
from logo_pack.infrastructure.file_gateway import ScratchWorkspace
from logo_pack.infrastructure.vector_converter import VectorConverter
from logo_pack.presentation.validators import InputValidator

FULL, WHITE = ColorVariantKind.FULL_COLOR, ColorVariantKind.WHITE


@pytest.fixture
def uploaded(red_blue_svg):
    service = UploadSvgService(ColorExtractor(), GeometryNormalizer())
    return service.execute(UploadRequest(svg_text=red_blue_svg, file_name="Acme Logo.svg"))


@pytest.fixture
def scratch_base(tmp_path):
    return str(tmp_path / "scratch")


def make_service(backends, scratch_base):
    transformer = GeometryTransformer()
    engine = ColorSubstitutionEngine()
    return ExportSvgService(
        engine,
        transformer,
        VariantFanoutPlanner(transformer, engine),
        backends,
        ExportSettings(max_workers=4, external_tool_concurrency=1, tool_timeout=5),
        workspace_factory=lambda: ScratchWorkspace(base_dir=scratch_base),
    )


def test_upload_returns_palette_and_base_name(uploaded):
    assert uploaded.palette.primary.hex == "#ff0000"
    assert uploaded.palette.secondary.hex == "#0000ff"
    assert uploaded.file_base_name == "Acme Logo"
    assert 'preserveAspectRatio="xMidYMid meet"' in uploaded.canonical_svg


def test_upload_without_file_name_uses_default(red_blue_svg):
    result = UploadSvgService(ColorExtractor(), GeometryNormalizer()).execute(UploadRequest(svg_text=red_blue_svg))
    assert result.file_base_name == "logopack"


def test_end_to_end_job_set(uploaded, scratch_base):
    service = make_service({ExportFormat.PNG: FakeBackend()}, scratch_base)
    request = ExportRequest(
        canonical_svg=uploaded.canonical_svg,
        selected_variants=[FULL, WHITE],
        formats=[ExportFormat.PNG],
        sizes=[Width(100)],
        file_base_name="logo",
    )
    artifact = service.execute(request)

    with zipfile.ZipFile(io.BytesIO(artifact.data)) as archive:
        names = sorted(os.path.basename(name) for name in archive.namelist())
    assert names == [
        "logo_RGB_100W_Full_Color.png",
        "logo_RGB_100W_White.png",
        "logo_RGB_Full_Color.png",
        "logo_RGB_White.png",
    ]
    assert os.listdir(scratch_base) == []


def test_empty_formats_rejected_before_scratch_dir(uploaded, scratch_base):
    created = []

    def factory():
        created.append(True)
        return ScratchWorkspace(base_dir=scratch_base)

    service = make_service({ExportFormat.PNG: FakeBackend()}, scratch_base)
    service.workspace_factory = factory
    request = ExportRequest(canonical_svg=uploaded.canonical_svg, selected_variants=[FULL], formats=[])

    with pytest.raises(RequestValidationError) as excinfo:
        service.execute(request)

    assert "export format" in str(excinfo.value)
    assert created == []
    assert not os.path.exists(scratch_base)


@pytest.mark.parametrize("changes", [
    {"selected_variants": []},
    {"color_spaces": []},
    {"padding_x": -1},
    {"file_base_name": "../escape"},
    {"color_mapping": {"url(#g)": ColorTarget("#000000")}},
    {"canonical_svg": "  "},
])
def test_invalid_requests_rejected(uploaded, scratch_base, changes):
    fields = dict(canonical_svg=uploaded.canonical_svg, selected_variants=[FULL], formats=[ExportFormat.PNG])
    fields.update(changes)
    service = make_service({ExportFormat.PNG: FakeBackend()}, scratch_base)

    with pytest.raises(RequestValidationError):
        service.execute(ExportRequest(**fields))
    assert not os.path.exists(scratch_base)


def test_missing_ai_tool_still_yields_other_files(uploaded, scratch_base):
    missing = VectorConverter(
        inkscape=ExternalTool("inkscape", "logo-pack-missing-inkscape"),
        pstoedit=ExternalTool("pstoedit", "logo-pack-missing-pstoedit"),
    )
    service = make_service({ExportFormat.PNG: FakeBackend(), ExportFormat.AI: missing}, scratch_base)
    request = ExportRequest(
        canonical_svg=uploaded.canonical_svg,
        selected_variants=[FULL, WHITE],
        formats=[ExportFormat.PNG, ExportFormat.AI],
        file_base_name="logo",
    )
    artifact = service.execute(request)

    assert artifact.file_count == 2
    assert artifact.failed_jobs == ["logo_RGB_Full_Color.ai", "logo_RGB_White.ai"]
    with zipfile.ZipFile(io.BytesIO(artifact.data)) as archive:
        assert all(name.endswith(".png") for name in archive.namelist())
    assert os.listdir(scratch_base) == []


def test_single_file_download(uploaded, scratch_base):
    service = make_service({ExportFormat.PNG: FakeBackend()}, scratch_base)
    request = ExportRequest(
        canonical_svg=uploaded.canonical_svg,
        selected_variants=[ColorVariantKind.BLACK],
        formats=[ExportFormat.PNG],
        file_base_name="logo",
    )
    artifact = service.execute(request)

    assert artifact.filename == "logo_RGB_Black.png"
    assert artifact.content_type == "image/png"


def test_cmyk_jobs_receive_icc_tags(uploaded, scratch_base):
    seen = {}

    class RecordingBackend(FakeBackend):
        def render(self, job, svg_path, workspace):
            seen[job.filename] = workspace.read_file_text(svg_path)
            return super().render(job, svg_path, workspace)

    service = make_service({ExportFormat.PDF: RecordingBackend()}, scratch_base)
    request = ExportRequest(
        canonical_svg=uploaded.canonical_svg,
        selected_variants=[FULL],
        formats=[ExportFormat.PDF],
        color_spaces=[ColorSpace.RGB, ColorSpace.CMYK],
        color_mapping={"#ff0000": ColorTarget("#00ff00")},
        file_base_name="logo",
    )
    service.execute(request)

    assert "icc-color" not in seen["logo_RGB_Full_Color.pdf"]
    assert "#00ff00 icc-color(#CMYK, 100%, 0%, 100%, 0%)" in seen["logo_CMYK_Full_Color.pdf"]


def test_nothing_rendered_is_fatal(uploaded, scratch_base):
    service = make_service({ExportFormat.PNG: FakeBackend(fail_formats={ExportFormat.PNG})}, scratch_base)
    request = ExportRequest(canonical_svg=uploaded.canonical_svg, selected_variants=[FULL], formats=[ExportFormat.PNG])

    with pytest.raises(FatalExportError):
        service.execute(request)
    assert os.listdir(scratch_base) == []


def test_sanitize_file_base_name():
    assert InputValidator.sanitize_file_base_name("uploads/Brand Mark.svg") == "Brand Mark"
    assert InputValidator.sanitize_file_base_name("../../evil name!.svg") == "evil name"
    assert InputValidator.sanitize_file_base_name("") == "logopack"
    assert InputValidator.sanitize_file_base_name("!!!.svg") == "logopack"
