# logo_pack/application/services.py
import logging
import threading
import time
from dataclasses import replace
from typing import Callable, Dict, Mapping, Optional

from logo_pack.config import DEFAULT_FILE_BASE_NAME
from logo_pack.domain.exceptions import RequestValidationError
from logo_pack.domain.models import (
    ColorSpace, ExportArtifact, ExportFormat, ExportRequest, ExportSettings, UploadRequest, UploadResult,
)
from logo_pack.application.orchestrator import FormatConverterOrchestrator
from logo_pack.application.packager import ArchivePackager
from logo_pack.core.color_extractor import ColorExtractor
from logo_pack.core.color_substitution import ColorSubstitutionEngine
from logo_pack.core.fanout_planner import VariantFanoutPlanner
from logo_pack.core.geometry_normalizer import GeometryNormalizer
from logo_pack.core.geometry_transformer import GeometryTransformer
from logo_pack.infrastructure.file_gateway import ScratchWorkspace
from logo_pack.infrastructure.pdf_renderer import PdfRenderer
from logo_pack.infrastructure.raster_renderer import RasterRenderer
from logo_pack.infrastructure.vector_converter import VectorConverter
from logo_pack.presentation.validators import InputValidator

logger = logging.getLogger(__name__)


def default_backends(settings: Optional[ExportSettings] = None) -> Dict[ExportFormat, object]:
    """One backend instance per family, shared by the formats it produces."""
    settings = settings or ExportSettings()
    raster = RasterRenderer()
    vector = VectorConverter(timeout=settings.tool_timeout)
    return {
        ExportFormat.PNG: raster,
        ExportFormat.JPG: raster,
        ExportFormat.WEBP: raster,
        ExportFormat.PDF: PdfRenderer(),
        ExportFormat.EPS: vector,
        ExportFormat.AI: vector,
    }


class UploadSvgService:
    """Upload use case: palette extraction then geometry normalization."""

    def __init__(self, extractor: ColorExtractor, normalizer: GeometryNormalizer):
        self.extractor = extractor
        self.normalizer = normalizer

    def execute(self, request: UploadRequest) -> UploadResult:
        """
        Raises:
            SvgParseError: The upload is not a usable SVG.
        """
        start_time = time.time()
        logger.info(f"Starting UploadSvgService for '{request.file_name or '<unnamed>'}'")

        palette, canonical_svg = self.extractor.extract(request.svg_text)
        canonical_svg = self.normalizer.normalize(canonical_svg)
        file_base_name = InputValidator.sanitize_file_base_name(request.file_name)

        logger.info(f"Upload processed in {time.time() - start_time:.2f}s: "
                    f"{len(palette.entries)} colors, base name '{file_base_name}'.")
        return UploadResult(canonical_svg=canonical_svg, palette=palette, file_base_name=file_base_name)


class ExportSvgService:
    """
    Export use case: validate, derive per-variant SVGs, plan jobs, render them
    inside a per-request scratch workspace and package the results.
    """

    def __init__(self,
                 substitution_engine: ColorSubstitutionEngine,
                 transformer: GeometryTransformer,
                 planner: VariantFanoutPlanner,
                 backends: Mapping[ExportFormat, object],
                 settings: Optional[ExportSettings] = None,
                 packager: Optional[ArchivePackager] = None,
                 workspace_factory: Callable[[], ScratchWorkspace] = ScratchWorkspace):
        self.substitution_engine = substitution_engine
        self.transformer = transformer
        self.planner = planner
        self.backends = backends
        self.settings = settings or ExportSettings()
        self.packager = packager or ArchivePackager()
        self.workspace_factory = workspace_factory

    def execute(self, request: ExportRequest, cancel_event: Optional[threading.Event] = None) -> ExportArtifact:
        """
        Raises:
            RequestValidationError: Rejected before any file is written.
            SvgParseError: The canonical SVG cannot be parsed.
            FatalExportError: No scratch space, nothing rendered, or the archive failed.
        """
        start_time = time.time()
        request = replace(request, file_base_name=(request.file_base_name or "").strip() or DEFAULT_FILE_BASE_NAME)
        is_valid, errors = InputValidator.validate_export_request(request)
        if not is_valid:
            raise RequestValidationError(errors)

        logger.info(
            f"Starting ExportSvgService for '{request.file_base_name}': "
            f"variants={[v.value for v in request.selected_variants]}, "
            f"formats={[f.value for f in request.formats]}, "
            f"color_spaces={[c.value for c in request.color_spaces]}, sizes={len(request.sizes)}"
        )

        # Color first, then padding; sizing and ICC tags are applied per job by the planner
        base_svgs = {}
        for variant in dict.fromkeys(request.selected_variants):
            colored = self.substitution_engine.variant(request.canonical_svg, variant, request.color_mapping)
            base_svgs[variant] = self.transformer.apply_padding(colored, request.padding_x, request.padding_y)

        cmyk_targets = {}
        if ColorSpace.CMYK in request.color_spaces:
            cmyk_targets = {
                variant: self.substitution_engine.cmyk_targets(variant, request.color_mapping)
                for variant in base_svgs
            }

        jobs = self.planner.plan(
            base_svgs,
            request.sizes,
            request.color_spaces,
            request.formats,
            request.file_base_name,
            cmyk_targets,
        )

        workspace = self.workspace_factory()
        try:
            orchestrator = FormatConverterOrchestrator(workspace, self.backends, self.settings)
            results = orchestrator.run(jobs, cancel_event)
        finally:
            workspace.cleanup()

        artifact = self.packager.package(results, request.file_base_name)
        logger.info(f"Export finished in {time.time() - start_time:.2f}s: {artifact.filename} "
                    f"({artifact.file_count} files, {len(artifact.failed_jobs)} failed).")
        return artifact
