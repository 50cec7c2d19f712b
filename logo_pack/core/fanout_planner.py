# logo_pack/core/fanout_planner.py

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from logo_pack.domain.exceptions import RequestValidationError
from logo_pack.domain.models import (
    CmykColor, ColorSpace, ColorVariantKind, ExportFormat, ExportJob, SizeSpec,
    size_sort_key, size_token,
)

logger = logging.getLogger(__name__)


def _ordered_unique(values: Iterable, order: Sequence) -> List:
    """De-duplicates `values` and returns them in the order of `order` (an enum)."""
    wanted = set(values)
    return [member for member in order if member in wanted]


def _ordered_sizes(sizes: Iterable[SizeSpec]) -> List[Optional[SizeSpec]]:
    """Native size (None) first, then the requested sizes de-duplicated and sorted."""
    unique = sorted(set(sizes or []), key=size_sort_key)
    return [None] + unique


class VariantFanoutPlanner:
    """
    Enumerates export jobs over variants x ({native} + sizes) x color spaces x formats.

    Job names are deterministic:
        {base}_{RGB|CMYK}_[{sizeToken}_]{Full_Color|White|Black}
    """

    def __init__(self, transformer, substitution_engine):
        self.transformer = transformer
        self.substitution_engine = substitution_engine

    @staticmethod
    def job_name(file_base_name: str, color_space: ColorSpace, size: Optional[SizeSpec], variant: ColorVariantKind) -> str:
        parts = [file_base_name, color_space.value]
        if size is not None:
            parts.append(size_token(size))
        parts.append(variant.value)
        return "_".join(parts)

    @staticmethod
    def _validate(variants, formats) -> None:
        errors = []
        if not variants:
            errors.append("Select at least one color variant.")
        if not formats:
            errors.append("Select at least one export format.")
        if errors:
            raise RequestValidationError(errors)

    def plan_names(self,
                   variants: Iterable[ColorVariantKind],
                   sizes: Iterable[SizeSpec],
                   color_spaces: Iterable[ColorSpace],
                   formats: Iterable[ExportFormat],
                   file_base_name: str) -> List[str]:
        """Sorted output filenames of a request, without touching any SVG."""
        variants = _ordered_unique(variants, list(ColorVariantKind))
        formats = _ordered_unique(formats, list(ExportFormat))
        self._validate(variants, formats)

        names = {
            f"{self.job_name(file_base_name, space, size, variant)}.{fmt.extension}"
            for variant in variants
            for size in _ordered_sizes(sizes)
            for space in _ordered_unique(color_spaces, list(ColorSpace))
            for fmt in formats
        }
        return sorted(names)

    def plan(self,
             base_svgs: Mapping[ColorVariantKind, str],
             sizes: Iterable[SizeSpec],
             color_spaces: Iterable[ColorSpace],
             formats: Iterable[ExportFormat],
             file_base_name: str,
             cmyk_targets: Optional[Mapping[ColorVariantKind, Dict[str, CmykColor]]] = None) -> List[ExportJob]:
        """
        Args:
            base_svgs: Per selected variant, the color-substituted and padded SVG.
            sizes: Extra output sizes; the native size is always included.
            color_spaces: RGB and/or CMYK. CMYK jobs get ICC-tagged paints.
            formats: Output formats; one job per format.
            file_base_name: Prefix of every job name.
            cmyk_targets: Per variant, final paint hex -> CMYK values for ICC tagging.

        Returns:
            Jobs in canonical order, independent of the input ordering.

        Raises:
            RequestValidationError: No variant or no format selected.
            ValueError: Two jobs would share a filename.
        """
        variants = _ordered_unique(base_svgs.keys(), list(ColorVariantKind))
        formats = _ordered_unique(formats, list(ExportFormat))
        self._validate(variants, formats)
        spaces = _ordered_unique(color_spaces, list(ColorSpace))
        ordered_sizes = _ordered_sizes(sizes)
        cmyk_targets = cmyk_targets or {}

        jobs: List[ExportJob] = []
        seen = set()
        for variant in variants:
            for size in ordered_sizes:
                base_svg = base_svgs[variant]
                if size is None:
                    sized_svg, width, height = base_svg, None, None
                else:
                    width, height = self.transformer.resolve_dimensions(base_svg, size)
                    sized_svg = self.transformer.apply_size(base_svg, size)

                for space in spaces:
                    svg_content = sized_svg
                    if space is ColorSpace.CMYK:
                        svg_content = self.substitution_engine.embed_icc(sized_svg, cmyk_targets.get(variant, {}))

                    name = self.job_name(file_base_name, space, size, variant)
                    for fmt in formats:
                        job = ExportJob(
                            name=name,
                            svg_content=svg_content,
                            format=fmt,
                            variant=variant,
                            color_space=space,
                            size=size,
                            width=width,
                            height=height,
                        )
                        if job.filename in seen:
                            raise ValueError(f"Duplicate export filename planned: {job.filename}")
                        seen.add(job.filename)
                        jobs.append(job)

        logger.info(
            f"Planned {len(jobs)} jobs: {len(variants)} variants x {len(ordered_sizes)} sizes x "
            f"{len(spaces)} color spaces x {len(formats)} formats."
        )
        return jobs
