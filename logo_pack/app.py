# logo_pack/app.py
"""
Command-line front end.

    logo-pack inspect logo.svg [--canonical-out clean.svg]
    logo-pack export logo.svg --format png --format pdf --size 100W --color-space CMYK \
        --map "#ff0000=#00aa00" --map "#0000ff=@100,50,0,0" --out-dir dist/
"""

import argparse
import concurrent.futures
import json
import logging
import os
import sys
import threading
import uuid
from typing import List, Optional

from logo_pack import __version__
from logo_pack.config import (
    EFFECTIVE_LOG_LEVEL, LOG_FORMAT, LOG_DATE_FORMAT, LOG_DIR, LOG_FILE_NAME, LOG_LEVEL_MAP,
    NOISY_LOGGERS, DEFAULT_ENCODING, DEFAULT_MAX_WORKERS, DEFAULT_EXTERNAL_TOOL_CONCURRENCY,
    DEFAULT_TOOL_TIMEOUT,
)
from logo_pack.domain import (
    CmykColor, ColorSpace, ColorTarget, ColorVariantKind, ExportFormat, ExportRequest, ExportSettings,
    FatalExportError, RequestValidationError, SvgParseError, UploadRequest, parse_size_token,
)
from logo_pack.core import (
    ColorExtractor, ColorSubstitutionEngine, GeometryNormalizer, GeometryTransformer, VariantFanoutPlanner,
)
from logo_pack.infrastructure import LoggingConfigurator, RasterBBoxMeasurer
from logo_pack.application import ExportSvgService, UploadSvgService, default_backends
from logo_pack.utils.color_utils import ColorConverter, canonicalize_color

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INPUT = 2


def parse_mapping_arg(value: str, color_converter: ColorConverter):
    """
    'ORIG=NEW', 'ORIG=NEW@C,M,Y,K' or 'ORIG=@C,M,Y,K' -> (original_hex, ColorTarget).
    A CMYK-only target gets its RGB value from the converter.
    """
    if "=" not in value:
        raise ValueError(f"Invalid --map '{value}'. Expected ORIG=NEW, ORIG=NEW@C,M,Y,K or ORIG=@C,M,Y,K.")
    original, target = (part.strip() for part in value.split("=", 1))
    original_hex = canonicalize_color(original)
    if original_hex is None:
        raise ValueError(f"Invalid original color '{original}' in --map.")

    new_color, _, cmyk_text = target.partition("@")
    cmyk = None
    if cmyk_text:
        channels = [c.strip().rstrip("%") for c in cmyk_text.split(",")]
        if len(channels) != 4:
            raise ValueError(f"CMYK in --map needs four values, got '{cmyk_text}'.")
        cmyk = CmykColor(*(float(c) for c in channels))

    if not new_color.strip():
        if cmyk is None:
            raise ValueError(f"--map '{value}' has neither a new color nor CMYK values.")
        return original_hex, ColorTarget.from_cmyk(cmyk, color_converter)

    new_hex = canonicalize_color(new_color)
    if new_hex is None:
        raise ValueError(f"Invalid new color '{new_color}' in --map.")
    return original_hex, ColorTarget(new_hex=new_hex, cmyk=cmyk)


def _enum_arg(enum_cls):
    lookup = {member.value.lower(): member for member in enum_cls}

    def convert(text: str):
        member = lookup.get(text.strip().lower())
        if member is None:
            raise argparse.ArgumentTypeError(
                f"invalid choice '{text}' (choose from {', '.join(m.value for m in enum_cls)})"
            )
        return member
    return convert


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="logo-pack", description="Generate logo export packs from one SVG.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", choices=sorted(LOG_LEVEL_MAP), default=None,
                        help="Overrides LOGO_PACK_LOG_LEVEL.")
    parser.add_argument("--no-log-file", action="store_true", help="Log to the console only.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    inspect_parser = subparsers.add_parser("inspect", help="Print the palette of an SVG as JSON.")
    inspect_parser.add_argument("svg", help="Source SVG file.")
    inspect_parser.add_argument("--canonical-out", help="Also write the canonical, normalized SVG here.")

    export_parser = subparsers.add_parser("export", help="Render variants and write the pack.")
    export_parser.add_argument("svg", help="Source SVG file.")
    export_parser.add_argument("--format", dest="formats", action="append", type=_enum_arg(ExportFormat),
                               required=True, help="Output format (repeatable): png, jpg, webp, pdf, eps, ai.")
    export_parser.add_argument("--variant", dest="variants", action="append", type=_enum_arg(ColorVariantKind),
                               help="Color variant (repeatable): Full_Color, White, Black. Default: all.")
    export_parser.add_argument("--color-space", dest="color_spaces", action="append", type=_enum_arg(ColorSpace),
                               help="RGB and/or CMYK (repeatable). Default: RGB.")
    export_parser.add_argument("--size", dest="sizes", action="append", type=parse_size_token, default=[],
                               help="Extra output size (repeatable): 100W, 80H or 300x200.")
    export_parser.add_argument("--padding", nargs=2, type=float, metavar=("X", "Y"), default=(0.0, 0.0),
                               help="Padding added to the viewBox, in user units.")
    export_parser.add_argument("--map", dest="mappings", action="append", default=[],
                               help="Color replacement (repeatable): ORIG=NEW, ORIG=NEW@C,M,Y,K or ORIG=@C,M,Y,K.")
    export_parser.add_argument("--name", help="Output base name. Default: the SVG file name.")
    export_parser.add_argument("--out-dir", default=".", help="Directory the artifact is written to.")
    export_parser.add_argument("--max-workers", type=int, default=DEFAULT_MAX_WORKERS)
    export_parser.add_argument("--tool-concurrency", type=int, default=DEFAULT_EXTERNAL_TOOL_CONCURRENCY)
    export_parser.add_argument("--tool-timeout", type=float, default=DEFAULT_TOOL_TIMEOUT)
    return parser


class AppOrchestrator:
    """Wires logging and services together and runs one CLI command."""

    def __init__(self, log_level: int = EFFECTIVE_LOG_LEVEL, log_to_file: bool = True):
        self.logger = logging.getLogger(self.__class__.__name__)
        self._setup_logging(log_level, log_to_file)
        self._setup_dependencies()

    def _setup_logging(self, log_level: int, log_to_file: bool) -> None:
        configurator = LoggingConfigurator(
            log_level=log_level,
            log_format=LOG_FORMAT,
            date_format=LOG_DATE_FORMAT,
            log_dir=LOG_DIR if log_to_file else None,
            log_file_name=LOG_FILE_NAME,
            log_to_console=True,
            file_encoding=DEFAULT_ENCODING,
            force_config=True,
            noisy_loggers_to_silence=NOISY_LOGGERS,
        )
        configurator.configure()

    def _setup_dependencies(self) -> None:
        self.color_converter = ColorConverter()
        self.substitution_engine = ColorSubstitutionEngine(self.color_converter)
        self.transformer = GeometryTransformer()
        self.planner = VariantFanoutPlanner(self.transformer, self.substitution_engine)
        self.upload_service = UploadSvgService(ColorExtractor(), GeometryNormalizer(RasterBBoxMeasurer()))
        self.logger.debug("Core dependencies initialized.")

    def _read_svg(self, path: str) -> str:
        with open(path, "r", encoding=DEFAULT_ENCODING) as f:
            return f.read()

    def inspect(self, args) -> int:
        result = self.upload_service.execute(UploadRequest(svg_text=self._read_svg(args.svg), file_name=args.svg))
        if args.canonical_out:
            with open(args.canonical_out, "w", encoding=DEFAULT_ENCODING) as f:
                f.write(result.canonical_svg)
            self.logger.info(f"Canonical SVG written to '{args.canonical_out}'.")
        print(json.dumps({"file_base_name": result.file_base_name, "palette": result.palette.to_dict()}, indent=2))
        return EXIT_OK

    def export(self, args) -> int:
        settings = ExportSettings(
            max_workers=args.max_workers,
            external_tool_concurrency=args.tool_concurrency,
            tool_timeout=args.tool_timeout,
        )
        mapping = dict(parse_mapping_arg(value, self.color_converter) for value in args.mappings)
        upload = self.upload_service.execute(UploadRequest(svg_text=self._read_svg(args.svg), file_name=args.svg))

        request = ExportRequest(
            canonical_svg=upload.canonical_svg,
            selected_variants=args.variants or list(ColorVariantKind),
            formats=args.formats,
            color_spaces=args.color_spaces or [ColorSpace.RGB],
            color_mapping=mapping,
            sizes=args.sizes,
            padding_x=args.padding[0],
            padding_y=args.padding[1],
            file_base_name=args.name or upload.file_base_name,
        )
        service = ExportSvgService(
            self.substitution_engine,
            self.transformer,
            self.planner,
            default_backends(settings),
            settings,
        )
        artifact = self._run_cancellable(service, request)

        os.makedirs(args.out_dir, exist_ok=True)
        target = os.path.join(args.out_dir, artifact.filename)
        with open(target, "wb") as f:
            f.write(artifact.data)

        print(f"{target} ({artifact.file_count} file{'s' if artifact.file_count != 1 else ''})")
        for failed in artifact.failed_jobs:
            print(f"  failed: {failed}", file=sys.stderr)
        return EXIT_OK

    def _run_cancellable(self, service: ExportSvgService, request: ExportRequest):
        """Runs the export off the main thread so Ctrl+C can cancel pending jobs cleanly."""
        cancel_event = threading.Event()
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
            future = executor.submit(service.execute, request, cancel_event)
            while True:
                try:
                    return future.result(timeout=0.5)
                except concurrent.futures.TimeoutError:
                    continue
                except KeyboardInterrupt:
                    self.logger.warning("Interrupted. Cancelling remaining jobs...")
                    cancel_event.set()
                    return future.result()

    def run(self, args) -> int:
        handlers = {"inspect": self.inspect, "export": self.export}
        try:
            return handlers[args.command](args)
        except (RequestValidationError, SvgParseError, ValueError, OSError) as e:
            self.logger.error(f"Invalid input: {e}")
            print(f"error: {e}", file=sys.stderr)
            return EXIT_INPUT
        except FatalExportError as e:
            error_id = uuid.uuid4().hex[:8]
            self.logger.critical(f"[{error_id}] Export failed: {e}", exc_info=True)
            print(f"error: export failed (id {error_id}): {e}", file=sys.stderr)
            return EXIT_FATAL


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log_level = LOG_LEVEL_MAP[args.log_level] if args.log_level else EFFECTIVE_LOG_LEVEL
    orchestrator = AppOrchestrator(log_level=log_level, log_to_file=not args.no_log_file)
    return orchestrator.run(args)


if __name__ == "__main__":
    sys.exit(main())
