from .models import (
    CmykColor, ColorEntry, ColorMapping, ColorRole, ColorSpace, ColorTarget,
    ColorVariantKind, Dimensions, ExportArtifact, ExportFormat, ExportJob,
    ExportRequest, ExportResult, ExportSettings, Height, JobState, Palette,
    SizeSpec, UploadRequest, UploadResult, Width, format_number,
    parse_size_token, size_sort_key, size_token,
)
from .exceptions import (
    ExternalToolError, FatalExportError, JobCancelledError, LogoPackError,
    RenderError, RequestValidationError, SvgParseError,
)
