from .orchestrator import FormatConverterOrchestrator
from .packager import ArchivePackager
from .services import ExportSvgService, UploadSvgService, default_backends
