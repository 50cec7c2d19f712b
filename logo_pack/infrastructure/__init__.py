from .external_tool import ExternalTool, ToolResult
from .file_gateway import ScratchWorkspace
from .logging_config import LoggingConfigurator
from .pdf_renderer import PdfRenderer
from .raster_renderer import CAIRO_AVAILABLE, RasterBBoxMeasurer, RasterRenderer
from .vector_converter import VectorConverter
