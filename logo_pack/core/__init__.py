from .color_extractor import ColorExtractor
from .color_substitution import ColorSubstitutionEngine
from .fanout_planner import VariantFanoutPlanner
from .geometry_normalizer import GeometryNormalizer
from .geometry_transformer import GeometryTransformer
