from .validators import InputValidator
