# logo_pack/presentation/validators.py
import logging
import os
import re
from typing import Iterable, List, Tuple

from logo_pack.config import DEFAULT_FILE_BASE_NAME, FILE_BASE_NAME_PATTERN
from logo_pack.domain.models import ExportRequest
from logo_pack.utils.color_utils import canonicalize_color

logger = logging.getLogger(__name__)

_UNSAFE_CHARS_REGEX = re.compile(r'[^\w .-]+')


class InputValidator:
    """
    Validation of user-supplied export parameters. Each check returns
    (is_valid, error_message) so callers can collect every problem at once.
    """

    @staticmethod
    def sanitize_file_base_name(name: str) -> str:
        """
        Turns an uploaded file name or user input into a safe output base name:
        directory and '.svg'-style extension dropped, unsafe characters replaced
        with '_'. Falls back to the default base name when nothing is left.
        """
        if not name:
            return DEFAULT_FILE_BASE_NAME
        stem = os.path.splitext(os.path.basename(name.replace("\\", "/")))[0]
        cleaned = _UNSAFE_CHARS_REGEX.sub("_", stem).strip(" .-_")[:128]
        if not cleaned or not re.fullmatch(FILE_BASE_NAME_PATTERN, cleaned):
            logger.debug(f"File name '{name}' has no usable stem. Using '{DEFAULT_FILE_BASE_NAME}'.")
            return DEFAULT_FILE_BASE_NAME
        return cleaned

    @staticmethod
    def validate_file_base_name(name: str) -> Tuple[bool, str]:
        if not name:
            return False, "File base name cannot be empty."
        if not re.fullmatch(FILE_BASE_NAME_PATTERN, name) or ".." in name:
            return False, "File base name may only contain letters, digits, spaces, '.', '-' and '_' (max 128)."
        return True, ""

    @staticmethod
    def validate_selection(values: Iterable, label: str) -> Tuple[bool, str]:
        if not list(values or []):
            return False, f"Select at least one {label}."
        return True, ""

    @staticmethod
    def validate_padding(padding_x: float, padding_y: float) -> Tuple[bool, str]:
        try:
            if float(padding_x) < 0 or float(padding_y) < 0:
                return False, "Padding must be zero or positive."
        except (TypeError, ValueError):
            return False, "Padding must be a number."
        return True, ""

    @staticmethod
    def validate_color_mapping(mapping) -> Tuple[bool, str]:
        bad = [
            original for original, target in (mapping or {}).items()
            if canonicalize_color(original) is None or canonicalize_color(target.new_hex) is None
        ]
        if bad:
            return False, f"Color mapping entries must map plain colors to plain colors: {bad}"
        return True, ""

    @classmethod
    def validate_export_request(cls, request: ExportRequest) -> Tuple[bool, List[str]]:
        """Runs every check on an export request and returns all error messages."""
        checks = [
            cls.validate_selection(request.selected_variants, "color variant"),
            cls.validate_selection(request.formats, "export format"),
            cls.validate_selection(request.color_spaces, "color space"),
            cls.validate_padding(request.padding_x, request.padding_y),
            cls.validate_color_mapping(request.color_mapping),
            cls.validate_file_base_name(request.file_base_name),
        ]
        errors = [message for ok, message in checks if not ok]
        if not (request.canonical_svg or "").strip():
            errors.append("No SVG loaded. Upload an SVG first.")
        if errors:
            logger.debug(f"Export request rejected: {errors}")
        return not errors, errors
