# logo_pack/infrastructure/logging_config.py

import logging
import os
import sys
from typing import List, Optional


class LoggingConfigurator:
    """
    Configures standard logging for the CLI and for library users who want
    the same setup. Values come in through __init__ (usually from config.py).
    """

    def __init__(self,
                 log_level: int,
                 log_format: str,
                 date_format: str,
                 log_dir: Optional[str] = None,
                 log_file_name: Optional[str] = None,
                 log_to_console: bool = True,
                 file_encoding: str = 'utf-8',
                 force_config: bool = True,
                 noisy_loggers_to_silence: Optional[List[str]] = None):
        """
        Args:
            log_level: Root level (e.g. logging.INFO).
            log_format: Format string for records.
            date_format: Timestamp format.
            log_dir: Directory of the log file. No file handler when None.
            log_file_name: Name of the log file inside `log_dir`.
            log_to_console: Also log to stderr.
            file_encoding: Encoding of the log file.
            force_config: Replace handlers installed earlier (basicConfig(force=True)).
            noisy_loggers_to_silence: Third-party loggers capped at WARNING (PIL, svglib, ...).
        """
        self.log_level = log_level
        self.log_format = log_format
        self.date_format = date_format
        self.log_dir = log_dir
        self.log_to_console = log_to_console
        self.file_encoding = file_encoding
        self.force_config = force_config
        self.noisy_loggers = noisy_loggers_to_silence or []
        self.log_file_path = os.path.join(log_dir, log_file_name) if log_dir and log_file_name else None

        self._setup_logger = logging.getLogger(self.__class__.__name__ + ".Setup")

    def _create_handlers(self) -> List[logging.Handler]:
        handlers: List[logging.Handler] = []

        if self.log_file_path:
            try:
                os.makedirs(self.log_dir, exist_ok=True)
                handlers.append(logging.FileHandler(self.log_file_path, encoding=self.file_encoding))
            except OSError as e:
                # Console logging still works; report through stderr since logging is not set up yet
                print(f"[ERROR] LoggingConfigurator: cannot open log file '{self.log_file_path}': {e}", file=sys.stderr)

        if self.log_to_console:
            handlers.append(logging.StreamHandler())

        return handlers

    def silence_noisy_loggers(self) -> None:
        for logger_name in self.noisy_loggers:
            logging.getLogger(logger_name).setLevel(logging.WARNING)
        if self.noisy_loggers:
            self._setup_logger.debug(f"Silenced noisy loggers: {self.noisy_loggers}")

    def configure(self) -> None:
        handlers = self._create_handlers()
        if not handlers:
            print("[WARNING] LoggingConfigurator: no handlers created, logging inactive.", file=sys.stderr)
            return

        try:
            logging.basicConfig(
                level=self.log_level,
                format=self.log_format,
                datefmt=self.date_format,
                handlers=handlers,
                force=self.force_config,
            )
        except (ValueError, TypeError) as e:
            print(f"[CRITICAL] LoggingConfigurator: basicConfig failed: {e}", file=sys.stderr)
            raise RuntimeError(f"Logging configuration failed: {e}") from e

        self.silence_noisy_loggers()
        root_logger = logging.getLogger()
        root_logger.debug(
            f"Logging configured: Level={logging.getLevelName(self.log_level)}, Handlers={len(handlers)}"
            + (f", File={self.log_file_path}" if self.log_file_path else "")
        )
