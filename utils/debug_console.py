"""Logging setup and a Rich console that mirrors its output into the log file.

Every module logs through ``logging.getLogger(__name__)``; this module wires
those loggers to a file so the interactive terminal stays clean.
"""

import io
import logging
import re
from typing import Optional

from rich.console import Console as RichConsole

import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# ANSI escape sequence pattern
_ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')


class DebugCapturingConsole(RichConsole):
    """
    Rich Console that also writes a plain-text copy of everything it prints.

    The terminal keeps the menu's colours and tables, while the debug log gets
    the same output without markup, so a log file alone shows what the
    operator saw during a login or task run.
    """

    def __init__(self, debug_logger: Optional[logging.Logger] = None, *args, **kwargs):
        """
        Initialize the mirroring console.

        Args:
            debug_logger: Logger that receives the plain-text copy
            *args, **kwargs: Arguments passed to Rich Console
        """
        super().__init__(*args, **kwargs)
        self.debug_logger = debug_logger
        self._log_prefix = "[CONSOLE] "

    def print(self, *objects, **kwargs):
        """
        Print to the terminal, then mirror the output into the debug log.

        Nothing is rendered a second time unless the logger accepts DEBUG records.
        """
        super().print(*objects, **kwargs)

        if self.debug_logger and self.debug_logger.isEnabledFor(logging.DEBUG):
            plain_text = self._render_to_plain_text(*objects, **kwargs)
            if plain_text.strip():
                self.debug_logger.debug(f"{self._log_prefix}{plain_text}")

    def _render_to_plain_text(self, *objects, **kwargs) -> str:
        """
        Render objects to plain text without Rich markup.

        Args:
            *objects: Objects to render
            **kwargs: Keyword arguments from the print call

        Returns:
            Plain text with any ANSI escape codes stripped
        """
        string_buffer = io.StringIO()
        temp_console = RichConsole(
            file=string_buffer,
            force_terminal=False,
            width=self.width,
            legacy_windows=False,
        )
        temp_console.print(*objects, **kwargs)
        return _ANSI_ESCAPE.sub('', string_buffer.getvalue()).rstrip()


def create_debug_console(debug_enabled: bool = False,
                         debug_logger: Optional[logging.Logger] = None) -> RichConsole:
    """
    Create appropriate console instance based on debug mode.

    Returns:
        DebugCapturingConsole if debug enabled, regular Console otherwise
    """
    if debug_enabled and debug_logger:
        return DebugCapturingConsole(debug_logger=debug_logger)
    return RichConsole()


def setup_logging(debug: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route all application logging to a file.

    Args:
        debug: Log at DEBUG instead of the configured level
        log_file: Path to the log file (default: LOG_FILE setting)

    Returns:
        The logger used for mirrored console output
    """
    level_name = "DEBUG" if debug else str(settings.LOG_LEVEL).upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file or settings.LOG_FILE, mode='a', encoding='utf-8')
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logging.getLogger("debug_console")
