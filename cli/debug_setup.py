"""Logging and console setup for CLI"""

from rich.console import Console

import settings
from utils.debug_console import create_debug_console, setup_logging


def setup_debug_console(debug: bool) -> Console:
    """
    Configure file logging and return the console to print through

    Args:
        debug: Whether debug mode is enabled

    Returns:
        Console instance (either regular or debug-enabled)
    """
    debug_logger = setup_logging(debug=debug)
    console = create_debug_console(debug_enabled=debug, debug_logger=debug_logger)

    if debug:
        debug_logger.debug("[CLI] ===== CLI SESSION STARTED =====")
        console.print(f"[yellow]Debug mode enabled - verbose logging will be written to {settings.LOG_FILE}[/yellow]")

    return console
