"""CLI package for the O365 admin CLI

This package provides the argparse entry point and the interactive
menu on top of the session manager and the worker runner.
"""

from cli.cli_app import AdminCLI
from cli.main import main

__all__ = [
    "AdminCLI",
    "main",
]
