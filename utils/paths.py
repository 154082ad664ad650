"""Project-relative path resolution"""

from pathlib import Path
from typing import Optional, Union

import settings

CLI_DIR_NAME = "cli"


def resolve_project_root(cwd: Optional[Union[str, Path]] = None) -> Path:
    """Return the project root whether invoked from the root or from its cli/ subdirectory"""
    current = Path(cwd) if cwd is not None else Path.cwd()
    if current.name == CLI_DIR_NAME:
        return current.parent
    return current


def cli_state_dir(cwd: Optional[Union[str, Path]] = None) -> Path:
    """Directory holding the legacy token file and the cached profile"""
    return resolve_project_root(cwd) / CLI_DIR_NAME


def legacy_token_path(cwd: Optional[Union[str, Path]] = None) -> Path:
    return cli_state_dir(cwd) / settings.LEGACY_TOKEN_FILENAME


def profile_path(cwd: Optional[Union[str, Path]] = None) -> Path:
    return cli_state_dir(cwd) / settings.PROFILE_FILENAME
