"""Configuration loader for the O365 admin CLI

Values are resolved in this order:
1. Environment variables (highest priority)
2. .env file in the project root (or the file named by O365_ENV_FILE)
3. Hardcoded defaults (lowest priority)
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_FILE_VAR = "O365_ENV_FILE"
TRUE_VALUES = ('true', '1', 'yes', 'on')


def default_env_path() -> Path:
    """.env beside the project root, also when started from the cli/ directory"""
    cwd = Path.cwd()
    root = cwd.parent if cwd.name == "cli" else cwd
    return root / ".env"


class ConfigLoader:
    """Reads typed settings from the environment, seeded once from a .env file"""

    def __init__(self, env_path: Optional[str] = None):
        """
        Args:
            env_path: .env file to load (default: O365_ENV_FILE, else <project root>/.env)
        """
        explicit = env_path or os.getenv(ENV_FILE_VAR)
        self.env_path = Path(explicit) if explicit else default_env_path()
        self.loaded = self._load_env_file()

    def _load_env_file(self) -> bool:
        if not self.env_path.exists():
            logger.debug(f"No .env file at {self.env_path}, using environment variables and defaults only")
            return False
        # Existing environment variables win over the file
        load_dotenv(dotenv_path=self.env_path, override=False)
        logger.debug(f"Loaded environment variables from {self.env_path}")
        return True

    def get(self, env_var: str, default: Any) -> Any:
        """Get a configuration value, parsed to the type of ``default``

        The environment is read on every call, so values exported after
        import (e.g. AZURE_CLIENT_ID) are still honoured.

        Args:
            env_var: Environment variable name to check
            default: Fallback value, also decides the parsed type

        Returns:
            The configuration value from environment or default
        """
        raw = os.getenv(env_var)
        if raw is None:
            if isinstance(default, str) and default.startswith("~/"):
                return str(Path(default).expanduser())
            return default
        return self._coerce(env_var, raw, default)

    @staticmethod
    def _coerce(env_var: str, raw: str, default: Any) -> Any:
        # bool before int: bool is a subclass of int
        if isinstance(default, bool):
            return raw.strip().lower() in TRUE_VALUES
        for kind in (int, float):
            if isinstance(default, kind):
                try:
                    return kind(raw)
                except ValueError:
                    logger.warning(f"Invalid {kind.__name__} for {env_var}={raw!r}, using default: {default}")
                    return default
        return raw


_config_loader: Optional[ConfigLoader] = None


def get_config_loader() -> ConfigLoader:
    """Get or create the global ConfigLoader instance"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader
