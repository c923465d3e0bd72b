"""
Environment variable access with .env file support.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


class EnvManager:
    """
    Reads fulfillment settings from the environment.

    Example:
        >>> env = EnvManager()
        >>> env.load()  # Loads .env if exists
        >>> url = env.get("FULFILLMENT_LEDGER_URL", "memory://")
    """

    def __init__(self, project_root: Path | str | None = None, auto_load: bool = True):
        """
        Args:
            project_root: Directory searched for the .env file (defaults to cwd)
            auto_load: Load the .env file immediately if found
        """
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self._loaded = False

        if auto_load:
            self.load()

    def load(self, env_file: str | Path | None = None, override: bool = False) -> bool:
        """
        Load environment variables from a .env file.

        Returns:
            True if a .env file was loaded, False otherwise
        """
        env_file = self.project_root / ".env" if env_file is None else Path(env_file)

        if not env_file.exists():
            return False

        load_dotenv(env_file, override=override)
        self._loaded = True
        return True

    def get(self, key: str, default: str | None = None, required: bool = False) -> str | None:
        """
        Get an environment variable value.

        Raises:
            ValueError: If required=True and the variable is not set
        """
        value = os.environ.get(key, default)

        if required and value is None:
            msg = f"Required environment variable not set: {key}"
            raise ValueError(msg)

        return value

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get environment variable as boolean."""
        value = (self.get(key) or "").lower()
        if value in ("true", "1", "yes", "on"):
            return True
        if value in ("false", "0", "no", "off"):
            return False
        return default

    def get_int(self, key: str, default: int = 0) -> int:
        """Get environment variable as integer."""
        try:
            return int(self.get(key, str(default)))
        except (ValueError, TypeError):
            return default
