"""
Configuration repository.

Loads ``ccmstatus.json`` (or ``ccmstatus.jsonc``) from the config directory
and validates it into Settings.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ccmstatus.domain.config import Settings
from ccmstatus.domain.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "ccmstatus"


def _strip_comments(jsonc_content: str) -> str:
    """Drop full-line ``//`` comments from JSONC content."""
    return "\n".join(
        line for line in jsonc_content.splitlines()
        if not line.lstrip().startswith("//")
    )


class ConfigRepository:
    """
    Repository for configuration file operations.

    A missing file is not an error; defaults apply.
    """

    def __init__(self, config_dir: Path):
        """
        Initialize the config repository.

        Args:
            config_dir: Directory holding ccmstatus.json
        """
        self.config_dir = Path(config_dir)

    def load_json_file(self, filename: str) -> Optional[Dict[str, Any]]:
        """
        Load a JSON or JSONC file.

        Args:
            filename: Name of the file to load (without extension)

        Returns:
            Parsed data, or None if neither file exists

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        json_path = self.config_dir / f"{filename}.json"
        jsonc_path = self.config_dir / f"{filename}.jsonc"

        for path, is_jsonc in ((json_path, False), (jsonc_path, True)):
            if not path.exists():
                continue
            try:
                content = path.read_text(encoding='utf-8')
            except OSError as e:
                raise ConfigError(f"Cannot read {path}: {e}") from e
            if is_jsonc:
                content = _strip_comments(content)
            try:
                data = json.loads(content)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid JSON in {path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"{path} must contain a JSON object")
            logger.debug("Loaded configuration from %s", path)
            return data

        return None

    def load_settings(self) -> Settings:
        """
        Load and validate settings.

        Returns:
            Settings from file, or defaults if no file exists

        Raises:
            ConfigError: If the file content fails validation
        """
        data = self.load_json_file(CONFIG_FILENAME)
        if data is None:
            logger.debug("No configuration file in %s, using defaults", self.config_dir)
            return Settings()

        try:
            return Settings.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings in {self.config_dir}: {e}") from e
