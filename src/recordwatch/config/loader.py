"""YAML configuration loading with environment variable expansion."""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict

import yaml

from recordwatch.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


class ConfigLoader:
    """Loads ``config/config.yaml`` relative to a base directory."""

    def __init__(self, base_dir: Path | str, filename: str = "config.yaml"):
        self.base_dir = Path(base_dir)
        self.path = self.base_dir / "config" / filename

    def load(self) -> Dict[str, Any]:
        """Read and expand the config file; missing file yields an empty mapping."""
        if not self.path.exists():
            logger.debug("No config file at %s; using defaults", self.path)
            return {}
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {self.path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigurationError(f"{self.path} must contain a mapping at the top level")
        return self.expand(raw)

    @classmethod
    def expand(cls, value: Any) -> Any:
        """Recursively substitute ``${VAR}`` and ``${VAR:-default}`` placeholders."""
        if isinstance(value, dict):
            return {key: cls.expand(item) for key, item in value.items()}
        if isinstance(value, list):
            return [cls.expand(item) for item in value]
        if isinstance(value, str):
            return _ENV_PATTERN.sub(_substitute, value)
        return value


def _substitute(match: re.Match) -> str:
    name, default = match.group(1), match.group(2)
    return os.environ.get(name, default if default is not None else "")


__all__ = ["ConfigLoader"]
