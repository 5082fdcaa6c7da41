"""Configuration management for recurset."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

RECURSET_HOME = Path(os.environ.get("RECURSET_HOME", Path.home() / ".recurset"))
CONFIG_FILE = RECURSET_HOME / "recurset.conf"

OUTPUT_FORMATS = ("text", "json")


@dataclass
class Config:
    """recurset configuration."""

    caching: bool = False
    max_occurrences: int = 100
    timezone: str = ""
    output_format: str = "text"


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _strip_value(value: str) -> str:
    """Remove quotes, or an inline comment from an unquoted value."""
    if value[:1] in ('"', "'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from recurset.conf."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        try:
            match key:
                case "caching":
                    config.caching = _parse_bool(value)
                case "max_occurrences":
                    limit = int(value)
                    if limit < 1:
                        raise ValueError(f"must be positive, got {limit}")
                    config.max_occurrences = limit
                case "timezone":
                    config.timezone = value
                case "output_format":
                    if value not in OUTPUT_FORMATS:
                        raise ValueError(f"expected one of {', '.join(OUTPUT_FORMATS)}")
                    config.output_format = value
        except ValueError as e:
            logger.warning(f"Ignoring invalid {key.upper()} in {path}: {e}")

    return config
