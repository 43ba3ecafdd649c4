"""Configuration management for termcal."""

import logging
import os
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import tz as dateutil_tz

logger = logging.getLogger(__name__)

TERMCAL_HOME = Path(os.environ.get("TERMCAL_HOME", Path.home() / ".termcal"))
CONFIG_FILE = TERMCAL_HOME / "termcal.conf"
LOG_FILE = TERMCAL_HOME / "termcal.log"

VIEW_CHOICES = ("day", "week")
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass
class Config:
    """termcal configuration."""

    timezone: str = ""
    default_view: str = "week"
    cache_ttl_seconds: int = 300
    strict_aggregation: bool = True
    google_config_folder: str = field(default_factory=lambda: str(TERMCAL_HOME / "google"))
    google_client_secret_file: str = ""

    def tz(self) -> tzinfo:
        """Zone used for day boundaries. Empty timezone means system local."""
        if self.timezone:
            try:
                return ZoneInfo(self.timezone)
            except (ZoneInfoNotFoundError, ValueError):
                logger.warning(f"Unknown timezone '{self.timezone}', using local time")
        return local_timezone()


def local_timezone() -> tzinfo:
    """
    The system's local timezone, with its daylight saving rules.

    A zone name in TZ wins; otherwise dateutil follows the C library's idea
    of local time, which still switches offsets across DST.
    """
    name = os.environ.get("TZ", "").lstrip(":")
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"TZ='{name}' is not a zone name, using system rules")
    return dateutil_tz.tzlocal()


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from an unquoted value."""
    if value.startswith('"'):
        end_quote = value.find('"', 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if value.startswith("'"):
        end_quote = value.find("'", 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def _parse_bool(key: str, value: str, default: bool) -> bool:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    logger.warning(f"Invalid boolean for {key.upper()}: '{value}'")
    return default


def parse_config(text: str) -> Config:
    """Parse termcal.conf content into a Config."""
    config = Config()

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "timezone":
                config.timezone = value
            case "default_view":
                if value.lower() in VIEW_CHOICES:
                    config.default_view = value.lower()
                else:
                    logger.warning(f"Invalid DEFAULT_VIEW '{value}', expected day or week")
            case "cache_ttl_seconds":
                try:
                    ttl = int(value)
                except ValueError:
                    logger.warning(f"Invalid CACHE_TTL_SECONDS '{value}'")
                    continue
                if ttl < 0:
                    logger.warning(f"CACHE_TTL_SECONDS must not be negative: {ttl}")
                    continue
                config.cache_ttl_seconds = ttl
            case "strict_aggregation":
                config.strict_aggregation = _parse_bool(key, value, config.strict_aggregation)
            case "google_config_folder":
                config.google_config_folder = value
            case "google_client_secret_file":
                config.google_client_secret_file = value

    return config


def load_config() -> Config:
    """Load configuration from termcal.conf file."""
    if not CONFIG_FILE.exists():
        return Config()
    return parse_config(CONFIG_FILE.read_text())


def configure_logging(debug: bool = False) -> None:
    """Send log records to LOG_FILE so they never draw over the grid."""
    LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(LOG_FILE),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if debug else logging.WARNING,
    )
