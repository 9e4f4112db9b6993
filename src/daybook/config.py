"""Configuration management for Daybook."""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DAYBOOK_HOME = Path(os.environ.get("DAYBOOK_HOME", Path.home() / "daybook"))
CONFIG_FILE = DAYBOOK_HOME / "config" / "daybook.conf"
SESSION_FILE = DAYBOOK_HOME / "config" / ".session.json"
DATA_DIR = DAYBOOK_HOME / "data"


@dataclass
class Config:
    """Daybook configuration."""

    api_base_url: str = ""
    api_timeout: float = 15.0
    data_dir: str = ""
    extra_moods: list[str] = field(default_factory=list)
    timezone: str = "UTC"
    recompute_streak: bool = True

    def today(self) -> date:
        """Current date in the configured timezone."""
        return datetime.now(ZoneInfo(self.timezone)).date()


@dataclass
class Session:
    """Signed-in owner and API token."""

    owner_id: str = ""
    access_token: str = ""

    def save(self) -> None:
        """Save session to file."""
        SESSION_FILE.parent.mkdir(parents=True, exist_ok=True)
        SESSION_FILE.write_text(
            json.dumps(
                {
                    "owner_id": self.owner_id,
                    "access_token": self.access_token,
                }
            )
        )
        SESSION_FILE.chmod(0o600)

    @classmethod
    def load(cls) -> "Session":
        """Load session from file."""
        if not SESSION_FILE.exists():
            return cls()
        try:
            data = json.loads(SESSION_FILE.read_text())
            return cls(
                owner_id=data.get("owner_id", ""),
                access_token=data.get("access_token", ""),
            )
        except (json.JSONDecodeError, KeyError):
            return cls()

    def clear(self) -> None:
        """Remove the saved session."""
        if SESSION_FILE.exists():
            SESSION_FILE.unlink()


def _parse_bool(value: str) -> bool:
    return value.lower() in ("1", "true", "yes", "on")


def load_config(path: Path | None = None) -> Config:
    """Load configuration from daybook.conf file."""
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
        value = value.strip()

        # Handle quoted values with inline comments: "value" # comment
        if value.startswith('"') or value.startswith("'"):
            quote = value[0]
            end_quote = value.find(quote, 1)
            value = value[1:end_quote] if end_quote != -1 else value[1:]
        elif "#" in value:
            value = value.split("#")[0].strip()

        match key:
            case "api_base_url":
                config.api_base_url = value
            case "api_timeout":
                try:
                    config.api_timeout = float(value)
                except ValueError:
                    logger.warning(f"Invalid API_TIMEOUT {value!r}, using {config.api_timeout}")
            case "data_dir":
                config.data_dir = value
            case "extra_moods":
                config.extra_moods = [m.strip() for m in value.split(",") if m.strip()]
            case "timezone":
                try:
                    ZoneInfo(value)
                    config.timezone = value
                except (ZoneInfoNotFoundError, ValueError):
                    logger.warning(f"Unknown TIMEZONE {value!r}, using {config.timezone}")
            case "recompute_streak":
                config.recompute_streak = _parse_bool(value)
            case _:
                logger.debug(f"Ignoring unknown config key {key!r}")

    return config
