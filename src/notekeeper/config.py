"""Configuration management for Notekeeper."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

NOTEKEEPER_HOME = Path(os.environ.get("NOTEKEEPER_HOME", Path.home() / "notekeeper"))
CONFIG_FILE = NOTEKEEPER_HOME / "config" / "notekeeper.conf"
TOKEN_FILE = NOTEKEEPER_HOME / "config" / ".token.json"
DATA_DIR = NOTEKEEPER_HOME / "data"

DEFAULT_CORS_ORIGINS = [
    "http://127.0.0.1:5500",
    "http://localhost:5500",
    "http://localhost:3000",
]

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class Config:
    """Notekeeper configuration."""

    spreadsheet_id: str = ""
    google_credentials_file: str = "credentials.json"
    calendar_id: str = "primary"
    timezone: str = "Asia/Taipei"
    jwt_secret: str = ""
    use_mock_db: bool = False
    local_db_file: str = ""
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    frontend_url: str = ""
    host: str = "127.0.0.1"
    port: int = 3000
    # Client settings
    api_url: str = "http://localhost:3000/api"
    # Fixed-window rate limits
    rate_limit_max: int = 300
    login_rate_limit_max: int = 10
    rate_limit_window: int = 15 * 60

    @property
    def local_db_path(self) -> Path:
        if self.local_db_file:
            return Path(self.local_db_file).expanduser()
        return DATA_DIR / "local_db.json"

    @property
    def allowed_origins(self) -> list[str]:
        origins = list(self.cors_origins)
        if self.frontend_url and self.frontend_url not in origins:
            origins.append(self.frontend_url)
        return origins


@dataclass
class Token:
    """Bearer token stored by the CLI client."""

    token: str = ""
    username: str = ""

    def save(self) -> None:
        """Save token to file."""
        TOKEN_FILE.parent.mkdir(parents=True, exist_ok=True)
        TOKEN_FILE.write_text(json.dumps({"token": self.token, "username": self.username}))
        TOKEN_FILE.chmod(0o600)

    @classmethod
    def load(cls) -> "Token":
        """Load token from file."""
        if not TOKEN_FILE.exists():
            return cls()
        try:
            data = json.loads(TOKEN_FILE.read_text())
            return cls(token=data.get("token", ""), username=data.get("username", ""))
        except (json.JSONDecodeError, KeyError):
            return cls()

    @staticmethod
    def discard() -> None:
        """Remove the stored token, if any."""
        TOKEN_FILE.unlink(missing_ok=True)


def _parse_value(value: str) -> str:
    """Strip quotes and inline comments from a raw config value."""
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def _parse_int(key: str, value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key.upper()}: {value!r}, using {default}")
        return default


def _apply(config: Config, key: str, value: str) -> None:
    match key:
        case "spreadsheet_id":
            config.spreadsheet_id = value
        case "google_credentials_file":
            config.google_credentials_file = value
        case "calendar_id":
            config.calendar_id = value
        case "timezone":
            config.timezone = value
        case "jwt_secret":
            config.jwt_secret = value
        case "use_mock_db":
            config.use_mock_db = value.lower() in _TRUE_VALUES
        case "local_db_file":
            config.local_db_file = value
        case "cors_origins":
            config.cors_origins = [o.strip() for o in value.split(",") if o.strip()]
        case "frontend_url":
            config.frontend_url = value
        case "host":
            config.host = value
        case "port":
            config.port = _parse_int(key, value, config.port)
        case "api_url":
            config.api_url = value.rstrip("/")
        case "rate_limit_max":
            config.rate_limit_max = _parse_int(key, value, config.rate_limit_max)
        case "login_rate_limit_max":
            config.login_rate_limit_max = _parse_int(key, value, config.login_rate_limit_max)
        case "rate_limit_window":
            config.rate_limit_window = _parse_int(key, value, config.rate_limit_window)


_KEYS = [
    "spreadsheet_id",
    "google_credentials_file",
    "calendar_id",
    "timezone",
    "jwt_secret",
    "use_mock_db",
    "local_db_file",
    "cors_origins",
    "frontend_url",
    "host",
    "port",
    "api_url",
    "rate_limit_max",
    "login_rate_limit_max",
    "rate_limit_window",
]


def load_config() -> Config:
    """Load configuration from notekeeper.conf, then apply environment overrides."""
    config = Config()

    if CONFIG_FILE.exists():
        for line in CONFIG_FILE.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            _apply(config, key.strip().lower(), _parse_value(value.strip()))

    for key in _KEYS:
        env_value = os.environ.get(key.upper())
        if env_value is not None:
            _apply(config, key, env_value.strip())

    return config
