from dataclasses import dataclass
import os

from dotenv import load_dotenv

from scrubcsv.errors import ConfigError


load_dotenv()

APP_NAME = "scrubcsv"
APP_VERSION = "1.0.0"


@dataclass(frozen=True)
class Settings:
    log_level: str
    buffer_size: int
    field_size_limit: int


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def get_settings() -> Settings:
    return Settings(
        log_level=os.getenv("LOG_LEVEL", "WARNING"),
        buffer_size=_int_env("BUFFER_SIZE", 256 * 1024),
        field_size_limit=_int_env("FIELD_SIZE_LIMIT", 1024 * 1024 * 1024),
    )
