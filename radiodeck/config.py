from pydantic_settings import BaseSettings, NoDecode
from pydantic import field_validator
from typing import Annotated, Any, Literal


def _parse_list(v: Any) -> list[str]:
    if isinstance(v, str):
        import json
        try:
            return json.loads(v)
        except json.JSONDecodeError:
            return [item.strip() for item in v.split(",") if item.strip()]
    return v


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # App
    APP_ENV: str = "development"
    APP_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database (local favorites + cached station list)
    DATABASE_URL: str = "sqlite+aiosqlite:///./radio.db"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def fix_database_url(cls, v: str) -> str:
        # Hosted Postgres gives postgres:// but asyncpg needs postgresql+asyncpg://
        if v.startswith("postgres://"):
            v = v.replace("postgres://", "postgresql+asyncpg://", 1)
        elif v.startswith("postgresql://") and "+asyncpg" not in v:
            v = v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    # CORS
    CORS_ORIGINS: Annotated[list[str], NoDecode] = ["http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Any) -> list[str]:
        return _parse_list(v)

    # Rate limiting (slowapi syntax)
    RATE_LIMIT: str = "200/minute"

    # Where GET /stations reads from: the live directory or the local store
    STATION_SOURCE: Literal["directory", "cached"] = "directory"
    DEFAULT_PAGE_SIZE: int = 24
    MAX_PAGE_SIZE: int = 1000

    # Radio Browser directory
    RADIO_BROWSER_SRV_RECORD: str = "_api._tcp.radio-browser.info"
    RADIO_BROWSER_FALLBACK_HOSTS: Annotated[list[str], NoDecode] = [
        "de1.api.radio-browser.info",
        "nl1.api.radio-browser.info",
        "at1.api.radio-browser.info",
    ]

    @field_validator("RADIO_BROWSER_FALLBACK_HOSTS", mode="before")
    @classmethod
    def parse_fallback_hosts(cls, v: Any) -> list[str]:
        hosts = _parse_list(v)
        if not hosts:
            raise ValueError("at least one fallback host is required")
        return hosts

    MIRROR_CACHE_TTL_SECONDS: int = 3600
    DNS_TIMEOUT_SECONDS: float = 5.0
    DIRECTORY_TIMEOUT_SECONDS: float = 10.0
    DIRECTORY_USER_AGENT: str = "RadioDeck/1.0"
    DIRECTORY_MAX_ATTEMPTS: int = 2

    # Cache population
    SYNC_PAGES: int = 4
    SYNC_PAGE_SIZE: int = 250

    # Client library
    API_BASE_URL: str = "http://localhost:8000/api/v1"
    SEARCH_DEBOUNCE_MS: int = 300
    CLIENT_FETCH_LIMIT: int = 1000

    # External audio engine
    PLAYER_PATH: str = "ffplay"
    PLAYER_ARGS: Annotated[list[str], NoDecode] = ["-nodisp", "-loglevel", "error", "-nostats"]
    PLAYER_STARTUP_GRACE_SECONDS: float = 3.0

    @field_validator("PLAYER_ARGS", mode="before")
    @classmethod
    def parse_player_args(cls, v: Any) -> list[str]:
        if isinstance(v, str) and not v.lstrip().startswith("["):
            return v.split()
        return _parse_list(v)

    @property
    def search_debounce_seconds(self) -> float:
        return self.SEARCH_DEBOUNCE_MS / 1000


settings = Settings()
