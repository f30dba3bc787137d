import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    api_prefix: str
    log_level: str
    cors_origins: tuple[str, ...]


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def normalize_database_url(url: str) -> str:
    """
    Heroku/DO style `postgres://` URLs are not accepted by SQLAlchemy 2.x;
    route them (and bare `postgresql://`) through psycopg v3.
    """
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://"):]
    return url


def load_settings() -> Settings:
    prefix = _getenv("API_PREFIX", "/api").rstrip("/")
    if prefix and not prefix.startswith("/"):
        prefix = "/" + prefix
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=normalize_database_url(_getenv("DATABASE_URL", "sqlite:///crm.db")),
        api_prefix=prefix,
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=tuple(o.strip() for o in _getenv("CORS_ORIGINS", "*").split(",") if o.strip()) or ("*",),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "API_PREFIX": s.api_prefix,
        "LOG_LEVEL": s.log_level,
        "CORS_ORIGINS": s.cors_origins,
        # request body limit (1MB); customer payloads are tiny
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }
