"""
Runtime settings, read from environment variables.

Everything has a safe default so the API can boot locally with only a
database URL (or the DB_* parts) set.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

from fastapi import Request

DEFAULT_CORS_ORIGINS = (
    "https://datos-github-io-gamma.vercel.app",
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:8080",
)

ROLE_POLICY_SUBSTITUTE = "substitute"
ROLE_POLICY_REJECT = "reject"


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw not in {"0", "false", "no", "off"}


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _split_sslmode(url: str) -> tuple[str, str | None]:
    """
    asyncpg does not understand libpq's `sslmode` query parameter, so we pull
    it out of the URL and hand it over as the `ssl` connect argument instead.
    """
    parts = urlsplit(url)
    if not parts.query:
        return url, None

    sslmode = None
    params = []
    for k, v in parse_qsl(parts.query, keep_blank_values=True):
        if k == "sslmode":
            sslmode = v
            continue
        params.append((k, v))
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment)), sslmode


def _dsn_from_parts() -> str:
    host = _env_str("DB_HOST", "localhost")
    port = _env_int("DB_PORT", 5432)
    user = quote(_env_str("DB_USER", "postgres"), safe="")
    password = quote(os.environ.get("DB_PASSWORD", ""), safe="")
    name = _env_str("DB_NAME", "smartbee")
    auth = f"{user}:{password}" if password else user
    return f"postgresql://{auth}@{host}:{port}/{name}"


@dataclass(frozen=True)
class Settings:
    database_url: str
    db_ssl: str = "disable"
    db_pool_min: int = 1
    db_pool_max: int = 10
    db_command_timeout: float = 30.0
    db_retry_interval: float = 5.0
    port: int = 8080
    cors_origins: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    app_env: str = "production"
    enable_debug_routes: bool = False
    invalid_role_policy: str = ROLE_POLICY_SUBSTITUTE
    jwt_secret: str = "dev-change-this-secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


def get_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        settings = load_settings()
        request.app.state.settings = settings
    return settings


def load_settings() -> Settings:
    url = _env_str("DATABASE_URL") or _dsn_from_parts()
    url, sslmode = _split_sslmode(url)
    db_ssl = _env_str("DB_SSL", sslmode or "disable").lower()

    role_policy = _env_str("INVALID_ROLE_POLICY", ROLE_POLICY_SUBSTITUTE).lower()
    if role_policy not in {ROLE_POLICY_SUBSTITUTE, ROLE_POLICY_REJECT}:
        role_policy = ROLE_POLICY_SUBSTITUTE

    pool_min = max(1, _env_int("DB_POOL_MIN", 1))
    pool_max = max(pool_min, _env_int("DB_POOL_MAX", 10))

    return Settings(
        database_url=url,
        db_ssl=db_ssl,
        db_pool_min=pool_min,
        db_pool_max=pool_max,
        db_command_timeout=_env_float("DB_COMMAND_TIMEOUT", 30.0),
        db_retry_interval=max(0.0, _env_float("DB_RETRY_INTERVAL", 5.0)),
        port=_env_int("PORT", 8080),
        cors_origins=_env_list("CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
        app_env=_env_str("APP_ENV", "production").lower(),
        enable_debug_routes=_env_bool("ENABLE_DEBUG_ROUTES", False),
        invalid_role_policy=role_policy,
        jwt_secret=_env_str("JWT_SECRET", "dev-change-this-secret"),
        jwt_algorithm=_env_str("JWT_ALG", "HS256"),
        access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MIN", 60),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
    )
