"""Environment-driven configuration.

Values come from the process environment, optionally seeded from a
``.env`` file. ``BACKEND_MODE=memory`` runs entirely in-process;
``hosted`` needs Supabase credentials and a PostgreSQL DSN.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

BACKEND_MODES = ("memory", "hosted")
DEFAULT_CORS_ORIGINS = ["http://localhost:5173"]


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


@dataclass
class AppConfig:
    backend_mode: str = "memory"
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    storage_bucket: str = "golf-journal"
    database_url: Optional[str] = None
    log_level: str = "INFO"
    notification_ttl: float = 5.0
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @property
    def is_hosted(self) -> bool:
        return self.backend_mode == "hosted"


def _parse_float(name: str, raw: Optional[str], default: float) -> float:
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def load_config(env: Optional[Mapping[str, str]] = None, *, use_dotenv: bool = True) -> AppConfig:
    """Build an AppConfig from `env` (defaults to os.environ) and validate it."""
    if env is None:
        if use_dotenv:
            load_dotenv()
        env = os.environ

    mode = env.get("BACKEND_MODE", "memory").strip().lower()
    if mode not in BACKEND_MODES:
        raise ConfigurationError(f"BACKEND_MODE must be one of {BACKEND_MODES}, got {mode!r}")

    origins = [o.strip() for o in env.get("CORS_ORIGINS", "").split(",") if o.strip()]
    config = AppConfig(
        backend_mode=mode,
        supabase_url=env.get("SUPABASE_URL") or None,
        supabase_anon_key=env.get("SUPABASE_ANON_KEY") or None,
        supabase_service_role_key=env.get("SUPABASE_SERVICE_ROLE_KEY") or None,
        storage_bucket=env.get("SUPABASE_STORAGE_BUCKET") or "golf-journal",
        database_url=env.get("DATABASE_URL") or None,
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        notification_ttl=_parse_float(
            "NOTIFICATION_TTL_SECONDS", env.get("NOTIFICATION_TTL_SECONDS"), 5.0
        ),
        cors_origins=origins or list(DEFAULT_CORS_ORIGINS),
    )

    if config.is_hosted:
        missing = [
            name
            for name, value in (
                ("SUPABASE_URL", config.supabase_url),
                ("SUPABASE_ANON_KEY", config.supabase_anon_key),
                ("DATABASE_URL", config.database_url),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Hosted mode requires: {', '.join(missing)}")
        if not config.supabase_service_role_key:
            logger.warning("SUPABASE_SERVICE_ROLE_KEY not set; account deletion will fail")
    return config
