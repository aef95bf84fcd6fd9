"""
Central configuration loader.
Reads from environment variables (via .env) with sensible local defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Load .env from repo root (if present)
# ---------------------------------------------------------------------------
_REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_REPO_ROOT / ".env")


def _get(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    val = os.getenv(key, default)
    if required and not val:
        raise EnvironmentError(f"Missing required environment variable: {key}")
    return val


def _get_bool(key: str, default: str = "false") -> bool:
    return (_get(key, default=default) or "").lower() in ("1", "true", "yes")


def _get_int(key: str, default: int) -> int:
    raw = _get(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise EnvironmentError(f"Environment variable {key} must be an integer, got {raw!r}") from None


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class DatabaseConfig:
    path: Path
    log_queries: bool
    max_open_conns: int
    max_idle_conns: int


def get_db_path() -> Path:
    raw = _get("DB_PATH")
    if not raw:
        return _REPO_ROOT / "data" / "loans.db"
    path = Path(raw)
    return path if path.is_absolute() else _REPO_ROOT / path


def get_database_config() -> DatabaseConfig:
    return DatabaseConfig(
        path=get_db_path(),
        log_queries=_get_bool("LOG_DB_QUERIES"),
        max_open_conns=_get_int("DB_MAX_OPEN_CONNS", 25),
        max_idle_conns=_get_int("DB_MAX_IDLE_CONNS", 5),
    )


# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ServerConfig:
    host: str
    port: int
    reload: bool
    static_dir: Path
    log_level: str


def get_server_config() -> ServerConfig:
    static_raw = _get("STATIC_DIR")
    static_dir = Path(static_raw) if static_raw else _REPO_ROOT / "server" / "static"
    return ServerConfig(
        host=_get("SERVER_HOST", default="0.0.0.0"),  # type: ignore[arg-type]
        port=_get_int("SERVER_PORT", 8080),
        reload=_get_bool("SERVER_RELOAD"),
        static_dir=static_dir,
        log_level=_get("LOG_LEVEL", default="INFO"),  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
def get_repo_root() -> Path:
    return _REPO_ROOT
