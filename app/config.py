"""Configuration management for the user records service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import yaml

from .database import resolve_database_path

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001
DEFAULT_API_URL = f"http://localhost:{DEFAULT_PORT}/api"


@dataclass(frozen=True)
class Settings:
    """Runtime settings shared by the server and the console client."""

    database_path: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    api_base_url: str = DEFAULT_API_URL
    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""

        raw_db = data.get("database_path")
        if raw_db:
            candidate = Path(str(raw_db)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            database_path = candidate.resolve(strict=False)
        else:
            database_path = resolve_database_path(None)

        return Settings(
            database_path=database_path,
            host=str(data.get("host") or DEFAULT_HOST),
            port=_parse_port(data.get("port", DEFAULT_PORT)),
            api_base_url=str(data.get("api_base_url") or DEFAULT_API_URL).rstrip("/"),
            cors_origins=_parse_origins(data.get("cors_origins", ("*",))),
            log_level=str(data.get("log_level") or "INFO").upper(),
        )


def _parse_port(value: object) -> int:
    try:
        port = int(str(value))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid port setting: {value!r}") from exc
    if not 1 <= port <= 65535:
        raise ValueError(f"Port must be between 1 and 65535, got {port}")
    return port


def _parse_origins(value: object) -> Tuple[str, ...]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        raise ValueError("cors_origins must be a list or a comma separated string")
    origins = tuple(item.strip() for item in items if item.strip())
    return origins or ("*",)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "settings.yaml").resolve(strict=False)
    return candidate


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, object]:
    mapping = {
        "USERCRUD_DB_PATH": "database_path",
        "USERCRUD_HOST": "host",
        "USERCRUD_PORT": "port",
        "USERCRUD_API_URL": "api_base_url",
        "USERCRUD_CORS_ORIGINS": "cors_origins",
        "USERCRUD_LOG_LEVEL": "log_level",
    }
    overrides: Dict[str, object] = {}
    for env_name, key in mapping.items():
        value = environ.get(env_name)
        if value is not None and value.strip():
            overrides[key] = value.strip()
    return overrides


def load_settings(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from a YAML file, then apply environment overrides.

    A missing file is not an error; the defaults apply instead.
    """

    if environ is None:
        environ = os.environ
    if config_path is None:
        config_path = resolve_config_path(environ.get("USERCRUD_CONFIG"))

    raw: Dict[str, object] = {}
    if config_path.is_file():
        with config_path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        raw.update(loaded)

    overrides = _env_overrides(environ)
    if "database_path" in overrides:
        # Environment paths resolve against the working directory, like the seed script.
        overrides["database_path"] = str(resolve_database_path(str(overrides["database_path"])))
    raw.update(overrides)
    return Settings.from_dict(raw, base_path=config_path.parent)


__all__ = ["Settings", "load_settings", "resolve_config_path"]
