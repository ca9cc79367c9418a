"""Load settings.yaml and env configuration."""
from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any
from urllib.parse import quote_plus

import yaml
from dotenv import load_dotenv

from skillmatch.errors import ConfigError
from skillmatch.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"

DEFAULT_ANALYZER_MODEL = "openai/gpt-3.5-turbo"
DEFAULT_ANALYZER_BASE_URL = "https://openrouter.ai/api/v1"


@dataclass(frozen=True)
class SearchSettings:
    # Weights and caps are fixed product constants; keep them unchanged.
    max_priority_skills: int = 3
    title_weight: int = 5
    skills_weight: int = 3
    detail_weight: int = 1
    breadth_bonus: int = 2
    min_score: int = 4
    per_source_cap: int = 3
    result_cap: int = 8
    legacy_per_source_cap: int = 4
    legacy_result_cap: int = 12


@dataclass(frozen=True)
class IngestSettings:
    days_to_keep: int = 5
    chunk_size: int = 100
    max_total_items: int = 15
    per_source_limit: int = 15
    detail_max_chars: int = 4000
    price_max_chars: int = 1000
    period_max_chars: int = 1000
    skills_max_chars: int = 2000
    other_max_chars: int = 2000


@dataclass(frozen=True)
class DatabaseSettings:
    user: str = ""
    password: str = ""
    host: str = ""
    port: str = ""
    name: str = ""
    ssl_mode: str = "require"
    explicit_url: str = ""
    pool_size: int = 5
    max_overflow: int = 20
    pool_recycle: int = 300
    pool_timeout: int = 30

    def validate(self) -> None:
        if self.explicit_url:
            return
        for attr, env_key in (
            ("user", "DB_USER"),
            ("password", "DB_PASSWORD"),
            ("host", "DB_HOST"),
            ("port", "DB_PORT"),
            ("name", "DB_NAME"),
        ):
            if not getattr(self, attr):
                raise ConfigError(f"{env_key} is not set")

    def url(self) -> str:
        if self.explicit_url:
            return self.explicit_url
        return (
            f"postgresql+psycopg2://{quote_plus(self.user)}:{quote_plus(self.password)}"
            f"@{self.host}:{self.port}/{self.name}?sslmode={self.ssl_mode}"
        )

    def safe_description(self) -> str:
        """Host/database label for logs, never includes credentials."""
        if self.explicit_url:
            return self.explicit_url.split("@")[-1]
        return f"{self.host}:{self.port}/{self.name}"


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def load_settings_file(path: Path | None = None) -> dict[str, Any]:
    path = path or SETTINGS_PATH
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain a mapping at top level")
    return data


def _apply_overrides(base, section: dict[str, Any] | None, label: str):
    if not section:
        return base
    known = {f.name for f in fields(base)}
    unknown = sorted(set(section) - known)
    if unknown:
        log.warning("Ignoring unknown %s settings: %s", label, ", ".join(unknown))
    return replace(base, **{k: v for k, v in section.items() if k in known})


def load_search_settings(path: Path | None = None) -> SearchSettings:
    data = load_settings_file(path)
    return _apply_overrides(SearchSettings(), data.get("search"), "search")


def load_ingest_settings(path: Path | None = None) -> IngestSettings:
    data = load_settings_file(path)
    return _apply_overrides(IngestSettings(), data.get("ingest"), "ingest")


def load_database_settings(path: Path | None = None) -> DatabaseSettings:
    data = load_settings_file(path)
    settings = DatabaseSettings(
        user=get_env("DB_USER"),
        password=get_env("DB_PASSWORD"),
        host=get_env("DB_HOST"),
        port=get_env("DB_PORT"),
        name=get_env("DB_NAME"),
        ssl_mode=get_env("DB_SSL_MODE") or "require",
        explicit_url=get_env("DATABASE_URL"),
    )
    # Only pool tuning is read from the file; credentials stay in the environment.
    pool = {k: v for k, v in (data.get("database") or {}).items() if k.startswith("pool_") or k == "max_overflow"}
    return _apply_overrides(settings, pool, "database")


def analyzer_model() -> str:
    return get_env("ANALYZER_MODEL") or DEFAULT_ANALYZER_MODEL


def analyzer_base_url() -> str:
    return get_env("ANALYZER_BASE_URL") or DEFAULT_ANALYZER_BASE_URL
