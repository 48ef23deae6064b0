"""Load env configuration into one Settings object."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from applytrack.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
DEFAULT_DATA_DIR: Path = ROOT_DIR / "data"

# Values shipped in .env.example; treated the same as "not set".
_PLACEHOLDERS = {"your_adzuna_app_id", "your_adzuna_app_key", "your_openai_api_key"}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _get_float(key: str, default: float) -> float:
    raw = get_env(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring non-numeric %s=%r, using %s", key, raw, default)
        return default


def _credential(key: str) -> str:
    value = get_env(key)
    return "" if value in _PLACEHOLDERS else value


@dataclass(frozen=True)
class Settings:
    adzuna_app_id: str = ""
    adzuna_app_key: str = ""
    adzuna_country: str = "us"
    provider_timeout: float = 8.0
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_model: str = "gpt-4o-mini"
    # No bound is observed on the service call upstream; 30s is our chosen default.
    openai_timeout: float = 30.0
    data_dir: Path = DEFAULT_DATA_DIR

    @property
    def provider_configured(self) -> bool:
        return bool(self.adzuna_app_id and self.adzuna_app_key)

    @property
    def service_configured(self) -> bool:
        return bool(self.openai_api_key)


def load_settings() -> Settings:
    data_dir = get_env("APPLYTRACK_DATA_DIR")
    return Settings(
        adzuna_app_id=_credential("ADZUNA_APP_ID"),
        adzuna_app_key=_credential("ADZUNA_APP_KEY"),
        adzuna_country=get_env("ADZUNA_COUNTRY", "us").lower() or "us",
        provider_timeout=_get_float("PROVIDER_TIMEOUT", 8.0),
        openai_api_key=_credential("OPENAI_API_KEY"),
        openai_base_url=get_env("OPENAI_BASE_URL"),
        openai_model=get_env("OPENAI_MODEL", "gpt-4o-mini") or "gpt-4o-mini",
        openai_timeout=_get_float("OPENAI_TIMEOUT", 30.0),
        data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
    )


def ensure_dirs(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    (settings.data_dir / "profiles").mkdir(parents=True, exist_ok=True)
