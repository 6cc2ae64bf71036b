"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass

from fotix.models import DEFAULT_ERP_SIZE, DEFAULT_SITE_SIZE, MAX_UPLOAD_MB, TargetSpec

GEMINI_KEY_ENV_VARS: tuple[str, ...] = ("GEMINI_API_KEY", "CHAVE_API_GEMINI", "GOOGLE_API_KEY")
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


def resolve_api_key(explicit: str | None, *env_names: str) -> str:
    """Return the explicit key if given, else the first non-empty env var."""
    if explicit and explicit.strip():
        return explicit.strip()
    for name in env_names:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return ""


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass
class Settings:
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    site_width: int = DEFAULT_SITE_SIZE[0]
    site_height: int = DEFAULT_SITE_SIZE[1]
    erp_width: int = DEFAULT_ERP_SIZE[0]
    erp_height: int = DEFAULT_ERP_SIZE[1]
    max_upload_mb: int = MAX_UPLOAD_MB
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            gemini_api_key=resolve_api_key(None, *GEMINI_KEY_ENV_VARS),
            gemini_model=os.environ.get("FOTIX_GEMINI_MODEL", "").strip() or DEFAULT_GEMINI_MODEL,
            site_width=_env_int("FOTIX_SITE_WIDTH", DEFAULT_SITE_SIZE[0]),
            site_height=_env_int("FOTIX_SITE_HEIGHT", DEFAULT_SITE_SIZE[1]),
            erp_width=_env_int("FOTIX_ERP_WIDTH", DEFAULT_ERP_SIZE[0]),
            erp_height=_env_int("FOTIX_ERP_HEIGHT", DEFAULT_ERP_SIZE[1]),
            max_upload_mb=_env_int("FOTIX_MAX_UPLOAD_MB", MAX_UPLOAD_MB),
            log_level=os.environ.get("FOTIX_LOG_LEVEL", "").strip().upper() or "INFO",
        )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    def default_targets(self) -> list[TargetSpec]:
        return [
            TargetSpec.site(self.site_width, self.site_height),
            TargetSpec.erp(self.erp_width, self.erp_height),
        ]
