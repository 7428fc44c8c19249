from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from bookshelf.domain.ports import PrefsStoragePort

# environment variable -> settings key
ENV_VARS: Dict[str, str] = {
    "BOOKSHELF_API_URL": "api_base_url",
    "BOOKSHELF_API_KEY": "api_key",
    "BOOKSHELF_TIMEOUT_S": "request_timeout_s",
    "BOOKSHELF_PAGE_SIZE": "page_size",
    "BOOKSHELF_TOAST_TTL_MS": "toast_ttl_ms",
    "BOOKSHELF_DEBUG": "debug_logging",
}


@dataclass(frozen=True)
class CatalogSettings:
    """Typed runtime settings for the catalog client."""

    api_base_url: str = "http://localhost:8080"
    api_key: str = ""
    request_timeout_s: float = 10
    list_retries: int = 0
    page_size: int = 10
    toast_ttl_ms: int = 5000
    debug_logging: bool = False

    def apply_dict(self, payload: Mapping[str, Any]) -> "CatalogSettings":
        """Return a copy with ``payload`` applied. Unknown keys are rejected."""
        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping of flat keys.")
        allowed = {f.name for f in fields(self)}
        unknown = set(payload.keys()) - allowed
        if unknown:
            raise ValueError(f"Unsupported settings keys: {', '.join(sorted(str(key) for key in unknown))}")
        updates = {key: _coerce(key, value) for key, value in payload.items()}
        return replace(self, **updates)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_settings(
    storage: Optional[PrefsStoragePort] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> CatalogSettings:
    """Defaults, then saved preferences, then environment overrides."""
    settings = CatalogSettings()
    if storage is not None:
        settings = settings.apply_dict(storage.load_user_prefs())
    env = os.environ if environ is None else environ
    overrides = {key: env[var] for var, key in ENV_VARS.items() if env.get(var)}
    if overrides:
        settings = settings.apply_dict(overrides)
    return settings


# ----------------------------------------------------------------------
# Coercion helpers
# ----------------------------------------------------------------------
def _coerce(key: str, raw: Any) -> Any:
    if key == "api_base_url":
        text = str(raw or "").strip()
        if not text:
            raise ValueError("api_base_url must be a non-empty URL.")
        return text.rstrip("/")
    if key == "api_key":
        return "" if raw is None else str(raw).strip()
    if key == "request_timeout_s":
        return _coerce_number(key, raw, positive=True)
    if key in {"page_size", "toast_ttl_ms", "list_retries"}:
        value = int(_coerce_number(key, raw, positive=key == "page_size"))
        if value < 0:
            raise ValueError(f"{key} must be non-negative.")
        return value
    if key == "debug_logging":
        return _coerce_bool(raw)
    raise ValueError(f"Unhandled settings field: {key}")


def _coerce_number(name: str, value: Any, *, positive: bool) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number.")
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number.") from exc
    if positive and number <= 0:
        raise ValueError(f"{name} must be positive.")
    return number


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


__all__ = ["CatalogSettings", "ENV_VARS", "load_settings"]
