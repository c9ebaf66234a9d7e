from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from .storage import DEFAULT_CATALOG_URL


ENV_KEYS = [
    "POS_CATALOG_URL",
    "POS_SETTINGS_PATH",
    "POS_TAX_RATE",
    "POS_RECEIPT_LANGUAGE",
    "POS_ATTEMPT_TIMEOUT",
    "POS_FETCH_TIMEOUT",
    "POS_DEADLINE",
    "POS_LOG_LEVEL",
]


@dataclass(frozen=True)
class Config:
    default_catalog_url: str = DEFAULT_CATALOG_URL
    settings_path: str = "data/settings.json"
    tax_rate: float = 0.0
    receipt_language: str = "english"

    # per-candidate timeout for cloud-office links
    attempt_timeout_s: float = 10.0
    # single download for everything else
    fetch_timeout_s: float = 30.0
    # whole load, all attempts included
    deadline_s: float = 30.0

    log_level: str = "WARNING"

    @staticmethod
    def load_from_env(environ: Mapping[str, str] | None = None) -> "Config":
        env = os.environ if environ is None else environ
        defaults = Config()

        tax_rate = _float(env, "POS_TAX_RATE", defaults.tax_rate)
        if not 0 <= tax_rate < 1:
            raise RuntimeError(f"POS_TAX_RATE must be a fraction between 0 and 1, got {tax_rate}")

        return Config(
            default_catalog_url=env.get("POS_CATALOG_URL", "").strip() or defaults.default_catalog_url,
            settings_path=env.get("POS_SETTINGS_PATH", "").strip() or defaults.settings_path,
            tax_rate=tax_rate,
            receipt_language=env.get("POS_RECEIPT_LANGUAGE", "").strip() or defaults.receipt_language,
            attempt_timeout_s=_float(env, "POS_ATTEMPT_TIMEOUT", defaults.attempt_timeout_s),
            fetch_timeout_s=_float(env, "POS_FETCH_TIMEOUT", defaults.fetch_timeout_s),
            deadline_s=_float(env, "POS_DEADLINE", defaults.deadline_s),
            log_level=(env.get("POS_LOG_LEVEL", "").strip() or defaults.log_level).upper(),
        )


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"Invalid value for {key}: {raw!r}") from None
