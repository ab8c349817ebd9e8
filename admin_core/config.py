from __future__ import annotations
import os, json, pathlib


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


# Placeholders shipped in the page template; treated as "not configured".
PLACEHOLDER_URL: str = "YOUR_SUPABASE_URL"
PLACEHOLDER_KEY: str = "YOUR_SUPABASE_ANON_KEY"

SUPABASE_URL: str = PLACEHOLDER_URL
SUPABASE_ANON_KEY: str = PLACEHOLDER_KEY
ADMIN_BACKEND: str = "rest"       # "rest" | "memory"
BACKEND_TIMEOUT: float = 10.0

MIN_OPTIONS: int = 2
SCORE_MIN: int = 0
SCORE_MAX: int = 10

QUESTION_ORDER_STRATEGY: str = "fixed"   # "fixed" | "append"
QUESTION_ORDER_FIXED: int = 1

DATE_FORMAT: str = "%Y-%m-%d"
NOTICE_LIMIT: int = 20
LOG_LEVEL: str = "INFO"

# // env overrides for deployment; defaults keep the unconfigured state.
SUPABASE_URL = _env_str("SUPABASE_URL", SUPABASE_URL)
SUPABASE_ANON_KEY = _env_str("SUPABASE_ANON_KEY", SUPABASE_ANON_KEY)
ADMIN_BACKEND = _env_str("ADMIN_BACKEND", ADMIN_BACKEND).lower()
BACKEND_TIMEOUT = _env_float("BACKEND_TIMEOUT", BACKEND_TIMEOUT)
QUESTION_ORDER_STRATEGY = _env_str("QUESTION_ORDER_STRATEGY", QUESTION_ORDER_STRATEGY).lower()
QUESTION_ORDER_FIXED = _env_int("QUESTION_ORDER_FIXED", QUESTION_ORDER_FIXED)
DATE_FORMAT = _env_str("DATE_FORMAT", DATE_FORMAT)
LOG_LEVEL = _env_str("LOG_LEVEL", LOG_LEVEL).upper()
DEBUG_REQUESTS: bool = _env_bool("DEBUG_REQUESTS", False)


def load_config() -> dict:
    """Merge an optional ``config.json`` with the environment.

    Environment values win over the file, the file wins over module defaults.
    """
    cfg = {
        "SUPABASE_URL": SUPABASE_URL,
        "SUPABASE_ANON_KEY": SUPABASE_ANON_KEY,
        "ADMIN_BACKEND": ADMIN_BACKEND,
        "BACKEND_TIMEOUT": BACKEND_TIMEOUT,
    }
    p = pathlib.Path(os.getenv("ADMIN_CONFIG", "config.json"))
    if p.exists():
        try: file_cfg = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError): file_cfg = {}
        for k, v in file_cfg.items():
            if k in cfg and not os.getenv(k):
                cfg[k] = v
    cfg["ADMIN_BACKEND"] = str(cfg["ADMIN_BACKEND"]).lower()
    try: cfg["BACKEND_TIMEOUT"] = float(cfg["BACKEND_TIMEOUT"])
    except (TypeError, ValueError): cfg["BACKEND_TIMEOUT"] = BACKEND_TIMEOUT
    return cfg


def is_configured(cfg: dict) -> bool:
    url = (cfg.get("SUPABASE_URL") or "").strip()
    key = (cfg.get("SUPABASE_ANON_KEY") or "").strip()
    if not url or not key:
        return False
    return url != PLACEHOLDER_URL and key != PLACEHOLDER_KEY
