# ----------------------------------------------------------------
# Import configuration variables to be used throughout the project
# ----------------------------------------------------------------
import os
from dotenv import load_dotenv

# Load .env (allow container env to override file values)
load_dotenv(override=True)


def _rstrip_slash(s: str) -> str:
    return (s or "").rstrip("/")


def _get_bool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "on", "y"}


def _get_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, "") or default)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, "") or default)
    except ValueError:
        return default


class Settings:
    # ── Breez feed ───────────────────────────────────────────────────────────
    BREEZ_API_URL: str = _rstrip_slash(os.getenv("BREEZ_API_URL", "https://api.breez.ru/v1"))
    BREEZ_LOGIN: str = os.getenv("BREEZ_LOGIN", "")
    BREEZ_PASSWORD: str = os.getenv("BREEZ_PASSWORD", "")
    BREEZ_TIMEOUT: float = _get_float("BREEZ_TIMEOUT", 60.0)  # full product dump is large

    # ── WooCommerce / WordPress ──────────────────────────────────────────────
    WC_BASE_URL: str = _rstrip_slash(os.getenv("WC_BASE_URL", ""))
    WC_API_KEY: str = os.getenv("WC_API_KEY", "")
    WC_API_SECRET: str = os.getenv("WC_API_SECRET", "")

    # WP auth (Application Password)
    WP_USERNAME: str = os.getenv("WP_USERNAME", "")
    WP_PASSWORD: str = os.getenv("WP_APP_PASSWORD", "")  # keep the name WP_PASSWORD in code

    # Optional explicit WP API root; if missing, fall back to WC_BASE_URL/wp-json
    WP_API_URL: str = _rstrip_slash(
        os.getenv("WP_API_URL", "") or (
            _rstrip_slash(os.getenv("WC_BASE_URL", "")) + "/wp-json"
            if os.getenv("WC_BASE_URL") else ""
        )
    )

    VERIFY_SSL: bool = _get_bool("VERIFY_SSL", False)

    # ── Import behaviour ─────────────────────────────────────────────────────
    PRODUCTS_PER_REQUEST: int = _get_int("PRODUCTS_PER_REQUEST", 300)
    BRAND_PARENT_SLUG: str = os.getenv("BRAND_PARENT_SLUG", "brand")
    BRAND_PARENT_NAME: str = os.getenv("BRAND_PARENT_NAME", "Бренд")

    # ── Admin API ────────────────────────────────────────────────────────────
    ADMIN_USER: str = os.getenv("ADMIN_USER", "admin")
    ADMIN_PASS: str = os.getenv("ADMIN_PASS", "changeme")

    # ── CORS ─────────────────────────────────────────────────────────────────
    # Comma-separated list in .env, e.g. "https://example.com, https://foo.bar"
    CORS_ORIGINS: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    # ── Paths ────────────────────────────────────────────────────────────────
    # data directory is mounted: ./data ↔ /code/data (see docker-compose)
    DATA_DIR: str = os.getenv("DATA_DIR", "/code/data")
    # local copy of every downloaded image before it is sent to the media library
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "") or os.path.join(DATA_DIR, "uploads")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")


settings = Settings()
