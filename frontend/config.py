# frontend/config.py
# Environment-aware configuration for the inspection tracker frontend

import logging
import os
from typing import Literal

from dotenv import load_dotenv

load_dotenv()

# Environment detection - normalize to lowercase
_raw_env = os.environ.get("ENV", "production").lower()
ENV: Literal["local", "staging", "production"] = _raw_env if _raw_env in ("local", "staging", "production") else "production"  # type: ignore

IS_LOCAL = (ENV == "local")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "production")

# Local backend default (matches backend PORT default)
LOCAL_BACKEND_URL = "http://127.0.0.1:4000"
API_PREFIX = "/api"

# Table behaviour
PAGE_LIMIT = int(os.environ.get("PAGE_LIMIT", "20"))
SEARCH_DEBOUNCE_SECONDS = float(os.environ.get("SEARCH_DEBOUNCE_SECONDS", "0.3"))
REQUEST_TIMEOUT_SECONDS = int(os.environ.get("REQUEST_TIMEOUT_SECONDS", "20"))


def get_env() -> Literal["local", "staging", "production"]:
    return ENV


def validate_api_url(url: str, env: str) -> None:
    """
    Validate the backend URL for the environment.

    Raises:
        ValueError: If URL is empty, or staging/production points at plain HTTP or localhost
    """
    if not url:
        raise ValueError("API base URL cannot be empty")

    if env in ("staging", "production"):
        if not url.startswith("https://"):
            raise ValueError(f"Staging/production must use HTTPS. Got: {url}")
        if "127.0.0.1" in url or "localhost" in url:
            raise ValueError(f"Staging/production cannot use localhost URLs. Got: {url}")


def get_api_base_url() -> str:
    """
    Backend base URL, trailing slash removed.

    Priority:
    1. BACKEND_URL
    2. API_BASE_URL
    3. http://127.0.0.1:4000, only when ENV == "local"

    Raises:
        RuntimeError: staging/production with no configured URL
    """
    for var in ("BACKEND_URL", "API_BASE_URL"):
        value = os.environ.get(var, "").strip()
        if value:
            url = value.rstrip("/")
            validate_api_url(url, ENV)
            return url

    if ENV == "local":
        return LOCAL_BACKEND_URL

    raise RuntimeError(
        f"Backend URL not configured for {ENV.upper()} environment. "
        f"Set BACKEND_URL to the backend service URL (HTTPS)."
    )


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.DEBUG if IS_LOCAL else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
