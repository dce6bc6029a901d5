"""
URL utilities for building absolute links in emails and notifications.

Primary source: APP_BASE_URL (e.g., https://byteinit.dev)
Fallback: APP_HOST (adds scheme heuristically if missing).
"""
from __future__ import annotations

import os
from typing import Optional
from urllib.parse import quote, urlencode, urlparse


def _add_scheme_if_missing(host: str) -> str:
    h = host.strip()
    if not h:
        return "http://localhost:3000"
    if h.startswith("http://") or h.startswith("https://"):
        return h
    lower = h.lower()
    if lower.startswith("localhost") or lower.startswith("127.0.0.1"):
        return f"http://{h}"
    return f"https://{h}"


def extract_hostname(url_value: str) -> Optional[str]:
    """Return hostname from a URL or bare host string."""
    if not url_value or not url_value.strip():
        return None
    candidate = url_value.strip()
    if "://" not in candidate:
        candidate = f"http://{candidate}"
    return urlparse(candidate).hostname


def ensure_https(url: Optional[str]) -> Optional[str]:
    """Prefix bare hosts such as ``example.dev`` with ``https://``."""
    if not url:
        return url
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return f"https://{url}"


def is_http_url(value: str) -> bool:
    parsed = urlparse(value or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def get_app_base_url() -> str:
    """Return normalized base URL for the frontend application.

    Precedence:
    1. APP_BASE_URL (recommended)
    2. APP_HOST, with a scheme added if missing
    Defaults to http://localhost:3000 if neither is set.
    """
    base = os.getenv("APP_BASE_URL")
    if base and base.strip():
        return base.strip().rstrip("/")
    host = os.getenv("APP_HOST")
    if host and host.strip():
        return _add_scheme_if_missing(host.strip()).rstrip("/")
    return "http://localhost:3000"


def build_verification_link(*, token: str, email: str) -> str:
    qs = urlencode({"token": token, "email": email})
    return f"{get_app_base_url()}/auth/verify?{qs}"


def build_reset_password_link(*, token: str) -> str:
    qs = urlencode({"token": token})
    return f"{get_app_base_url()}/auth/reset-password?{qs}"


def blog_path(slug: str) -> str:
    return f"/blog/{quote(slug)}"


def resource_path(resource_id) -> str:
    return f"/resources/{resource_id}"


def profile_path(username: Optional[str]) -> str:
    return f"/{quote(username)}" if username else "/"
