"""
DEV_MODE support.

With DEV_MODE=true every unauthenticated request is treated as the local
development user. That is only acceptable on a developer machine, so the
switch is refused unless APP_BASE_URL resolves to a local host.
"""

import os
from typing import FrozenSet

from byteinit.utils.urls import extract_hostname

DEV_USER_EMAIL = "dev@localhost"
DEV_USER_NAME = "Development User"

LOCAL_HOSTS: FrozenSet[str] = frozenset({"localhost", "127.0.0.1", "::1"})


def _truthy(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() == "true"


def permitted_dev_hosts() -> FrozenSet[str]:
    """Local hosts plus anything listed in DEV_MODE_ALLOWED_HOSTS (comma separated)."""
    listed = (part.strip().lower() for part in os.getenv("DEV_MODE_ALLOWED_HOSTS", "").split(","))
    return LOCAL_HOSTS | {host for host in listed if host}


def dev_mode_active() -> bool:
    """
    Whether requests should fall back to the development user.

    Raises RuntimeError when DEV_MODE is on for a deployment that looks public:
    APP_BASE_URL names a non-local host, or is missing without ALLOW_DEV_MODE.
    """
    if not _truthy("DEV_MODE"):
        return False

    host = extract_hostname(os.getenv("APP_BASE_URL", ""))
    if host is None:
        if _truthy("ALLOW_DEV_MODE"):
            return True
        raise RuntimeError("DEV_MODE needs APP_BASE_URL on a local host, or ALLOW_DEV_MODE=true")

    permitted = permitted_dev_hosts()
    if host.lower() in permitted:
        return True
    raise RuntimeError(f"DEV_MODE refused for APP_BASE_URL host {host!r}; permitted hosts: {sorted(permitted)}")
