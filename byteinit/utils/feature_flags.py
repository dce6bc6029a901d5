"""
Environment switches for optional ByteInit features.

Each switch defaults to on; operators turn one off with a falsy value
(``0``, ``false``, ``no``, ``off`` or an empty string). Values are read once
and cached, so call ``refresh_feature_flag_cache`` after changing the
environment at runtime.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Dict, Literal

FeatureFlagKey = Literal[
    "llm_features_enabled",
    "email_notifications_enabled",
    "registration_enabled",
]

# flag name -> environment variable
FLAG_ENV_VARS: Dict[FeatureFlagKey, str] = {
    "llm_features_enabled": "LLM_FEATURES_ENABLED",
    "email_notifications_enabled": "EMAIL_NOTIFICATIONS_ENABLED",
    "registration_enabled": "REGISTRATION_ENABLED",
}

_OFF = frozenset({"", "0", "false", "no", "off"})


def _switch(env_var: str) -> bool:
    raw = os.getenv(env_var)
    if raw is None:
        return True
    # Unrecognised spellings keep the feature on
    return raw.strip().lower() not in _OFF


@lru_cache(maxsize=None)
def get_feature_flags() -> Dict[str, bool]:
    return {flag: _switch(env_var) for flag, env_var in FLAG_ENV_VARS.items()}


def llm_features_enabled() -> bool:
    """Portfolio generation through Gemini."""
    return get_feature_flags()["llm_features_enabled"]


def email_notifications_enabled() -> bool:
    """Emails for interaction events; account and contact mail ignore this."""
    return get_feature_flags()["email_notifications_enabled"]


def registration_enabled() -> bool:
    return get_feature_flags()["registration_enabled"]


def refresh_feature_flag_cache() -> None:
    get_feature_flags.cache_clear()
