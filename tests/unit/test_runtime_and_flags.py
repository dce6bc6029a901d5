import pytest

from byteinit.utils.feature_flags import (
    get_feature_flags,
    llm_features_enabled,
    refresh_feature_flag_cache,
    registration_enabled,
)
from byteinit.utils.runtime import dev_mode_active


def test_flags_default_on(monkeypatch):
    for var in ("LLM_FEATURES_ENABLED", "EMAIL_NOTIFICATIONS_ENABLED", "REGISTRATION_ENABLED"):
        monkeypatch.delenv(var, raising=False)
    refresh_feature_flag_cache()
    assert get_feature_flags() == {
        "llm_features_enabled": True,
        "email_notifications_enabled": True,
        "registration_enabled": True,
    }


@pytest.mark.parametrize("value,expected", [("0", False), ("off", False), ("yes", True), ("maybe", True)])
def test_flag_parsing(monkeypatch, value, expected):
    monkeypatch.setenv("REGISTRATION_ENABLED", value)
    refresh_feature_flag_cache()
    assert registration_enabled() is expected


def test_flags_are_cached_until_refresh(monkeypatch):
    monkeypatch.setenv("LLM_FEATURES_ENABLED", "true")
    refresh_feature_flag_cache()
    assert llm_features_enabled() is True
    monkeypatch.setenv("LLM_FEATURES_ENABLED", "false")
    assert llm_features_enabled() is True
    refresh_feature_flag_cache()
    assert llm_features_enabled() is False


def test_dev_mode_off_by_default(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "false")
    assert dev_mode_active() is False


def test_dev_mode_allowed_on_localhost(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "http://localhost:3000")
    assert dev_mode_active() is True


def test_dev_mode_refused_for_public_host(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "https://byteinit.dev")
    with pytest.raises(RuntimeError):
        dev_mode_active()


def test_dev_mode_extra_allowed_host(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.setenv("APP_BASE_URL", "http://devbox.internal:3000")
    monkeypatch.setenv("DEV_MODE_ALLOWED_HOSTS", "devbox.internal")
    assert dev_mode_active() is True


def test_dev_mode_without_base_url_needs_override(monkeypatch):
    monkeypatch.setenv("DEV_MODE", "true")
    monkeypatch.delenv("APP_BASE_URL", raising=False)
    monkeypatch.delenv("ALLOW_DEV_MODE", raising=False)
    with pytest.raises(RuntimeError):
        dev_mode_active()
    monkeypatch.setenv("ALLOW_DEV_MODE", "true")
    assert dev_mode_active() is True
