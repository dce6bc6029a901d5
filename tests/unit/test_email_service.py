import os
from contextlib import contextmanager
from unittest.mock import AsyncMock, patch

import pytest

from byteinit.services.email_service import EmailService, EmailServiceConfig


@contextmanager
def _env(**env):
    old = {k: os.environ.get(k) for k in env}
    try:
        for k, v in env.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v
        yield
    finally:
        for k, v in old.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v


def test_config_validate_and_is_configured():
    with _env(SMTP_HOST="smtp.example.com", SMTP_PORT="587", FROM_EMAIL="noreply@example.com"):
        cfg = EmailServiceConfig()
        assert cfg.is_configured() is True
        assert cfg.validate() == []

    with _env(SMTP_HOST="", SMTP_PORT="-1", FROM_EMAIL=""):
        cfg = EmailServiceConfig()
        errs = cfg.validate()
        assert any("SMTP_HOST" in e for e in errs)
        assert any("SMTP_PORT" in e for e in errs)
        assert any("FROM_EMAIL" in e for e in errs)

    with _env(SMTP_HOST="smtp.example.com", SMTP_USE_TLS="true", SMTP_START_TLS="true"):
        assert any("TLS" in e for e in EmailServiceConfig().validate())


@pytest.mark.asyncio
async def test_send_email_not_configured():
    with _env(SMTP_HOST=""):
        svc = EmailService()
        out = await svc.send_email("user@example.com", "Subject", "<b>Hi</b>")
        assert out["success"] is False
        assert "not configured" in (out.get("error") or "")


@pytest.mark.asyncio
async def test_send_email_via_smtp():
    with _env(SMTP_HOST="smtp.example.com", SMTP_PORT="2525", SMTP_USERNAME="u", SMTP_PASSWORD="p", FROM_EMAIL="noreply@byteinit.dev"):
        svc = EmailService()
        with patch("byteinit.services.email_service.aiosmtplib.send", new_callable=AsyncMock) as send:
            out = await svc.send_email(
                "user@example.com", "Hello", "<b>Hi</b>", text_content="Hi", reply_to="sender@example.com"
            )
        assert out["success"] is True
        assert out["message_id"].endswith("@byteinit.dev>")
        message = send.await_args.args[0]
        assert message["To"] == "user@example.com"
        assert message["Reply-To"] == "sender@example.com"
        kwargs = send.await_args.kwargs
        assert kwargs["hostname"] == "smtp.example.com"
        assert kwargs["port"] == 2525
        assert kwargs["username"] == "u"


@pytest.mark.asyncio
async def test_send_email_smtp_error_is_reported():
    with _env(SMTP_HOST="smtp.example.com", FROM_EMAIL="noreply@byteinit.dev"):
        svc = EmailService()
        with patch(
            "byteinit.services.email_service.aiosmtplib.send",
            new_callable=AsyncMock,
            side_effect=OSError("connection refused"),
        ):
            out = await svc.send_email("user@example.com", "Hello", "<b>Hi</b>")
        assert out["success"] is False
        assert "connection refused" in out["error"]


def test_render_template_html_and_text():
    svc = EmailService()
    html, text = svc.render_template(
        "verify_email",
        {"name": "Ada <admin>", "verification_url": "https://byteinit.dev/auth/verify?token=t", "expires_hours": 24},
    )
    assert "Ada &lt;admin&gt;" in html
    assert "https://byteinit.dev/auth/verify?token=t" in text
    assert "24 hours" in text


def test_html_to_text_fallback():
    svc = EmailService()
    assert svc._html_to_text("<p>Hi &amp; bye</p>\n<b>x</b>") == "Hi & bye x"
