"""
Site-wide endpoints: search, contact form, uploads, portfolio generation
and the service metadata routes.
"""
from unittest.mock import AsyncMock, MagicMock, patch

from byteinit.db import models
from byteinit.services.portfolio_service import PortfolioService
from byteinit.services.upload_service import UploadError, UploadNotConfiguredError


def _h(email):
    return {"x-auth-request-user": email.split("@")[0], "x-auth-request-email": email}


ALICE = "alice@example.com"
BOB = "bob@example.com"

CONTACT = {
    "first_name": "Ada",
    "last_name": "Lovelace",
    "email": "ada@example.com",
    "issue_type": "Bug report",
    "message": "The feed page shows the wrong dates.",
}


def _fake_email_service(success=True):
    svc = MagicMock()
    svc.config.is_configured.return_value = True
    svc.render_template.return_value = ("<p>hi</p>", "hi")
    svc.send_email = AsyncMock(
        return_value={"success": True, "message_id": "<m1@byteinit.dev>"} if success else {"success": False, "error": "relay down"}
    )
    return svc


# --- metadata -----------------------------------------------------------------

def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "service": "byteinit-service"}


def test_build_info(client, monkeypatch):
    monkeypatch.setenv("BUILD_SHA", "abc123")
    body = client.get("/build-info").json()
    assert body["build_sha"] == "abc123"
    assert body["service_name"] == "byteinit-service"


def test_user_info(client):
    anon = client.get("/user-info").json()
    assert anon["authenticated"] is False
    assert "registration_enabled" in anon

    body = client.get("/user-info", headers=_h(ALICE)).json()
    assert body["authenticated"] is True
    assert body["username"] == "alice"
    assert body["is_superadmin"] is False


# --- search -------------------------------------------------------------------

def test_site_search(client, db_session):
    client.post(
        "/blog", json={"title": "Kubernetes for Beginners", "content": "Pods", "published": True, "tags": ["k8s"]},
        headers=_h(ALICE),
    )
    client.post(
        "/resources",
        json={
            "title": "Kubernetes Cheatsheet",
            "description": "Every kubectl command on one page",
            "url": "https://example.com/k8s",
            "type": "DOCUMENTATION",
            "category": "DEVOPS",
        },
        headers=_h(ALICE),
    )

    r = client.get("/search", params={"q": "  Kubernetes "})
    body = r.json()
    assert body["query"] == "Kubernetes"
    assert [b["title"] for b in body["blogs"]] == ["Kubernetes for Beginners"]
    assert [item["title"] for item in body["resources"]] == ["Kubernetes Cheatsheet"]

    assert client.get("/search", params={"q": ""}).json() == {"query": "", "blogs": [], "resources": []}
    assert db_session.query(models.SearchQuery).count() == 1


def test_trending_searches(client):
    for q in ("react", "react", "python"):
        client.get("/search", params={"q": q})
    assert client.get("/search/trending").json() == [
        {"query": "react", "count": 2},
        {"query": "python", "count": 1},
    ]


def test_tag_suggestions(client):
    client.post(
        "/blog", json={"title": "Tags", "content": "Body", "published": True, "tags": ["python", "pytest", "go"]},
        headers=_h(ALICE),
    )
    assert client.get("/search/tags", params={"q": "py"}).json() == ["pytest", "python"]
    assert client.get("/search/tags", params={"q": ""}).json() == []


# --- contact ------------------------------------------------------------------

def test_contact_sends_admin_and_confirmation(client, db_session):
    svc = _fake_email_service()
    with patch("byteinit.services.email_service.get_email_service", return_value=svc):
        r = client.post("/contact", json=CONTACT)
    assert r.status_code == 200, r.text
    assert r.json() == {"status": "ok", "message": "Message sent successfully"}

    assert svc.send_email.await_count == 2
    admin_call = svc.send_email.await_args_list[0].kwargs
    assert admin_call["to_email"] == "support@byteinit.dev"
    assert admin_call["reply_to"] == "ada@example.com"
    statuses = {log.event_type: log.status for log in db_session.query(models.EmailNotificationLog)}
    assert statuses == {"contact_admin": "sent", "contact_confirmation": "sent"}


def test_contact_rate_limited(client):
    svc = _fake_email_service()
    with patch("byteinit.services.email_service.get_email_service", return_value=svc):
        assert client.post("/contact", json=CONTACT).status_code == 200
        r = client.post("/contact", json=CONTACT)
    assert r.status_code == 429
    assert 1 <= r.json()["retry_after_seconds"] <= 60


def test_contact_admin_failure_is_500(client):
    svc = _fake_email_service(success=False)
    with patch("byteinit.services.email_service.get_email_service", return_value=svc):
        r = client.post("/contact", json=CONTACT)
    assert r.status_code == 500
    assert svc.send_email.await_count == 1


def test_contact_validation(client):
    assert client.post("/contact", json={**CONTACT, "message": "short"}).status_code == 422
    assert client.post("/contact", json={**CONTACT, "email": "nope"}).status_code == 422


# --- uploads ------------------------------------------------------------------

def _upload(client, content=b"\x89PNG data", content_type="image/png", headers=None):
    return client.post(
        "/upload",
        files={"file": ("cover.png", content, content_type)},
        headers=headers if headers is not None else _h(ALICE),
    )


def test_upload_requires_auth(client):
    assert _upload(client, headers={}).status_code == 401


def test_upload_rejects_non_images_and_large_files(client):
    assert _upload(client, content_type="application/pdf").status_code == 400
    assert _upload(client, content=b"x" * (5 * 1024 * 1024 + 1)).status_code == 400
    assert _upload(client, content=b"").status_code == 400


def test_upload_success(client):
    service = MagicMock()
    service.upload_image.return_value = {"url": "https://ik.imagekit.io/x/cover.png", "file_id": "f1", "name": "cover.png"}
    with patch("byteinit.api.uploads.get_upload_service", return_value=service):
        r = _upload(client)
    assert r.status_code == 200
    assert r.json()["url"] == "https://ik.imagekit.io/x/cover.png"
    kwargs = service.upload_image.call_args.kwargs
    assert kwargs["filename"] == "cover.png"
    assert kwargs["content_type"] == "image/png"


def test_upload_errors_map_to_status(client):
    service = MagicMock()
    service.upload_image.side_effect = UploadNotConfiguredError("nope")
    with patch("byteinit.api.uploads.get_upload_service", return_value=service):
        assert _upload(client).status_code == 503
    service.upload_image.side_effect = UploadError("cdn down")
    with patch("byteinit.api.uploads.get_upload_service", return_value=service):
        assert _upload(client).status_code == 502


# --- portfolio ----------------------------------------------------------------

def test_portfolio_unknown_user(client):
    assert client.get("/generate-portfolio/ghost").status_code == 404


def test_portfolio_unavailable_without_llm(client, make_user):
    make_user(email="dev@example.com", username="devon")
    with patch("byteinit.api.portfolio.get_portfolio_service", return_value=PortfolioService(llm_api_key="")):
        r = client.get("/generate-portfolio/devon")
    assert r.status_code == 503


def test_portfolio_merges_profile_over_generated(client, make_user):
    make_user(email="dev@example.com", username="devon", bio="Real bio", website="devon.dev")
    generated = {
        "tagline": "Ships it",
        "bio": "Generated bio",
        "headline": "Builder",
        "highlights": ["Did things"],
        "tech_stack": ["Python"],
        "fun_fact": "Coffee",
        "company": "Acme",
    }
    service = PortfolioService(llm_api_key="key")
    with patch("byteinit.api.portfolio.get_portfolio_service", return_value=service), \
            patch.object(PortfolioService, "generate_profile", return_value=generated):
        r = client.get("/generate-portfolio/devon", headers=_h(BOB))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["bio"] == "Real bio"
    assert body["website"] == "https://devon.dev"
    assert body["company"] == "Acme"
    assert body["tagline"] == "Ships it"
    assert body["is_owner"] is False


def test_portfolio_generation_failure_is_502(client, make_user):
    from byteinit.services.portfolio_service import PortfolioGenerationError

    make_user(email="dev@example.com", username="devon")
    service = PortfolioService(llm_api_key="key")
    with patch("byteinit.api.portfolio.get_portfolio_service", return_value=service), \
            patch.object(PortfolioService, "generate_profile", side_effect=PortfolioGenerationError("bad json")):
        r = client.get("/generate-portfolio/devon")
    assert r.status_code == 502
