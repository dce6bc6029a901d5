"""
In-app notification endpoints: listing, read state, deletion, preferences
and the admin cleanup.
"""
from datetime import datetime, timedelta, timezone

from byteinit.db import models


def _h(email):
    return {"x-auth-request-user": email.split("@")[0], "x-auth-request-email": email}


ALICE = "alice@example.com"
BOB = "bob@example.com"


def _liked_post(client, title="Likeable"):
    blog_id = client.post(
        "/blog", json={"title": title, "content": "Body", "published": True}, headers=_h(ALICE)
    ).json()["id"]
    client.post(f"/blog/{blog_id}/like", headers=_h(BOB))
    return blog_id


def test_list_notifications(client):
    _liked_post(client)
    r = client.get("/notifications", headers=_h(ALICE))
    assert r.status_code == 200
    body = r.json()
    assert body["unread_count"] == 1
    assert body["total_count"] == 1
    item = body["notifications"][0]
    assert item["event_type"] == "blog_like"
    assert item["message"] == 'bob liked your post "Likeable"'
    assert item["action_url"] == "/blog/likeable"
    assert item["actor"]["username"] == "bob"
    assert item["is_read"] is False

    assert client.get("/notifications", headers=_h(BOB)).json()["total_count"] == 0


def test_mark_single_read(client):
    _liked_post(client)
    notification_id = client.get("/notifications", headers=_h(ALICE)).json()["notifications"][0]["id"]

    assert client.post(f"/notifications/{notification_id}/read", headers=_h(BOB)).status_code == 404
    assert client.post(f"/notifications/{notification_id}/read", headers=_h(ALICE)).status_code == 204

    body = client.get("/notifications", headers=_h(ALICE)).json()
    assert body["unread_count"] == 0
    assert client.get("/notifications", params={"unread_only": True}, headers=_h(ALICE)).json()["notifications"] == []


def test_bulk_read_and_delete(client):
    _liked_post(client, title="One")
    _liked_post(client, title="Two")
    ids = [n["id"] for n in client.get("/notifications", headers=_h(ALICE)).json()["notifications"]]

    r = client.patch("/notifications/read", json={"ids": ids[:1]}, headers=_h(ALICE))
    assert r.json() == {"updated": 1}
    r = client.patch("/notifications/read", json={}, headers=_h(ALICE))
    assert r.json() == {"updated": 1}

    stats = client.get("/notifications/stats", headers=_h(ALICE)).json()
    assert stats == {"total": 2, "unread": 0, "by_event_type": {"blog_like": 2}}

    assert client.delete("/notifications", headers=_h(ALICE)).status_code == 400
    r = client.delete("/notifications", params={"ids": ids}, headers=_h(BOB))
    assert r.json() == {"updated": 0}
    r = client.delete("/notifications", params={"ids": ids}, headers=_h(ALICE))
    assert r.json() == {"updated": 2}


def test_preferences_defaults_and_update(client):
    prefs = client.get("/notifications/preferences", headers=_h(ALICE)).json()["preferences"]
    assert prefs["blog_comment"] == {"email_enabled": True, "in_app_enabled": True}
    assert prefs["blog_like"] == {"email_enabled": False, "in_app_enabled": True}

    r = client.put("/notifications/preferences/blog_like", json={"in_app_enabled": False}, headers=_h(ALICE))
    assert r.status_code == 200
    assert r.json()["in_app_enabled"] is False
    assert r.json()["email_enabled"] is False

    _liked_post(client)
    assert client.get("/notifications", headers=_h(ALICE)).json()["total_count"] == 0


def test_preference_for_unknown_event(client):
    r = client.put("/notifications/preferences/bogus", json={"email_enabled": True}, headers=_h(ALICE))
    assert r.status_code == 400


def test_cleanup_requires_superadmin(client, monkeypatch, db_session):
    _liked_post(client)
    notification = db_session.query(models.Notification).one()
    notification.expires_at = datetime.now(timezone.utc) - timedelta(days=1)
    db_session.commit()

    assert client.delete("/notifications/cleanup/expired", headers=_h(ALICE)).status_code == 403

    monkeypatch.setenv("ADMIN_EMAILS", "root@example.com")
    r = client.delete("/notifications/cleanup/expired", headers=_h("root@example.com"))
    assert r.status_code == 200
    assert r.json()["deleted"] == 1
    assert db_session.query(models.Notification).count() == 0
