"""
Profiles, follows, author rankings and resource activity.
"""


def _h(email):
    return {"x-auth-request-user": email.split("@")[0], "x-auth-request-email": email}


ALICE = "alice@example.com"
BOB = "bob@example.com"


def test_me_requires_auth(client):
    assert client.get("/users/me").status_code == 401


def test_proxy_identity_creates_user(client):
    r = client.get("/users/me", headers=_h(ALICE))
    assert r.status_code == 200
    body = r.json()
    assert body["username"] == "alice"
    assert body["reputation"] == {"points": 0, "level": "BEGINNER"}


def test_update_profile(client):
    client.get("/profile", headers=_h(BOB))
    r = client.put(
        "/profile",
        json={"bio": "Rustacean", "tech_stack": ["Rust", " Go ", "Rust"], "current_role": "Engineer"},
        headers=_h(ALICE),
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["bio"] == "Rustacean"
    assert body["tech_stack"] == ["Rust", "Go"]
    assert body["current_role"] == "Engineer"

    r = client.put("/profile", json={"username": "BOB"}, headers=_h(ALICE))
    assert r.status_code == 409
    assert client.put("/profile", json={"username": "x!"}, headers=_h(ALICE)).status_code == 422


def test_public_profile(client):
    client.post("/blog", json={"title": "Public", "content": "Body", "published": True}, headers=_h(ALICE))
    client.post("/blog", json={"title": "Draft", "content": "Body", "published": False}, headers=_h(ALICE))

    r = client.get("/users/alice")
    assert r.status_code == 200
    body = r.json()
    assert "email" not in body
    assert [post["title"] for post in body["recent_posts"]] == ["Public"]
    assert body["follow"] == {"followers": 0, "following": 0, "is_following": False}

    assert client.get("/users/nobody").status_code == 404


def test_follow_toggle(client, db_session):
    from byteinit.db import models

    client.get("/users/me", headers=_h(ALICE))

    r = client.post("/users/alice/follow", headers=_h(BOB))
    assert r.status_code == 200
    assert r.json() == {"following": True, "followers": 1}
    assert db_session.query(models.Notification).filter_by(event_type="new_follower").count() == 1

    stats = client.get("/users/alice/follow-stats", headers=_h(BOB)).json()
    assert stats == {"followers": 1, "following": 0, "is_following": True}

    r = client.post("/users/alice/follow", headers=_h(BOB))
    assert r.json() == {"following": False, "followers": 0}
    assert db_session.query(models.Notification).filter_by(event_type="new_follower").count() == 0


def test_cannot_follow_self(client):
    r = client.post("/users/alice/follow", headers=_h(ALICE))
    assert r.status_code == 400


def test_follow_unknown_user(client):
    assert client.post("/users/ghost/follow", headers=_h(ALICE)).status_code == 404


def test_top_authors(client):
    for title in ("One", "Two"):
        client.post("/blog", json={"title": title, "content": "Body", "published": True}, headers=_h(ALICE))
    client.post("/blog", json={"title": "Three", "content": "Body", "published": True}, headers=_h(BOB))

    authors = client.get("/users/authors/top").json()
    assert [(a["username"], a["post_count"]) for a in authors] == [("alice", 2), ("bob", 1)]


def test_activity_on_my_resources(client):
    resource = client.post(
        "/resources",
        json={
            "title": "Handy Tool",
            "description": "Saves a lot of typing every day",
            "url": "https://example.com/tool",
            "type": "TOOL",
            "category": "DEVOPS",
        },
        headers=_h(ALICE),
    ).json()
    client.post(f"/resources/{resource['id']}/like", headers=_h(BOB))
    client.post("/saved-resources", json={"resource_id": resource["id"]}, headers=_h(BOB))
    client.post(f"/resources/{resource['id']}/like", headers=_h(ALICE))

    activity = client.get("/users/me/activity", headers=_h(ALICE)).json()
    assert sorted(item["type"] for item in activity) == ["like", "save"]
    assert all(item["actor"]["username"] == "bob" for item in activity)
    assert all(item["resource_title"] == "Handy Tool" for item in activity)
