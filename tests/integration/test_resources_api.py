"""
Resource directory API: sharing, filtering, likes, views and bookmarks.
"""
import uuid

from byteinit.db import models


def _h(email):
    return {"x-auth-request-user": email.split("@")[0], "x-auth-request-email": email}


ALICE = "alice@example.com"
BOB = "bob@example.com"


def _share(client, title="Useful Library", category="FRONTEND", type="LIBRARY", tags=None, headers=None):
    payload = {
        "title": title,
        "description": "A genuinely useful library for developers",
        "url": "https://example.com/lib",
        "type": type,
        "category": category,
        "tags": tags or [],
    }
    return client.post("/resources", json=payload, headers=headers or _h(ALICE))


def test_share_resource(client):
    r = _share(client, tags=["React", "ui"])
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["category"] == "FRONTEND"
    assert body["tags"] == ["react", "ui"]
    assert body["author"]["username"] == "alice"
    assert body["counts"] == {"likes": 0, "saves": 0, "views": 0, "unique_views": 0}


def test_share_resource_validation(client):
    assert _share(client, title="ab").status_code == 422
    assert _share(client, category="COOKING").status_code == 422
    r = client.post(
        "/resources",
        json={"title": "Bad URL", "description": "Long enough description", "url": "javascript:alert(1)",
              "type": "TOOL", "category": "OTHER"},
        headers=_h(ALICE),
    )
    assert r.status_code == 422


def test_list_filters_and_pagination(client):
    _share(client, title="Frontend One")
    _share(client, title="Backend One", category="BACKEND", type="TOOL")
    _share(client, title="Backend Two", category="BACKEND")

    r = client.get("/resources", params={"category": "backend", "limit": 1})
    body = r.json()
    assert body["total"] == 2
    assert body["total_pages"] == 2
    assert len(body["resources"]) == 1

    r = client.get("/resources", params={"category": "backend", "type": "tool"})
    assert [item["title"] for item in r.json()["resources"]] == ["Backend One"]


def test_list_rejects_unknown_filters(client):
    assert client.get("/resources", params={"category": "cooking"}).status_code == 400
    assert client.get("/resources", params={"type": "podcast"}).status_code == 400


def test_category_page(client):
    _share(client, title="Model Zoo", category="AI_ML")
    r = client.get("/resources/category/ai-ml")
    assert r.status_code == 200
    assert [item["title"] for item in r.json()] == ["Model Zoo"]
    assert client.get("/resources/category/cooking").status_code == 404


def test_owner_only_update_and_delete(client):
    resource_id = _share(client).json()["id"]
    assert client.patch(f"/resources/{resource_id}", json={"title": "Mine now"}, headers=_h(BOB)).status_code == 403
    assert client.delete(f"/resources/{resource_id}", headers=_h(BOB)).status_code == 403

    r = client.patch(f"/resources/{resource_id}", json={"title": "Better Library"}, headers=_h(ALICE))
    assert r.status_code == 200
    assert r.json()["title"] == "Better Library"

    assert client.delete(f"/resources/{resource_id}", headers=_h(ALICE)).status_code == 204
    assert client.get(f"/resources/{resource_id}").status_code == 404


def test_like_toggle_notifies_and_withdraws(client, db_session):
    resource_id = _share(client).json()["id"]

    r = client.post(f"/resources/{resource_id}/like", headers=_h(BOB))
    assert r.json() == {"liked": True, "likes": 1, "message": "Resource liked"}
    assert db_session.query(models.Notification).filter_by(event_type="resource_like").count() == 1
    assert client.get(f"/resources/{resource_id}/like", headers=_h(BOB)).json() == {"liked": True, "likes": 1}

    r = client.post(f"/resources/{resource_id}/like", headers=_h(BOB))
    assert r.json() == {"liked": False, "likes": 0, "message": "Resource unliked"}
    assert db_session.query(models.Notification).filter_by(event_type="resource_like").count() == 0


def test_like_missing_resource(client):
    assert client.post(f"/resources/{uuid.uuid4()}/like", headers=_h(BOB)).status_code == 404


def test_views(client):
    resource_id = _share(client).json()["id"]
    assert client.post(f"/resources/{resource_id}/view", headers=_h(BOB)).json() == {"views": 1}
    assert client.post(f"/resources/{resource_id}/view", headers=_h(BOB)).json() == {"views": 1}
    assert client.post(f"/resources/{resource_id}/view").json() == {"views": 2}

    counts = client.get(f"/resources/{resource_id}").json()["counts"]
    assert counts["views"] == 2
    assert counts["unique_views"] == 1


def test_search_and_tags(client):
    _share(client, title="Tailwind Cheatsheet", tags=["css", "tailwind"])
    _share(client, title="Postgres Tuning", category="DATABASE", tags=["sql"])

    r = client.get("/resources/search", params={"q": "tailwind"})
    assert [item["title"] for item in r.json()] == ["Tailwind Cheatsheet"]
    assert client.get("/resources/search", params={"q": ""}).json() == []

    names = {tag["name"] for tag in client.get("/resources/tags").json()}
    assert {"css", "tailwind", "sql"} <= names


def test_mine(client):
    _share(client)
    _share(client, title="Bob's Pick", headers=_h(BOB))
    assert [item["title"] for item in client.get("/resources/mine", headers=_h(BOB)).json()] == ["Bob's Pick"]


def test_save_and_unsave(client, db_session):
    resource_id = _share(client).json()["id"]

    r = client.post("/saved-resources", json={"resource_id": resource_id}, headers=_h(BOB))
    assert r.status_code == 201, r.text
    assert r.json()["resource"]["saved"] is True
    assert db_session.query(models.Notification).filter_by(event_type="resource_save").count() == 1

    r = client.post("/saved-resources", json={"resource_id": resource_id}, headers=_h(BOB))
    assert r.status_code == 409

    saved = client.get("/saved-resources", headers=_h(BOB)).json()
    assert [item["resource"]["id"] for item in saved] == [resource_id]

    stats = client.get("/saved-resources/stats", headers=_h(ALICE)).json()
    assert stats["total"] == 1
    assert stats["today"] == 1

    assert client.delete(f"/saved-resources/{resource_id}", headers=_h(BOB)).status_code == 204
    assert client.delete(f"/saved-resources/{resource_id}", headers=_h(BOB)).status_code == 404
    assert db_session.query(models.Notification).filter_by(event_type="resource_save").count() == 0


def test_save_missing_resource(client):
    r = client.post("/saved-resources", json={"resource_id": str(uuid.uuid4())}, headers=_h(BOB))
    assert r.status_code == 404


def test_owner_chart_data(client, db_session):
    from datetime import datetime, timedelta, timezone

    resource_id = _share(client).json()["id"]
    other_id = _share(client, title="Bob's Tool", headers=_h(BOB)).json()["id"]
    client.post(f"/resources/{resource_id}/like", headers=_h(BOB))
    client.post("/saved-resources", json={"resource_id": resource_id}, headers=_h(BOB))
    client.post("/saved-resources", json={"resource_id": other_id}, headers=_h(ALICE))
    saved = db_session.query(models.SavedResource).filter(
        models.SavedResource.resource_id == uuid.UUID(resource_id)
    ).one()
    saved.saved_at = datetime.now(timezone.utc) - timedelta(days=2)
    db_session.commit()

    points = client.get("/resources/chart-data", params={"range": 7}, headers=_h(ALICE)).json()
    assert len(points) == 7
    assert points[-1] == {"date": datetime.now(timezone.utc).date().isoformat(), "likes": 1, "saves": 0}
    assert points[-3]["saves"] == 1
    # Alice's own bookmark of Bob's resource is Bob's save, not hers
    assert sum(p["saves"] for p in points) == 1

    assert len(client.get("/resources/chart-data", headers=_h(ALICE)).json()) == 30


def test_chart_data_rejects_unknown_range(client):
    assert client.get("/resources/chart-data").status_code == 401
    r = client.get("/resources/chart-data", params={"range": 14}, headers=_h(ALICE))
    assert r.status_code == 400
    assert "Unknown range" in r.json()["detail"]
