"""
Blog API: authoring, visibility, interactions, listings, charts, the feed
and the sitemap.
"""
import uuid

from byteinit.db import models


def _h(email):
    return {"x-auth-request-user": email.split("@")[0], "x-auth-request-email": email}


ALICE = "alice@example.com"
BOB = "bob@example.com"


def _create(client, title="Hello World", published=True, headers=None, **fields):
    payload = {"title": title, "content": "Some content", "published": published, **fields}
    return client.post("/blog", json=payload, headers=headers or _h(ALICE))


def test_create_blog_requires_auth(client):
    r = client.post("/blog", json={"title": "T", "content": "C"})
    assert r.status_code == 401


def test_create_blog_builds_slug_tags_and_topics(client):
    r = _create(client, title="Getting Started with React Hooks", tags=[" React ", "hooks", "react"])
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["slug"] == "getting-started-with-react-hooks"
    assert body["tags"] == ["hooks", "react"]
    assert "web-development" in body["topics"]
    assert body["author"]["username"] == "alice"
    assert body["counts"]["votes"] == 0
    assert body["viewer"] == {"vote": None, "liked": False, "saved": False}


def test_duplicate_title_gets_suffixed_slug(client):
    first = _create(client).json()
    second = _create(client).json()
    assert first["slug"] == "hello-world"
    assert second["slug"].startswith("hello-world-")
    assert second["slug"] != first["slug"]


def test_same_title_within_one_millisecond_still_unique(client, monkeypatch):
    from byteinit.db.repositories import blogs as blog_repo

    monkeypatch.setattr(blog_repo, "_epoch_millis", lambda: 1700000000000)
    responses = [_create(client, title="Dup") for _ in range(3)]
    assert [r.status_code for r in responses] == [201, 201, 201]
    slugs = [r.json()["slug"] for r in responses]
    assert slugs[0] == "dup"
    assert slugs[1] == "dup-1700000000000"
    assert slugs[2].startswith("dup-1700000000000-")
    assert len(set(slugs)) == 3


def test_route_names_are_not_used_as_slugs(client):
    stats = _create(client, title="Stats").json()
    history = _create(client, title="History").json()
    assert stats["slug"].startswith("stats-")
    assert history["slug"].startswith("history-")

    r = client.get(f"/blog/{stats['slug']}")
    assert r.status_code == 200
    assert r.json()["title"] == "Stats"

    assert client.delete(f"/blog/{history['slug']}", headers=_h(ALICE)).status_code == 204
    assert client.get(f"/blog/{history['slug']}").status_code == 404


def test_create_blog_validates_payload(client):
    assert _create(client, title="   ").status_code == 422
    assert _create(client, cover_image="ftp://example.com/a.png").status_code == 422


def test_draft_visible_only_to_owner(client):
    slug = _create(client, title="Secret Draft", published=False).json()["slug"]
    assert client.get(f"/blog/{slug}").status_code == 404
    assert client.get(f"/blog/{slug}", headers=_h(BOB)).status_code == 404
    r = client.get(f"/blog/{slug}", headers=_h(ALICE))
    assert r.status_code == 200
    assert r.json()["published"] is False


def test_drafts_are_not_listed(client):
    _create(client, title="Public Post")
    _create(client, title="Hidden Post", published=False)
    r = client.get("/blog", params={"section": "latest"})
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 1
    assert [b["title"] for b in body["blogs"]] == ["Public Post"]


def test_unknown_section_is_rejected(client):
    r = client.get("/blog", params={"section": "weird"})
    assert r.status_code == 400
    assert "Unknown section" in r.json()["detail"]


def test_only_author_may_edit_or_delete(client):
    slug = _create(client).json()["slug"]
    assert client.patch(f"/blog/{slug}", json={"title": "Hijacked"}, headers=_h(BOB)).status_code == 403
    assert client.delete(f"/blog/{slug}", headers=_h(BOB)).status_code == 403

    r = client.patch(f"/blog/{slug}", json={"title": "Renamed", "tags": ["python"]}, headers=_h(ALICE))
    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "Renamed"
    assert body["slug"] == slug
    assert body["tags"] == ["python"]

    assert client.delete(f"/blog/{slug}", headers=_h(ALICE)).status_code == 204
    assert client.get(f"/blog/{slug}").status_code == 404


def test_vote_create_remove_and_switch(client, db_session):
    blog_id = _create(client).json()["id"]

    r = client.post(f"/blog/{blog_id}/vote", json={"type": "UP"}, headers=_h(BOB))
    assert r.status_code == 200, r.text
    assert r.json()["vote"] == "UP"
    assert r.json()["counts"]["upvotes"] == 1
    assert db_session.query(models.Notification).filter_by(event_type="blog_vote").count() == 1

    r = client.post(f"/blog/{blog_id}/vote", json={"type": "UP"}, headers=_h(BOB))
    assert r.json()["vote"] is None
    assert r.json()["counts"]["votes"] == 0
    assert db_session.query(models.Notification).filter_by(event_type="blog_vote").count() == 0

    client.post(f"/blog/{blog_id}/vote", json={"type": "UP"}, headers=_h(BOB))
    r = client.post(f"/blog/{blog_id}/vote", json={"type": "DOWN"}, headers=_h(BOB))
    counts = r.json()["counts"]
    assert r.json()["vote"] == "DOWN"
    assert (counts["upvotes"], counts["downvotes"], counts["votes"]) == (0, 1, 1)
    # A switch keeps the single notification from the original vote
    assert db_session.query(models.Notification).filter_by(event_type="blog_vote").count() == 1


def test_vote_rejects_unknown_type(client):
    blog_id = _create(client).json()["id"]
    assert client.post(f"/blog/{blog_id}/vote", json={"type": "SIDEWAYS"}, headers=_h(BOB)).status_code == 422


def test_interactions_on_drafts_are_404(client):
    blog_id = _create(client, published=False).json()["id"]
    assert client.post(f"/blog/{blog_id}/like", headers=_h(BOB)).status_code == 404
    assert client.post(f"/blog/{blog_id}/view").status_code == 404


def test_like_and_save_toggle(client, db_session):
    blog_id = _create(client).json()["id"]

    r = client.post(f"/blog/{blog_id}/like", headers=_h(BOB))
    assert r.json()["liked"] is True
    assert r.json()["counts"]["likes"] == 1
    r = client.post(f"/blog/{blog_id}/like", headers=_h(BOB))
    assert r.json()["liked"] is False
    assert r.json()["counts"]["likes"] == 0

    r = client.post(f"/blog/{blog_id}/save", headers=_h(BOB))
    assert r.json()["saved"] is True
    saved = client.get("/blog/saved", headers=_h(BOB)).json()
    assert [b["id"] for b in saved["blogs"]] == [blog_id]

    slug = client.get("/blog/saved", headers=_h(BOB)).json()["blogs"][0]["slug"]
    viewer = client.get(f"/blog/{slug}", headers=_h(BOB)).json()["viewer"]
    assert viewer == {"vote": None, "liked": False, "saved": True}


def test_self_like_creates_no_notification(client, db_session):
    blog_id = _create(client).json()["id"]
    client.post(f"/blog/{blog_id}/like", headers=_h(ALICE))
    assert db_session.query(models.Notification).count() == 0


def test_views_count_once_per_day_for_signed_in_viewers(client):
    blog_id = _create(client).json()["id"]

    r = client.post(f"/blog/{blog_id}/view", headers=_h(BOB))
    assert r.json() == {"recorded": True, "views": 1}
    r = client.post(f"/blog/{blog_id}/view", headers=_h(BOB))
    assert r.json() == {"recorded": False, "views": 1}

    client.post(f"/blog/{blog_id}/view")
    r = client.post(f"/blog/{blog_id}/view")
    assert r.json() == {"recorded": True, "views": 3}


def test_reading_history_and_clearing(client):
    first = _create(client, title="First Post").json()
    second = _create(client, title="Second Post").json()
    client.post(f"/blog/{first['id']}/view", headers=_h(BOB))
    client.post(f"/blog/{second['id']}/view", headers=_h(BOB))

    history = client.get("/blog/history", headers=_h(BOB)).json()
    assert {entry["blog"]["id"] for entry in history} == {first["id"], second["id"]}

    assert client.delete(f"/blog/history/{first['id']}", headers=_h(BOB)).status_code == 204
    history = client.get("/blog/history", headers=_h(BOB)).json()
    assert [entry["blog"]["id"] for entry in history] == [second["id"]]

    assert client.delete("/blog/history", headers=_h(BOB)).status_code == 204
    assert client.get("/blog/history", headers=_h(BOB)).json() == []


def test_tag_and_topic_listings(client):
    _create(client, title="Deploying with Docker", tags=["docker"])
    _create(client, title="Baking bread")

    r = client.get("/blog/tag/Docker")
    assert [b["title"] for b in r.json()["blogs"]] == ["Deploying with Docker"]

    r = client.get("/blog/topic/cloud-computing")
    assert [b["title"] for b in r.json()["blogs"]] == ["Deploying with Docker"]


def test_following_feed(client):
    _create(client, title="From Alice")
    _create(client, title="From Carol", headers=_h("carol@example.com"))
    client.post("/users/alice/follow", headers=_h(BOB))

    r = client.get("/blog/following", headers=_h(BOB))
    assert [b["title"] for b in r.json()["blogs"]] == ["From Alice"]


def test_search_blogs_logs_query(client, db_session):
    _create(client, title="Understanding Python Generators")
    assert client.get("/blog/search", params={"q": "   "}).json() == []

    r = client.get("/blog/search", params={"q": "python"})
    assert [b["title"] for b in r.json()] == ["Understanding Python Generators"]
    assert db_session.query(models.SearchQuery).filter_by(query="python").count() == 1


def test_mine_and_stats(client):
    blog_id = _create(client).json()["id"]
    _create(client, title="Draft", published=False)
    client.post(f"/blog/{blog_id}/view", headers=_h(BOB))
    client.post(f"/blog/{blog_id}/vote", json={"type": "UP"}, headers=_h(BOB))

    assert len(client.get("/blog/mine", headers=_h(ALICE)).json()) == 2
    stats = client.get("/blog/stats", headers=_h(ALICE)).json()
    assert stats["total_posts"] == 2
    assert stats["published_posts"] == 1
    assert stats["total_views"] == 1
    assert stats["views_today"] == 1
    assert stats["votes_today"] == 1


def test_blog_reactions_toggle(client):
    slug = _create(client).json()["slug"]
    r = client.post(f"/blog/{slug}/reactions", json={"emoji": "🔥"}, headers=_h(BOB))
    assert r.status_code == 200
    assert r.json()["reacted"] is True
    assert r.json()["counts"] == {"🔥": 1}

    r = client.post(f"/blog/{slug}/reactions", json={"emoji": "🔥"}, headers=_h(BOB))
    assert r.json()["reacted"] is False
    assert client.get(f"/blog/{slug}/reactions").json()["counts"] == {}


def test_featured_refresh_authorization(client, monkeypatch):
    blog_id = _create(client).json()["id"]
    client.post(f"/blog/{blog_id}/vote", json={"type": "UP"}, headers=_h(BOB))

    assert client.post("/blog/featured/refresh").status_code == 401
    assert client.post("/blog/featured/refresh", headers=_h(BOB)).status_code == 403

    monkeypatch.setenv("CRON_SECRET", "s3cret")
    assert client.post("/blog/featured/refresh", headers={"x-cron-secret": "wrong"}).status_code == 401
    r = client.post("/blog/featured/refresh", headers={"x-cron-secret": "s3cret"})
    assert r.status_code == 200
    assert r.json()["featured"] == [blog_id]

    featured = client.get("/blog/featured").json()
    assert [b["id"] for b in featured] == [blog_id]
    assert featured[0]["featured"] is True


def test_featured_refresh_by_superadmin(client, monkeypatch):
    monkeypatch.setenv("ADMIN_EMAILS", "root@example.com")
    r = client.post("/blog/featured/refresh", headers=_h("root@example.com"))
    assert r.status_code == 200
    assert r.json() == {"featured": []}


def test_rss_feed(client):
    _create(client, title="Feed <Item>")
    _create(client, title="Unpublished", published=False)
    r = client.get("/feed.xml")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/rss+xml")
    assert "Feed &lt;Item&gt;" in r.text
    assert "Unpublished" not in r.text


def test_author_chart_data(client, db_session):
    from datetime import datetime, timedelta, timezone

    blog_id = _create(client).json()["id"]
    client.post(f"/blog/{blog_id}/view", headers=_h(BOB))
    client.post(f"/blog/{blog_id}/view")
    client.post(f"/blog/{blog_id}/vote", json={"type": "DOWN"}, headers=_h(BOB))
    older = db_session.query(models.BlogView).filter(models.BlogView.user_id.is_(None)).one()
    older.created_at = datetime.now(timezone.utc) - timedelta(days=3)
    db_session.commit()

    points = client.get("/blog/chart-data", params={"range": "7d"}, headers=_h(ALICE)).json()
    assert len(points) == 8
    assert points[-1]["date"] == datetime.now(timezone.utc).date().isoformat()
    assert points[-1]["views"] == 1
    assert points[-1]["votes"] == 1
    assert points[-4]["views"] == 1
    assert sum(p["views"] for p in points) == 2

    today = client.get("/blog/chart-data", params={"range": "today"}, headers=_h(ALICE)).json()
    assert today == [{"date": points[-1]["date"], "views": 1, "votes": 1}]

    # another author's chart does not include Alice's traffic
    assert sum(p["views"] for p in client.get("/blog/chart-data", headers=_h(BOB)).json()) == 0


def test_chart_data_validation(client):
    assert client.get("/blog/chart-data").status_code == 401
    r = client.get("/blog/chart-data", params={"range": "2w"}, headers=_h(ALICE))
    assert r.status_code == 400
    assert "Unknown range" in r.json()["detail"]
    # the route name is not looked up as a post slug
    assert client.get("/blog/chart-data", headers=_h(ALICE)).status_code == 200


def test_all_time_chart_starts_at_first_post(client, db_session):
    from datetime import datetime, timedelta, timezone

    blog_id = _create(client).json()["id"]
    blog = db_session.get(models.Blog, uuid.UUID(blog_id))
    blog.created_at = datetime.now(timezone.utc) - timedelta(days=10)
    db_session.commit()

    points = client.get("/blog/chart-data", params={"range": "all"}, headers=_h(ALICE)).json()
    assert len(points) == 11


def test_sitemap_lists_published_posts(client):
    published = _create(client, title="Mapped Post").json()
    _create(client, title="Hidden Draft", published=False)
    r = client.get("/sitemap.xml")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/xml")
    assert "<urlset" in r.text
    assert f"/blog/{published['slug']}</loc>" in r.text
    assert "hidden-draft" not in r.text
    assert r.text.count("<url>") == 2
