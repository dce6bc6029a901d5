from datetime import datetime, timezone

from byteinit.services.feed_service import render_rss, render_sitemap


def test_render_rss_items_and_escaping(db_session, make_user, make_blog, monkeypatch):
    monkeypatch.setenv("APP_BASE_URL", "https://byteinit.dev")
    author = make_user("author@example.com", name="Ada")
    blog = make_blog(author, title="Rust & Python <3", content="Body text", tags=["rust"], summary="Short")

    xml = render_rss([blog])
    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert "<title>Rust &amp; Python &lt;3</title>" in xml
    assert f"<link>https://byteinit.dev/blog/{blog.slug}</link>" in xml
    assert "<description>Short</description>" in xml
    assert "<category>rust</category>" in xml
    assert "<author>Ada</author>" in xml
    assert "+0000" in xml


def test_render_rss_empty_channel(monkeypatch):
    monkeypatch.setenv("APP_BASE_URL", "https://byteinit.dev")
    xml = render_rss([])
    assert "<item>" not in xml
    assert '<atom:link href="https://byteinit.dev/feed.xml"' in xml


def test_render_sitemap_uses_last_edit(db_session, make_user, make_blog, monkeypatch):
    monkeypatch.setenv("APP_BASE_URL", "https://byteinit.dev")
    blog = make_blog(make_user("author@example.com"), title="Edited Post")
    blog.updated_at = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)

    xml = render_sitemap([blog])
    assert "<loc>https://byteinit.dev</loc>" in xml
    assert f"<loc>https://byteinit.dev/blog/{blog.slug}</loc>" in xml
    assert "<lastmod>2024-05-01T12:30:00+00:00</lastmod>" in xml
    assert xml.count("<url>") == 2
