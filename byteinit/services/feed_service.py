"""RSS 2.0 feed and XML sitemap rendering for published posts."""
import logging
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader, select_autoescape

from byteinit.db import models
from byteinit.utils.urls import blog_path, get_app_base_url

logger = logging.getLogger(__name__)

FEED_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "feed"
FEED_TITLE = "ByteInit Blog"
FEED_DESCRIPTION = "Latest posts from the ByteInit developer community"

_env = Environment(
    loader=FileSystemLoader(str(FEED_TEMPLATE_DIR)),
    autoescape=select_autoescape(enabled_extensions=("xml",)),
)


def render_rss(blogs: List[models.Blog]) -> str:
    base_url = get_app_base_url()
    items = [
        {
            "title": blog.title,
            "link": f"{base_url}{blog_path(blog.slug)}",
            "description": blog.summary or (blog.content or "")[:300],
            "pub_date": format_datetime(models.as_utc(blog.created_at)),
            "author": blog.author.display_label if blog.author else None,
            "tags": blog.tags,
        }
        for blog in blogs
    ]
    logger.debug(f"Rendering RSS feed with {len(items)} items")
    return _env.get_template("rss.xml").render(
        title=FEED_TITLE,
        base_url=base_url,
        description=FEED_DESCRIPTION,
        build_date=format_datetime(datetime.now(timezone.utc)),
        items=items,
    )


def render_sitemap(blogs: List[models.Blog]) -> str:
    """Sitemap of the home page plus every published post, dated by its last edit."""
    base_url = get_app_base_url()
    entries = [
        {
            "loc": f"{base_url}{blog_path(blog.slug)}",
            "lastmod": models.as_utc(blog.updated_at).isoformat(timespec="seconds"),
        }
        for blog in blogs
    ]
    logger.debug(f"Rendering sitemap with {len(entries)} posts")
    return _env.get_template("sitemap.xml").render(
        base_url=base_url,
        build_date=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        entries=entries,
    )
