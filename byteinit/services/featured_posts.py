"""
Featured post rotation.

Run from the API (superadmin or cron secret) or from
``scripts/update_featured_posts.py``.
"""
import logging
import uuid
from typing import List

from sqlalchemy.orm import Session

from byteinit.db.repositories import blogs as blog_repo

logger = logging.getLogger(__name__)


def update_featured_posts(db: Session) -> List[uuid.UUID]:
    """Clear all featured flags and feature the current top posts."""
    featured = blog_repo.refresh_featured(db)
    logger.info(f"Featured posts refreshed: {[str(blog_id) for blog_id in featured]}")
    return featured
