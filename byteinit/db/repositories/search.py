"""
Search query log.

Every search is recorded so the most frequent recent queries can be shown
as trending searches.
"""
from __future__ import annotations

import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from byteinit.db import models
from byteinit.utils.dates import days_ago

TRENDING_WINDOW_DAYS = 7
TRENDING_LIMIT = 5


def log_query(db: Session, *, query: str, user_id: Optional[uuid.UUID] = None) -> models.SearchQuery:
    entry = models.SearchQuery(query=query[:200].lower(), user_id=user_id)
    db.add(entry)
    db.commit()
    return entry


def trending_queries(db: Session, *, days: int = TRENDING_WINDOW_DAYS, limit: int = TRENDING_LIMIT) -> List[Tuple[str, int]]:
    count = func.count(models.SearchQuery.id)
    rows = (
        db.query(models.SearchQuery.query, count)
        .filter(models.SearchQuery.created_at >= days_ago(days))
        .group_by(models.SearchQuery.query)
        .order_by(count.desc(), models.SearchQuery.query.asc())
        .limit(limit)
        .all()
    )
    return [(query, int(n)) for query, n in rows]
