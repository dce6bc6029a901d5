"""
Site-wide search: posts and resources together, trending queries and tag
suggestions.
"""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from byteinit.api.deps import get_optional_user_context, viewer_id
from byteinit.db import schemas
from byteinit.db.database import get_db
from byteinit.db.repositories import blogs as blog_repo
from byteinit.db.repositories import resources as resource_repo
from byteinit.db.repositories import search as search_repo
from byteinit.db.repositories import tags as tags_repo
from byteinit.utils.text import normalize_query

router = APIRouter(prefix="/search", tags=["search"])

TAG_SUGGESTION_LIMIT = 10


@router.get("", response_model=schemas.SearchResponse)
def search_all(
    q: str = Query(default=""),
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    query = normalize_query(q)
    if not query:
        return schemas.SearchResponse(query="", blogs=[], resources=[])
    search_repo.log_query(db, query=query, user_id=viewer_id(user_context))
    return schemas.SearchResponse(
        query=query,
        blogs=blog_repo.to_cards(db, blog_repo.search_blogs(db, query)),
        resources=resource_repo.to_schemas(db, resource_repo.search(db, query), viewer_id(user_context)),
    )


@router.get("/trending", response_model=List[schemas.TrendingSearch])
def trending_searches(db: Session = Depends(get_db)):
    return [schemas.TrendingSearch(query=q, count=n) for q, n in search_repo.trending_queries(db)]


@router.get("/tags", response_model=List[str])
def suggest_tags(q: str = Query(default=""), db: Session = Depends(get_db)):
    return tags_repo.suggest_tags(db, q, limit=TAG_SUGGESTION_LIMIT)
