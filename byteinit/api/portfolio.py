"""
AI-generated developer portfolio endpoint.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from byteinit.api.deps import get_optional_user_context, viewer_id
from byteinit.db import schemas
from byteinit.db.database import get_db
from byteinit.db.repositories import users as user_repo
from byteinit.services.portfolio_service import (
    PortfolioGenerationError,
    PortfolioUnavailableError,
    get_portfolio_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["portfolio"])


@router.get("/generate-portfolio/{username}", response_model=schemas.PortfolioResponse)
def generate_portfolio(
    username: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    user = user_repo.find_user(db, username)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    try:
        return get_portfolio_service().build_portfolio(db, user, viewer_id(user_context))
    except PortfolioUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Portfolio generation is not available",
        )
    except PortfolioGenerationError as e:
        logger.warning(f"Portfolio generation failed for {user.id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to generate portfolio")
