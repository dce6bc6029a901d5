"""
API dependency helpers.

Resolves the calling user from a session token, OAuth2-proxy headers or
DEV_MODE, and exposes optional and superadmin variants for routes.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from byteinit.api.auth import get_or_create_user, resolve_identity_from_headers
from byteinit.db import models
from byteinit.db.database import get_db
from byteinit.db.repositories import tokens as token_repo
from byteinit.utils.runtime import DEV_USER_EMAIL, DEV_USER_NAME, dev_mode_active
from byteinit.utils.token_crypto import parse_token, verify_secret

logger = logging.getLogger(__name__)


def _context_for(user: models.User, session: Optional[models.SessionToken] = None) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "username": user.username,
        "name": user.name,
        "is_superadmin": bool(user.is_superadmin),
        "session_id": session.id if session is not None else None,
    }


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return None


def _user_from_session_token(db: Session, raw_token: str) -> Tuple[models.User, models.SessionToken]:
    parsed = parse_token(raw_token)
    if not parsed:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token format")
    session = token_repo.get_by_token_id(db, token_id=parsed.token_id)
    if not session or session.status != "active":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if session.expires_at is not None and datetime.now(timezone.utc) > models.as_utc(session.expires_at):
        logger.info(f"Rejected expired session {session.token_id}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired")
    if not verify_secret(parsed.secret, session.token_hash):
        logger.info(f"Rejected session {session.token_id}: secret mismatch")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.query(models.User).filter(models.User.id == session.user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token user")
    token_repo.mark_used_now(db, session=session)
    return user, session


def _resolve_user(
    db: Session,
    authorization: Optional[str],
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[models.User], Optional[Dict[str, Any]]]:
    token = bearer_token(authorization)
    if token:
        user, session = _user_from_session_token(db, token)
        return user, _context_for(user, session)

    if dev_mode_active():
        user = get_or_create_user(db, email=DEV_USER_EMAIL, display_name=DEV_USER_NAME)
        return user, _context_for(user)

    name, email = resolve_identity_from_headers(
        x_auth_request_user=x_auth_request_user,
        x_auth_request_email=x_auth_request_email,
        x_forwarded_user=x_forwarded_user,
        x_forwarded_email=x_forwarded_email,
    )
    if not email:
        return None, None
    user = get_or_create_user(db, email=email, display_name=name)
    return user, _context_for(user)


# Contract:
# Returns (sqlalchemy User model, current_user_context_dict)
# Raises 401 if identity cannot be resolved.

def get_current_user_context(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> Tuple[models.User, Dict[str, Any]]:
    user, current_user = _resolve_user(
        db,
        authorization,
        x_auth_request_user,
        x_auth_request_email,
        x_forwarded_user,
        x_forwarded_email,
    )
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user, current_user


def get_optional_user_context(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
) -> Tuple[Optional[models.User], Optional[Dict[str, Any]]]:
    """Like get_current_user_context but returns (None, None) for anonymous callers.

    A malformed or revoked bearer token still answers 401.
    """
    return _resolve_user(
        db,
        authorization,
        x_auth_request_user,
        x_auth_request_email,
        x_forwarded_user,
        x_forwarded_email,
    )


def require_superadmin(user_context=Depends(get_current_user_context)) -> Tuple[models.User, Dict[str, Any]]:
    user, current_user = user_context
    if not current_user.get("is_superadmin"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user, current_user


def viewer_id(user_context) -> Optional[Any]:
    """The caller's user id from an optional context tuple, or None."""
    user, _ctx = user_context
    return user.id if user is not None else None
