"""
Repositories for login session tokens.

Implements create/list/lookup/revoke and last-used updates.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Tuple, Optional

from sqlalchemy.orm import Session

from byteinit.db import models
from byteinit.utils import token_crypto

SESSION_TTL_DAYS = 30


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_session(
    db: Session,
    *,
    user_id: uuid.UUID,
    user_agent: Optional[str] = None,
    ttl_days: int = SESSION_TTL_DAYS,
) -> Tuple[models.SessionToken, str]:
    token_id, secret, full_token = token_crypto.generate_token()
    session = models.SessionToken(
        user_id=user_id,
        token_id=token_id,
        token_hash=token_crypto.hash_secret(secret),
        user_agent=(user_agent or "")[:300] or None,
        status="active",
        created_at=_now(),
        expires_at=_now() + timedelta(days=ttl_days),
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session, full_token


def list_sessions(db: Session, *, user_id: uuid.UUID) -> List[models.SessionToken]:
    return (
        db.query(models.SessionToken)
        .filter(
            models.SessionToken.user_id == user_id,
            models.SessionToken.status == "active",
        )
        .order_by(models.SessionToken.created_at.desc())
        .all()
    )


def get_by_token_id(db: Session, *, token_id: str) -> Optional[models.SessionToken]:
    return (
        db.query(models.SessionToken)
        .filter(models.SessionToken.token_id == token_id)
        .first()
    )


def revoke_session(db: Session, *, session: models.SessionToken) -> None:
    if session.status != "revoked":
        session.status = "revoked"
        session.revoked_at = _now()
        db.commit()


def revoke_session_owned(db: Session, *, session_db_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    session = (
        db.query(models.SessionToken)
        .filter(
            models.SessionToken.id == session_db_id,
            models.SessionToken.user_id == user_id,
        )
        .first()
    )
    if not session:
        return False
    revoke_session(db, session=session)
    return True


def revoke_all_for_user(db: Session, *, user_id: uuid.UUID) -> int:
    """Revoke every active session, e.g. after a password reset."""
    updated = (
        db.query(models.SessionToken)
        .filter(
            models.SessionToken.user_id == user_id,
            models.SessionToken.status == "active",
        )
        .update({"status": "revoked", "revoked_at": _now()}, synchronize_session=False)
    )
    db.commit()
    return updated


def mark_used_now(db: Session, *, session: models.SessionToken) -> None:
    session.last_used_at = _now()
    db.commit()
