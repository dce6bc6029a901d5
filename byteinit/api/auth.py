"""
Proxy identity for ByteInit.

Behind oauth2-proxy the caller arrives as ``X-Auth-Request-*`` (or
``X-Forwarded-*``) headers. The first request from a new email creates the
account, with a username derived from the email's local part. Addresses in
ADMIN_EMAILS become superadmins, including accounts that predate the setting.
"""
import os
import re
import logging
from typing import Optional, Set, Tuple

from sqlalchemy.orm import Session

from byteinit.db import models

logger = logging.getLogger(__name__)

_USERNAME_UNSAFE = re.compile(r"[^a-z0-9_]")


def normalize_email(email: Optional[str]) -> Optional[str]:
    return email.strip().lower() if email else None


def admin_emails() -> Set[str]:
    """ADMIN_EMAILS as a lowercase set; read per call so it can change at runtime."""
    entries = (entry.strip().strip("\"'").lower() for entry in os.getenv("ADMIN_EMAILS", "").split(","))
    return {entry for entry in entries if entry}


def resolve_identity_from_headers(
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(display_name, email)``; oauth2-proxy's own headers win over X-Forwarded-*."""
    return (
        x_auth_request_user or x_forwarded_user,
        normalize_email(x_auth_request_email or x_forwarded_email),
    )


def _available_username(db: Session, email: str) -> str:
    base = _USERNAME_UNSAFE.sub("", email.split("@")[0].lower())[:40] or "user"
    if len(base) < 3:
        base += "_dev"
    taken = {
        name for (name,) in db.query(models.User.username).filter(models.User.username.like(f"{base}%"))
    }
    if base not in taken:
        return base
    n = 2
    while f"{base}{n}" in taken:
        n += 1
    return f"{base}{n}"


def get_or_create_user(db: Session, email: str, display_name: Optional[str] = None) -> models.User:
    is_admin = email in admin_emails()
    user = db.query(models.User).filter(models.User.email == email).first()

    if user is None:
        user = models.User(
            email=email,
            name=display_name or email.split("@")[0],
            username=_available_username(db, email),
            is_superadmin=is_admin,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Registered {user.username} ({user.id}) from proxy headers")
    elif is_admin and not user.is_superadmin:
        user.is_superadmin = True
        db.commit()
        db.refresh(user)
        logger.info(f"Promoted {user.username} to superadmin via ADMIN_EMAILS")
    return user
