"""
Credential accounts: registration, email verification, login sessions and
password reset.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from byteinit.api.deps import bearer_token, get_current_user_context
from byteinit.db import models, schemas
from byteinit.db.database import get_db
from byteinit.db.repositories import tokens as token_repo
from byteinit.db.repositories import users as user_repo
from byteinit.services.notification_service import (
    NotificationService,
    TEMPLATE_RESET_PASSWORD,
    TEMPLATE_VERIFY_EMAIL,
)
from byteinit.utils.feature_flags import registration_enabled
from byteinit.utils.token_crypto import (
    generate_email_token,
    hash_password,
    parse_token,
    verify_password,
)
from byteinit.utils.urls import build_reset_password_link, build_verification_link

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

VERIFICATION_TOKEN_TTL_HOURS = 24
RESET_TOKEN_TTL_MINUTES = 60
FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, you will receive a password reset link."


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _expired(expires_at: Optional[datetime]) -> bool:
    return expires_at is None or models.as_utc(expires_at) < _now()


@router.post("/register", response_model=schemas.RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserRegister, db: Session = Depends(get_db)):
    if not registration_enabled():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Registration is disabled")
    if user_repo.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    if user_repo.username_taken(db, payload.username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    token = generate_email_token()
    user = user_repo.create_credentials_user(
        db,
        email=payload.email,
        username=payload.username,
        name=payload.name,
        password_hash=hash_password(payload.password),
        verification_token=token,
        verification_token_expires_at=_now() + timedelta(hours=VERIFICATION_TOKEN_TTL_HOURS),
    )
    logger.info(f"Registered user {user.id}")

    NotificationService(db).send_transactional_email(
        to_email=user.email,
        subject="Verify your ByteInit email",
        template_name=TEMPLATE_VERIFY_EMAIL,
        template_context={
            "name": user.display_label,
            "verification_url": build_verification_link(token=token, email=user.email),
            "expires_hours": VERIFICATION_TOKEN_TTL_HOURS,
        },
        event_type="verify_email",
        user_id=user.id,
    )
    return schemas.RegisterResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        message="Registration successful. Please check your email to verify your account.",
    )


@router.get("/verify")
def verify_email(token: str, email: Optional[str] = None, db: Session = Depends(get_db)):
    user = user_repo.get_user_by_verification_token(db, token)
    if not user or (email and user.email != email.strip().lower()):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid verification token")

    if _expired(user.verification_token_expires_at):
        user.verification_token = None
        user.verification_token_expires_at = None
        db.commit()
        logger.info(f"Verification token expired for user {user.id}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Verification token has expired")

    user.email_verified_at = _now()
    user.verification_token = None
    user.verification_token_expires_at = None
    db.commit()
    return {"verified": True, "email": user.email}


@router.post("/login", response_model=schemas.LoginResponse)
def login(payload: schemas.LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = user_repo.get_user_by_email(db, payload.email)
    if not user or not user.password_hash or not verify_password(payload.password, user.password_hash):
        logger.info("Login failed: bad credentials")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if user.email_verified_at is None:
        logger.info(f"Login refused for unverified user {user.id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Please verify your email before logging in")

    session, full_token = token_repo.create_session(
        db, user_id=user.id, user_agent=request.headers.get("user-agent")
    )
    return schemas.LoginResponse(
        token=full_token,
        expires_at=session.expires_at,
        user=schemas.UserSummary.model_validate(user),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(authorization: Optional[str] = Header(default=None), db: Session = Depends(get_db)):
    parsed = parse_token(bearer_token(authorization) or "")
    if not parsed:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    session = token_repo.get_by_token_id(db, token_id=parsed.token_id)
    if session is not None:
        token_repo.revoke_session(db, session=session)


@router.post("/forgot-password")
def forgot_password(payload: schemas.ForgotPasswordRequest, db: Session = Depends(get_db)):
    user = user_repo.get_user_by_email(db, payload.email)
    if user is not None:
        token = generate_email_token()
        user.reset_token = token
        user.reset_token_expires_at = _now() + timedelta(minutes=RESET_TOKEN_TTL_MINUTES)
        db.commit()
        NotificationService(db).send_transactional_email(
            to_email=user.email,
            subject="Reset your ByteInit password",
            template_name=TEMPLATE_RESET_PASSWORD,
            template_context={
                "name": user.display_label,
                "reset_url": build_reset_password_link(token=token),
                "expires_minutes": RESET_TOKEN_TTL_MINUTES,
            },
            event_type="reset_password",
            user_id=user.id,
        )
    return {"message": FORGOT_PASSWORD_MESSAGE}


@router.get("/verify-reset-token")
def verify_reset_token(token: str, db: Session = Depends(get_db)):
    user = user_repo.get_user_by_reset_token(db, token)
    return {"valid": bool(user and not _expired(user.reset_token_expires_at))}


@router.post("/reset-password")
def reset_password(payload: schemas.ResetPasswordRequest, db: Session = Depends(get_db)):
    user = user_repo.get_user_by_reset_token(db, payload.token)
    if not user or _expired(user.reset_token_expires_at):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

    user.password_hash = hash_password(payload.password)
    user.reset_token = None
    user.reset_token_expires_at = None
    db.commit()
    revoked = token_repo.revoke_all_for_user(db, user_id=user.id)
    logger.info(f"Password reset for user {user.id}; revoked {revoked} sessions")
    return {"message": "Password has been reset successfully"}


@router.get("/sessions", response_model=List[schemas.SessionInfo])
def list_sessions(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return token_repo.list_sessions(db, user_id=user.id)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_session(
    session_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if not token_repo.revoke_session_owned(db, session_db_id=session_id, user_id=user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
