"""
Support and build information endpoints.

Provides build metadata and the public contact form, which emails the
support inbox and sends the sender a confirmation.
"""
from __future__ import annotations

import os
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from starlette.responses import JSONResponse
from sqlalchemy import desc
from sqlalchemy.orm import Session

from byteinit.db import models, schemas
from byteinit.db.database import get_db
from byteinit.api.deps import get_optional_user_context, viewer_id
from byteinit.services.notification_service import (
    NotificationService,
    TEMPLATE_CONTACT_ADMIN,
    TEMPLATE_CONTACT_CONFIRMATION,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["support"])

SERVICE_NAME = "byteinit-service"


@router.get("/build-info")
def get_build_info():
    """Return build and deployment information for the running service."""
    return {
        "build_sha": os.getenv("BUILD_SHA") or None,
        "build_timestamp": os.getenv("BUILD_TIMESTAMP") or None,
        "image_tag": os.getenv("IMAGE_TAG") or None,
        "service_name": SERVICE_NAME,
        "version": os.getenv("VERSION", "unknown"),
    }


def _retry_after_seconds(db: Session, sender: str) -> int:
    """Seconds the sender must still wait, or 0."""
    try:
        interval_seconds = int(os.getenv("CONTACT_MIN_INTERVAL_SECONDS", "60"))
    except ValueError:
        interval_seconds = 60
    if interval_seconds <= 0:
        return 0

    last = (
        db.query(models.EmailNotificationLog)
        .filter(
            models.EmailNotificationLog.email_address == sender,
            models.EmailNotificationLog.event_type == TEMPLATE_CONTACT_CONFIRMATION,
        )
        .order_by(desc(models.EmailNotificationLog.created_at))
        .first()
    )
    if not last or last.created_at is None:
        return 0
    elapsed = (datetime.now(timezone.utc) - models.as_utc(last.created_at)).total_seconds()
    if elapsed >= interval_seconds:
        return 0
    return max(int(interval_seconds - elapsed), 1)


@router.post("/contact", response_model=schemas.ContactResponse)
async def contact(
    payload: schemas.ContactRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    """
    Accept a contact-form submission, email it to the support inbox and send
    the sender a confirmation.
    """
    retry_after = _retry_after_seconds(db, payload.email)
    if retry_after:
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "detail": f"Rate limit: please wait {retry_after} seconds before sending another message.",
                "retry_after_seconds": retry_after,
            },
        )

    contact_email = os.getenv("CONTACT_EMAIL", "support@byteinit.dev")
    user_id = viewer_id(user_context)
    notification_service = NotificationService(db)

    admin_log = notification_service.create_email_notification_log(
        notification_id=None,
        user_id=user_id,
        email_address=contact_email,
        event_type=TEMPLATE_CONTACT_ADMIN,
        subject=f"New Contact Form Submission: {payload.issue_type}",
    )
    admin_result = await notification_service.send_email_notification(
        admin_log,
        template_name=TEMPLATE_CONTACT_ADMIN,
        template_context={
            "first_name": payload.first_name,
            "last_name": payload.last_name,
            "email": payload.email,
            "phone": payload.phone,
            "issue_type": payload.issue_type,
            "message": payload.message,
            "submitted_at": datetime.now(timezone.utc).isoformat(),
        },
        reply_to=payload.email,
    )
    if not admin_result.get("success"):
        logger.error(f"Contact form email failed: {admin_result.get('error')}")
        raise HTTPException(status_code=500, detail="Failed to send message")

    confirmation_log = notification_service.create_email_notification_log(
        notification_id=None,
        user_id=user_id,
        email_address=payload.email,
        event_type=TEMPLATE_CONTACT_CONFIRMATION,
        subject="We've received your message",
    )
    confirmation = await notification_service.send_email_notification(
        confirmation_log,
        template_name=TEMPLATE_CONTACT_CONFIRMATION,
        template_context={
            "first_name": payload.first_name,
            "issue_type": payload.issue_type,
            "message": payload.message,
        },
    )
    if not confirmation.get("success"):
        logger.warning(f"Contact confirmation to {payload.email} not sent: {confirmation.get('error')}")

    return schemas.ContactResponse(status="ok", message="Message sent successfully")
