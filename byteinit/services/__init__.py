"""Business logic services package with public service helpers."""

from .email_service import EmailService, EmailServiceConfig, get_email_service
from .notification_service import NotificationService

__all__ = [
    "EmailService",
    "EmailServiceConfig",
    "get_email_service",
    "NotificationService",
]
