"""
Notifications for ByteInit interactions.

Likes, saves, votes, comments, replies and follows produce an in-app
notification for the owner of the thing interacted with. Each event type has
per-user channel preferences; when email is on for an event, the message is
queued during the request and sent by ``flush_emails`` once the caller has
committed. Transactional mail (verification, password reset, contact form)
goes through the same delivery path so every message leaves an
``EmailNotificationLog`` row.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, UTC
from typing import Optional, List, Dict, Any

from sqlalchemy import desc, func
from sqlalchemy.orm import Query, Session

from byteinit.db import models
from byteinit.utils.feature_flags import email_notifications_enabled
from byteinit.utils.urls import blog_path, get_app_base_url, profile_path, resource_path

logger = logging.getLogger(__name__)

EVENT_RESOURCE_LIKE = 'resource_like'
EVENT_RESOURCE_SAVE = 'resource_save'
EVENT_BLOG_VOTE = 'blog_vote'
EVENT_BLOG_LIKE = 'blog_like'
EVENT_BLOG_SAVE = 'blog_save'
EVENT_BLOG_COMMENT = 'blog_comment'
EVENT_COMMENT_REPLY = 'comment_reply'
EVENT_NEW_FOLLOWER = 'new_follower'

# Email template names under byteinit/templates/email
TEMPLATE_INTERACTION = 'interaction'
TEMPLATE_VERIFY_EMAIL = 'verify_email'
TEMPLATE_RESET_PASSWORD = 'reset_password'
TEMPLATE_CONTACT_ADMIN = 'contact_admin'
TEMPLATE_CONTACT_CONFIRMATION = 'contact_confirmation'

NOTIFICATION_TTL_DAYS = 30


@dataclass(frozen=True)
class EventKind:
    title: str
    message: str
    email_by_default: bool = False


EVENT_KINDS: Dict[str, EventKind] = {
    EVENT_RESOURCE_LIKE: EventKind('New like', '{actor} liked your resource "{title}"'),
    EVENT_RESOURCE_SAVE: EventKind('Resource saved', '{actor} saved your resource "{title}"'),
    EVENT_BLOG_VOTE: EventKind('New vote', '{actor} voted on your post "{title}"'),
    EVENT_BLOG_LIKE: EventKind('New like', '{actor} liked your post "{title}"'),
    EVENT_BLOG_SAVE: EventKind('Post saved', '{actor} saved your post "{title}"'),
    EVENT_BLOG_COMMENT: EventKind('New comment', '{actor} commented on your post "{title}"', email_by_default=True),
    EVENT_COMMENT_REPLY: EventKind('New reply', '{actor} replied to your comment on "{title}"', email_by_default=True),
    EVENT_NEW_FOLLOWER: EventKind('New follower', '{actor} started following you'),
}

ALL_EVENT_TYPES = tuple(EVENT_KINDS)


def build_notification_message(event_type: str, actor_name: Optional[str], subject_title: Optional[str] = None) -> str:
    kind = EVENT_KINDS.get(event_type)
    if kind is None:
        return 'New notification'
    return kind.message.format(actor=actor_name or 'Someone', title=subject_title or '')


def default_preferences() -> Dict[str, Dict[str, bool]]:
    """Channels for events a user never configured: always in-app, email only for conversations."""
    return {
        event: {'email_enabled': kind.email_by_default, 'in_app_enabled': True}
        for event, kind in EVENT_KINDS.items()
    }


@dataclass
class _QueuedEmail:
    notification_id: uuid.UUID
    recipient: models.User
    event_type: str
    subject: str
    context: Dict[str, Any] = field(default_factory=dict)


class NotificationService:

    def __init__(self, db: Session, email_service: Optional[Any] = None):
        self.db = db
        if email_service is None:
            # Looked up through the module so tests can patch get_email_service
            from byteinit.services import email_service as email_module
            email_service = email_module.get_email_service()
        self.email_service = email_service
        self._outbox: List[_QueuedEmail] = []

    # --- preferences ---------------------------------------------------------

    def get_user_preferences(self, user_id: uuid.UUID) -> Dict[str, Dict[str, bool]]:
        prefs = default_preferences()
        stored = self.db.query(models.UserNotificationPreference).filter_by(user_id=user_id)
        for row in stored:
            if row.event_type in prefs:
                prefs[row.event_type] = {'email_enabled': row.email_enabled, 'in_app_enabled': row.in_app_enabled}
        return prefs

    def set_user_preference(
        self,
        user_id: uuid.UUID,
        event_type: str,
        email_enabled: bool,
        in_app_enabled: bool,
    ) -> models.UserNotificationPreference:
        if event_type not in EVENT_KINDS:
            raise ValueError(f"Unknown event type: {event_type}")

        row = (
            self.db.query(models.UserNotificationPreference)
            .filter_by(user_id=user_id, event_type=event_type)
            .first()
        )
        if row is None:
            row = models.UserNotificationPreference(user_id=user_id, event_type=event_type)
            self.db.add(row)
        row.email_enabled = email_enabled
        row.in_app_enabled = in_app_enabled
        row.updated_at = datetime.now(UTC)
        self.db.commit()
        self.db.refresh(row)
        return row

    # --- creating and withdrawing -------------------------------------------

    def create_notification(
        self,
        user_id: uuid.UUID,
        event_type: str,
        title: str,
        message: str,
        actor_user_id: Optional[uuid.UUID] = None,
        blog_id: Optional[uuid.UUID] = None,
        resource_id: Optional[uuid.UUID] = None,
        comment_id: Optional[uuid.UUID] = None,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        expires_days: int = NOTIFICATION_TTL_DAYS,
        commit: bool = True,
    ) -> models.Notification:
        """Insert one notification; ``commit=False`` only flushes it into the caller's transaction."""
        notification = models.Notification(
            user_id=user_id,
            actor_user_id=actor_user_id,
            event_type=event_type,
            blog_id=blog_id,
            resource_id=resource_id,
            comment_id=comment_id,
            title=title,
            message=message,
            action_url=action_url,
            metadata_json=metadata or None,
            expires_at=datetime.now(UTC) + timedelta(days=expires_days),
        )
        self.db.add(notification)
        if commit:
            self.db.commit()
            self.db.refresh(notification)
        else:
            self.db.flush()
        return notification

    def notify_interaction(
        self,
        recipient_id: uuid.UUID,
        actor: models.User,
        event_type: str,
        blog: Optional[models.Blog] = None,
        resource: Optional[models.Resource] = None,
        comment: Optional[models.Comment] = None,
    ) -> Optional[models.Notification]:
        """
        Tell ``recipient_id`` that ``actor`` interacted with their content.

        Returns None without writing anything when the actor is the recipient
        or the recipient muted in-app notifications for this event. The row is
        flushed, not committed; an email, if wanted, waits in the outbox for
        :meth:`flush_emails`.
        """
        if recipient_id is None or actor.id == recipient_id:
            return None
        channels = self.get_user_preferences(recipient_id).get(event_type)
        if channels is None or not channels['in_app_enabled']:
            return None

        subject_title, action_url = None, None
        if blog is not None:
            subject_title, action_url = blog.title, blog_path(blog.slug)
        elif resource is not None:
            subject_title, action_url = resource.title, resource_path(resource.id)
        if event_type == EVENT_NEW_FOLLOWER:
            action_url = profile_path(actor.username)

        actor_name = actor.display_label
        title = EVENT_KINDS[event_type].title
        message = build_notification_message(event_type, actor_name, subject_title)
        notification = self.create_notification(
            user_id=recipient_id,
            event_type=event_type,
            title=title,
            message=message,
            actor_user_id=actor.id,
            blog_id=getattr(blog, 'id', None),
            resource_id=getattr(resource, 'id', None),
            comment_id=getattr(comment, 'id', None),
            action_url=action_url,
            metadata={'actor_name': actor_name, 'subject_title': subject_title},
            commit=False,
        )

        if channels['email_enabled'] and email_notifications_enabled() and self._email_configured():
            recipient = self.db.get(models.User, recipient_id)
            if recipient is not None and recipient.email:
                self._outbox.append(_QueuedEmail(
                    notification_id=notification.id,
                    recipient=recipient,
                    event_type=event_type,
                    subject=message,
                    context={
                        'recipient_name': recipient.display_label,
                        'title': title,
                        'message': message,
                        'action_url': get_app_base_url() + action_url if action_url else None,
                    },
                ))
        return notification

    def withdraw_interaction(
        self,
        recipient_id: uuid.UUID,
        actor_id: uuid.UUID,
        event_type: str,
        blog_id: Optional[uuid.UUID] = None,
        resource_id: Optional[uuid.UUID] = None,
        comment_id: Optional[uuid.UUID] = None,
    ) -> int:
        """Remove what an undone like, save, vote or follow produced. Flushes only."""
        criteria = {'user_id': recipient_id, 'actor_user_id': actor_id, 'event_type': event_type}
        for column, value in (('blog_id', blog_id), ('resource_id', resource_id), ('comment_id', comment_id)):
            if value is not None:
                criteria[column] = value
        removed = self.db.query(models.Notification).filter_by(**criteria).delete(synchronize_session=False)
        self.db.flush()
        return removed

    def flush_emails(self) -> List[Dict[str, Any]]:
        """Send everything queued by notify_interaction. Call only after the commit."""
        queued, self._outbox = self._outbox, []
        results = []
        for item in queued:
            log = self.create_email_notification_log(
                notification_id=item.notification_id,
                user_id=item.recipient.id,
                email_address=item.recipient.email,
                event_type=item.event_type,
                subject=item.subject,
            )
            results.append(asyncio.run(self.send_email_notification(log, TEMPLATE_INTERACTION, item.context)))
        return results

    # --- inbox ---------------------------------------------------------------

    def _inbox(self, user_id: uuid.UUID) -> Query:
        return self.db.query(models.Notification).filter(
            models.Notification.user_id == user_id,
            models.Notification.expires_at > datetime.now(UTC),
        )

    def get_user_notifications(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        limit: int = 50,
    ) -> List[models.Notification]:
        query = self._inbox(user_id)
        if unread_only:
            query = query.filter(models.Notification.is_read.is_(False))
        return query.order_by(desc(models.Notification.created_at)).limit(limit).all()

    def get_unread_count(self, user_id: uuid.UUID) -> int:
        return self._inbox(user_id).filter(models.Notification.is_read.is_(False)).count()

    def get_notification_stats(self, user_id: uuid.UUID) -> Dict[str, Any]:
        counts = dict(
            self._inbox(user_id)
            .with_entities(models.Notification.event_type, func.count(models.Notification.id))
            .group_by(models.Notification.event_type)
            .all()
        )
        return {'total': sum(counts.values()), 'unread': self.get_unread_count(user_id), 'by_event_type': counts}

    def mark_notification_read(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """False when the notification does not exist or belongs to someone else."""
        notification = (
            self.db.query(models.Notification)
            .filter_by(id=notification_id, user_id=user_id)
            .first()
        )
        if notification is None:
            return False
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(UTC)
            self.db.commit()
        return True

    def mark_notifications_read(self, user_id: uuid.UUID, ids: Optional[List[uuid.UUID]] = None) -> int:
        """Mark ``ids`` read; ``None`` means every unread notification of the user."""
        if ids is not None and not ids:
            return 0
        query = self.db.query(models.Notification).filter(
            models.Notification.user_id == user_id,
            models.Notification.is_read.is_(False),
        )
        if ids:
            query = query.filter(models.Notification.id.in_(ids))
        updated = query.update(
            {models.Notification.is_read: True, models.Notification.read_at: datetime.now(UTC)},
            synchronize_session=False,
        )
        self.db.commit()
        return updated

    def delete_notifications(self, user_id: uuid.UUID, ids: List[uuid.UUID]) -> int:
        if not ids:
            return 0
        deleted = (
            self.db.query(models.Notification)
            .filter(models.Notification.user_id == user_id, models.Notification.id.in_(ids))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def cleanup_expired_notifications(self) -> int:
        deleted = (
            self.db.query(models.Notification)
            .filter(models.Notification.expires_at <= datetime.now(UTC))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info(f"Removed {deleted} expired notifications")
        return deleted

    # --- email ---------------------------------------------------------------

    def _email_configured(self) -> bool:
        config = getattr(self.email_service, 'config', None)
        if config is None:
            return self.email_service is not None
        return config.is_configured()

    def create_email_notification_log(
        self,
        notification_id: Optional[uuid.UUID],
        user_id: Optional[uuid.UUID],
        email_address: str,
        event_type: str,
        subject: str,
    ) -> models.EmailNotificationLog:
        """Committed 'pending' row; delivery updates it to 'sent' or 'failed'."""
        log = models.EmailNotificationLog(
            notification_id=notification_id,
            user_id=user_id,
            email_address=email_address,
            event_type=event_type,
            subject=subject[:200],
            status='pending',
        )
        self.db.add(log)
        self.db.commit()
        self.db.refresh(log)
        return log

    def _record_delivery(self, log: models.EmailNotificationLog, result: Dict[str, Any]) -> Dict[str, Any]:
        if result.get('success'):
            log.status = 'sent'
            log.sent_at = datetime.now(UTC)
            log.provider_message_id = result.get('message_id')
        else:
            log.status = 'failed'
            log.error_message = result.get('error') or 'Unknown error'
        self.db.commit()
        return {'email_log_id': log.id, **result}

    async def send_email_notification(
        self,
        email_log: models.EmailNotificationLog,
        template_name: str,
        template_context: Dict[str, Any],
        reply_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Render ``template_name`` and send it to the log's address.

        Rendering or transport errors are recorded on the log and returned as
        ``{'success': False, 'error': ...}``; nothing is raised.
        """
        context = {'current_year': datetime.now(UTC).year, **template_context}
        try:
            html_content, text_content = self.email_service.render_template(template_name, context)
            result = await self.email_service.send_email(
                to_email=email_log.email_address,
                subject=email_log.subject,
                html_content=html_content,
                text_content=text_content,
                reply_to=reply_to,
            )
        except Exception as e:
            logger.error(f"Email '{template_name}' to {email_log.email_address} failed: {e}", exc_info=True)
            result = {'success': False, 'error': f"Failed to send email: {e}"}
        return self._record_delivery(email_log, result)

    def send_transactional_email(
        self,
        to_email: str,
        subject: str,
        template_name: str,
        template_context: Dict[str, Any],
        event_type: str,
        user_id: Optional[uuid.UUID] = None,
        reply_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Log and send verification, reset or similar one-off mail from sync code."""
        log = self.create_email_notification_log(
            notification_id=None,
            user_id=user_id,
            email_address=to_email,
            event_type=event_type,
            subject=subject,
        )
        result = asyncio.run(self.send_email_notification(log, template_name, template_context, reply_to=reply_to))
        if not result['success']:
            logger.warning(f"{event_type} email to {to_email} not sent: {result.get('error')}")
        return result
