"""
Unit tests for the NotificationService class.

Covers interaction notifications (creation, self-suppression, withdrawal),
preferences, read state, queued email dispatch and expiry cleanup.
"""
from datetime import datetime, timedelta, UTC
from unittest.mock import AsyncMock, MagicMock

import pytest

from byteinit.db import models
from byteinit.services.notification_service import (
    EVENT_BLOG_COMMENT,
    EVENT_BLOG_LIKE,
    EVENT_NEW_FOLLOWER,
    NotificationService,
    build_notification_message,
    default_preferences,
)


def _fake_email_service(success=True):
    svc = MagicMock()
    svc.config.is_configured.return_value = True
    svc.render_template.return_value = ("<p>hi</p>", "hi")
    svc.send_email = AsyncMock(
        return_value={"success": True, "message_id": "<m1@byteinit.dev>"} if success else {"success": False, "error": "boom"}
    )
    return svc


def test_build_notification_message():
    assert build_notification_message(EVENT_BLOG_LIKE, "Bob", "Post") == 'Bob liked your post "Post"'
    assert build_notification_message(EVENT_NEW_FOLLOWER, None) == "Someone started following you"
    assert build_notification_message("unknown", "Bob") == "New notification"


def test_default_preferences_email_only_for_conversations():
    prefs = default_preferences()
    assert prefs[EVENT_BLOG_COMMENT]["email_enabled"] is True
    assert prefs[EVENT_BLOG_LIKE]["email_enabled"] is False
    assert all(p["in_app_enabled"] for p in prefs.values())


def test_self_interaction_is_not_notified(db_session, make_user, make_blog):
    author = make_user("author@example.com")
    blog = make_blog(author)
    service = NotificationService(db_session, email_service=_fake_email_service())
    assert service.notify_interaction(author.id, author, EVENT_BLOG_LIKE, blog=blog) is None
    db_session.commit()
    assert db_session.query(models.Notification).count() == 0


def test_notify_and_withdraw(db_session, make_user, make_blog):
    author = make_user("author@example.com")
    fan = make_user("fan@example.com", name="Fan")
    blog = make_blog(author, title="Great Post")
    service = NotificationService(db_session, email_service=_fake_email_service())

    notification = service.notify_interaction(author.id, fan, EVENT_BLOG_LIKE, blog=blog)
    db_session.commit()
    assert notification.message == 'Fan liked your post "Great Post"'
    assert notification.action_url == f"/blog/{blog.slug}"
    assert notification.metadata_json["actor_name"] == "Fan"

    removed = service.withdraw_interaction(author.id, fan.id, EVENT_BLOG_LIKE, blog_id=blog.id)
    db_session.commit()
    assert removed == 1
    assert db_session.query(models.Notification).count() == 0


def test_in_app_preference_off_suppresses(db_session, make_user, make_blog):
    author = make_user("author@example.com")
    fan = make_user("fan@example.com")
    blog = make_blog(author)
    service = NotificationService(db_session, email_service=_fake_email_service())
    service.set_user_preference(author.id, EVENT_BLOG_LIKE, email_enabled=False, in_app_enabled=False)

    assert service.notify_interaction(author.id, fan, EVENT_BLOG_LIKE, blog=blog) is None
    assert service.get_user_preferences(author.id)[EVENT_BLOG_LIKE]["in_app_enabled"] is False


def test_set_preference_rejects_unknown_event(db_session, make_user):
    user = make_user()
    with pytest.raises(ValueError):
        NotificationService(db_session, email_service=_fake_email_service()).set_user_preference(
            user.id, "post_archived", True, True
        )


def test_flush_emails_sends_for_email_enabled_events(db_session, make_user, make_blog):
    author = make_user("author@example.com")
    fan = make_user("fan@example.com")
    blog = make_blog(author)
    email = _fake_email_service()
    service = NotificationService(db_session, email_service=email)

    service.notify_interaction(author.id, fan, EVENT_BLOG_COMMENT, blog=blog)
    # Likes are in-app only by default
    service.notify_interaction(author.id, fan, EVENT_BLOG_LIKE, blog=blog)
    db_session.commit()
    results = service.flush_emails()

    assert len(results) == 1 and results[0]["success"] is True
    email.send_email.assert_awaited_once()
    assert email.send_email.await_args.kwargs["to_email"] == "author@example.com"
    log = db_session.query(models.EmailNotificationLog).one()
    assert log.status == "sent"
    assert log.event_type == EVENT_BLOG_COMMENT
    assert service.flush_emails() == []


def test_email_flag_off_queues_nothing(db_session, make_user, make_blog, monkeypatch):
    from byteinit.utils.feature_flags import refresh_feature_flag_cache

    monkeypatch.setenv("EMAIL_NOTIFICATIONS_ENABLED", "false")
    refresh_feature_flag_cache()
    author = make_user("author@example.com")
    fan = make_user("fan@example.com")
    blog = make_blog(author)
    email = _fake_email_service()
    service = NotificationService(db_session, email_service=email)

    assert service.notify_interaction(author.id, fan, EVENT_BLOG_COMMENT, blog=blog) is not None
    db_session.commit()
    assert service.flush_emails() == []
    email.send_email.assert_not_awaited()


def test_failed_send_marks_log_failed(db_session, make_user):
    user = make_user()
    service = NotificationService(db_session, email_service=_fake_email_service(success=False))
    result = service.send_transactional_email(
        to_email=user.email,
        subject="Verify",
        template_name="verify_email",
        template_context={},
        event_type="verify_email",
        user_id=user.id,
    )
    assert result["success"] is False
    log = db_session.query(models.EmailNotificationLog).one()
    assert log.status == "failed"
    assert log.error_message == "boom"


def test_read_state_and_stats(db_session, make_user):
    user = make_user()
    service = NotificationService(db_session, email_service=_fake_email_service())
    ids = [
        service.create_notification(user_id=user.id, event_type=EVENT_BLOG_LIKE, title="t", message=f"m{i}").id
        for i in range(3)
    ]
    assert service.get_unread_count(user.id) == 3
    assert service.mark_notification_read(ids[0], user.id) is True
    assert service.mark_notification_read(ids[0], make_user("other@example.com").id) is False
    assert service.mark_notifications_read(user.id, [ids[1]]) == 1
    assert service.get_unread_count(user.id) == 1
    assert service.mark_notifications_read(user.id) == 1

    stats = service.get_notification_stats(user.id)
    assert stats == {"total": 3, "unread": 0, "by_event_type": {EVENT_BLOG_LIKE: 3}}
    assert service.delete_notifications(user.id, ids[:2]) == 2


def test_cleanup_expired_notifications(db_session, make_user):
    user = make_user()
    service = NotificationService(db_session, email_service=_fake_email_service())
    service.create_notification(user_id=user.id, event_type=EVENT_BLOG_LIKE, title="t", message="fresh")
    stale = service.create_notification(user_id=user.id, event_type=EVENT_BLOG_LIKE, title="t", message="stale")
    stale.expires_at = datetime.now(UTC) - timedelta(days=1)
    db_session.commit()

    assert service.cleanup_expired_notifications() == 1
    assert [n.message for n in service.get_user_notifications(user.id)] == ["fresh"]
