from byteinit.api.auth import get_or_create_user, normalize_email, resolve_identity_from_headers
from byteinit.api.deps import bearer_token


def test_normalize_email_and_headers():
    assert normalize_email("  Foo@Example.COM ") == "foo@example.com"
    assert normalize_email(None) is None
    assert resolve_identity_from_headers(None, None, "fwd", "Fwd@Example.com") == ("fwd", "fwd@example.com")
    assert resolve_identity_from_headers("u", "u@example.com", "fwd", "f@example.com") == ("u", "u@example.com")


def test_bearer_token():
    assert bearer_token("Bearer abc") == "abc"
    assert bearer_token("bearer   abc  ") == "abc"
    assert bearer_token("Basic abc") is None
    assert bearer_token("Bearer ") is None
    assert bearer_token(None) is None


def test_get_or_create_user_derives_unique_username(db_session, make_user):
    make_user("jane@example.com", username="jane")
    user = get_or_create_user(db_session, email="jane@other.org", display_name="Jane")
    assert user.username == "jane2"
    assert user.name == "Jane"
    assert get_or_create_user(db_session, email="jane@other.org").id == user.id

    short = get_or_create_user(db_session, email="ab@example.com")
    assert short.username == "ab_dev"


def test_admin_emails_elevate(db_session, make_user, monkeypatch):
    existing = make_user("boss@example.com")
    assert existing.is_superadmin is False
    monkeypatch.setenv("ADMIN_EMAILS", '"Boss@Example.com", root@example.com')

    assert get_or_create_user(db_session, email="boss@example.com").is_superadmin is True
    assert get_or_create_user(db_session, email="root@example.com").is_superadmin is True
    assert get_or_create_user(db_session, email="someone@example.com").is_superadmin is False
