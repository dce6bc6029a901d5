import os

# Keep the suite hermetic: a developer .env must not reach SMTP, the LLM or the CDN.
# load_dotenv never overrides variables that are already set.
for _var in ("SMTP_HOST", "LLM_API_KEY", "IMAGEKIT_PRIVATE_KEY", "CRON_SECRET", "ADMIN_EMAILS"):
    os.environ[_var] = ""
os.environ["DEV_MODE"] = "false"
os.environ["PYTEST_RUNNING"] = "1"

import pytest
from fastapi.testclient import TestClient

from byteinit.api.main import app
from byteinit.db import database as db_module
from byteinit.db import models, schemas
from byteinit.db.repositories import blogs as blog_repo
from byteinit.db.repositories import resources as resource_repo
from byteinit.utils.choices import ResourceCategory, ResourceType
from byteinit.utils.feature_flags import refresh_feature_flag_cache

# Session shared with the app for the duration of one test
_GLOBAL_SESSION = None


@pytest.fixture(autouse=True)
def db_session():
    """Fresh schema per test on the in-memory SQLite engine."""
    models.Base.metadata.create_all(bind=db_module.engine)
    session = db_module.SessionLocal()
    global _GLOBAL_SESSION
    _GLOBAL_SESSION = session
    try:
        yield session
    finally:
        _GLOBAL_SESSION = None
        session.rollback()
        session.close()
        models.Base.metadata.drop_all(bind=db_module.engine)


def _override_get_db():
    if _GLOBAL_SESSION is not None:
        yield _GLOBAL_SESSION
        return
    session = db_module.SessionLocal()
    try:
        yield session
    finally:
        session.close()


app.dependency_overrides[db_module.get_db] = _override_get_db


@pytest.fixture(autouse=True)
def _fresh_feature_flags():
    refresh_feature_flag_cache()
    yield
    refresh_feature_flag_cache()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db_session):
    def _make(email="alice@example.com", username=None, **fields):
        user = models.User(
            email=email,
            username=username or email.split("@")[0],
            name=fields.pop("name", email.split("@")[0].title()),
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make


@pytest.fixture
def make_blog(db_session):
    def _make(user, title="Hello World", content="Some content", published=True, tags=None, **fields):
        payload = schemas.BlogCreate(title=title, content=content, published=published, tags=tags or [], **fields)
        return blog_repo.create_blog(db_session, user_id=user.id, payload=payload)
    return _make


@pytest.fixture
def make_resource(db_session):
    def _make(user, title="Useful Library", category=ResourceCategory.FRONTEND, type=ResourceType.LIBRARY, tags=None, **fields):
        payload = schemas.ResourceCreate(
            title=title,
            description=fields.pop("description", "A genuinely useful library for developers"),
            url=fields.pop("url", "https://example.com/lib"),
            type=type,
            category=category,
            tags=tags or [],
            **fields,
        )
        return resource_repo.create_resource(db_session, user_id=user.id, payload=payload)
    return _make
