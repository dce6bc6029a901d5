"""
FastAPI app assembly: middleware and router wiring.
"""
import logging
import os

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)


from byteinit.api.deps import get_optional_user_context
from byteinit.api.accounts import router as accounts_router
from byteinit.api.users import router as users_router
from byteinit.api.blog import router as blog_router
from byteinit.api.comments import router as comments_router
from byteinit.api.resources import router as resources_router
from byteinit.api.saved_resources import router as saved_resources_router
from byteinit.api.notifications import router as notifications_router
from byteinit.api.search import router as search_router
from byteinit.api.portfolio import router as portfolio_router
from byteinit.api.uploads import router as uploads_router
from byteinit.api.support import router as support_router
from byteinit.utils.feature_flags import get_feature_flags

# Database schema is managed by Alembic migrations.

app = FastAPI(
    title="ByteInit Service",
    description="API for the ByteInit developer community: blog posts, shared resources, profiles and notifications.",
    version="1.0.0",
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False

origins = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:8000",
    "https://byteinit.dev",
    "https://www.byteinit.dev",
]
origins.extend(
    origin.strip() for origin in os.getenv("CORS_EXTRA_ORIGINS", "").split(",") if origin.strip()
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/user-info")
def get_user_info(user_context=Depends(get_optional_user_context)):
    """Who is calling, plus the feature flags the frontend needs."""
    user, current_user = user_context
    flags = get_feature_flags()
    if user is None:
        return {"authenticated": False, **flags}
    return {
        "authenticated": True,
        "user_id": str(user.id),
        "email": user.email,
        "username": user.username,
        "name": user.name,
        "is_superadmin": bool(current_user.get("is_superadmin")),
        **flags,
    }


app.include_router(accounts_router)
app.include_router(users_router)
app.include_router(blog_router)
app.include_router(comments_router)
app.include_router(resources_router)
app.include_router(saved_resources_router)
app.include_router(notifications_router)
app.include_router(search_router)
app.include_router(portfolio_router)
app.include_router(uploads_router)
app.include_router(support_router)


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "byteinit-service"}
