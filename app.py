"""
App assembly entry point.

Re-exports the FastAPI `app` from `byteinit.api.main` for uvicorn.
"""

from byteinit.api.main import app  # noqa: F401
