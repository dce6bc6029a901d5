"""
Developer Portfolio Service

Generates a playful developer bio with Google Gemini and merges it with the
profile data the user actually entered. Entered values always win over
generated ones.
"""

import os
import json
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from byteinit.db import models, schemas
from byteinit.db.repositories import blogs as blog_repo
from byteinit.db.repositories import resources as resource_repo
from byteinit.db.repositories import users as user_repo
from byteinit.utils.feature_flags import llm_features_enabled
from byteinit.utils.urls import ensure_https

logger = logging.getLogger(__name__)

TOP_BLOGS = 3

PROFILE_RESPONSE_SCHEMA = {
    "type": "object",
    "properties": {
        "tagline": {"type": "string"},
        "bio": {"type": "string"},
        "headline": {"type": "string"},
        "highlights": {"type": "array", "items": {"type": "string"}},
        "tech_stack": {"type": "array", "items": {"type": "string"}},
        "fun_fact": {"type": "string"},
        "current_role": {"type": "string"},
        "company": {"type": "string"},
        "location": {"type": "string"},
        "website": {"type": "string"},
        "github": {"type": "string"},
    },
    "required": ["tagline", "bio", "headline", "highlights", "tech_stack", "fun_fact"],
}


class PortfolioError(Exception):
    """Base error for portfolio generation."""


class PortfolioUnavailableError(PortfolioError):
    """LLM features are disabled or no API key is configured."""


class PortfolioGenerationError(PortfolioError):
    """The LLM call failed or returned something unusable."""


class PortfolioService:
    """Builds an AI-narrated portfolio for a user."""

    def __init__(self, llm_api_key: Optional[str] = None, model_name: Optional[str] = None):
        self.llm_api_key = llm_api_key or os.getenv("LLM_API_KEY")
        self.llm_model_name = model_name or os.getenv("LLM_MODEL_NAME", "gemini-2.5-flash")
        self.temperature = float(os.getenv("PORTFOLIO_TEMPERATURE", "0.8"))

    def is_available(self) -> bool:
        return bool(self.llm_api_key) and llm_features_enabled()

    def _create_prompt(self, user: models.User, resources: List[models.Resource], blogs: List[models.Blog]) -> str:
        details = {
            "username": user.username,
            "name": user.name,
            "bio": user.bio,
            "location": user.location,
            "website": user.website,
            "github": user.github,
            "twitter": user.twitter,
            "tech_stack": user.tech_stack or [],
            "years_of_experience": user.years_of_experience,
            "current_role": user.current_role,
            "company": user.company,
            "looking_for_work": bool(user.looking_for_work),
            "resources": [{"title": r.title, "url": r.url, "type": r.type} for r in resources[:20]],
            "top_posts": [{"title": b.title, "summary": b.summary} for b in blogs],
        }
        return f"""
You are a witty developer bio writer who loves tech puns and coding humor.
Create an engaging, fun narrative that blends technical expertise with personality.
Keep it professional enough for recruiters but fun enough for fellow developers.

DEVELOPER DETAILS:
{json.dumps(details, indent=2, default=str)}

Write:
- tagline: a clever tech-related catchphrase reflecting their stack
- headline: one line describing who they are
- bio: two or three short paragraphs with light coding humor
- highlights: three to five short achievement bullets drawn from the details
- tech_stack: their technologies, presented playfully but recognisably
- fun_fact: a coffee or debugging joke that fits them
- current_role, company, location, website, github: only if you can infer them

Return JSON matching the provided schema.
"""

    def generate_profile(self, user: models.User, resources: List[models.Resource], blogs: List[models.Blog]) -> Dict[str, Any]:
        """Call Gemini and return the parsed JSON profile."""
        if not self.is_available():
            logger.warning("Portfolio generation requested but LLM is not available")
            raise PortfolioUnavailableError("LLM service not available")

        try:
            from google import genai

            client = genai.Client(api_key=self.llm_api_key)
            response = client.models.generate_content(
                model=self.llm_model_name,
                contents=self._create_prompt(user, resources, blogs),
                config={
                    "response_mime_type": "application/json",
                    "response_schema": PROFILE_RESPONSE_SCHEMA,
                    "temperature": self.temperature,
                },
            )
            result_text = response.text if response.text else ""
            if not result_text:
                raise PortfolioGenerationError("No content generated")
            generated = json.loads(result_text)
            if not isinstance(generated, dict):
                raise PortfolioGenerationError("Unexpected response shape")
            return generated
        except PortfolioError:
            raise
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse portfolio JSON for user {user.id}: {e}")
            raise PortfolioGenerationError("LLM returned invalid JSON") from e
        except Exception as e:
            logger.error(f"Portfolio generation failed for user {user.id}: {e}", exc_info=True)
            raise PortfolioGenerationError(str(e)) from e

    def build_portfolio(self, db: Session, user: models.User, viewer_id: Optional[uuid.UUID] = None) -> schemas.PortfolioResponse:
        resources = resource_repo.by_user(db, user.id)
        top_blogs = blog_repo.top_blogs_by_votes(db, user.id, limit=TOP_BLOGS)
        generated = schemas.GeneratedProfile.model_validate(
            _clean_generated(self.generate_profile(user, resources, top_blogs))
        )

        followers, following = user_repo.follow_counts(db, user.id)
        website = ensure_https(user.website) if user.website else generated.website

        return schemas.PortfolioResponse(
            **generated.model_dump(),
            id=user.id,
            username=user.username,
            name=user.name,
            image=user.image,
            twitter=user.twitter,
            years_of_experience=user.years_of_experience,
            looking_for_work=bool(user.looking_for_work),
            followers=followers,
            following=following,
            is_following=user_repo.is_following(db, viewer_id, user.id),
            is_owner=viewer_id == user.id,
            resources=resource_repo.to_schemas(db, resources, viewer_id),
            top_blogs=blog_repo.to_cards(db, top_blogs),
        ).model_copy(update={
            "bio": user.bio or generated.bio,
            "github": user.github or generated.github,
            "website": website,
            "tech_stack": user.tech_stack or generated.tech_stack,
            "current_role": user.current_role or generated.current_role,
            "company": user.company or generated.company,
            "location": user.location or generated.location,
        })


def _clean_generated(data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only known keys and drop blanks so defaults apply."""
    allowed = schemas.GeneratedProfile.model_fields.keys()
    cleaned = {}
    for key, value in data.items():
        if key not in allowed or value in (None, ""):
            continue
        if key in ("highlights", "tech_stack"):
            if not isinstance(value, list):
                continue
            value = [str(item) for item in value if item]
        elif not isinstance(value, str):
            value = str(value)
        cleaned[key] = value
    return cleaned


_portfolio_service: Optional[PortfolioService] = None


def get_portfolio_service() -> PortfolioService:
    global _portfolio_service
    if _portfolio_service is None:
        _portfolio_service = PortfolioService()
    return _portfolio_service
