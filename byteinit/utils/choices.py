"""
Enumerated values stored in the database.

Centralized definitions for resource types, resource categories, vote and
interaction kinds so request validation and queries share one vocabulary.
"""

from enum import Enum
from typing import FrozenSet, Optional


class ResourceType(str, Enum):
    LIBRARY = "LIBRARY"
    TOOL = "TOOL"
    FRAMEWORK = "FRAMEWORK"
    TUTORIAL = "TUTORIAL"
    TEMPLATE = "TEMPLATE"
    ICON_SET = "ICON_SET"
    ILLUSTRATION = "ILLUSTRATION"
    COMPONENT_LIBRARY = "COMPONENT_LIBRARY"
    CODE_SNIPPET = "CODE_SNIPPET"
    API = "API"
    DOCUMENTATION = "DOCUMENTATION"
    COURSE = "COURSE"
    OTHER = "OTHER"


class ResourceCategory(str, Enum):
    FRONTEND = "FRONTEND"
    BACKEND = "BACKEND"
    FULLSTACK = "FULLSTACK"
    DEVOPS = "DEVOPS"
    MOBILE = "MOBILE"
    AI_ML = "AI_ML"
    DATABASE = "DATABASE"
    SECURITY = "SECURITY"
    UI_UX = "UI_UX"
    DESIGN = "DESIGN"
    MACHINE_LEARNING = "MACHINE_LEARNING"
    CLOUD = "CLOUD"
    OTHER = "OTHER"


class VoteType(str, Enum):
    UP = "UP"
    DOWN = "DOWN"


class InteractionType(str, Enum):
    LIKE = "LIKE"
    BOOKMARK = "BOOKMARK"
    SHARE = "SHARE"


ALL_RESOURCE_TYPES: FrozenSet[str] = frozenset(t.value for t in ResourceType)
ALL_RESOURCE_CATEGORIES: FrozenSet[str] = frozenset(c.value for c in ResourceCategory)


def category_from_slug(slug: str) -> Optional[ResourceCategory]:
    """Map a URL slug such as ``ai-ml`` or ``ui_ux`` onto a category."""
    if not slug:
        return None
    key = slug.strip().upper().replace("-", "_")
    if key in ALL_RESOURCE_CATEGORIES:
        return ResourceCategory(key)
    return None


def category_to_slug(category: str) -> str:
    return category.lower().replace("_", "-")
