"""
Text helpers for slugs, tags and search terms.

Dependency-free regex heuristics; results are deterministic so slugs and tag
names stay stable across edits.
"""
from typing import Iterable, List, Optional
import re
import unicodedata

MAX_TAGS = 10
MAX_TAG_LENGTH = 64


def slugify(text: Optional[str]) -> str:
    """Lowercase ASCII slug with single dashes, e.g. "Hello, World!" -> "hello-world"."""
    if not text:
        return ""
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9\s-]", "", ascii_text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:300]


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Trim, lowercase and de-duplicate tags, keeping first-occurrence order.

    - Inner whitespace collapses to a single space
    - Empty and over-long entries are dropped
    - At most MAX_TAGS are kept
    """
    if not tags:
        return []
    seen = set()
    out: List[str] = []
    for raw in tags:
        if raw is None:
            continue
        t = re.sub(r"\s+", " ", str(raw)).strip().lower().lstrip("#")
        if not t or len(t) > MAX_TAG_LENGTH or t in seen:
            continue
        seen.add(t)
        out.append(t)
        if len(out) >= MAX_TAGS:
            break
    return out


def normalize_query(q: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (q or "")).strip()


def like_pattern(q: str) -> str:
    """Escape LIKE wildcards and wrap for substring matching (use escape='\\\\')."""
    escaped = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def compact_identifier(value: str) -> str:
    """Strip everything but [a-z0-9], used for fuzzy username lookups."""
    return re.sub(r"[^a-zA-Z0-9]", "", value or "").lower()
