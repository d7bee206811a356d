"""URL slug derivation and collision-safe allocation."""

from __future__ import annotations

import re
import unicodedata

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from newsroom.db.models import Article

MAX_SLUG_LENGTH = 100
DEFAULT_MAX_ATTEMPTS = 100

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


class SlugAllocationError(Exception):
    """No free slug could be found within the attempt budget."""


def slugify(text: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Lowercase ASCII slug: accents stripped, other characters collapsed to hyphens."""
    decomposed = unicodedata.normalize("NFD", (text or "").lower())
    ascii_only = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    slug = _NON_ALNUM.sub("-", ascii_only).strip("-")
    return slug[:max_length].rstrip("-")


def slug_exists(session: Session, slug: str) -> bool:
    return bool(session.scalar(select(exists().where(Article.slug == slug))))


def allocate_unique_slug(
    session: Session,
    candidate: str,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """Return ``candidate`` or the first free ``candidate-N`` (N = 1, 2, ...)."""
    base = slugify(candidate)
    if not base:
        raise SlugAllocationError(f"Cannot derive a slug from {candidate!r}")
    if not slug_exists(session, base):
        return base
    for n in range(1, max_attempts + 1):
        attempt = f"{base}-{n}"
        if not slug_exists(session, attempt):
            return attempt
    raise SlugAllocationError(f"No free slug for {base!r} after {max_attempts} attempts")
