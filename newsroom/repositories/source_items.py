"""Queries and state transitions for queued source items."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy import Select, or_, select, update
from sqlalchemy.orm import Session

from newsroom.db.models import SourceItem
from newsroom.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TRENDING_MIN_SCORE = 50
DEFAULT_CLAIM_LEASE_SECONDS = 900


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _eligible(lease_seconds: int, now: datetime):
    cutoff = now - timedelta(seconds=lease_seconds)
    return (
        SourceItem.processed == False,  # noqa: E712
        or_(SourceItem.claimed_at.is_(None), SourceItem.claimed_at < cutoff),
    )


def _candidate_query(limit: int, lease_seconds: int, now: datetime) -> Select:
    return (
        select(SourceItem)
        .where(*_eligible(lease_seconds, now))
        .order_by(SourceItem.engagement_score.desc(), SourceItem.fetched_at.asc())
        .limit(limit)
    )


def select_candidates(
    session: Session,
    limit: int,
    trending_boost: bool,
    *,
    min_score: int = DEFAULT_TRENDING_MIN_SCORE,
    lease_seconds: int = DEFAULT_CLAIM_LEASE_SECONDS,
) -> List[SourceItem]:
    """Return up to ``limit`` unprocessed items, best engagement first.

    With ``trending_boost`` the query first keeps only items scoring at least
    ``min_score``; when nothing qualifies it widens to the whole queue so an
    over-strict threshold never starves the batch.
    """
    if limit <= 0:
        return []
    now = _utcnow()
    base = _candidate_query(limit, lease_seconds, now)
    if trending_boost:
        rows = list(session.execute(base.where(SourceItem.engagement_score >= min_score)).scalars().all())
        if rows:
            return rows
        logger.info("select.trending_widened", extra={"min_score": min_score, "limit": limit})
    return list(session.execute(base).scalars().all())


def claim_source_item(
    session: Session,
    item_id: uuid.UUID,
    token: str,
    *,
    lease_seconds: int = DEFAULT_CLAIM_LEASE_SECONDS,
) -> bool:
    """Reserve an item for one run; False when processed or claimed elsewhere."""
    now = _utcnow()
    stmt = (
        update(SourceItem)
        .where(SourceItem.id == item_id, *_eligible(lease_seconds, now))
        .values(claim_token=token, claimed_at=now)
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount == 1


def release_claim(session: Session, item_id: uuid.UUID, token: str) -> None:
    stmt = (
        update(SourceItem)
        .where(SourceItem.id == item_id, SourceItem.claim_token == token)
        .values(claim_token=None, claimed_at=None)
        .execution_options(synchronize_session=False)
    )
    session.execute(stmt)


def mark_processed(session: Session, item_id: uuid.UUID, article_id: uuid.UUID) -> bool:
    """Flip ``processed`` and link the article; False if it was already processed."""
    stmt = (
        update(SourceItem)
        .where(SourceItem.id == item_id, SourceItem.processed == False)  # noqa: E712
        .values(processed=True, linked_article_id=article_id, claim_token=None, claimed_at=None)
        .execution_options(synchronize_session=False)
    )
    return session.execute(stmt).rowcount == 1
