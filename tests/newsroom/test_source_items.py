from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from newsroom.db.models import Article, ArticleStatus, SourceItem
from newsroom.repositories.source_items import (
    claim_source_item,
    mark_processed,
    release_claim,
    select_candidates,
)
from tests.factories import add_source_item


def _titles(rows):
    return [r.title for r in rows]


def test_orders_by_engagement_then_oldest_first(db_session):
    now = datetime.now(timezone.utc)
    add_source_item(db_session, "low", score=10, fetched_at=now - timedelta(hours=3))
    add_source_item(db_session, "high-new", score=90, fetched_at=now - timedelta(hours=1))
    add_source_item(db_session, "high-old", score=90, fetched_at=now - timedelta(hours=2))

    rows = select_candidates(db_session, 10, trending_boost=False)

    assert _titles(rows) == ["high-old", "high-new", "low"]


def test_trending_boost_filters_on_min_score(db_session):
    add_source_item(db_session, "viral", score=80)
    add_source_item(db_session, "quiet", score=5)

    rows = select_candidates(db_session, 10, trending_boost=True, min_score=50)

    assert _titles(rows) == ["viral"]


def test_trending_boost_widens_when_nothing_qualifies(db_session):
    add_source_item(db_session, "a", score=10)
    add_source_item(db_session, "b", score=20)

    rows = select_candidates(db_session, 10, trending_boost=True, min_score=50)

    assert _titles(rows) == ["b", "a"]


def test_processed_and_claimed_items_are_excluded(db_session):
    add_source_item(db_session, "done", score=99, processed=True)
    add_source_item(db_session, "claimed", score=98, claim_token="t", claimed_at=datetime.now(timezone.utc))
    stale = datetime.now(timezone.utc) - timedelta(hours=2)
    add_source_item(db_session, "stale-claim", score=97, claim_token="old", claimed_at=stale)
    add_source_item(db_session, "free", score=1)

    rows = select_candidates(db_session, 10, trending_boost=False, lease_seconds=900)

    assert _titles(rows) == ["stale-claim", "free"]


def test_limit_is_respected(db_session):
    for i in range(5):
        add_source_item(db_session, f"item-{i}", score=i)

    assert len(select_candidates(db_session, 2, trending_boost=False)) == 2
    assert select_candidates(db_session, 0, trending_boost=False) == []


def test_second_claim_fails_until_released(db_session):
    item = add_source_item(db_session, "contested", score=60)

    assert claim_source_item(db_session, item.id, "run-a") is True
    db_session.commit()
    assert claim_source_item(db_session, item.id, "run-b") is False

    release_claim(db_session, item.id, "run-b")
    db_session.commit()
    assert claim_source_item(db_session, item.id, "run-b") is False

    release_claim(db_session, item.id, "run-a")
    db_session.commit()
    assert claim_source_item(db_session, item.id, "run-b") is True


def test_mark_processed_is_one_shot(db_session):
    item = add_source_item(db_session, "one-shot", score=60)
    article = Article(title="t", slug="t", content="<p>x</p>", status=ArticleStatus.PUBLISHED)
    db_session.add(article)
    db_session.flush()

    assert mark_processed(db_session, item.id, article.id) is True
    assert mark_processed(db_session, item.id, article.id) is False
    db_session.commit()

    row = db_session.execute(select(SourceItem).where(SourceItem.id == item.id)).scalar_one()
    db_session.refresh(row)
    assert row.processed is True
    assert row.linked_article_id == article.id
    assert row.claim_token is None
