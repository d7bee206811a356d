from __future__ import annotations

import pytest

from newsroom.db.models import Article, ArticleStatus
from newsroom.services.slugs import SlugAllocationError, allocate_unique_slug, slugify


def _add_article(session, slug: str) -> None:
    session.add(Article(title=slug, slug=slug, content="<p>x</p>", status=ArticleStatus.PUBLISHED))
    session.commit()


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Mercado de Créditos de Carbono", "mercado-de-creditos-de-carbono"),
        ("  ESG & ReFi: o que muda?  ", "esg-refi-o-que-muda"),
        ("Ação climática 2030", "acao-climatica-2030"),
        ("---", ""),
    ],
)
def test_slugify(text, expected):
    assert slugify(text) == expected


def test_slugify_truncates_without_trailing_hyphen():
    slug = slugify("a" * 99 + " bcd")
    assert len(slug) <= 100
    assert not slug.endswith("-")


def test_free_candidate_is_returned_as_is(db_session):
    assert allocate_unique_slug(db_session, "Carbon Credits") == "carbon-credits"


def test_collisions_get_numeric_suffixes(db_session):
    _add_article(db_session, "x")
    assert allocate_unique_slug(db_session, "x") == "x-1"

    _add_article(db_session, "x-1")
    assert allocate_unique_slug(db_session, "x") == "x-2"


def test_allocation_is_bounded(db_session):
    _add_article(db_session, "busy")
    _add_article(db_session, "busy-1")
    _add_article(db_session, "busy-2")

    with pytest.raises(SlugAllocationError):
        allocate_unique_slug(db_session, "busy", max_attempts=2)


def test_underivable_candidate_raises(db_session):
    with pytest.raises(SlugAllocationError):
        allocate_unique_slug(db_session, "!!!")
