from __future__ import annotations

import pytest
from pydantic import ValidationError

from newsroom.models.domain import AutomationSettings, GeneratedArticleDraft
from tests.factories import article_payload


def test_contract_keys_map_to_draft_fields():
    draft = GeneratedArticleDraft.model_validate(article_payload("Carbon markets", slug="carbon-markets"))

    assert draft.slug == "carbon-markets"
    assert draft.html_content == "<h2>Carbon markets</h2><p>Body</p>"
    assert draft.reading_time_minutes == 6
    assert draft.main_keyword == "carbon credits"
    assert draft.image_alt_text == "Illustration for Carbon markets"


@pytest.mark.parametrize("reading_time", ["abc", 0, -3, None])
def test_bad_reading_time_defaults_to_five(reading_time):
    draft = GeneratedArticleDraft.model_validate(article_payload("T", readingTime=reading_time))

    assert draft.reading_time_minutes == 5


def test_missing_optional_fields_derive_from_title():
    draft = GeneratedArticleDraft.model_validate({"title": "  ESG in Brazil  ", "content": "<p>x</p>", "slug": "  "})

    assert draft.title == "ESG in Brazil"
    assert draft.slug is None
    assert draft.main_keyword == "ESG in Brazil"
    assert draft.meta_title == "ESG in Brazil"
    assert draft.image_alt_text == "ESG in Brazil"


def test_overlong_generated_fields_are_cut_to_column_width():
    data = article_payload(
        "Carbon",
        metaTitle="m" * 300,
        metaDescription="d" * 900,
        mainKeyword="k" * 400,
        featuredImageAlt="a" * 700,
    )

    draft = GeneratedArticleDraft.model_validate(data)

    assert draft.meta_title == "m" * 256
    assert draft.meta_description == "d" * 512
    assert draft.main_keyword == "k" * 256
    assert draft.image_alt_text == "a" * 512


def test_keyword_derived_from_long_title_fits_its_column():
    title = "t" * 400

    draft = GeneratedArticleDraft.model_validate({"title": title, "content": "<p>x</p>"})

    assert draft.title == title
    assert draft.main_keyword == "t" * 256
    assert draft.image_alt_text == title


@pytest.mark.parametrize("missing", ["title", "content"])
def test_title_and_content_are_required(missing):
    data = article_payload("Carbon")
    data[missing] = "   "

    with pytest.raises(ValidationError):
        GeneratedArticleDraft.model_validate(data)


def test_automation_settings_are_frozen():
    settings = AutomationSettings()

    with pytest.raises(ValidationError):
        settings.daily_target = 3  # type: ignore[misc]
