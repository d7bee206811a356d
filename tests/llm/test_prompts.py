from __future__ import annotations

import uuid

from llm.prompts.templates import (
    NO_EXISTING_ARTICLES,
    build_article_messages,
    build_image_prompt,
    format_existing_articles,
)
from newsroom.models.domain import SourceItemDTO


def _item(**overrides) -> SourceItemDTO:
    values = dict(
        id=uuid.uuid4(),
        title="Amazon restoration credits surge",
        raw_content="Demand for restoration credits doubled.",
        source_url="https://news.example.com/amazon",
        source_name="Reuters",
        source_site_url="https://reuters.com",
    )
    values.update(overrides)
    return SourceItemDTO(**values)


def test_format_existing_articles():
    rendered = format_existing_articles([("Carbon 101", "carbon-101"), ("ESG", "esg")])

    assert rendered == '- "Carbon 101" (slug: carbon-101)\n- "ESG" (slug: esg)'
    assert format_existing_articles([]) == NO_EXISTING_ARTICLES


def test_article_messages_carry_contract_and_source():
    system, user = build_article_messages(_item(), "- \"Carbon 101\" (slug: carbon-101)", locale="pt_BR", site_name="Byoma")

    assert system["role"] == "system" and user["role"] == "user"
    assert '"featuredImageAlt"' in system["content"]
    assert "pt_BR" in system["content"]
    assert '"Byoma"' in system["content"]
    assert "carbon-101" in system["content"]
    assert "ORIGINAL TITLE: Amazon restoration credits surge" in user["content"]
    assert "SOURCE: Reuters (https://reuters.com)" in user["content"]
    assert "ORIGINAL URL: https://news.example.com/amazon" in user["content"]


def test_article_messages_handle_sparse_items():
    _, user = build_article_messages(_item(raw_content=None, source_name=None, source_site_url=None), "")

    assert "No additional content available" in user["content"]
    assert "SOURCE: Unspecified source" in user["content"]


def test_image_prompt_uses_keyword_then_title():
    assert 'about: "solar"' in build_image_prompt("solar", "Solar farms")
    assert 'about: "Solar farms"' in build_image_prompt("", "Solar farms")
