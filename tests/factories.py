"""Builders shared by the test modules."""

from __future__ import annotations

import base64
import json
import uuid
from typing import Any, Dict

from sqlalchemy.orm import Session

from newsroom.db.models import SourceItem

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image"
PNG_B64 = base64.b64encode(PNG_BYTES).decode("ascii")


def add_source_item(session: Session, title: str, score: int = 0, **fields: Any) -> SourceItem:
    item = SourceItem(
        title=title,
        raw_content=fields.pop("raw_content", f"Body of {title}"),
        source_url=fields.pop("source_url", f"https://news.example.com/{uuid.uuid4().hex[:8]}"),
        source_name=fields.pop("source_name", "Carbon Pulse"),
        engagement_score=score,
        **fields,
    )
    session.add(item)
    session.commit()
    return item


def article_payload(title: str, **overrides: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "title": title,
        "slug": "",
        "metaTitle": title[:60],
        "metaDescription": f"Everything about {title}",
        "excerpt": f"Summary of {title}",
        "content": f"<h2>{title}</h2><p>Body</p>",
        "mainKeyword": "carbon credits",
        "readingTime": 6,
        "featuredImageAlt": f"Illustration for {title}",
    }
    data.update(overrides)
    return data


def chat_response(content: str, prompt_tokens: int = 800, completion_tokens: int = 1200) -> Dict[str, Any]:
    return {
        "choices": [{"message": {"content": content}}],
        "usage": {"prompt_tokens": prompt_tokens, "completion_tokens": completion_tokens},
        "model": "gpt-4o-mini",
    }


def chat_json(data: Dict[str, Any]) -> Dict[str, Any]:
    return chat_response(json.dumps(data))
