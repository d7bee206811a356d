"""Prompt templates and builders.

The article prompt asks the model for a strict JSON object (see
``ARTICLE_JSON_CONTRACT``); the image prompt is a fixed style brief templated
with the article keyword and title.
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

from newsroom.models.domain import SourceItemDTO

NO_EXISTING_ARTICLES = "No published articles yet."
MAX_SOURCE_CONTENT_CHARS = 6000

ARTICLE_JSON_CONTRACT = (
    "{\n"
    '  "title": "Optimised H1 title",\n'
    '  "slug": "article-slug",\n'
    '  "metaTitle": "SEO meta title (max 60 chars)",\n'
    '  "metaDescription": "SEO meta description (max 155 chars)",\n'
    '  "excerpt": "Engaging summary (max 300 chars)",\n'
    '  "content": "<h2>Subheading</h2><p>Body...</p>...",\n'
    '  "mainKeyword": "main keyword",\n'
    '  "readingTime": 5,\n'
    '  "featuredImageAlt": "Accessible description of the header image"\n'
    "}"
)

SEO_RULES = (
    "1) Title (H1): at most 60 characters and containing the main keyword.\n"
    "2) Meta description: at most 155 characters, keyword used naturally.\n"
    "3) Structure: organise the body with H2 and H3 headings.\n"
    "4) Keyword density: 1-2%, natural, no keyword stuffing.\n"
    "5) Length: between 800 and 1500 words.\n"
    "6) Internal links: suggest 5 links to the existing articles listed below (when any).\n"
    "7) External links: suggest 5 links to authoritative sources (.gov, .org, major publications).\n"
)

IMAGE_STYLE_PROMPT = (
    'Create a professional, modern blog header image for an article about: "{keyword}".\n'
    "Context: {title}\n"
    "Style: Corporate sustainability, green finance, eco-friendly technology, carbon credits market.\n"
    "Visual elements: Abstract nature patterns, digital circuits merging with leaves, "
    "sustainable city skylines, or renewable energy visualizations.\n"
    "Colors: Teal (#14b8a6), charcoal gray (#36454F), white accents, subtle green gradients.\n"
    "Mood: Professional, trustworthy, innovative, environmentally conscious.\n"
    "No text overlay. High quality, 16:9 aspect ratio, suitable for blog header."
)


def format_existing_articles(rows: Iterable[Tuple[str, str]]) -> str:
    """Render (title, slug) pairs as the internal-link context block."""
    lines = [f'- "{title}" (slug: {slug})' for title, slug in rows]
    return "\n".join(lines) if lines else NO_EXISTING_ARTICLES


def build_article_messages(
    item: SourceItemDTO,
    existing_titles_context: str,
    *,
    locale: str = "pt_BR",
    site_name: str = "Byoma Research",
) -> List[dict]:
    """Build chat messages asking for one SEO article as a JSON object.

    - System: role, SEO rules, internal-link candidates, JSON contract
    - User: the source item (title, content, source, URL)
    """
    system = (
        "You are an SEO specialist and journalist covering carbon credit markets, sustainability, "
        "ESG, green finance, tokenisation and the regenerative economy (ReFi).\n"
        f'Your task is to write a complete, SEO-optimised article for the blog "{site_name}".\n'
        f"Write the article in the language of locale {locale}.\n\n"
        "MANDATORY SEO RULES:\n"
        f"{SEO_RULES}\n"
        "EXISTING ARTICLES FOR INTERNAL LINKS:\n"
        f"{existing_titles_context or NO_EXISTING_ARTICLES}\n\n"
        "RESPONSE FORMAT (JSON):\n"
        f"{ARTICLE_JSON_CONTRACT}\n\n"
        "IMPORTANT: return ONLY the JSON object, no markdown fences or extra text."
    )

    content = (item.raw_content or "").strip()[:MAX_SOURCE_CONTENT_CHARS] or "No additional content available"
    source = item.source_name or "Unspecified source"
    source_site = f" ({item.source_site_url})" if item.source_site_url else ""
    user = "\n".join(
        [
            "Turn this news item into an SEO-optimised article:",
            "",
            f"ORIGINAL TITLE: {item.title}",
            "",
            f"CONTENT/DESCRIPTION: {content}",
            "",
            f"SOURCE: {source}{source_site}",
            "",
            f"ORIGINAL URL: {item.source_url}",
        ]
    )

    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


def build_image_prompt(keyword: str, title: str) -> str:
    return IMAGE_STYLE_PROMPT.format(keyword=keyword or title, title=title)
