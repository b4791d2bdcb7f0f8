"""Personalized multilingual digest emails.

Each subscriber gets the batch's articles filtered to their categories,
sectioned in their category order, and rendered in their primary language
(English wherever a translation is missing).
"""

from __future__ import annotations

import asyncio
import logging
from html import escape

from ainews.catalog import Category, Language
from ainews.mail.templates import TemplateCache
from ainews.mail.transport import SMTPTransport
from ainews.news import ArticleRecord, Subscriber
from ainews.news.batch import BatchInfo, parse_batch_id

logger = logging.getLogger(__name__)

CHUNK_SIZE = 50
CHUNK_PAUSE = 1.0  # seconds between chunks
MAX_PER_SECTION = 5

_EDITION_LABELS = {
    Language.EN: {True: "Morning", False: "Evening"},
    Language.ZH_TW: {True: "早間", False: "晚間"},
    Language.ZH_CN: {True: "早间", False: "晚间"},
}

_HEADINGS = {
    Language.EN: "Your AI News",
    Language.ZH_TW: "您的 AI 新聞",
    Language.ZH_CN: "您的 AI 新闻",
}

_READ_MORE = {
    Language.EN: "Read full article →",
    Language.ZH_TW: "閱讀全文 →",
    Language.ZH_CN: "阅读全文 →",
}


def digest_subject(lang: Language, info: BatchInfo) -> str:
    edition = _EDITION_LABELS[lang][info.is_morning]
    if lang is Language.ZH_TW:
        return f"您的 AI 新聞 — {edition}版 {info.date_formatted}"
    if lang is Language.ZH_CN:
        return f"您的 AI 新闻 — {edition}版 {info.date_formatted}"
    return f"Your AI News — {edition} Edition, {info.date_formatted}"


def _most_recent(articles: list[ArticleRecord], limit: int) -> list[ArticleRecord]:
    dated = sorted(
        (a for a in articles if a.published_at),
        key=lambda a: a.published_at,
        reverse=True,
    )
    undated = [a for a in articles if not a.published_at]
    return (dated + undated)[:limit]


def _render_article(article: ArticleRecord, lang: Language) -> str:
    url = escape(article.link)
    summary = article.summary(lang)
    parts = [
        '<div style="background:#1e293b;border-radius:8px;padding:16px;margin-bottom:12px;">',
        '<div style="font-size:15px;font-weight:600;color:#f1f5f9;line-height:1.4;margin-bottom:8px;">'
        f'<a href="{url}" style="color:#f1f5f9;text-decoration:none;">{escape(article.title(lang))}</a>'
        "</div>",
    ]
    if summary:
        parts.append(
            '<div style="font-size:13px;color:#94a3b8;line-height:1.6;margin-bottom:10px;">'
            f"{escape(summary)}</div>"
        )
    if article.source_name:
        parts.append(
            f'<div style="font-size:11px;color:#64748b;">{escape(article.source_name)}</div>'
        )
    parts.append(
        f'<a href="{url}" style="display:inline-block;margin-top:8px;color:#6366f1;'
        f'font-size:12px;text-decoration:none;">{_READ_MORE[lang]}</a>'
    )
    parts.append("</div>")
    return "\n".join(parts)


def build_category_sections(
    articles: list[ArticleRecord],
    categories: list[Category],
    lang: Language,
    max_per_section: int = MAX_PER_SECTION,
) -> str:
    """HTML sections in ``categories`` order; empty string if nothing matches."""
    sections: list[str] = []
    for cat in categories:
        matching = [a for a in articles if a.category is cat]
        if not matching:
            continue
        body = "\n".join(
            _render_article(a, lang) for a in _most_recent(matching, max_per_section)
        )
        sections.append(
            '<div style="margin:24px 0;">\n'
            '<div style="font-size:11px;font-weight:700;letter-spacing:1.5px;'
            "text-transform:uppercase;color:#6366f1;border-bottom:1px solid #1e293b;"
            f'padding-bottom:8px;margin-bottom:16px;">{escape(cat.label(lang))}</div>\n'
            f"{body}\n</div>"
        )
    return "\n".join(sections)


class DigestDispatcher:
    """Renders and sends digests for one batch."""

    def __init__(
        self,
        transport: SMTPTransport,
        templates: TemplateCache,
        app_url: str = "http://localhost:3000",
        chunk_size: int = CHUNK_SIZE,
        chunk_pause: float = CHUNK_PAUSE,
        max_per_section: int = MAX_PER_SECTION,
    ) -> None:
        self.transport = transport
        self.templates = templates
        self.app_url = app_url
        self.chunk_size = chunk_size
        self.chunk_pause = chunk_pause
        self.max_per_section = max_per_section

    def render(
        self,
        subscriber: Subscriber,
        articles: list[ArticleRecord],
        batch_id: str,
    ) -> tuple[str, str] | None:
        """Return (subject, html), or None when no article matches."""
        lang = subscriber.primary_language
        sections = build_category_sections(
            articles, subscriber.categories, lang, self.max_per_section
        )
        if not sections.strip():
            return None

        info = parse_batch_id(batch_id)
        html = self.templates.render(
            "digest",
            LANG=lang.value,
            HEADING=_HEADINGS[lang],
            DISPLAY_NAME=escape(subscriber.display_name or subscriber.email),
            EDITION=_EDITION_LABELS[lang][info.is_morning],
            DATE_FORMATTED=info.date_formatted,
            CATEGORY_SECTIONS=sections,
            APP_URL=self.app_url,
        )
        return digest_subject(lang, info), html

    async def send_one(
        self,
        subscriber: Subscriber,
        articles: list[ArticleRecord],
        batch_id: str,
    ) -> bool:
        """Send one digest. Returns False if nothing matched the subscriber."""
        rendered = self.render(subscriber, articles, batch_id)
        if rendered is None:
            return False
        subject, html = rendered
        await asyncio.to_thread(self.transport.send, subscriber.email, subject, html)
        return True

    async def _send_safely(
        self,
        subscriber: Subscriber,
        articles: list[ArticleRecord],
        batch_id: str,
    ) -> bool:
        try:
            return await self.send_one(subscriber, articles, batch_id)
        except Exception:
            logger.exception("Digest failed for %s", subscriber.email)
            return False

    async def dispatch(
        self,
        batch_id: str,
        articles: list[ArticleRecord],
        subscribers: list[Subscriber],
    ) -> int:
        """Send digests in concurrent chunks. Returns the number sent."""
        recipients = [s for s in subscribers if s.email_digest]
        if not recipients or not articles:
            return 0

        sent = 0
        for start in range(0, len(recipients), self.chunk_size):
            if start > 0 and self.chunk_pause:
                await asyncio.sleep(self.chunk_pause)
            chunk = recipients[start : start + self.chunk_size]
            results = await asyncio.gather(
                *(self._send_safely(s, articles, batch_id) for s in chunk)
            )
            sent += sum(1 for ok in results if ok)

        logger.info(
            "Digest for batch %s sent to %d of %d subscribers",
            batch_id,
            sent,
            len(recipients),
        )
        return sent
