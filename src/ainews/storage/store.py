"""SQLite-backed storage for articles, users, and digest preferences.

``source_url`` is unique across all time: re-ingesting a URL is a no-op,
never a duplicate row or an update.
"""

import json
import logging
import os

import aiosqlite

from ainews.catalog import ALL_CATEGORIES, Category, Language, parse_categories, parse_languages
from ainews.news import ArticleRecord, Subscriber

logger = logging.getLogger(__name__)

_DEFAULT_LANGUAGES = json.dumps([Language.EN.value])
_DEFAULT_CATEGORIES = json.dumps([c.value for c in ALL_CATEGORIES])

_CREATE_TABLES = f"""
CREATE TABLE IF NOT EXISTS news_articles (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    source_url    TEXT NOT NULL UNIQUE,
    title_en      TEXT NOT NULL,
    title_zh_tw   TEXT,
    title_zh_cn   TEXT,
    summary_en    TEXT,
    summary_zh_tw TEXT,
    summary_zh_cn TEXT,
    source_name   TEXT,
    source_host   TEXT,
    image_url     TEXT,
    category      TEXT NOT NULL DEFAULT 'ai-technology',
    published_at  TEXT,
    fetched_at    TEXT NOT NULL DEFAULT (datetime('now')),
    batch_id      TEXT,
    is_active     INTEGER NOT NULL DEFAULT 1
);

CREATE INDEX IF NOT EXISTS idx_news_articles_batch ON news_articles (batch_id);
CREATE INDEX IF NOT EXISTS idx_news_articles_category ON news_articles (category);

CREATE TABLE IF NOT EXISTS users (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    email         TEXT NOT NULL UNIQUE,
    display_name  TEXT,
    is_verified   INTEGER NOT NULL DEFAULT 0,
    verify_token  TEXT,
    reset_token   TEXT,
    created_at    TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS user_preferences (
    user_id       INTEGER PRIMARY KEY REFERENCES users (id) ON DELETE CASCADE,
    languages     TEXT NOT NULL DEFAULT '{_DEFAULT_LANGUAGES}',
    categories    TEXT NOT NULL DEFAULT '{_DEFAULT_CATEGORIES}',
    email_digest  INTEGER NOT NULL DEFAULT 1,
    updated_at    TEXT
);
"""

_ARTICLE_COLUMNS = (
    "source_url", "title_en", "title_zh_tw", "title_zh_cn",
    "summary_en", "summary_zh_tw", "summary_zh_cn",
    "source_name", "source_host", "image_url",
    "category", "published_at", "batch_id",
)

_INSERT_ARTICLE = (
    f"INSERT INTO news_articles ({', '.join(_ARTICLE_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _ARTICLE_COLUMNS)}) "
    "ON CONFLICT (source_url) DO NOTHING"
)


def _article_params(a: ArticleRecord) -> tuple:
    return (
        a.source_url, a.title_en, a.title_zh_tw, a.title_zh_cn,
        a.summary_en, a.summary_zh_tw, a.summary_zh_cn,
        a.source_name, a.source_url_host, a.image_url,
        Category.parse(a.category).value, a.published_at, a.batch_id,
    )


def _row_to_article(row: aiosqlite.Row) -> ArticleRecord:
    return ArticleRecord(
        source_url=row["source_url"],
        title_en=row["title_en"],
        batch_id=row["batch_id"],
        category=Category.parse(row["category"]),
        source_name=row["source_name"],
        source_url_host=row["source_host"],
        image_url=row["image_url"],
        published_at=row["published_at"],
        title_zh_tw=row["title_zh_tw"],
        title_zh_cn=row["title_zh_cn"],
        summary_en=row["summary_en"],
        summary_zh_tw=row["summary_zh_tw"],
        summary_zh_cn=row["summary_zh_cn"],
    )


def _load_list(raw: str | None) -> list | None:
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, list) else None


def _category_filter(categories: list[Category] | None) -> tuple[str, list[str]]:
    # All four selected means no filter
    if not categories or len(set(categories)) >= len(ALL_CATEGORIES):
        return "", []
    values = [Category.parse(c).value for c in categories]
    return f"AND category IN ({', '.join('?' for _ in values)})", values


class NewsStore:
    """Async SQLite store for the news pipeline."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def _ensure_db(self) -> aiosqlite.Connection:
        """Lazily open the database and create the schema."""
        if self._db is not None:
            return self._db

        os.makedirs(os.path.dirname(self.db_path) or ".", exist_ok=True)

        # Autocommit mode: transactions are opened explicitly in bulk_insert
        self._db = await aiosqlite.connect(self.db_path, isolation_level=None)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("PRAGMA foreign_keys=ON")
        await self._db.executescript(_CREATE_TABLES)
        return self._db

    async def init(self) -> None:
        """Create the schema if it does not exist."""
        await self._ensure_db()

    # ---- Articles ----

    async def get_existing_urls(self, urls: list[str]) -> set[str]:
        """Return the subset of ``urls`` already stored (one query)."""
        if not urls:
            return set()
        db = await self._ensure_db()
        placeholders = ", ".join("?" for _ in urls)
        async with db.execute(
            f"SELECT source_url FROM news_articles WHERE source_url IN ({placeholders})",
            list(urls),
        ) as cursor:
            rows = await cursor.fetchall()
            return {row["source_url"] for row in rows}

    async def bulk_insert(self, articles: list[ArticleRecord]) -> int:
        """Insert a batch atomically; return the number of rows actually added.

        Rows whose ``source_url`` already exists are skipped. Any failure
        rolls back the whole batch and re-raises.
        """
        if not articles:
            return 0
        db = await self._ensure_db()
        inserted = 0

        await db.execute("BEGIN")
        try:
            for article in articles:
                cursor = await db.execute(_INSERT_ARTICLE, _article_params(article))
                if cursor.rowcount > 0:
                    inserted += 1
                await cursor.close()
            await db.execute("COMMIT")
        except Exception:
            await db.execute("ROLLBACK")
            logger.error("Bulk insert rolled back (%d records)", len(articles))
            raise

        return inserted

    async def get_by_batch_id(self, batch_id: str) -> list[ArticleRecord]:
        db = await self._ensure_db()
        async with db.execute(
            "SELECT * FROM news_articles WHERE batch_id = ? AND is_active = 1 "
            "ORDER BY fetched_at DESC, id DESC",
            (batch_id,),
        ) as cursor:
            return [_row_to_article(row) for row in await cursor.fetchall()]

    async def get_feed(
        self,
        categories: list[Category] | None = None,
        limit: int = 30,
        offset: int = 0,
    ) -> list[ArticleRecord]:
        """Active articles, newest first, optionally filtered by category."""
        db = await self._ensure_db()
        where, params = _category_filter(categories)
        async with db.execute(
            f"SELECT * FROM news_articles WHERE is_active = 1 {where} "
            "ORDER BY fetched_at DESC, published_at DESC, id DESC LIMIT ? OFFSET ?",
            [*params, limit, offset],
        ) as cursor:
            return [_row_to_article(row) for row in await cursor.fetchall()]

    async def count_feed(self, categories: list[Category] | None = None) -> int:
        db = await self._ensure_db()
        where, params = _category_filter(categories)
        async with db.execute(
            f"SELECT COUNT(*) FROM news_articles WHERE is_active = 1 {where}", params
        ) as cursor:
            row = await cursor.fetchone()
            return row[0]

    async def clear_articles(self) -> int:
        """Delete every article. Returns the number removed."""
        db = await self._ensure_db()
        cursor = await db.execute("DELETE FROM news_articles")
        count = cursor.rowcount
        await cursor.close()
        return count

    # ---- Users & preferences ----

    async def add_user(
        self,
        email: str,
        display_name: str | None = None,
        is_verified: bool = False,
        verify_token: str | None = None,
    ) -> int:
        db = await self._ensure_db()
        cursor = await db.execute(
            "INSERT INTO users (email, display_name, is_verified, verify_token) "
            "VALUES (?, ?, ?, ?)",
            (email, display_name, int(is_verified), verify_token),
        )
        user_id = cursor.lastrowid
        await cursor.close()
        return user_id

    async def get_preferences(self, user_id: int) -> Subscriber | None:
        """Preferences for one user (defaults if no row). None if no such user."""
        db = await self._ensure_db()
        async with db.execute(
            "SELECT u.id, u.email, u.display_name, "
            "up.languages, up.categories, up.email_digest "
            "FROM users u LEFT JOIN user_preferences up ON u.id = up.user_id "
            "WHERE u.id = ?",
            (user_id,),
        ) as cursor:
            row = await cursor.fetchone()
            return self._row_to_subscriber(row) if row else None

    async def upsert_preferences(
        self,
        user_id: int,
        languages: list,
        categories: list,
        email_digest: bool,
    ) -> Subscriber | None:
        """Validate and store preferences. Unknown values are dropped."""
        db = await self._ensure_db()
        await db.execute(
            """
            INSERT INTO user_preferences (user_id, languages, categories, email_digest, updated_at)
            VALUES (?, ?, ?, ?, datetime('now'))
            ON CONFLICT (user_id) DO UPDATE SET
                languages = excluded.languages,
                categories = excluded.categories,
                email_digest = excluded.email_digest,
                updated_at = excluded.updated_at
            """,
            (
                user_id,
                json.dumps([lang.value for lang in parse_languages(languages)]),
                json.dumps([cat.value for cat in parse_categories(categories)]),
                int(email_digest),
            ),
        )
        return await self.get_preferences(user_id)

    async def create_default_preferences(self, user_id: int) -> None:
        db = await self._ensure_db()
        await db.execute(
            "INSERT INTO user_preferences (user_id) VALUES (?) "
            "ON CONFLICT (user_id) DO NOTHING",
            (user_id,),
        )

    async def get_digest_subscribers(self) -> list[Subscriber]:
        """Verified users with the digest enabled (missing preferences = defaults)."""
        db = await self._ensure_db()
        async with db.execute(
            "SELECT u.id, u.email, u.display_name, "
            "up.languages, up.categories, up.email_digest "
            "FROM users u LEFT JOIN user_preferences up ON u.id = up.user_id "
            "WHERE u.is_verified = 1 AND COALESCE(up.email_digest, 1) = 1 "
            "ORDER BY u.id"
        ) as cursor:
            return [self._row_to_subscriber(row) for row in await cursor.fetchall()]

    @staticmethod
    def _row_to_subscriber(row: aiosqlite.Row) -> Subscriber:
        digest = row["email_digest"]
        return Subscriber(
            user_id=row["id"],
            email=row["email"],
            display_name=row["display_name"],
            languages=parse_languages(_load_list(row["languages"])),
            categories=parse_categories(_load_list(row["categories"])),
            email_digest=True if digest is None else bool(digest),
        )

    async def close(self) -> None:
        """Close the database connection."""
        if self._db is not None:
            await self._db.close()
            self._db = None
