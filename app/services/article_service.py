"""
Article service — CRUD for blog articles.

Reads go through the Redis cache-aside layer; every write invalidates
the list entry and, where an id is known, the detail entry.  Articles
have no owner.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.cache import ARTICLE_LIST_KEY, article_detail_key, cache
from app.config import settings
from app.exceptions import NotFoundError
from app.models import Article
from app.schemas import ArticleCreate, ArticleUpdate

logger = logging.getLogger(__name__)


def _article_to_dict(article: Article) -> dict:
    return {
        "id": article.id,
        "title": article.title,
        "content": article.content,
        "created_at": article.created_at.isoformat() if article.created_at else None,
        "updated_at": article.updated_at.isoformat() if article.updated_at else None,
    }


async def save(db: AsyncSession, request: ArticleCreate) -> dict:
    article = Article(title=request.title, content=request.content)
    db.add(article)
    await db.flush()
    await db.refresh(article)
    await cache.invalidate_articles()
    return _article_to_dict(article)


async def find_all(db: AsyncSession) -> list[dict]:
    """Return every article, newest first."""
    cached = await cache.get(ARTICLE_LIST_KEY)
    if cached is not None:
        return cached

    result = await db.execute(select(Article).order_by(Article.created_at.desc(), Article.id.desc()))
    articles = [_article_to_dict(a) for a in result.scalars().all()]
    await cache.set(ARTICLE_LIST_KEY, articles, ttl=settings.CACHE_TTL_LIST)
    return articles


async def find_by_id(db: AsyncSession, article_id: int) -> dict:
    """Return article *article_id* or raise NotFoundError."""
    key = article_detail_key(article_id)
    cached = await cache.get(key)
    if cached is not None:
        return cached

    article = await db.get(Article, article_id)
    if article is None:
        raise NotFoundError("article", article_id)

    data = _article_to_dict(article)
    await cache.set(key, data, ttl=settings.CACHE_TTL_DETAIL)
    return data


async def delete(db: AsyncSession, article_id: int) -> bool:
    """Delete article *article_id*; returns False when it did not exist."""
    article = await db.get(Article, article_id)
    if article is None:
        return False
    await db.delete(article)
    await db.flush()
    await cache.invalidate_articles(article_id)
    return True


async def update(db: AsyncSession, article_id: int, request: ArticleUpdate) -> dict:
    """
    Replace the title and content of article *article_id*.

    Both fields are flushed together inside the request's transaction, so
    a failure later in the request rolls back both.  Raises NotFoundError
    when the article does not exist.
    """
    article = await db.get(Article, article_id)
    if article is None:
        raise NotFoundError("article", article_id)

    article.title = request.title
    article.content = request.content
    await db.flush()
    await db.refresh(article)

    await cache.invalidate_articles(article_id)
    logger.info("Updated article %d", article_id)
    return _article_to_dict(article)
