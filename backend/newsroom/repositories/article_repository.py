from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.models import Article, ArticleStatus, ArticleTag, Category, Tag


class ArticleRepository:
    async def get_by_id(self, db: AsyncSession, article_id: int) -> Article | None:
        row = await db.execute(
            select(Article).where(Article.id == article_id).execution_options(populate_existing=True)
        )
        return row.scalar_one_or_none()

    async def slug_taken(self, db: AsyncSession, slug: str, *, exclude_id: int) -> bool:
        existing = await db.scalar(select(Article.id).where(Article.slug == slug, Article.id != exclude_id).limit(1))
        return existing is not None

    async def review_queue(
        self,
        db: AsyncSession,
        *,
        limit: int,
        offset: int = 0,
        category_id: int | None = None,
        author_id: int | None = None,
    ) -> tuple[list[Article], int]:
        conditions = [Article.status == ArticleStatus.REVIEW]
        if category_id is not None:
            conditions.append(Article.category_id == category_id)
        if author_id is not None:
            conditions.append(Article.author_id == author_id)

        total = await db.scalar(select(func.count(Article.id)).where(*conditions))
        rows = await db.execute(
            select(Article)
            .where(*conditions)
            .order_by(Article.updated_at.asc(), Article.id.asc())
            .offset(offset)
            .limit(limit)
        )
        return list(rows.scalars().all()), int(total or 0)

    async def count_by_status(self, db: AsyncSession, status: ArticleStatus) -> int:
        total = await db.scalar(select(func.count(Article.id)).where(Article.status == status))
        return int(total or 0)

    async def count_published_since(self, db: AsyncSession, since: datetime) -> int:
        total = await db.scalar(
            select(func.count(Article.id)).where(
                Article.status == ArticleStatus.PUBLISHED,
                Article.published_at >= since,
            )
        )
        return int(total or 0)

    async def category_by_slug(self, db: AsyncSession, slug: str) -> Category | None:
        row = await db.execute(select(Category).where(Category.slug == slug))
        return row.scalar_one_or_none()

    async def tag_slugs(self, db: AsyncSession, article_id: int) -> list[str]:
        rows = await db.execute(
            select(Tag.slug)
            .join(ArticleTag, ArticleTag.tag_id == Tag.id)
            .where(ArticleTag.article_id == article_id)
            .order_by(Tag.slug.asc())
        )
        return list(rows.scalars().all())

    async def replace_tags(self, db: AsyncSession, article_id: int, slugs: list[str]) -> list[Tag]:
        """Upsert tags by slug and make them the article's only tags."""
        tags: list[Tag] = []
        if slugs:
            rows = await db.execute(select(Tag).where(Tag.slug.in_(slugs)))
            existing = {tag.slug: tag for tag in rows.scalars().all()}
            for slug in slugs:
                tag = existing.get(slug)
                if tag is None:
                    tag = Tag(name=slug.replace("-", " "), slug=slug)
                    db.add(tag)
                tags.append(tag)
            await db.flush()

        await db.execute(delete(ArticleTag).where(ArticleTag.article_id == article_id))
        for tag in tags:
            db.add(ArticleTag(article_id=article_id, tag_id=tag.id))
        await db.flush()
        return tags


article_repository = ArticleRepository()
