from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.core.errors import ConflictError, InvalidTransitionError, NotFoundError
from newsroom.domain.article.state_machine import validate_transition
from newsroom.models.article import Article, ArticleStatus


class StateTransitionService:
    def assert_transition(self, *, current: ArticleStatus, target: ArticleStatus, entity: str = "article") -> None:
        result = validate_transition(current, target)
        if result.valid:
            return
        raise InvalidTransitionError(
            f"Invalid transition from {current.value} to {target.value}",
            details={
                "entity": entity,
                "from_state": current.value,
                "to_state": target.value,
                "allowed_targets": [item.value for item in result.allowed_targets],
            },
        )

    async def lock_article(
        self,
        *,
        db: AsyncSession,
        article_id: int,
        lock_nowait: bool = True,
    ) -> Article:
        """Load the article row under ``FOR UPDATE`` for the rest of the transaction."""
        entity_name = f"article:{article_id}"
        try:
            row = await db.execute(
                select(Article)
                .where(Article.id == article_id)
                .with_for_update(of=Article, nowait=lock_nowait)
                .execution_options(populate_existing=True)
            )
        except OperationalError as exc:
            raise ConflictError(
                "The article is being updated by another operation. Retry.",
                code="transition_conflict",
                details={"entity": entity_name},
            ) from exc

        article = row.scalar_one_or_none()
        if not article:
            raise NotFoundError("Article not found", code="article_not_found", details={"entity": entity_name})
        return article


state_transition_service = StateTransitionService()
