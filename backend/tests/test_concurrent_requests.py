"""
Racing request creation: several sessions ask for a revision or breaking-news
review of the same article at once. A file-backed database gives every
session its own connection, so the attempts really overlap.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from conftest import RecordingDispatcher
from newsroom.core.context import ActorContext
from newsroom.core.database import Base
from newsroom.core.errors import ConflictError
from newsroom.models import (
    Article,
    ArticleStatus,
    BreakingNewsRequest,
    BreakingNewsRequestStatus,
    RevisionRequest,
    RevisionRequestStatus,
    User,
    UserRole,
)
from newsroom.services.side_effects import SideEffectCoordinator
from newsroom.services.workflow_service import WorkflowService

ATTEMPTS = 5


@pytest.fixture
async def file_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'newsroom.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def racing_workflow(file_factory) -> WorkflowService:
    return WorkflowService(
        coordinator=SideEffectCoordinator(
            session_factory=file_factory, dispatcher=RecordingDispatcher(), timeout_seconds=5
        )
    )


async def _seed(factory, status: ArticleStatus) -> tuple[ActorContext, int]:
    async with factory() as db:
        author = User(email="racer@newsroom.test", name="Rae Racer", role=UserRole.AUTHOR, is_active=True)
        db.add(author)
        await db.flush()
        article = Article(
            title="Harbour bridge closure",
            slug="harbour-bridge-closure",
            content_json={"blocks": []},
            author_id=author.id,
            author_name=author.name,
            status=status,
            published_at=datetime(2026, 10, 1, 8, 0) if status == ArticleStatus.PUBLISHED else None,
        )
        db.add(article)
        await db.commit()
        return ActorContext.from_user(author), article.id


async def _race(factory, call) -> list[str]:
    async def attempt(n: int) -> str:
        async with factory() as db:
            try:
                await call(db, n)
            except ConflictError:
                return "conflict"
            return "ok"

    return list(await asyncio.gather(*(attempt(n) for n in range(ATTEMPTS))))


async def test_concurrent_revision_requests_leave_one_pending(file_factory, racing_workflow) -> None:
    actor, article_id = await _seed(file_factory, ArticleStatus.REVIEW)

    outcomes = await _race(
        file_factory,
        lambda db, n: racing_workflow.request_revision(
            db, actor, article_id=article_id, proposed_changes={"topic": f"take {n}"}
        ),
    )

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == ATTEMPTS - 1
    async with file_factory() as db:
        pending = await db.scalar(
            select(func.count(RevisionRequest.id)).where(
                RevisionRequest.article_id == article_id,
                RevisionRequest.status == RevisionRequestStatus.PENDING,
            )
        )
    assert pending == 1


async def test_concurrent_breaking_requests_leave_one_pending(file_factory, racing_workflow) -> None:
    actor, article_id = await _seed(file_factory, ArticleStatus.PUBLISHED)

    outcomes = await _race(
        file_factory,
        lambda db, n: racing_workflow.request_breaking_news(db, actor, article_id=article_id, reason=f"alert {n}"),
    )

    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == ATTEMPTS - 1
    async with file_factory() as db:
        pending = await db.scalar(
            select(func.count(BreakingNewsRequest.id)).where(
                BreakingNewsRequest.article_id == article_id,
                BreakingNewsRequest.status == BreakingNewsRequestStatus.PENDING,
            )
        )
    assert pending == 1
