"""
Shared fixtures: an in-memory SQLite database, seeded newsroom staff and a
workflow service whose side effects run against the same database.
"""

from __future__ import annotations

from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from newsroom.api.routes import workflow as workflow_routes
from newsroom.core.context import ActorContext
from newsroom.core.database import Base, get_db
from newsroom.core.security import create_access_token
from newsroom.main import app
from newsroom.models import (
    Article,
    ArticleStatus,
    AuditLogEntry,
    Category,
    Notification,
    User,
    UserRole,
)
from newsroom.services.notification_service import NotificationDispatcher
from newsroom.services.side_effects import SideEffectCoordinator
from newsroom.services.workflow_service import WorkflowService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

STAFF = {
    "admin": ("admin@newsroom.test", "Ada Admin", UserRole.ADMIN, True),
    "editor": ("editor@newsroom.test", "Eli Editor", UserRole.EDITOR, True),
    "author": ("author@newsroom.test", "Ari Author", UserRole.AUTHOR, True),
    "other_author": ("other@newsroom.test", "Oli Other", UserRole.AUTHOR, True),
    "retired_editor": ("retired@newsroom.test", "Ray Retired", UserRole.EDITOR, False),
}


class RecordingDispatcher(NotificationDispatcher):
    def __init__(self) -> None:
        self.batches: list[list[dict]] = []

    async def dispatch(self, notifications):
        self.batches.append(list(notifications))


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def coordinator(session_factory, dispatcher) -> SideEffectCoordinator:
    return SideEffectCoordinator(session_factory=session_factory, dispatcher=dispatcher, timeout_seconds=5)


@pytest.fixture
def workflow(coordinator) -> WorkflowService:
    return WorkflowService(coordinator=coordinator)


@pytest.fixture
async def staff(db_session) -> dict[str, ActorContext]:
    """Actors keyed by nickname. The retired editor is inactive and maps to ``None``."""
    users = {}
    for key, (email, name, role, active) in STAFF.items():
        user = User(email=email, name=name, role=role, is_active=active)
        db_session.add(user)
        users[key] = user
    await db_session.commit()
    return {key: ActorContext.from_user(user) for key, user in users.items()}


@pytest.fixture
async def staff_ids(db_session, staff) -> dict[str, int]:
    rows = await db_session.execute(select(User.email, User.id))
    by_email = dict(rows.all())
    return {key: by_email[email] for key, (email, *_rest) in STAFF.items()}


@pytest.fixture
def make_article(db_session, staff):
    counter = {"value": 0}

    async def _make(
        status: ArticleStatus = ArticleStatus.DRAFT,
        *,
        owner: str = "author",
        title: str | None = None,
        **fields,
    ) -> int:
        counter["value"] += 1
        n = counter["value"]
        article = Article(
            title=title or f"Council budget story {n}",
            slug=fields.pop("slug", f"council-budget-story-{n}"),
            content_json=fields.pop("content_json", {"blocks": [{"type": "paragraph", "text": f"Body {n}"}]}),
            author_id=staff[owner].user_id,
            author_name=staff[owner].name,
            status=status,
            published_at=fields.pop(
                "published_at", datetime(2026, 10, 1, 8, 0) if status == ArticleStatus.PUBLISHED else None
            ),
            **fields,
        )
        db_session.add(article)
        await db_session.commit()
        return article.id

    return _make


@pytest.fixture
async def category_id(db_session) -> int:
    category = Category(name="Politics", slug="politics")
    db_session.add(category)
    await db_session.commit()
    return category.id


async def load_article(db: AsyncSession, article_id: int) -> Article:
    """Fresh copy of the row; earlier rollbacks may have expired the cached one."""
    return await db.get(Article, article_id, populate_existing=True)


async def audit_entries(db: AsyncSession, event_type=None) -> list[AuditLogEntry]:
    stmt = select(AuditLogEntry).order_by(AuditLogEntry.id.asc())
    if event_type:
        stmt = stmt.where(AuditLogEntry.event_type == getattr(event_type, "value", event_type))
    rows = await db.execute(stmt)
    return list(rows.scalars().all())


async def notifications_for(db: AsyncSession, user_id: int) -> list[Notification]:
    rows = await db.execute(
        select(Notification).where(Notification.to_user_id == user_id).order_by(Notification.id.asc())
    )
    return list(rows.scalars().all())


@pytest.fixture
def auth_headers(staff_ids):
    """Bearer headers for a staff member, minted the way the auth service would."""

    def _headers(key: str) -> dict[str, str]:
        token = create_access_token({"sub": str(staff_ids[key]), "role": STAFF[key][2].value})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
async def async_client(db_session, session_factory, monkeypatch):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setattr(
        workflow_routes,
        "workflow_service",
        WorkflowService(
            coordinator=SideEffectCoordinator(
                session_factory=session_factory,
                dispatcher=RecordingDispatcher(),
                timeout_seconds=5,
            )
        ),
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
