from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from newsroom.core.errors import ConflictError, InvalidTransitionError, NotFoundError
from newsroom.models.article import ArticleStatus
from newsroom.services.state_transition_service import state_transition_service


class _Result:
    def __init__(self, article):
        self._article = article

    def scalar_one_or_none(self):
        return self._article


class _DbSessionStub:
    def __init__(self, article):
        self._article = article

    async def execute(self, _stmt):
        return _Result(self._article)


class _LockedDbStub:
    async def execute(self, _stmt):
        raise OperationalError("SELECT ... FOR UPDATE NOWAIT", {}, Exception("could not obtain lock"))


@pytest.mark.asyncio
async def test_lock_article_missing_row_is_not_found() -> None:
    with pytest.raises(NotFoundError) as exc_info:
        await state_transition_service.lock_article(db=_DbSessionStub(None), article_id=404)

    assert exc_info.value.code == "article_not_found"


@pytest.mark.asyncio
async def test_lock_article_busy_row_is_transition_conflict() -> None:
    with pytest.raises(ConflictError) as exc_info:
        await state_transition_service.lock_article(db=_LockedDbStub(), article_id=5)

    assert exc_info.value.code == "transition_conflict"


def test_assert_transition_reports_allowed_targets() -> None:
    with pytest.raises(InvalidTransitionError) as exc_info:
        state_transition_service.assert_transition(
            current=ArticleStatus.DRAFT,
            target=ArticleStatus.PUBLISHED,
            entity="article:3",
        )

    details = exc_info.value.details
    assert details["entity"] == "article:3"
    assert details["allowed_targets"] == ["ARCHIVED", "REVIEW"]
