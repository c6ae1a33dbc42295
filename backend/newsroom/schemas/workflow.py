from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from newsroom.domain.article.state_machine import WorkflowAction

_NON_NULLABLE_PATCH_FIELDS = ("title", "slug", "content_json")


def normalize_tag_slugs(values: list[str] | None) -> list[str]:
    """Trim, lowercase, hyphenate whitespace, keep ``[a-z0-9-]``, de-duplicate in order."""
    slugs: list[str] = []
    for raw in values or []:
        slug = re.sub(r"\s+", "-", (raw or "").strip().lower())
        slug = re.sub(r"[^a-z0-9-]", "", slug)
        if slug and slug not in slugs:
            slugs.append(slug)
    return slugs


class RevisionPatch(BaseModel):
    """Partial article patch carried by a revision request.

    Only keys present in the payload are applied. Workflow-owned columns
    (status, feature flags, timestamps) are rejected by ``extra="forbid"``.
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=1024)
    slug: str | None = Field(default=None, min_length=1, max_length=1024)
    excerpt: str | None = None
    content_json: dict[str, Any] | list[Any] | None = None
    topic: str | None = Field(default=None, max_length=255)
    cover_image_url: str | None = Field(default=None, max_length=2048)
    author_name: str | None = Field(default=None, max_length=255)
    seo_title: str | None = Field(default=None, max_length=512)
    seo_description: str | None = Field(default=None, max_length=1024)
    og_image_url: str | None = Field(default=None, max_length=2048)
    category_slug: str | None = Field(default=None, max_length=255)
    tag_slugs: list[str] | None = None

    @model_validator(mode="after")
    def _required_columns_not_null(self) -> "RevisionPatch":
        for name in _NON_NULLABLE_PATCH_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        if "tag_slugs" in self.model_fields_set and self.tag_slugs is None:
            raise ValueError("tag_slugs cannot be null; send an empty list to clear tags")
        return self

    def present_changes(self) -> dict[str, Any]:
        changes = self.model_dump(exclude_unset=True)
        if "tag_slugs" in changes:
            changes["tag_slugs"] = normalize_tag_slugs(changes["tag_slugs"])
        return changes


class WorkflowActionRequest(BaseModel):
    action: WorkflowAction
    reason: str | None = Field(default=None, max_length=2000)
    notify_owner: bool = True


class BulkWorkflowActionRequest(BaseModel):
    article_ids: list[int] = Field(default_factory=list, max_length=200)
    action: WorkflowAction
    reason: str | None = Field(default=None, max_length=2000)
    notify_owners: bool = True


class RevisionRequestCreate(BaseModel):
    proposed_changes: dict[str, Any]
    note: str | None = Field(default=None, max_length=2000)


class ReviewDecisionRequest(BaseModel):
    comment: str | None = Field(default=None, max_length=2000)


class BreakingNewsRequestCreate(BaseModel):
    reason: str | None = Field(default=None, max_length=2000)


class ArticleFeaturesUpdate(BaseModel):
    is_featured: bool | None = None
    is_editors_pick: bool | None = None
