"""
Newsroom - Pydantic Schemas
===========================
Request bodies and patch validation for the workflow API.
"""

from newsroom.schemas.workflow import (
    ArticleFeaturesUpdate,
    BreakingNewsRequestCreate,
    BulkWorkflowActionRequest,
    RevisionPatch,
    RevisionRequestCreate,
    ReviewDecisionRequest,
    WorkflowActionRequest,
    normalize_tag_slugs,
)

__all__ = [
    "ArticleFeaturesUpdate",
    "BreakingNewsRequestCreate",
    "BulkWorkflowActionRequest",
    "RevisionPatch",
    "RevisionRequestCreate",
    "ReviewDecisionRequest",
    "WorkflowActionRequest",
    "normalize_tag_slugs",
]
