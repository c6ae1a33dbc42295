"""editorial workflow schema

Revision ID: 20261018_editorial_workflow
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_editorial_workflow"
down_revision = None
branch_labels = None
depends_on = None

PENDING_ONLY = sa.text("status = 'PENDING'")

user_role = sa.Enum("ADMIN", "EDITOR", "AUTHOR", name="user_role")
article_status = sa.Enum("DRAFT", "REVIEW", "PUBLISHED", "ARCHIVED", name="article_status")
revision_request_status = sa.Enum("PENDING", "APPROVED", "REJECTED", name="revision_request_status")
breaking_news_request_status = sa.Enum("PENDING", "APPROVED", "REJECTED", name="breaking_news_request_status")
notification_type = sa.Enum(
    "SUBMISSION",
    "APPROVAL",
    "REJECTION",
    "PUBLICATION",
    "UNPUBLICATION",
    "ARCHIVE",
    "DRAFT_SAVED",
    "REVISION_REQUESTED",
    "REVISION_APPROVED",
    "REVISION_REJECTED",
    "REVISION_CONSUMED",
    "BREAKING_NEWS_REQUESTED",
    "BREAKING_NEWS_APPROVED",
    "BREAKING_NEWS_REJECTED",
    name="notification_type",
)
outbox_status = sa.Enum("PENDING", "PROCESSED", "FAILED", name="outbox_status")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_categories_slug", "categories", ["slug"], unique=True)

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
    )
    op.create_index("ix_tags_slug", "tags", ["slug"], unique=True)

    op.create_table(
        "articles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=1024), nullable=False),
        sa.Column("slug", sa.String(length=1024), nullable=False),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("content_json", sa.JSON(), nullable=False),
        sa.Column("topic", sa.String(length=255), nullable=True),
        sa.Column("cover_image_url", sa.String(length=2048), nullable=True),
        sa.Column("author_name", sa.String(length=255), nullable=True),
        sa.Column("seo_title", sa.String(length=512), nullable=True),
        sa.Column("seo_description", sa.String(length=1024), nullable=True),
        sa.Column("og_image_url", sa.String(length=2048), nullable=True),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
        sa.Column("author_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", article_status, nullable=False),
        sa.Column("published_at", sa.DateTime(), nullable=True),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_editors_pick", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_breaking", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("pinned_at", sa.DateTime(), nullable=True),
        sa.Column("author_edit_allowance", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("revision_requested_at", sa.DateTime(), nullable=True),
        sa.Column("breaking_news_requested_at", sa.DateTime(), nullable=True),
        sa.Column(
            "breaking_news_requested_by_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("author_edit_allowance >= 0", name="ck_articles_edit_allowance_non_negative"),
    )
    op.create_index("ix_articles_slug", "articles", ["slug"], unique=True)
    op.create_index("ix_articles_status", "articles", ["status"])
    op.create_index("ix_articles_category_id", "articles", ["category_id"])
    op.create_index("ix_articles_author_id", "articles", ["author_id"])
    op.create_index("ix_articles_status_updated", "articles", ["status", "updated_at"])
    op.create_index("ix_articles_status_category", "articles", ["status", "category_id"])

    op.create_table(
        "article_tags",
        sa.Column("article_id", sa.Integer(), sa.ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("tag_id", sa.Integer(), sa.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "revision_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("article_id", sa.Integer(), sa.ForeignKey("articles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", revision_request_status, nullable=False),
        sa.Column("proposed_changes", sa.JSON(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("requester_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("reviewed_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("review_comment", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("consumed_at", sa.DateTime(), nullable=True),
        sa.Column("consumed_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_revision_requests_article_id", "revision_requests", ["article_id"])
    op.create_index("ix_revision_requests_status", "revision_requests", ["status"])
    op.create_index("ix_revision_requests_created_at", "revision_requests", ["created_at"])
    op.create_index(
        "uq_revision_requests_one_pending",
        "revision_requests",
        ["article_id"],
        unique=True,
        postgresql_where=PENDING_ONLY,
    )

    op.create_table(
        "revisions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("article_id", sa.Integer(), sa.ForeignKey("articles.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "revision_request_id",
            sa.Integer(),
            sa.ForeignKey("revision_requests.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("applied_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("changes", sa.JSON(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("applied_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_revisions_article_id", "revisions", ["article_id"])
    op.create_index("ix_revisions_revision_request_id", "revisions", ["revision_request_id"])
    op.create_index("ix_revisions_applied_at", "revisions", ["applied_at"])

    op.create_table(
        "breaking_news_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("article_id", sa.Integer(), sa.ForeignKey("articles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", breaking_news_request_status, nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("requester_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("reviewed_by_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("review_comment", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_breaking_news_requests_article_id", "breaking_news_requests", ["article_id"])
    op.create_index("ix_breaking_news_requests_status", "breaking_news_requests", ["status"])
    op.create_index("ix_breaking_news_requests_created_at", "breaking_news_requests", ["created_at"])
    op.create_index(
        "uq_breaking_news_requests_one_pending",
        "breaking_news_requests",
        ["article_id"],
        unique=True,
        postgresql_where=PENDING_ONLY,
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("target_user_id", sa.Integer(), nullable=True),
        sa.Column("resource_id", sa.String(length=120), nullable=True),
        sa.Column("resource_type", sa.String(length=80), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_audit_logs_event_type", "audit_logs", ["event_type"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_resource_id", "audit_logs", ["resource_id"])
    op.create_index("ix_audit_logs_request_id", "audit_logs", ["request_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])
    op.create_index("ix_audit_logs_resource_created", "audit_logs", ["resource_type", "resource_id", "created_at"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("type", notification_type, nullable=False),
        sa.Column("title", sa.String(length=512), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("metadata_json", sa.JSON(), nullable=True),
        sa.Column("article_id", sa.Integer(), sa.ForeignKey("articles.id", ondelete="CASCADE"), nullable=True),
        sa.Column("from_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("to_user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_notifications_to_user_id", "notifications", ["to_user_id"])
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])

    op.create_table(
        "workflow_outbox",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("status", outbox_status, nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_workflow_outbox_status_id", "workflow_outbox", ["status", "id"])


def downgrade():
    op.drop_index("ix_workflow_outbox_status_id", table_name="workflow_outbox")
    op.drop_table("workflow_outbox")
    op.drop_table("notifications")
    op.drop_table("audit_logs")
    op.drop_index("uq_breaking_news_requests_one_pending", table_name="breaking_news_requests")
    op.drop_table("breaking_news_requests")
    op.drop_table("revisions")
    op.drop_index("uq_revision_requests_one_pending", table_name="revision_requests")
    op.drop_table("revision_requests")
    op.drop_table("article_tags")
    op.drop_table("articles")
    op.drop_table("tags")
    op.drop_table("categories")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (
        outbox_status,
        notification_type,
        breaking_news_request_status,
        revision_request_status,
        article_status,
        user_role,
    ):
        enum_type.drop(bind, checkfirst=True)
