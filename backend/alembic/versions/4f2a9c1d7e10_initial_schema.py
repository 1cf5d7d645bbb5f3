"""Schéma initial.

Rôle (fonctionnel) :
- Crée les tables du site et du back-office : admins, formations, inscriptions, documents,
  images, news, settings, email_templates.
- Pose les garde-fous DB du comptage des places (CHECK 0 <= available_seats <= total_seats)
  et la suppression en cascade des inscriptions d’une formation.

Revision ID: 4f2a9c1d7e10
Revises:
Create Date: 2026-10-19 09:12:41.208113
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# Identifiants Alembic
revision: str = "4f2a9c1d7e10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Application des changements de schéma."""
    op.create_table(
        "admins",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("avatar", sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_admins")),
    )
    op.create_index(op.f("ix_admins_email"), "admins", ["email"], unique=True)
    op.create_index(op.f("ix_admins_role"), "admins", ["role"], unique=False)

    op.create_table(
        "formations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=30), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration", sa.String(length=100), nullable=False),
        sa.Column("total_seats", sa.Integer(), nullable=False),
        sa.Column("available_seats", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("instructor", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("total_seats >= 1", name=op.f("ck_formations_total_seats_positive")),
        sa.CheckConstraint(
            "available_seats >= 0 AND available_seats <= total_seats",
            name=op.f("ck_formations_available_seats_range"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_formations")),
    )
    op.create_index(op.f("ix_formations_type"), "formations", ["type"], unique=False)
    op.create_index(op.f("ix_formations_date"), "formations", ["date"], unique=False)
    op.create_index("ix_formations_status_date", "formations", ["status", "date"], unique=False)

    op.create_table(
        "inscriptions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=False),
        sa.Column("birthdate", sa.Date(), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("formation_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("notified", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["formation_id"],
            ["formations.id"],
            name=op.f("fk_inscriptions_formation_id_formations"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_inscriptions")),
    )
    op.create_index(op.f("ix_inscriptions_email"), "inscriptions", ["email"], unique=False)
    op.create_index(op.f("ix_inscriptions_formation_id"), "inscriptions", ["formation_id"], unique=False)
    op.create_index(op.f("ix_inscriptions_created_at"), "inscriptions", ["created_at"], unique=False)
    op.create_index("ix_inscriptions_formation_status", "inscriptions", ["formation_id", "status"], unique=False)

    op.create_table(
        "documents",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=40), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("downloads", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_documents")),
    )
    op.create_index(op.f("ix_documents_category"), "documents", ["category"], unique=False)
    op.create_index(op.f("ix_documents_created_at"), "documents", ["created_at"], unique=False)

    op.create_table(
        "images",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("alt", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=30), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_images")),
    )
    op.create_index(op.f("ix_images_category"), "images", ["category"], unique=False)
    op.create_index(op.f("ix_images_created_at"), "images", ["created_at"], unique=False)

    op.create_table(
        "news",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author", sa.String(length=255), nullable=True),
        sa.Column("published", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_news")),
    )
    op.create_index("ix_news_published_created", "news", ["published", "created_at"], unique=False)

    op.create_table(
        "settings",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_settings")),
    )
    op.create_index(op.f("ix_settings_key"), "settings", ["key"], unique=True)

    op.create_table(
        "email_templates",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_email_templates")),
    )
    op.create_index(op.f("ix_email_templates_type"), "email_templates", ["type"], unique=True)


def downgrade() -> None:
    """Retour arrière des changements de schéma."""
    op.drop_index(op.f("ix_email_templates_type"), table_name="email_templates")
    op.drop_table("email_templates")

    op.drop_index(op.f("ix_settings_key"), table_name="settings")
    op.drop_table("settings")

    op.drop_index("ix_news_published_created", table_name="news")
    op.drop_table("news")

    op.drop_index(op.f("ix_images_created_at"), table_name="images")
    op.drop_index(op.f("ix_images_category"), table_name="images")
    op.drop_table("images")

    op.drop_index(op.f("ix_documents_created_at"), table_name="documents")
    op.drop_index(op.f("ix_documents_category"), table_name="documents")
    op.drop_table("documents")

    op.drop_index("ix_inscriptions_formation_status", table_name="inscriptions")
    op.drop_index(op.f("ix_inscriptions_created_at"), table_name="inscriptions")
    op.drop_index(op.f("ix_inscriptions_formation_id"), table_name="inscriptions")
    op.drop_index(op.f("ix_inscriptions_email"), table_name="inscriptions")
    op.drop_table("inscriptions")

    op.drop_index("ix_formations_status_date", table_name="formations")
    op.drop_index(op.f("ix_formations_date"), table_name="formations")
    op.drop_index(op.f("ix_formations_type"), table_name="formations")
    op.drop_table("formations")

    op.drop_index(op.f("ix_admins_role"), table_name="admins")
    op.drop_index(op.f("ix_admins_email"), table_name="admins")
    op.drop_table("admins")
