"""gtk-doc roots and sections

Revision ID: 0001_gtkdoc_schema
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_gtkdoc_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "gtkdoc_root",
        sa.Column("root_id", sa.Uuid(), primary_key=True),
        sa.Column("url_segment", sa.String(length=255), nullable=False, unique=True),
        sa.Column("title", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("devhelp_file", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("last_edited", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "gtkdoc_section",
        sa.Column("section_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "root_id",
            sa.Uuid(),
            sa.ForeignKey("gtkdoc_root.root_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("url_segment", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("meta_description", sa.Text(), nullable=True),
        sa.Column("sort", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("last_edited", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("root_id", "url_segment", name="uq_gtkdoc_section_root_segment"),
    )
    op.create_index("ix_gtkdoc_section_url_segment", "gtkdoc_section", ["url_segment"])


def downgrade() -> None:
    op.drop_index("ix_gtkdoc_section_url_segment", table_name="gtkdoc_section")
    op.drop_table("gtkdoc_section")
    op.drop_table("gtkdoc_root")
