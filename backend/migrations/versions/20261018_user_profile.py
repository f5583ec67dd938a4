"""User profile fields; sales.created_at without server default

Revision ID: 20261018_user_profile
Revises: 20261018_initial
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_user_profile"
down_revision = "20261018_initial"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.add_column(sa.Column("firstname", sa.String(length=50), nullable=True))
        batch_op.add_column(sa.Column("lastname", sa.String(length=50), nullable=True))
        batch_op.add_column(sa.Column("othername", sa.String(length=50), nullable=True))
        batch_op.add_column(sa.Column("phone", sa.String(length=16), nullable=True))
        batch_op.add_column(sa.Column("other_phone", sa.String(length=16), nullable=True))
        batch_op.add_column(sa.Column("avatar_url", sa.String(length=500), nullable=True))
        batch_op.add_column(sa.Column(
            "theme_preference", sa.String(length=8), nullable=False, server_default="light"
        ))
        batch_op.create_check_constraint("ck_users_theme", "theme_preference IN ('light', 'dark')")

    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.alter_column(
            "created_at",
            existing_type=sa.DateTime(timezone=True),
            existing_nullable=False,
            server_default=None,
        )


def downgrade():
    with op.batch_alter_table("sales", schema=None) as batch_op:
        batch_op.alter_column(
            "created_at",
            existing_type=sa.DateTime(timezone=True),
            existing_nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        )

    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.drop_constraint("ck_users_theme", type_="check")
        batch_op.drop_column("theme_preference")
        batch_op.drop_column("avatar_url")
        batch_op.drop_column("other_phone")
        batch_op.drop_column("phone")
        batch_op.drop_column("othername")
        batch_op.drop_column("lastname")
        batch_op.drop_column("firstname")
