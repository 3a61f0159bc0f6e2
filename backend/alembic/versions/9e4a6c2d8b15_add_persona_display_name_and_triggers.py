"""add display_name and triggers to personas

Revision ID: 9e4a6c2d8b15
Revises: 3b7d1f0c9a2e
Create Date: 2026-01-06 14:00:00.000000

display_name: name the persona responds to (NULL → bot's default name).
triggers: comma-separated keywords that activate the persona.

No IF NOT EXISTS: a target column that already exists raises
SchemaConflict before any DDL runs.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from personaforge.core.schema_guard import forbid_columns, require_columns


# revision identifiers, used by Alembic.
revision: str = '9e4a6c2d8b15'
down_revision: Union[str, None] = '3b7d1f0c9a2e'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NEW_COLUMNS = ("display_name", "triggers")


def upgrade() -> None:
    if not op.get_context().as_sql:
        inspector = sa.inspect(op.get_bind())
        require_columns(inspector, "personas", ["name"])
        forbid_columns(inspector, "personas", NEW_COLUMNS)

    op.add_column("personas", sa.Column("display_name", sa.Text(), nullable=True))
    op.add_column("personas", sa.Column("triggers", sa.Text(), nullable=True))

    # Existing personas answer to their own name.
    op.execute("UPDATE personas SET display_name = name WHERE display_name IS NULL")


def _personas_table() -> sa.Table:
    # Shape after upgrade(); batch mode copies from this in --sql mode,
    # where there is no connection to reflect from.
    return sa.Table(
        "personas",
        sa.MetaData(),
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=True,
            server_default=sa.func.now(),
        ),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column("triggers", sa.Text(), nullable=True),
    )


def downgrade() -> None:
    copy_from = _personas_table() if op.get_context().as_sql else None
    with op.batch_alter_table("personas", copy_from=copy_from) as batch_op:
        batch_op.drop_column("triggers")
        batch_op.drop_column("display_name")
