"""Initial keymint schema: the keys table.

An existing ``keys`` table (a database file created by another server using
the same layout) is adopted instead of recreated.

Revision ID: 001
Create Date: 2026-10-18
"""

import sqlalchemy as sa
from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    if sa.inspect(op.get_bind()).has_table("keys"):
        return

    op.create_table(
        "keys",
        sa.Column("kid", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("key", sa.LargeBinary(), nullable=False),
        sa.Column("exp", sa.Integer(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_keys_exp", "keys", ["exp"])


def downgrade() -> None:
    op.drop_index("ix_keys_exp", table_name="keys")
    op.drop_table("keys")
