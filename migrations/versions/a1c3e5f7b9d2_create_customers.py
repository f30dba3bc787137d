"""create customers

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "a1c3e5f7b9d2"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    def _has_index(table: str, name: str) -> bool:
        try:
            return any(ix.get("name") == name for ix in insp.get_indexes(table))
        except Exception:
            return False

    if "customers" not in existing_tables:
        op.create_table(
            "customers",
            sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
            sa.Column("first_name", sa.String(255), nullable=False),
            sa.Column("last_name", sa.String(255), nullable=False),
            sa.Column("email", sa.String(255), nullable=False),
            sa.Column("phone_number", sa.String(50), nullable=False),
            sa.Column("address", sa.Text(), nullable=True),
            sa.Column("city", sa.String(100), nullable=True),
            sa.Column("state", sa.String(100), nullable=True),
            sa.Column("country", sa.String(100), nullable=True),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sa.UniqueConstraint("email", name="uq_customers_email"),
        )
        existing_tables.add("customers")

    insp = inspect(op.get_bind())
    if not _has_index("customers", "email_idx"):
        op.create_index("email_idx", "customers", ["email"])


def downgrade() -> None:
    op.drop_index("email_idx", table_name="customers")
    op.drop_table("customers")
