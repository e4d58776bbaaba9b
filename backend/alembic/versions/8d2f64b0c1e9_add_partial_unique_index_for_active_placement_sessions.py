"""add partial unique index for active placement sessions

Revision ID: 8d2f64b0c1e9
Revises: 3a9c1e5d7b20
Create Date: 2026-10-12 10:31:07.905112

Only one in-progress session may exist per user. The application checks
before inserting, but two concurrent start requests can both pass that
check; this index makes the second insert fail with an IntegrityError.
"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "8d2f64b0c1e9"
down_revision: Union[str, None] = "3a9c1e5d7b20"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # status is stored as the enum member name (IN_PROGRESS)
    op.execute(
        """
        CREATE UNIQUE INDEX ix_test_sessions_user_active
        ON test_sessions (user_id)
        WHERE status = 'IN_PROGRESS'
        """
    )


def downgrade() -> None:
    op.drop_index(
        "ix_test_sessions_user_active",
        table_name="test_sessions",
    )
