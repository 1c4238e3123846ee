"""tsoam_base: all church administration tables

- Builds the schema from the ORM metadata (tsoam.models) in one step:
  users/auth, members & tithes, finance, HR & payroll, leave, payroll
  approval batches, events, appointments, welfare, messaging, home cells,
  inventory, the module store and system logs.
- JSON columns become JSONB on Postgres.
"""

from __future__ import annotations
from alembic import op

import tsoam.models  # noqa: F401
from tsoam.db import Base

# --- Alembic headers ---------------------------------------------------------
revision: str = "5c1e0a7d9b21"
down_revision: str | None = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    Base.metadata.create_all(bind=op.get_bind())


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
