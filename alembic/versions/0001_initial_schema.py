"""Initial schema — permission catalog, accounts, grants, found items.

Revision ID: 0001
Revises: (none)
Create Date: 2026-10-18

Run with:
    alembic upgrade head
    python -m lostfound.cli seed-permissions
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    # ── Permission catalog ───────────────────────────────────

    op.create_table(
        "permissions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("component", sa.String(50)),
        sa.Column("action", sa.String(50)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_permissions_name", "permissions", ["name"], unique=True)

    # ── Accounts and grant sets ──────────────────────────────

    op.create_table(
        "accounts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("employee_number", sa.String(50), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column(
            "role",
            sa.Enum("admin", "supervisor", "employee", name="accountrole"),
            nullable=False,
            server_default="employee",
        ),
        sa.Column("grants_updated_at", sa.DateTime()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_accounts_employee_number", "accounts", ["employee_number"], unique=True)

    op.create_table(
        "account_permissions",
        sa.Column(
            "account_id", sa.String(36),
            sa.ForeignKey("accounts.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column(
            "permission_id", sa.String(36),
            sa.ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True,
        ),
    )

    # ── Found items ──────────────────────────────────────────

    op.create_table(
        "found_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("flight_number", sa.String(20), nullable=False),
        sa.Column("date_found", sa.DateTime(), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("image_urls", sa.JSON(), server_default="[]"),
        sa.Column("status", sa.String(20), nullable=False, server_default="onHand"),
        sa.Column("archived", sa.Boolean(), server_default="false"),
        sa.Column(
            "found_by", sa.String(36),
            sa.ForeignKey("accounts.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "delivered_by", sa.String(36),
            sa.ForeignKey("accounts.id", ondelete="SET NULL"),
        ),
        sa.Column("delivered_at", sa.DateTime()),
        sa.Column("customer_name", sa.String(100)),
        sa.Column("customer_last_name", sa.String(100)),
        sa.Column("customer_signature", sa.Text()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_found_items_flight_number", "found_items", ["flight_number"])
    op.create_index("ix_found_items_category", "found_items", ["category"])
    op.create_index("ix_found_items_status", "found_items", ["status"])
    op.create_index("ix_found_items_found_by", "found_items", ["found_by"])


def downgrade() -> None:
    op.drop_table("found_items")
    op.drop_table("account_permissions")
    op.drop_table("accounts")
    op.drop_table("permissions")
    sa.Enum(name="accountrole").drop(op.get_bind(), checkfirst=True)
