"""feat: create ledger tables

Revision ID: 5e1a2b3c4d6f
Revises:
Create Date: 2026-10-17 09:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5e1a2b3c4d6f"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "client_profiles",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("level", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=True),
        sa.Column("parent_client_id", sa.String(), sa.ForeignKey("client_profiles.id"), nullable=True),
        sa.Column("company_name", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_client_profiles_organization_id", "client_profiles", ["organization_id"])
    op.create_index("ix_client_profiles_parent_client_id", "client_profiles", ["parent_client_id"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("auth_subject", sa.String(), nullable=False),
        sa.Column("level", sa.String(), nullable=False),
        sa.Column("client_profile_id", sa.String(), sa.ForeignKey("client_profiles.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_auth_subject", "users", ["auth_subject"], unique=True)

    for table in ("master_accounts", "client_accounts"):
        op.create_table(
            table,
            sa.Column("id", sa.String(), primary_key=True),
            sa.Column("account_number", sa.String(), nullable=False, unique=True),
            sa.Column("account_name", sa.String(), nullable=False),
            sa.Column("client_profile_id", sa.String(), sa.ForeignKey("client_profiles.id"), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        )
        op.create_index(f"ix_{table}_client_profile_id", table, ["client_profile_id"])

    op.create_table(
        "securities",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("symbol", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_securities_symbol", "securities", ["symbol"], unique=True)

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("transaction_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("trade_date", sa.Date(), nullable=True),
        sa.Column("settlement_date", sa.Date(), nullable=True),
        sa.Column("transaction_type", sa.String(), nullable=False),
        sa.Column("security_id", sa.String(), sa.ForeignKey("securities.id"), nullable=True),
        sa.Column("quantity", sa.Numeric(18, 10), nullable=True),
        sa.Column("price", sa.Numeric(18, 10), nullable=True),
        sa.Column("amount", sa.Numeric(18, 10), nullable=False),
        sa.Column("fee", sa.Numeric(18, 10), nullable=True),
        sa.Column("tax", sa.Numeric(18, 10), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("reference", sa.String(), nullable=True),
        sa.Column("entry_status", sa.String(), nullable=False, server_default="DRAFT"),
        sa.Column("master_account_id", sa.String(), sa.ForeignKey("master_accounts.id"), nullable=True),
        sa.Column("client_account_id", sa.String(), sa.ForeignKey("client_accounts.id"), nullable=True),
        sa.Column("client_profile_id", sa.String(), sa.ForeignKey("client_profiles.id"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "(master_account_id IS NULL) <> (client_account_id IS NULL)",
            name="ck_transactions_exactly_one_account",
        ),
        sa.CheckConstraint("entry_status IN ('DRAFT', 'POSTED')", name="ck_transactions_entry_status"),
    )
    op.create_index(
        "ix_transactions_date_id",
        "transactions",
        [sa.text("transaction_date DESC"), sa.text("id DESC")],
    )
    op.create_index(
        "ix_transactions_natural_key",
        "transactions",
        ["transaction_date", "transaction_type", "amount", "security_id"],
    )
    for column in ("security_id", "entry_status", "master_account_id", "client_account_id", "client_profile_id"):
        op.create_index(f"ix_transactions_{column}", "transactions", [column])


def downgrade() -> None:
    op.drop_table("transactions")
    op.drop_table("securities")
    op.drop_table("client_accounts")
    op.drop_table("master_accounts")
    op.drop_table("users")
    op.drop_table("client_profiles")
