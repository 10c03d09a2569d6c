"""create channel partner referral & commission ledger

Revision ID: a1c7e2f40b91
Revises:
Create Date: 2026-02-24 10:12:31.402118
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "a1c7e2f40b91"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PARTNER_TYPES = ("accountant", "consultant", "agency", "influencer", "association", "reseller", "other")
PARTNER_STATUSES = ("pending", "active", "inactive", "suspended", "churned")
REFERRAL_STATUSES = ("pending", "active", "churned", "suspended")
COMMISSION_TYPES = ("recurring", "one_time", "tiered")
COMMISSION_STATUSES = ("pending", "approved", "paid", "cancelled", "disputed")


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)

    # tenants è del billing: la creiamo solo su un DB vuoto (dev)
    if "tenants" not in set(insp.get_table_names()):
        op.create_table(
            "tenants",
            sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("current_plan", sa.String(length=50), nullable=False, server_default="free"),
            sa.Column("plan_amount_override", sa.Numeric(precision=12, scale=2), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        )

    op.create_table(
        "channel_partners",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("type", sa.Enum(*PARTNER_TYPES, name="channel_partner_type"), nullable=False),
        sa.Column("company_name", sa.String(length=255), nullable=True),
        sa.Column("contact_name", sa.String(length=255), nullable=False),
        sa.Column("contact_email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("contact_phone", sa.String(length=50), nullable=True),
        sa.Column("document_number", sa.String(length=20), nullable=True),
        sa.Column("referral_code", sa.String(length=50), nullable=False),
        sa.Column("commission_rate", sa.Numeric(precision=5, scale=2), nullable=False, server_default=sa.text("20.00")),
        sa.Column("status", sa.Enum(*PARTNER_STATUSES, name="channel_partner_status"), nullable=False),
        sa.Column("bank_name", sa.String(length=100), nullable=True),
        sa.Column("bank_account_type", sa.String(length=20), nullable=True),
        sa.Column("bank_account_number", sa.String(length=50), nullable=True),
        sa.Column("bank_agency", sa.String(length=20), nullable=True),
        sa.Column("pix_key", sa.String(length=255), nullable=True),
        sa.Column("pix_key_type", sa.String(length=20), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("approved_by", sa.String(length=36), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_channel_partners_type", "channel_partners", ["type"])
    op.create_index("ix_channel_partners_status", "channel_partners", ["status"])
    op.create_index("ix_channel_partners_referral_code", "channel_partners", ["referral_code"], unique=True)
    op.create_index("ix_channel_partners_deleted_at", "channel_partners", ["deleted_at"])

    op.create_table(
        "channel_partner_referrals",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("channel_partner_id", sa.String(length=36), sa.ForeignKey("channel_partners.id"), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), sa.ForeignKey("tenants.id"), nullable=False, unique=True),
        sa.Column("referral_code", sa.String(length=50), nullable=False),
        sa.Column("utm_source", sa.String(length=100), nullable=True),
        sa.Column("utm_medium", sa.String(length=100), nullable=True),
        sa.Column("utm_campaign", sa.String(length=100), nullable=True),
        sa.Column("status", sa.Enum(*REFERRAL_STATUSES, name="channel_referral_status"), nullable=False),
        sa.Column("commission_rate", sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column("commission_type", sa.Enum(*COMMISSION_TYPES, name="channel_commission_type"), nullable=False),
        sa.Column("first_payment_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_channel_partner_referrals_channel_partner_id", "channel_partner_referrals", ["channel_partner_id"])
    op.create_index("ix_channel_partner_referrals_referral_code", "channel_partner_referrals", ["referral_code"])
    op.create_index("ix_channel_partner_referrals_status", "channel_partner_referrals", ["status"])

    op.create_table(
        "channel_partner_commissions",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("channel_partner_id", sa.String(length=36), sa.ForeignKey("channel_partners.id"), nullable=False),
        sa.Column("referral_id", sa.String(length=36), sa.ForeignKey("channel_partner_referrals.id"), nullable=False),
        sa.Column("tenant_id", sa.String(length=36), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("month_reference", sa.String(length=7), nullable=False),
        sa.Column("tenant_plan", sa.String(length=50), nullable=True),
        sa.Column("plan_amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("commission_rate", sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column("commission_amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("status", sa.Enum(*COMMISSION_STATUSES, name="channel_commission_status"), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paid_amount", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("payment_method", sa.String(length=50), nullable=True),
        sa.Column("payment_reference", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        # 1 commissione per referral per mese: chiave di idempotenza del batch
        sa.UniqueConstraint("referral_id", "month_reference", name="uq_channel_commission_referral_month"),
    )
    op.create_index("ix_channel_partner_commissions_channel_partner_id", "channel_partner_commissions", ["channel_partner_id"])
    op.create_index("ix_channel_partner_commissions_referral_id", "channel_partner_commissions", ["referral_id"])
    op.create_index("ix_channel_partner_commissions_month_reference", "channel_partner_commissions", ["month_reference"])
    op.create_index("ix_channel_partner_commissions_status", "channel_partner_commissions", ["status"])


def downgrade() -> None:
    op.drop_table("channel_partner_commissions")
    op.drop_table("channel_partner_referrals")
    op.drop_table("channel_partners")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum_name in (
            "channel_commission_status",
            "channel_commission_type",
            "channel_referral_status",
            "channel_partner_status",
            "channel_partner_type",
        ):
            op.execute(f"DROP TYPE IF EXISTS {enum_name}")
