"""SQLAlchemy ORM models for settlement tables and the financial engine views"""

import uuid
from sqlalchemy import Column, String, Integer, Boolean, Float, DateTime, Date, Numeric, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

# NUMERIC(14, 2): EGP with piaster precision
MONEY = Numeric(14, 2)


def _uuid() -> str:
    return str(uuid.uuid4())


class GovernorateRecord(Base):
    """Geographic region a regional admin can be assigned to"""

    __tablename__ = "governorates"

    id = Column(String(36), primary_key=True, default=_uuid)
    name_ar = Column(Text, nullable=False, default="")
    name_en = Column(Text, nullable=False, default="")
    commission_override = Column(Float, nullable=True)


class ProviderRecord(Base):
    """Merchant (restaurant, grocery...) receiving orders"""

    __tablename__ = "providers"

    id = Column(String(36), primary_key=True, default=_uuid)
    name_ar = Column(Text, nullable=False, default="")
    name_en = Column(Text, nullable=False, default="")
    governorate_id = Column(String(36), ForeignKey("governorates.id"), nullable=True, index=True)
    city_id = Column(String(36), nullable=True)
    commission_status = Column(Text, nullable=True)
    grace_period_start = Column(Date, nullable=True)
    grace_period_end = Column(Date, nullable=True)
    custom_commission_rate = Column(Float, nullable=True)


class FinancialEngineRow(Base):
    """
    financial_settlement_engine view: one row per provider.

    Computed upstream; this service only reads it.
    """

    __tablename__ = "financial_settlement_engine"

    provider_id = Column(String(36), primary_key=True)
    provider_name_ar = Column(Text, nullable=True)
    provider_name_en = Column(Text, nullable=True)
    governorate_id = Column(String(36), nullable=True, index=True)
    city_id = Column(String(36), nullable=True)
    commission_status = Column(Text, nullable=True)
    grace_period_end = Column(Date, nullable=True)
    commission_rate = Column(Float, nullable=True)
    delivery_responsibility = Column(Text, nullable=True)

    total_orders = Column(Integer, nullable=True)
    cod_orders_count = Column(Integer, nullable=True)
    online_orders_count = Column(Integer, nullable=True)
    eligible_orders_count = Column(Integer, nullable=True)
    held_orders_count = Column(Integer, nullable=True)
    settled_orders_count = Column(Integer, nullable=True)

    gross_revenue = Column(MONEY, nullable=True)
    cod_gross_revenue = Column(MONEY, nullable=True)
    online_gross_revenue = Column(MONEY, nullable=True)
    total_subtotal = Column(MONEY, nullable=True)
    cod_subtotal = Column(MONEY, nullable=True)
    online_subtotal = Column(MONEY, nullable=True)
    total_delivery_fees = Column(MONEY, nullable=True)
    cod_delivery_fees = Column(MONEY, nullable=True)
    online_delivery_fees = Column(MONEY, nullable=True)
    total_discounts = Column(MONEY, nullable=True)
    theoretical_commission = Column(MONEY, nullable=True)
    cod_theoretical_commission = Column(MONEY, nullable=True)
    online_theoretical_commission = Column(MONEY, nullable=True)
    actual_commission = Column(MONEY, nullable=True)
    cod_actual_commission = Column(MONEY, nullable=True)
    online_actual_commission = Column(MONEY, nullable=True)
    total_grace_period_discount = Column(MONEY, nullable=True)
    total_refunds = Column(MONEY, nullable=True)
    total_refund_commission_reduction = Column(MONEY, nullable=True)
    refund_percentage = Column(Float, nullable=True)
    net_commission = Column(MONEY, nullable=True)
    cod_commission_owed = Column(MONEY, nullable=True)
    online_payout_owed = Column(MONEY, nullable=True)
    net_balance = Column(MONEY, nullable=True)
    settlement_direction = Column(Text, nullable=True)

    is_in_grace_period = Column(Boolean, nullable=True)
    grace_period_days_remaining = Column(Integer, nullable=True)


class AdminSummaryRow(Base):
    """admin_financial_summary view: single precomputed platform-wide row"""

    __tablename__ = "admin_financial_summary"

    id = Column(Integer, primary_key=True, default=1)
    total_providers = Column(Integer, nullable=True)
    total_orders = Column(Integer, nullable=True)
    total_revenue = Column(MONEY, nullable=True)
    total_delivery_fees = Column(MONEY, nullable=True)
    total_theoretical_commission = Column(MONEY, nullable=True)
    total_actual_commission = Column(MONEY, nullable=True)
    total_grace_period_discount = Column(MONEY, nullable=True)
    total_refunds = Column(MONEY, nullable=True)
    total_cod_orders = Column(Integer, nullable=True)
    total_cod_revenue = Column(MONEY, nullable=True)
    total_cod_commission_owed = Column(MONEY, nullable=True)
    total_online_orders = Column(Integer, nullable=True)
    total_online_revenue = Column(MONEY, nullable=True)
    total_online_payout_owed = Column(MONEY, nullable=True)
    total_net_balance = Column(MONEY, nullable=True)
    providers_to_pay = Column(Integer, nullable=True)
    providers_to_collect = Column(Integer, nullable=True)
    providers_balanced = Column(Integer, nullable=True)
    total_eligible_orders = Column(Integer, nullable=True)
    total_held_orders = Column(Integer, nullable=True)
    total_settled_orders = Column(Integer, nullable=True)


class RegionalSummaryRow(Base):
    """financial_settlement_by_region view: one row per governorate"""

    __tablename__ = "financial_settlement_by_region"

    governorate_id = Column(String(36), primary_key=True)
    governorate_name_ar = Column(Text, nullable=True)
    governorate_name_en = Column(Text, nullable=True)
    providers_count = Column(Integer, nullable=True)
    total_orders = Column(Integer, nullable=True)
    cod_orders = Column(Integer, nullable=True)
    online_orders = Column(Integer, nullable=True)
    gross_revenue = Column(MONEY, nullable=True)
    total_commission = Column(MONEY, nullable=True)
    net_balance = Column(MONEY, nullable=True)
    providers_to_pay = Column(Integer, nullable=True)
    providers_to_collect = Column(Integer, nullable=True)


class SettlementRecord(Base):
    """Settlement for one provider and period, created by the settlement job"""

    __tablename__ = "settlements"

    id = Column(String(36), primary_key=True, default=_uuid)
    provider_id = Column(String(36), ForeignKey("providers.id"), nullable=False, index=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    total_orders = Column(Integer, nullable=False, default=0)
    gross_revenue = Column(MONEY, nullable=False, default=0)
    platform_commission = Column(MONEY, nullable=False, default=0)
    delivery_fees_collected = Column(MONEY, nullable=False, default=0)
    net_amount_due = Column(MONEY, nullable=False, default=0)

    cod_orders_count = Column(Integer, nullable=False, default=0)
    cod_gross_revenue = Column(MONEY, nullable=False, default=0)
    cod_commission_owed = Column(MONEY, nullable=False, default=0)
    online_orders_count = Column(Integer, nullable=False, default=0)
    online_gross_revenue = Column(MONEY, nullable=False, default=0)
    online_platform_commission = Column(MONEY, nullable=False, default=0)
    online_payout_owed = Column(MONEY, nullable=False, default=0)
    net_balance = Column(MONEY, nullable=False, default=0)
    settlement_direction = Column(Text, nullable=False, default="balanced")

    status = Column(Text, nullable=False, default="pending", index=True)
    amount_paid = Column(MONEY, nullable=False, default=0)
    payment_date = Column(DateTime(timezone=True), nullable=True)
    payment_method = Column(Text, nullable=True)
    payment_reference = Column(Text, nullable=True)

    due_date = Column(Date, nullable=True)
    is_overdue = Column(Boolean, nullable=False, default=False)
    overdue_days = Column(Integer, nullable=False, default=0)

    notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_by = Column(Text, nullable=True)
    processed_by = Column(Text, nullable=True)

    provider = relationship("ProviderRecord", lazy="joined")


class SettlementAuditLogRecord(Base):
    """Append-only trail of settlement mutations"""

    __tablename__ = "settlement_audit_log"

    id = Column(String(36), primary_key=True, default=_uuid)
    settlement_id = Column(String(36), ForeignKey("settlements.id", ondelete="CASCADE"), nullable=True, index=True)
    order_id = Column(String(36), nullable=True)
    action = Column(Text, nullable=False)

    admin_id = Column(Text, nullable=True)
    admin_name = Column(Text, nullable=True)
    admin_role = Column(Text, nullable=True)

    performed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    ip_address = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)

    old_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)

    payment_reference = Column(Text, nullable=True)
    payment_method = Column(Text, nullable=True)
    amount = Column(MONEY, nullable=True)

    reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
