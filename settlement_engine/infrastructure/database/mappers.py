"""Row-to-domain mapping for the engine views and settlement tables

Nullable numeric columns become zero Money / 0 here, so nothing past this
module ever sees a None amount.
"""

from typing import Optional

from settlement_engine.domain.models import (
    AdminFinancialSummary,
    CodTotals,
    CommissionStatus,
    LocalizedName,
    OnlineTotals,
    ProviderFinancialFact,
    RegionalFinancialSummary,
    Settlement,
    SettlementAuditLogEntry,
    SettlementCodBreakdown,
    SettlementDirection,
    SettlementOnlineBreakdown,
    SettlementStatus,
)
from settlement_engine.domain.money import Money
from settlement_engine.infrastructure.database.models import (
    AdminSummaryRow,
    FinancialEngineRow,
    RegionalSummaryRow,
    SettlementAuditLogRecord,
    SettlementRecord,
)

_m = Money.from_database


def _int(value: Optional[int]) -> int:
    return int(value or 0)


def _float(value: Optional[float]) -> float:
    return float(value or 0.0)


def map_engine_row(row: FinancialEngineRow) -> ProviderFinancialFact:
    return ProviderFinancialFact(
        provider_id=row.provider_id,
        provider_name=LocalizedName(ar=row.provider_name_ar or "", en=row.provider_name_en or ""),
        governorate_id=row.governorate_id,
        city_id=row.city_id,
        commission_status=row.commission_status or CommissionStatus.ACTIVE.value,
        grace_period_end=row.grace_period_end,
        commission_rate=_float(row.commission_rate),
        delivery_responsibility=row.delivery_responsibility,
        total_orders=_int(row.total_orders),
        cod_orders_count=_int(row.cod_orders_count),
        online_orders_count=_int(row.online_orders_count),
        eligible_orders_count=_int(row.eligible_orders_count),
        held_orders_count=_int(row.held_orders_count),
        settled_orders_count=_int(row.settled_orders_count),
        gross_revenue=_m(row.gross_revenue),
        cod_gross_revenue=_m(row.cod_gross_revenue),
        online_gross_revenue=_m(row.online_gross_revenue),
        total_subtotal=_m(row.total_subtotal),
        cod_subtotal=_m(row.cod_subtotal),
        online_subtotal=_m(row.online_subtotal),
        total_delivery_fees=_m(row.total_delivery_fees),
        cod_delivery_fees=_m(row.cod_delivery_fees),
        online_delivery_fees=_m(row.online_delivery_fees),
        total_discounts=_m(row.total_discounts),
        theoretical_commission=_m(row.theoretical_commission),
        cod_theoretical_commission=_m(row.cod_theoretical_commission),
        online_theoretical_commission=_m(row.online_theoretical_commission),
        actual_commission=_m(row.actual_commission),
        cod_actual_commission=_m(row.cod_actual_commission),
        online_actual_commission=_m(row.online_actual_commission),
        total_grace_period_discount=_m(row.total_grace_period_discount),
        total_refunds=_m(row.total_refunds),
        total_refund_commission_reduction=_m(row.total_refund_commission_reduction),
        refund_percentage=_float(row.refund_percentage),
        net_commission=_m(row.net_commission),
        cod_commission_owed=_m(row.cod_commission_owed),
        online_payout_owed=_m(row.online_payout_owed),
        net_balance=_m(row.net_balance),
        settlement_direction=row.settlement_direction or SettlementDirection.BALANCED.value,
        is_in_grace_period=bool(row.is_in_grace_period),
        grace_period_days_remaining=_int(row.grace_period_days_remaining),
    )


def map_admin_summary(row: AdminSummaryRow) -> AdminFinancialSummary:
    return AdminFinancialSummary(
        total_providers=_int(row.total_providers),
        total_orders=_int(row.total_orders),
        total_revenue=_m(row.total_revenue),
        total_delivery_fees=_m(row.total_delivery_fees),
        total_theoretical_commission=_m(row.total_theoretical_commission),
        total_actual_commission=_m(row.total_actual_commission),
        total_grace_period_discount=_m(row.total_grace_period_discount),
        total_refunds=_m(row.total_refunds),
        cod=CodTotals(
            orders=_int(row.total_cod_orders),
            revenue=_m(row.total_cod_revenue),
            commission_owed=_m(row.total_cod_commission_owed),
        ),
        online=OnlineTotals(
            orders=_int(row.total_online_orders),
            revenue=_m(row.total_online_revenue),
            payout_owed=_m(row.total_online_payout_owed),
        ),
        total_net_balance=_m(row.total_net_balance),
        providers_to_pay=_int(row.providers_to_pay),
        providers_to_collect=_int(row.providers_to_collect),
        providers_balanced=_int(row.providers_balanced),
        eligible_orders=_int(row.total_eligible_orders),
        held_orders=_int(row.total_held_orders),
        settled_orders=_int(row.total_settled_orders),
    )


def map_regional_summary(row: RegionalSummaryRow) -> RegionalFinancialSummary:
    return RegionalFinancialSummary(
        governorate_id=row.governorate_id,
        governorate_name=LocalizedName(ar=row.governorate_name_ar or "", en=row.governorate_name_en or ""),
        providers_count=_int(row.providers_count),
        total_orders=_int(row.total_orders),
        cod_orders=_int(row.cod_orders),
        online_orders=_int(row.online_orders),
        gross_revenue=_m(row.gross_revenue),
        total_commission=_m(row.total_commission),
        net_balance=_m(row.net_balance),
        providers_to_pay=_int(row.providers_to_pay),
        providers_to_collect=_int(row.providers_to_collect),
    )


def map_settlement(row: SettlementRecord) -> Settlement:
    provider_name = None
    if row.provider is not None:
        provider_name = LocalizedName(ar=row.provider.name_ar or "", en=row.provider.name_en or "")

    return Settlement(
        id=row.id,
        provider_id=row.provider_id,
        period_start=row.period_start,
        period_end=row.period_end,
        provider_name=provider_name,
        total_orders=_int(row.total_orders),
        gross_revenue=_m(row.gross_revenue),
        platform_commission=_m(row.platform_commission),
        delivery_fees_collected=_m(row.delivery_fees_collected),
        net_amount_due=_m(row.net_amount_due),
        cod=SettlementCodBreakdown(
            orders_count=_int(row.cod_orders_count),
            gross_revenue=_m(row.cod_gross_revenue),
            commission_owed=_m(row.cod_commission_owed),
        ),
        online=SettlementOnlineBreakdown(
            orders_count=_int(row.online_orders_count),
            gross_revenue=_m(row.online_gross_revenue),
            platform_commission=_m(row.online_platform_commission),
            payout_owed=_m(row.online_payout_owed),
        ),
        net_balance=_m(row.net_balance),
        settlement_direction=row.settlement_direction or SettlementDirection.BALANCED.value,
        status=row.status or SettlementStatus.PENDING.value,
        amount_paid=_m(row.amount_paid),
        payment_date=row.payment_date,
        payment_method=row.payment_method,
        payment_reference=row.payment_reference,
        due_date=row.due_date,
        is_overdue=bool(row.is_overdue),
        overdue_days=_int(row.overdue_days),
        notes=row.notes,
        admin_notes=row.admin_notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
        created_by=row.created_by,
        processed_by=row.processed_by,
    )


def map_audit_log(row: SettlementAuditLogRecord) -> SettlementAuditLogEntry:
    return SettlementAuditLogEntry(
        id=row.id,
        action=row.action,
        performed_at=row.performed_at,
        settlement_id=row.settlement_id,
        order_id=row.order_id,
        admin_id=row.admin_id,
        admin_name=row.admin_name,
        admin_role=row.admin_role,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        old_value=row.old_value,
        new_value=row.new_value,
        payment_reference=row.payment_reference,
        payment_method=row.payment_method,
        amount=_m(row.amount) if row.amount is not None else None,
        reason=row.reason,
        notes=row.notes,
        created_at=row.created_at,
    )
