"""Pydantic schemas for API request/response validation

Money is serialized as a JSON number in EGP (two decimals) for display; the
exact piaster values stay inside the domain layer.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from settlement_engine.domain.models import (
    AdminFinancialSummary,
    LocalizedName,
    PaymentMethod,
    ProviderFinancialSummary,
    RegionalFinancialSummary,
    Settlement,
    SettlementAuditLogEntry,
)


class LocalizedNameSchema(BaseModel):
    ar: str = ""
    en: str = ""


class OrderCountsSchema(BaseModel):
    total: int
    cod: int
    online: int
    eligible: int
    on_hold: int
    settled: int


class RevenueSchema(BaseModel):
    gross: float
    cod: float
    online: float


class CommissionSchema(BaseModel):
    theoretical: float
    actual: float
    grace_period_discount: float
    rate: float


class DeliveryFeesSchema(BaseModel):
    total: float
    cod: float
    online: float


class RefundsSchema(BaseModel):
    total: float
    commission_reduction: float
    percentage: float = Field(..., description="Refunded share of gross revenue, 0-100")


class SettlementFiguresSchema(BaseModel):
    cod_commission_owed: float
    online_payout_owed: float
    net_balance: float
    direction: str


class GracePeriodSchema(BaseModel):
    is_active: bool
    days_remaining: int
    end_date: Optional[date] = None


class ProviderSummaryResponse(BaseModel):
    """Response for GET /v1/finance/providers/{provider_id}/summary"""

    provider_id: str
    provider_name: LocalizedNameSchema
    orders: OrderCountsSchema
    revenue: RevenueSchema
    commission: CommissionSchema
    delivery_fees: DeliveryFeesSchema
    refunds: RefundsSchema
    settlement: SettlementFiguresSchema
    grace_period: GracePeriodSchema


class CodTotalsSchema(BaseModel):
    orders: int
    revenue: float
    commission_owed: float


class OnlineTotalsSchema(BaseModel):
    orders: int
    revenue: float
    payout_owed: float


class AdminSummaryResponse(BaseModel):
    """Response for GET /v1/finance/admin-summary"""

    total_providers: int
    total_orders: int
    total_revenue: float
    total_delivery_fees: float
    total_theoretical_commission: float
    total_actual_commission: float
    total_grace_period_discount: float
    total_refunds: float
    cod: CodTotalsSchema
    online: OnlineTotalsSchema
    total_net_balance: float
    providers_to_pay: int
    providers_to_collect: int
    providers_balanced: int
    eligible_orders: int
    held_orders: int
    settled_orders: int


class RegionalSummaryItem(BaseModel):
    governorate_id: str
    governorate_name: LocalizedNameSchema
    providers_count: int
    total_orders: int
    cod_orders: int
    online_orders: int
    gross_revenue: float
    total_commission: float
    net_balance: float
    providers_to_pay: int
    providers_to_collect: int


class RegionalSummaryResponse(BaseModel):
    """Response for GET /v1/finance/regional-summary"""

    regions: List[RegionalSummaryItem]


class SettlementCodSchema(BaseModel):
    orders_count: int
    gross_revenue: float
    commission_owed: float


class SettlementOnlineSchema(BaseModel):
    orders_count: int
    gross_revenue: float
    platform_commission: float
    payout_owed: float


class SettlementResponse(BaseModel):
    """Single settlement record"""

    id: str
    provider_id: str
    provider_name: Optional[LocalizedNameSchema] = None
    period_start: date
    period_end: date
    total_orders: int
    gross_revenue: float
    platform_commission: float
    delivery_fees_collected: float
    net_amount_due: float
    cod: SettlementCodSchema
    online: SettlementOnlineSchema
    net_balance: float
    settlement_direction: str
    status: str
    amount_paid: float
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    due_date: Optional[date] = None
    is_overdue: bool
    overdue_days: int
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SettlementListResponse(BaseModel):
    """Response for GET /v1/settlements"""

    settlements: List[SettlementResponse]
    count: int


class AuditLogEntrySchema(BaseModel):
    id: str
    action: str
    performed_at: datetime
    admin_id: Optional[str] = None
    admin_name: Optional[str] = None
    old_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    payment_reference: Optional[str] = None
    payment_method: Optional[str] = None
    amount: Optional[float] = None
    notes: Optional[str] = None


class AuditLogResponse(BaseModel):
    """Response for GET /v1/settlements/{settlement_id}/audit-log"""

    settlement_id: str
    entries: List[AuditLogEntrySchema]


class PaymentRequest(BaseModel):
    """Request body for POST /v1/settlements/{settlement_id}/payments"""

    amount: Decimal = Field(..., gt=0, decimal_places=2, description="Amount in EGP")
    payment_method: PaymentMethod
    payment_reference: Optional[str] = Field(None, max_length=200)
    processed_by: Optional[str] = Field(None, description="Admin recording the payment")
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    """Response for POST /v1/settlements/{settlement_id}/payments"""

    recorded: bool
    settlement: Optional[SettlementResponse] = None


# Domain → response mapping


def _name(name: Optional[LocalizedName]) -> Optional[LocalizedNameSchema]:
    if name is None:
        return None
    return LocalizedNameSchema(ar=name.ar, en=name.en)


def _value(enum_or_str: Any) -> str:
    return getattr(enum_or_str, "value", enum_or_str)


def provider_summary_response(summary: ProviderFinancialSummary) -> ProviderSummaryResponse:
    return ProviderSummaryResponse(
        provider_id=summary.provider_id,
        provider_name=_name(summary.provider_name),
        orders=OrderCountsSchema(**vars(summary.orders)),
        revenue=RevenueSchema(
            gross=summary.revenue.gross.to_number(),
            cod=summary.revenue.cod.to_number(),
            online=summary.revenue.online.to_number(),
        ),
        commission=CommissionSchema(
            theoretical=summary.commission.theoretical.to_number(),
            actual=summary.commission.actual.to_number(),
            grace_period_discount=summary.commission.grace_period_discount.to_number(),
            rate=summary.commission.rate,
        ),
        delivery_fees=DeliveryFeesSchema(
            total=summary.delivery_fees.total.to_number(),
            cod=summary.delivery_fees.cod.to_number(),
            online=summary.delivery_fees.online.to_number(),
        ),
        refunds=RefundsSchema(
            total=summary.refunds.total.to_number(),
            commission_reduction=summary.refunds.commission_reduction.to_number(),
            percentage=summary.refunds.percentage,
        ),
        settlement=SettlementFiguresSchema(
            cod_commission_owed=summary.settlement.cod_commission_owed.to_number(),
            online_payout_owed=summary.settlement.online_payout_owed.to_number(),
            net_balance=summary.settlement.net_balance.to_number(),
            direction=_value(summary.settlement.direction),
        ),
        grace_period=GracePeriodSchema(**vars(summary.grace_period)),
    )


def admin_summary_response(summary: AdminFinancialSummary) -> AdminSummaryResponse:
    return AdminSummaryResponse(
        total_providers=summary.total_providers,
        total_orders=summary.total_orders,
        total_revenue=summary.total_revenue.to_number(),
        total_delivery_fees=summary.total_delivery_fees.to_number(),
        total_theoretical_commission=summary.total_theoretical_commission.to_number(),
        total_actual_commission=summary.total_actual_commission.to_number(),
        total_grace_period_discount=summary.total_grace_period_discount.to_number(),
        total_refunds=summary.total_refunds.to_number(),
        cod=CodTotalsSchema(
            orders=summary.cod.orders,
            revenue=summary.cod.revenue.to_number(),
            commission_owed=summary.cod.commission_owed.to_number(),
        ),
        online=OnlineTotalsSchema(
            orders=summary.online.orders,
            revenue=summary.online.revenue.to_number(),
            payout_owed=summary.online.payout_owed.to_number(),
        ),
        total_net_balance=summary.total_net_balance.to_number(),
        providers_to_pay=summary.providers_to_pay,
        providers_to_collect=summary.providers_to_collect,
        providers_balanced=summary.providers_balanced,
        eligible_orders=summary.eligible_orders,
        held_orders=summary.held_orders,
        settled_orders=summary.settled_orders,
    )


def regional_summary_item(region: RegionalFinancialSummary) -> RegionalSummaryItem:
    return RegionalSummaryItem(
        governorate_id=region.governorate_id,
        governorate_name=_name(region.governorate_name),
        providers_count=region.providers_count,
        total_orders=region.total_orders,
        cod_orders=region.cod_orders,
        online_orders=region.online_orders,
        gross_revenue=region.gross_revenue.to_number(),
        total_commission=region.total_commission.to_number(),
        net_balance=region.net_balance.to_number(),
        providers_to_pay=region.providers_to_pay,
        providers_to_collect=region.providers_to_collect,
    )


def settlement_response(settlement: Settlement) -> SettlementResponse:
    return SettlementResponse(
        id=settlement.id,
        provider_id=settlement.provider_id,
        provider_name=_name(settlement.provider_name),
        period_start=settlement.period_start,
        period_end=settlement.period_end,
        total_orders=settlement.total_orders,
        gross_revenue=settlement.gross_revenue.to_number(),
        platform_commission=settlement.platform_commission.to_number(),
        delivery_fees_collected=settlement.delivery_fees_collected.to_number(),
        net_amount_due=settlement.net_amount_due.to_number(),
        cod=SettlementCodSchema(
            orders_count=settlement.cod.orders_count,
            gross_revenue=settlement.cod.gross_revenue.to_number(),
            commission_owed=settlement.cod.commission_owed.to_number(),
        ),
        online=SettlementOnlineSchema(
            orders_count=settlement.online.orders_count,
            gross_revenue=settlement.online.gross_revenue.to_number(),
            platform_commission=settlement.online.platform_commission.to_number(),
            payout_owed=settlement.online.payout_owed.to_number(),
        ),
        net_balance=settlement.net_balance.to_number(),
        settlement_direction=_value(settlement.settlement_direction),
        status=_value(settlement.status),
        amount_paid=settlement.amount_paid.to_number(),
        payment_date=settlement.payment_date,
        payment_method=settlement.payment_method,
        payment_reference=settlement.payment_reference,
        due_date=settlement.due_date,
        is_overdue=settlement.is_overdue,
        overdue_days=settlement.overdue_days,
        notes=settlement.notes,
        created_at=settlement.created_at,
        updated_at=settlement.updated_at,
    )


def audit_log_entry_schema(entry: SettlementAuditLogEntry) -> AuditLogEntrySchema:
    return AuditLogEntrySchema(
        id=entry.id,
        action=_value(entry.action),
        performed_at=entry.performed_at,
        admin_id=entry.admin_id,
        admin_name=entry.admin_name,
        old_value=entry.old_value,
        new_value=entry.new_value,
        payment_reference=entry.payment_reference,
        payment_method=entry.payment_method,
        amount=entry.amount.to_number() if entry.amount is not None else None,
        notes=entry.notes,
    )
