"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from settlement_engine.domain.money import Money


def _money() -> Any:
    return field(default_factory=Money.zero)


class SettlementStatus(str, Enum):
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"
    DISPUTED = "disputed"
    WAIVED = "waived"


class SettlementDirection(str, Enum):
    PLATFORM_PAYS_PROVIDER = "platform_pays_provider"
    PROVIDER_PAYS_PLATFORM = "provider_pays_platform"
    BALANCED = "balanced"


class OrderSettlementStatus(str, Enum):
    ELIGIBLE = "eligible"  # ready for the next settlement
    ON_HOLD = "on_hold"  # dispute or pending refund
    SETTLED = "settled"
    EXCLUDED = "excluded"  # cancelled or rejected


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    WALLET = "wallet"
    BANK_TRANSFER = "bank_transfer"


class CommissionStatus(str, Enum):
    IN_GRACE_PERIOD = "in_grace_period"
    ACTIVE = "active"
    EXEMPT = "exempt"


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE_STATUS = "update_status"
    RECORD_PAYMENT = "record_payment"
    RECORD_PARTIAL_PAYMENT = "record_partial_payment"
    VOID_PAYMENT = "void_payment"
    DISPUTE_OPENED = "dispute_opened"
    DISPUTE_RESOLVED = "dispute_resolved"
    ADD_ORDER = "add_order"
    REMOVE_ORDER = "remove_order"
    HOLD_ORDER = "hold_order"
    RELEASE_ORDER = "release_order"
    ADJUST_COMMISSION = "adjust_commission"
    WAIVE = "waive"
    DELETE = "delete"


@dataclass
class LocalizedName:
    """Arabic/English display name pair"""

    ar: str = ""
    en: str = ""

    def get(self, locale: str) -> str:
        return self.ar if locale == "ar" else self.en


# Commission inputs


@dataclass
class ProviderCommissionProfile:
    """Provider fields that decide its commission rate"""

    id: str
    grace_period_start: Optional[date] = None
    grace_period_end: Optional[date] = None
    commission_status: Optional[CommissionStatus] = None
    custom_commission_rate: Optional[float] = None


@dataclass
class GovernorateCommission:
    """Governorate-level commission override"""

    id: str
    commission_override: Optional[float] = None


@dataclass
class CommissionInfo:
    status: CommissionStatus
    rate: float
    grace_period_end_date: Optional[date]
    days_remaining: Optional[int]
    is_in_grace_period: bool


@dataclass
class OrderCommission:
    """Commission on one order, before and after the grace period waiver"""

    theoretical: Money
    actual: Money
    grace_period_discount: Money


# Financial facts (engine input)


@dataclass
class OrderFinancialFact:
    """One order as seen by the settlement engine"""

    order_id: str
    provider_id: str
    payment_method: str  # PaymentMethod value; "cash" is COD
    total: Money
    subtotal: Money
    commission_rate: float
    delivery_fee: Money = _money()
    discount: Money = _money()
    refund_amount: Money = _money()
    in_grace_period: bool = False
    settlement_status: str = OrderSettlementStatus.ELIGIBLE
    theoretical_commission: Optional[Money] = None  # recomputed from rate when absent
    actual_commission: Optional[Money] = None
    governorate_id: Optional[str] = None
    city_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_cod(self) -> bool:
        return self.payment_method == PaymentMethod.CASH


@dataclass
class ProviderFinancialFact:
    """One provider row of the financial_settlement_engine view"""

    provider_id: str
    provider_name: LocalizedName = field(default_factory=LocalizedName)
    governorate_id: Optional[str] = None
    city_id: Optional[str] = None
    commission_status: str = CommissionStatus.ACTIVE
    grace_period_end: Optional[date] = None
    commission_rate: float = 0.0
    delivery_responsibility: Optional[str] = None

    # Order counts
    total_orders: int = 0
    cod_orders_count: int = 0
    online_orders_count: int = 0
    eligible_orders_count: int = 0
    held_orders_count: int = 0
    settled_orders_count: int = 0

    # Revenue (orders total, delivery included)
    gross_revenue: Money = _money()
    cod_gross_revenue: Money = _money()
    online_gross_revenue: Money = _money()

    # Subtotals (delivery excluded)
    total_subtotal: Money = _money()
    cod_subtotal: Money = _money()
    online_subtotal: Money = _money()

    total_delivery_fees: Money = _money()
    cod_delivery_fees: Money = _money()
    online_delivery_fees: Money = _money()

    total_discounts: Money = _money()

    # Commission ignoring the grace period
    theoretical_commission: Money = _money()
    cod_theoretical_commission: Money = _money()
    online_theoretical_commission: Money = _money()

    # Commission actually charged
    actual_commission: Money = _money()
    cod_actual_commission: Money = _money()
    online_actual_commission: Money = _money()

    total_grace_period_discount: Money = _money()

    total_refunds: Money = _money()
    total_refund_commission_reduction: Money = _money()
    refund_percentage: float = 0.0  # ratio, 0..1

    net_commission: Money = _money()
    cod_commission_owed: Money = _money()  # provider owes platform
    online_payout_owed: Money = _money()  # platform owes provider
    net_balance: Money = _money()  # positive: platform pays provider
    settlement_direction: str = SettlementDirection.BALANCED

    is_in_grace_period: bool = False
    grace_period_days_remaining: int = 0


# Summaries


@dataclass
class OrderCounts:
    total: int = 0
    cod: int = 0
    online: int = 0
    eligible: int = 0
    on_hold: int = 0
    settled: int = 0


@dataclass
class RevenueBreakdown:
    gross: Money = _money()
    cod: Money = _money()
    online: Money = _money()


@dataclass
class CommissionBreakdown:
    theoretical: Money = _money()
    actual: Money = _money()
    grace_period_discount: Money = _money()
    rate: float = 0.0


@dataclass
class DeliveryFeeBreakdown:
    total: Money = _money()
    cod: Money = _money()
    online: Money = _money()


@dataclass
class RefundBreakdown:
    total: Money = _money()
    commission_reduction: Money = _money()
    percentage: float = 0.0


@dataclass
class SettlementFigures:
    cod_commission_owed: Money = _money()
    online_payout_owed: Money = _money()
    net_balance: Money = _money()
    direction: str = SettlementDirection.BALANCED


@dataclass
class GracePeriodState:
    is_active: bool = False
    days_remaining: int = 0
    end_date: Optional[date] = None


@dataclass
class ProviderFinancialSummary:
    """Provider dashboard view of one provider's settlement position"""

    provider_id: str
    provider_name: LocalizedName
    orders: OrderCounts
    revenue: RevenueBreakdown
    commission: CommissionBreakdown
    delivery_fees: DeliveryFeeBreakdown
    refunds: RefundBreakdown
    settlement: SettlementFigures
    grace_period: GracePeriodState


@dataclass
class CodTotals:
    orders: int = 0
    revenue: Money = _money()
    commission_owed: Money = _money()


@dataclass
class OnlineTotals:
    orders: int = 0
    revenue: Money = _money()
    payout_owed: Money = _money()


@dataclass
class AdminFinancialSummary:
    """Platform-wide (or region-scoped) totals"""

    total_providers: int = 0
    total_orders: int = 0
    total_revenue: Money = _money()
    total_delivery_fees: Money = _money()
    total_theoretical_commission: Money = _money()
    total_actual_commission: Money = _money()
    total_grace_period_discount: Money = _money()
    total_refunds: Money = _money()
    cod: CodTotals = field(default_factory=CodTotals)
    online: OnlineTotals = field(default_factory=OnlineTotals)
    total_net_balance: Money = _money()
    providers_to_pay: int = 0
    providers_to_collect: int = 0
    providers_balanced: int = 0
    eligible_orders: int = 0
    held_orders: int = 0
    settled_orders: int = 0


@dataclass
class RegionalFinancialSummary:
    """Totals for one governorate"""

    governorate_id: str
    governorate_name: LocalizedName = field(default_factory=LocalizedName)
    providers_count: int = 0
    total_orders: int = 0
    cod_orders: int = 0
    online_orders: int = 0
    gross_revenue: Money = _money()
    total_commission: Money = _money()
    net_balance: Money = _money()
    providers_to_pay: int = 0
    providers_to_collect: int = 0


# Settlements


@dataclass
class SettlementCodBreakdown:
    orders_count: int = 0
    gross_revenue: Money = _money()
    commission_owed: Money = _money()


@dataclass
class SettlementOnlineBreakdown:
    orders_count: int = 0
    gross_revenue: Money = _money()
    platform_commission: Money = _money()
    payout_owed: Money = _money()


@dataclass
class Settlement:
    """Persisted settlement for one provider and period - a historical snapshot"""

    id: str
    provider_id: str
    period_start: date
    period_end: date
    provider_name: Optional[LocalizedName] = None
    total_orders: int = 0
    gross_revenue: Money = _money()
    platform_commission: Money = _money()
    delivery_fees_collected: Money = _money()
    net_amount_due: Money = _money()
    cod: SettlementCodBreakdown = field(default_factory=SettlementCodBreakdown)
    online: SettlementOnlineBreakdown = field(default_factory=SettlementOnlineBreakdown)
    net_balance: Money = _money()
    settlement_direction: str = SettlementDirection.BALANCED
    status: str = SettlementStatus.PENDING
    amount_paid: Money = _money()
    payment_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    due_date: Optional[date] = None
    is_overdue: bool = False
    overdue_days: int = 0
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    processed_by: Optional[str] = None


@dataclass
class SettlementPayment:
    """Payment to apply against a settlement"""

    settlement_id: str
    amount: Money
    payment_method: str
    payment_reference: Optional[str] = None
    processed_by: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class SettlementAuditLogEntry:
    """Append-only audit row for settlement mutations"""

    id: str
    action: str
    performed_at: datetime
    settlement_id: Optional[str] = None
    order_id: Optional[str] = None
    admin_id: Optional[str] = None
    admin_name: Optional[str] = None
    admin_role: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    old_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    payment_reference: Optional[str] = None
    payment_method: Optional[str] = None
    amount: Optional[Money] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


# Filters


@dataclass
class DateRange:
    start: date
    end: date


@dataclass
class FinancialFilters:
    date_range: Optional[DateRange] = None
    governorate_id: Optional[str] = None
    city_id: Optional[str] = None
    provider_id: Optional[str] = None
    statuses: List[str] = field(default_factory=list)
    directions: List[str] = field(default_factory=list)
    payment_methods: List[str] = field(default_factory=list)


# Export


@dataclass
class ExportOrder:
    """Order line printed in a settlement report"""

    id: str
    order_number: str
    total: Money
    commission: Money
    payment_method: str
    created_at: datetime


@dataclass
class ExportOptions:
    locale: str = "ar"
    include_orders: bool = True
    include_audit_log: bool = False
    date_format: str = "short"  # "short" | "long"
    generated_at: Optional[datetime] = None  # footer timestamp; omitted when None


@dataclass
class SettlementExportData:
    settlement: Settlement
    provider_name: Optional[LocalizedName] = None
    orders: List[ExportOrder] = field(default_factory=list)
    audit_log: List[SettlementAuditLogEntry] = field(default_factory=list)
