"""Aggregation of provider financial facts into dashboard summaries"""

from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from settlement_engine.domain.commission import (
    calculate_commission,
    calculate_net_balance,
    calculate_refund_commission_reduction,
    get_settlement_direction,
)
from settlement_engine.domain.models import (
    AdminFinancialSummary,
    CodTotals,
    CommissionBreakdown,
    CommissionStatus,
    DeliveryFeeBreakdown,
    GracePeriodState,
    LocalizedName,
    OnlineTotals,
    OrderCounts,
    OrderFinancialFact,
    OrderSettlementStatus,
    ProviderFinancialFact,
    ProviderFinancialSummary,
    RefundBreakdown,
    RegionalFinancialSummary,
    RevenueBreakdown,
    SettlementDirection,
    SettlementFigures,
)
from settlement_engine.domain.money import Money, sum_money


def _ratio(numerator: Money, denominator: Money) -> float:
    if denominator.is_zero():
        return 0.0
    return numerator.to_number() / denominator.to_number()


def compute_provider_fact(
    provider_id: str,
    orders: Sequence[OrderFinancialFact],
    provider_name: Optional[LocalizedName] = None,
    governorate_id: Optional[str] = None,
    city_id: Optional[str] = None,
    commission_status: Optional[str] = None,
    grace_period_end: Optional[date] = None,
    grace_period_days_remaining: int = 0,
) -> ProviderFinancialFact:
    """
    Project a provider's orders into one settlement-engine row.

    Per order:
    - theoretical commission on the discounted subtotal
    - actual commission is zero while the provider is in its grace period
    - refunds claw back commission in proportion to the refunded base
    - COD: provider holds the cash and owes actual - clawback
    - Online: platform holds the cash and owes total - refund - (actual - clawback)

    Excluded orders (cancelled/rejected) do not count.
    """
    counted = [o for o in orders if o.settlement_status != OrderSettlementStatus.EXCLUDED]
    cod = [o for o in counted if o.is_cod]
    online = [o for o in counted if not o.is_cod]

    theoretical: Dict[str, Money] = {}
    actual: Dict[str, Money] = {}
    reduction: Dict[str, Money] = {}

    for order in counted:
        order_base = order.subtotal.subtract(order.discount).non_negative()
        theory = order.theoretical_commission
        if theory is None:
            theory = calculate_commission(order.subtotal, order.discount, order.commission_rate)
        charged = order.actual_commission
        if charged is None:
            charged = Money.zero() if order.in_grace_period else theory

        theoretical[order.order_id] = theory
        actual[order.order_id] = charged
        reduction[order.order_id] = calculate_refund_commission_reduction(
            order.refund_amount, order_base, charged
        )

    def total(group: Iterable[OrderFinancialFact], values: Dict[str, Money]) -> Money:
        return sum_money(values[o.order_id] for o in group)

    cod_commission_owed = sum_money(
        actual[o.order_id].subtract(reduction[o.order_id]) for o in cod
    )
    online_payout_owed = sum_money(
        o.total.subtract(o.refund_amount).subtract(actual[o.order_id].subtract(reduction[o.order_id]))
        for o in online
    )
    net_balance = calculate_net_balance(online_payout_owed, cod_commission_owed)

    gross_revenue = sum_money(o.total for o in counted)
    total_refunds = sum_money(o.refund_amount for o in counted)
    total_actual = total(counted, actual)
    total_theoretical = total(counted, theoretical)
    total_reduction = total(counted, reduction)

    in_grace = bool(counted) and all(o.in_grace_period for o in counted)
    if commission_status is None:
        commission_status = CommissionStatus.IN_GRACE_PERIOD if in_grace else CommissionStatus.ACTIVE

    return ProviderFinancialFact(
        provider_id=provider_id,
        provider_name=provider_name or LocalizedName(),
        governorate_id=governorate_id,
        city_id=city_id,
        commission_status=commission_status,
        grace_period_end=grace_period_end,
        commission_rate=counted[0].commission_rate if counted else 0.0,
        total_orders=len(counted),
        cod_orders_count=len(cod),
        online_orders_count=len(online),
        eligible_orders_count=sum(1 for o in counted if o.settlement_status == OrderSettlementStatus.ELIGIBLE),
        held_orders_count=sum(1 for o in counted if o.settlement_status == OrderSettlementStatus.ON_HOLD),
        settled_orders_count=sum(1 for o in counted if o.settlement_status == OrderSettlementStatus.SETTLED),
        gross_revenue=gross_revenue,
        cod_gross_revenue=sum_money(o.total for o in cod),
        online_gross_revenue=sum_money(o.total for o in online),
        total_subtotal=sum_money(o.subtotal for o in counted),
        cod_subtotal=sum_money(o.subtotal for o in cod),
        online_subtotal=sum_money(o.subtotal for o in online),
        total_delivery_fees=sum_money(o.delivery_fee for o in counted),
        cod_delivery_fees=sum_money(o.delivery_fee for o in cod),
        online_delivery_fees=sum_money(o.delivery_fee for o in online),
        total_discounts=sum_money(o.discount for o in counted),
        theoretical_commission=total_theoretical,
        cod_theoretical_commission=total(cod, theoretical),
        online_theoretical_commission=total(online, theoretical),
        actual_commission=total_actual,
        cod_actual_commission=total(cod, actual),
        online_actual_commission=total(online, actual),
        total_grace_period_discount=total_theoretical.subtract(total_actual),
        total_refunds=total_refunds,
        total_refund_commission_reduction=total_reduction,
        refund_percentage=_ratio(total_refunds, gross_revenue),
        net_commission=total_actual.subtract(total_reduction),
        cod_commission_owed=cod_commission_owed,
        online_payout_owed=online_payout_owed,
        net_balance=net_balance,
        settlement_direction=get_settlement_direction(net_balance),
        is_in_grace_period=in_grace,
        grace_period_days_remaining=grace_period_days_remaining,
    )


_SUMMED_MONEY_FIELDS = (
    "gross_revenue", "cod_gross_revenue", "online_gross_revenue",
    "total_subtotal", "cod_subtotal", "online_subtotal",
    "total_delivery_fees", "cod_delivery_fees", "online_delivery_fees",
    "total_discounts",
    "theoretical_commission", "cod_theoretical_commission", "online_theoretical_commission",
    "actual_commission", "cod_actual_commission", "online_actual_commission",
    "total_grace_period_discount",
    "total_refunds", "total_refund_commission_reduction",
    "net_commission", "cod_commission_owed", "online_payout_owed",
)

_SUMMED_COUNT_FIELDS = (
    "total_orders", "cod_orders_count", "online_orders_count",
    "eligible_orders_count", "held_orders_count", "settled_orders_count",
)


def merge_provider_facts(facts: Sequence[ProviderFinancialFact]) -> ProviderFinancialFact:
    """Combine several rows for one provider (e.g. split by city) into one"""
    if len(facts) == 1:
        return facts[0]

    first = facts[0]
    merged = {name: sum_money(getattr(f, name) for f in facts) for name in _SUMMED_MONEY_FIELDS}
    counts = {name: sum(getattr(f, name) for f in facts) for name in _SUMMED_COUNT_FIELDS}
    net_balance = calculate_net_balance(merged["online_payout_owed"], merged["cod_commission_owed"])

    return ProviderFinancialFact(
        provider_id=first.provider_id,
        provider_name=first.provider_name,
        governorate_id=first.governorate_id,
        city_id=first.city_id,
        commission_status=first.commission_status,
        grace_period_end=first.grace_period_end,
        commission_rate=first.commission_rate,
        delivery_responsibility=first.delivery_responsibility,
        refund_percentage=_ratio(merged["total_refunds"], merged["gross_revenue"]),
        net_balance=net_balance,
        settlement_direction=get_settlement_direction(net_balance),
        is_in_grace_period=first.is_in_grace_period,
        grace_period_days_remaining=first.grace_period_days_remaining,
        **merged,
        **counts,
    )


def map_to_provider_summary(fact: ProviderFinancialFact) -> ProviderFinancialSummary:
    return ProviderFinancialSummary(
        provider_id=fact.provider_id,
        provider_name=fact.provider_name,
        orders=OrderCounts(
            total=fact.total_orders,
            cod=fact.cod_orders_count,
            online=fact.online_orders_count,
            eligible=fact.eligible_orders_count,
            on_hold=fact.held_orders_count,
            settled=fact.settled_orders_count,
        ),
        revenue=RevenueBreakdown(
            gross=fact.gross_revenue,
            cod=fact.cod_gross_revenue,
            online=fact.online_gross_revenue,
        ),
        commission=CommissionBreakdown(
            theoretical=fact.theoretical_commission,
            actual=fact.actual_commission,
            grace_period_discount=fact.total_grace_period_discount,
            rate=fact.commission_rate,
        ),
        delivery_fees=DeliveryFeeBreakdown(
            total=fact.total_delivery_fees,
            cod=fact.cod_delivery_fees,
            online=fact.online_delivery_fees,
        ),
        refunds=RefundBreakdown(
            total=fact.total_refunds,
            commission_reduction=fact.total_refund_commission_reduction,
            percentage=round(fact.refund_percentage * 100, 2),
        ),
        settlement=SettlementFigures(
            cod_commission_owed=fact.cod_commission_owed,
            online_payout_owed=fact.online_payout_owed,
            net_balance=fact.net_balance,
            direction=fact.settlement_direction,
        ),
        grace_period=GracePeriodState(
            is_active=fact.is_in_grace_period,
            days_remaining=fact.grace_period_days_remaining,
            end_date=fact.grace_period_end,
        ),
    )


def empty_admin_summary() -> AdminFinancialSummary:
    return AdminFinancialSummary()


def merge_by_provider(facts: Iterable[ProviderFinancialFact]) -> List[ProviderFinancialFact]:
    """One fact per provider, in first-seen order, direction taken from the combined balance"""
    grouped: Dict[str, List[ProviderFinancialFact]] = {}
    for fact in facts:
        grouped.setdefault(fact.provider_id, []).append(fact)
    return [merge_provider_facts(group) for group in grouped.values()]


def _count_direction(providers: Iterable[ProviderFinancialFact], direction: SettlementDirection) -> int:
    return sum(1 for p in providers if p.settlement_direction == direction)


def aggregate_to_admin_summary(facts: Sequence[ProviderFinancialFact]) -> AdminFinancialSummary:
    """
    Sum provider rows into admin totals.

    Money totals are pure summation in piasters, so they do not depend on row
    order or batching. Provider and direction counts use one merged fact per
    provider.
    """
    if not facts:
        return empty_admin_summary()

    providers = merge_by_provider(facts)

    return AdminFinancialSummary(
        total_providers=len(providers),
        total_orders=sum(f.total_orders for f in facts),
        total_revenue=sum_money(f.gross_revenue for f in facts),
        total_delivery_fees=sum_money(f.total_delivery_fees for f in facts),
        total_theoretical_commission=sum_money(f.theoretical_commission for f in facts),
        total_actual_commission=sum_money(f.actual_commission for f in facts),
        total_grace_period_discount=sum_money(f.total_grace_period_discount for f in facts),
        total_refunds=sum_money(f.total_refunds for f in facts),
        cod=CodTotals(
            orders=sum(f.cod_orders_count for f in facts),
            revenue=sum_money(f.cod_gross_revenue for f in facts),
            commission_owed=sum_money(f.cod_commission_owed for f in facts),
        ),
        online=OnlineTotals(
            orders=sum(f.online_orders_count for f in facts),
            revenue=sum_money(f.online_gross_revenue for f in facts),
            payout_owed=sum_money(f.online_payout_owed for f in facts),
        ),
        total_net_balance=sum_money(f.net_balance for f in facts),
        providers_to_pay=_count_direction(providers, SettlementDirection.PLATFORM_PAYS_PROVIDER),
        providers_to_collect=_count_direction(providers, SettlementDirection.PROVIDER_PAYS_PLATFORM),
        providers_balanced=_count_direction(providers, SettlementDirection.BALANCED),
        eligible_orders=sum(f.eligible_orders_count for f in facts),
        held_orders=sum(f.held_orders_count for f in facts),
        settled_orders=sum(f.settled_orders_count for f in facts),
    )


def aggregate_to_regional_summaries(
    facts: Sequence[ProviderFinancialFact],
    governorate_names: Optional[Dict[str, LocalizedName]] = None,
) -> List[RegionalFinancialSummary]:
    """One summary per governorate, ordered by governorate id"""
    governorate_names = governorate_names or {}
    grouped: Dict[str, List[ProviderFinancialFact]] = {}
    for fact in sorted(facts, key=lambda f: f.governorate_id or ""):
        if fact.governorate_id is None:
            continue
        grouped.setdefault(fact.governorate_id, []).append(fact)

    summaries = []
    for governorate_id, group in grouped.items():
        providers = merge_by_provider(group)
        summaries.append(
            RegionalFinancialSummary(
                governorate_id=governorate_id,
                governorate_name=governorate_names.get(governorate_id, LocalizedName()),
                providers_count=len(providers),
                total_orders=sum(f.total_orders for f in group),
                cod_orders=sum(f.cod_orders_count for f in group),
                online_orders=sum(f.online_orders_count for f in group),
                gross_revenue=sum_money(f.gross_revenue for f in group),
                total_commission=sum_money(f.actual_commission for f in group),
                net_balance=sum_money(f.net_balance for f in group),
                providers_to_pay=_count_direction(providers, SettlementDirection.PLATFORM_PAYS_PROVIDER),
                providers_to_collect=_count_direction(providers, SettlementDirection.PROVIDER_PAYS_PLATFORM),
            )
        )
    return summaries
