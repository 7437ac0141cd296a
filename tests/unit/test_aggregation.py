"""Unit tests for provider fact projection and summary aggregation"""

import random

from settlement_engine.domain.commission import get_settlement_direction
from settlement_engine.domain.aggregation import (
    aggregate_to_admin_summary,
    aggregate_to_regional_summaries,
    compute_provider_fact,
    empty_admin_summary,
    map_to_provider_summary,
    merge_provider_facts,
)
from settlement_engine.domain.models import (
    LocalizedName,
    OrderFinancialFact,
    OrderSettlementStatus,
    ProviderFinancialFact,
    SettlementDirection,
)
from settlement_engine.domain.money import Money


def make_order(order_id, method, subtotal, delivery="0", provider_id="prov-1", **kwargs) -> OrderFinancialFact:
    sub = Money.of(subtotal)
    fee = Money.of(delivery)
    return OrderFinancialFact(
        order_id=order_id,
        provider_id=provider_id,
        payment_method=method,
        total=sub.add(fee),
        subtotal=sub,
        delivery_fee=fee,
        commission_rate=kwargs.pop("commission_rate", 7.0),
        **kwargs,
    )


def make_fact(provider_id, governorate_id, net_balance, orders=1, revenue="100") -> ProviderFinancialFact:
    balance = Money.of(net_balance)
    return ProviderFinancialFact(
        provider_id=provider_id,
        governorate_id=governorate_id,
        total_orders=orders,
        online_orders_count=orders,
        gross_revenue=Money.of(revenue),
        online_gross_revenue=Money.of(revenue),
        actual_commission=Money.of(revenue).percent(7),
        net_balance=balance,
        online_payout_owed=balance,
        settlement_direction=get_settlement_direction(balance),
    )


def test_mixed_cod_and_online_provider():
    """Online payout 216 minus COD commission 7 → platform owes 209"""
    fact = compute_provider_fact(
        "prov-1",
        [
            make_order("o1", "card", "200", "30"),
            make_order("o2", "cash", "100", "15"),
        ],
    )

    assert fact.total_orders == 2
    assert fact.cod_orders_count == 1
    assert fact.online_orders_count == 1
    assert fact.gross_revenue == Money.of(345)
    assert fact.total_delivery_fees == Money.of(45)
    assert fact.cod_commission_owed == Money.of(7)
    assert fact.online_payout_owed == Money.of(216)
    assert fact.net_balance == Money.of(209)
    assert fact.settlement_direction == SettlementDirection.PLATFORM_PAYS_PROVIDER


def test_cod_only_provider_pays_platform():
    fact = compute_provider_fact("prov-2", [make_order("o1", "cash", "500", "20")])

    assert fact.cod_commission_owed == Money.of(35)
    assert fact.online_payout_owed.is_zero()
    assert fact.net_balance == Money.of(-35)
    assert fact.settlement_direction == SettlementDirection.PROVIDER_PAYS_PLATFORM


def test_excluded_orders_do_not_count():
    fact = compute_provider_fact(
        "prov-1",
        [
            make_order("o1", "cash", "100"),
            make_order("o2", "cash", "900", settlement_status=OrderSettlementStatus.EXCLUDED),
        ],
    )
    assert fact.total_orders == 1
    assert fact.cod_commission_owed == Money.of(7)


def test_grace_period_orders_carry_no_commission():
    fact = compute_provider_fact("prov-3", [make_order("o1", "wallet", "1000", in_grace_period=True)])

    assert fact.theoretical_commission == Money.of(70)
    assert fact.actual_commission.is_zero()
    assert fact.total_grace_period_discount == Money.of(70)
    assert fact.online_payout_owed == Money.of(1000)
    assert fact.is_in_grace_period


def test_online_refund_reduces_payout_and_claws_back_commission():
    """200 online, refund 100: commission 14 - 7 clawback → payout 200 - 100 - 7 = 93"""
    fact = compute_provider_fact(
        "prov-1",
        [make_order("o1", "card", "200", refund_amount=Money.of(100))],
    )

    assert fact.total_refund_commission_reduction == Money.of(7)
    assert fact.net_commission == Money.of(7)
    assert fact.online_payout_owed == Money.of(93)
    assert fact.refund_percentage == 0.5


def test_order_status_counts():
    fact = compute_provider_fact(
        "prov-1",
        [
            make_order("o1", "cash", "10"),
            make_order("o2", "cash", "10", settlement_status=OrderSettlementStatus.ON_HOLD),
            make_order("o3", "card", "10", settlement_status=OrderSettlementStatus.SETTLED),
        ],
    )
    assert (fact.eligible_orders_count, fact.held_orders_count, fact.settled_orders_count) == (1, 1, 1)


def test_no_orders_is_balanced_and_zero():
    fact = compute_provider_fact("prov-9", [])
    assert fact.total_orders == 0
    assert fact.net_balance.is_zero()
    assert fact.settlement_direction == SettlementDirection.BALANCED


def test_admin_summary_is_order_independent():
    facts = [make_fact(f"p{i}", "gov-a", f"{i * 13.37 - 40:.2f}", revenue=f"{i * 101.01:.2f}") for i in range(12)]
    shuffled = facts[:]
    random.Random(7).shuffle(shuffled)

    assert aggregate_to_admin_summary(facts) == aggregate_to_admin_summary(shuffled)


def test_admin_summary_is_additive_across_batches():
    facts = [make_fact(f"p{i}", "gov-a", f"{i * 7.77 - 20:.2f}") for i in range(10)]
    whole = aggregate_to_admin_summary(facts)
    first, second = aggregate_to_admin_summary(facts[:4]), aggregate_to_admin_summary(facts[4:])

    assert whole.total_revenue == first.total_revenue.add(second.total_revenue)
    assert whole.total_net_balance == first.total_net_balance.add(second.total_net_balance)
    assert whole.total_orders == first.total_orders + second.total_orders
    assert whole.providers_to_pay == first.providers_to_pay + second.providers_to_pay


def test_admin_summary_counts_each_provider_once():
    """p3 has two city rows: +0.30 and +10 merge into one paying provider"""
    facts = [
        make_fact("p1", "gov-a", "209"),
        make_fact("p2", "gov-a", "-35"),
        make_fact("p3", "gov-b", "0.30"),
        make_fact("p3", "gov-b", "10"),
    ]
    summary = aggregate_to_admin_summary(facts)

    assert summary.total_providers == 3
    assert summary.providers_to_pay == 2
    assert summary.providers_to_collect == 1
    assert summary.providers_balanced == 0
    assert summary.providers_to_pay + summary.providers_to_collect + summary.providers_balanced == 3
    assert summary.total_net_balance == Money.of("184.30")


def test_empty_input_gives_zero_summary():
    assert aggregate_to_admin_summary([]) == empty_admin_summary()
    assert empty_admin_summary().total_revenue.is_zero()


def test_regional_summaries_group_by_governorate():
    facts = [
        make_fact("p2", "gov-b", "50"),
        make_fact("p1", "gov-a", "209", revenue="345"),
        make_fact("p3", "gov-a", "-35", revenue="520"),
        make_fact("p4", None, "10"),
    ]
    regions = aggregate_to_regional_summaries(facts, {"gov-a": LocalizedName(ar="القاهرة", en="Cairo")})

    assert [r.governorate_id for r in regions] == ["gov-a", "gov-b"]
    cairo = regions[0]
    assert cairo.governorate_name.en == "Cairo"
    assert cairo.providers_count == 2
    assert cairo.gross_revenue == Money.of(865)
    assert cairo.net_balance == Money.of(174)
    assert (cairo.providers_to_pay, cairo.providers_to_collect) == (1, 1)
    assert regions[1].governorate_name == LocalizedName()


def test_merge_provider_facts_recomputes_direction():
    """Two city rows that cancel out merge into a balanced provider"""
    north = compute_provider_fact("prov-1", [make_order("o1", "card", "100")])  # +93
    south = compute_provider_fact("prov-1", [make_order("o2", "cash", "1330")])  # -93.10

    merged = merge_provider_facts([north, south])

    assert merged.total_orders == 2
    assert merged.gross_revenue == Money.of(1430)
    assert merged.net_balance == Money.of("-0.10")
    assert merged.settlement_direction == SettlementDirection.BALANCED
    assert merge_provider_facts([north]) is north


def test_provider_summary_reports_refund_percentage_out_of_100():
    fact = compute_provider_fact(
        "prov-1",
        [make_order("o1", "card", "200", refund_amount=Money.of(50))],
        provider_name=LocalizedName(ar="مطعم", en="Kitchen"),
    )
    summary = map_to_provider_summary(fact)

    assert summary.refunds.percentage == 25.0
    assert summary.provider_name.en == "Kitchen"
    assert summary.settlement.net_balance == fact.net_balance
    assert summary.orders.online == 1
    assert summary.commission.rate == 7.0


def test_regional_direction_uses_combined_provider_balance():
    """+0.30 and -1.00 in the same governorate merge to -0.70, one collecting provider"""
    facts = [
        make_fact("p1", "gov-a", "0.30"),
        make_fact("p1", "gov-a", "-1"),
        make_fact("p2", "gov-a", "0.40"),
    ]
    [cairo] = aggregate_to_regional_summaries(facts)

    assert cairo.providers_count == 2
    assert (cairo.providers_to_pay, cairo.providers_to_collect) == (0, 1)
    assert cairo.net_balance == Money.of("-0.30")


def test_admin_summary_balances_split_rows_that_cancel():
    facts = [make_fact("p1", "gov-a", "5"), make_fact("p1", "gov-b", "-5")]
    summary = aggregate_to_admin_summary(facts)

    assert summary.total_providers == 1
    assert (summary.providers_to_pay, summary.providers_to_collect, summary.providers_balanced) == (0, 0, 1)
