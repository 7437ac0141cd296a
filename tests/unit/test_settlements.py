"""Unit tests for settlement lifecycle rules"""

from datetime import date

from settlement_engine.domain.models import Settlement, SettlementDirection, SettlementStatus
from settlement_engine.domain.money import Money
from settlement_engine.domain.settlements import (
    calculate_overdue_days,
    is_platform_paying,
    is_provider_paying,
    is_settlement_overdue,
    is_settlement_paid,
    is_terminal_status,
    needs_payment,
    remaining_amount,
    status_after_payment,
)


def make_settlement(**kwargs) -> Settlement:
    defaults = dict(id="s-1", provider_id="prov-1", period_start=date(2026, 1, 1), period_end=date(2026, 1, 7))
    defaults.update(kwargs)
    return Settlement(**defaults)


def test_payment_moves_status_forward():
    due = Money.of(209)
    assert status_after_payment(Money.of(100), due) == SettlementStatus.PARTIALLY_PAID
    assert status_after_payment(Money.of(209), due) == SettlementStatus.PAID
    assert status_after_payment(Money.zero(), due) == SettlementStatus.PENDING


def test_terminal_statuses():
    assert is_terminal_status("paid")
    assert is_terminal_status(SettlementStatus.WAIVED)
    assert is_terminal_status("disputed")
    assert not is_terminal_status("pending")
    assert not is_terminal_status("partially_paid")
    assert not is_terminal_status("overdue")


def test_remaining_amount_never_negative():
    settlement = make_settlement(net_amount_due=Money.of(100), amount_paid=Money.of(40))
    assert remaining_amount(settlement) == Money.of(60)
    assert remaining_amount(make_settlement(net_amount_due=Money.of(10), amount_paid=Money.of(20))).is_zero()


def test_overdue_days():
    assert calculate_overdue_days(date(2026, 1, 14), today=date(2026, 1, 20)) == 6
    assert calculate_overdue_days(date(2026, 1, 14), today=date(2026, 1, 10)) == 0
    assert calculate_overdue_days(None) == 0


def test_status_predicates():
    assert is_settlement_paid(make_settlement(status=SettlementStatus.PAID))
    assert is_settlement_overdue(make_settlement(status="overdue"))
    assert is_settlement_overdue(make_settlement(is_overdue=True))
    assert not is_settlement_overdue(make_settlement())


def test_direction_predicates():
    assert needs_payment(SettlementDirection.PLATFORM_PAYS_PROVIDER)
    assert not needs_payment("balanced")
    assert is_platform_paying("platform_pays_provider")
    assert is_provider_paying(SettlementDirection.PROVIDER_PAYS_PLATFORM)
