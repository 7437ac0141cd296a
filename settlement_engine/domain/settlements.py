"""Settlement lifecycle rules"""

from datetime import date
from typing import Optional

from settlement_engine.domain.models import Settlement, SettlementDirection, SettlementStatus
from settlement_engine.domain.money import Money

# Administrative end states; no further payments are accepted
TERMINAL_STATUSES = frozenset(
    s.value for s in (SettlementStatus.PAID, SettlementStatus.WAIVED, SettlementStatus.DISPUTED)
)


def is_terminal_status(status: str) -> bool:
    return getattr(status, "value", status) in TERMINAL_STATUSES


def status_after_payment(amount_paid: Money, net_amount_due: Money) -> SettlementStatus:
    """
    Status once cumulative payments reach amount_paid.

    pending → partially_paid → paid; nothing else is reachable by paying.
    """
    if amount_paid.greater_than_or_equal(net_amount_due):
        return SettlementStatus.PAID
    if amount_paid.is_positive():
        return SettlementStatus.PARTIALLY_PAID
    return SettlementStatus.PENDING


def remaining_amount(settlement: Settlement) -> Money:
    return settlement.net_amount_due.subtract(settlement.amount_paid).non_negative()


def calculate_overdue_days(due_date: Optional[date], today: Optional[date] = None) -> int:
    if due_date is None:
        return 0
    today = today or date.today()
    return max(0, (today - due_date).days)


def is_settlement_paid(settlement: Settlement) -> bool:
    return settlement.status == SettlementStatus.PAID


def is_settlement_overdue(settlement: Settlement) -> bool:
    return settlement.status == SettlementStatus.OVERDUE or settlement.is_overdue


def needs_payment(direction: str) -> bool:
    return direction != SettlementDirection.BALANCED


def is_platform_paying(direction: str) -> bool:
    return direction == SettlementDirection.PLATFORM_PAYS_PROVIDER


def is_provider_paying(direction: str) -> bool:
    return direction == SettlementDirection.PROVIDER_PAYS_PLATFORM
