"""Commission, refund clawback and settlement direction arithmetic"""

from datetime import date, timedelta
from typing import Optional

from settlement_engine.domain.models import (
    CommissionInfo,
    CommissionStatus,
    GovernorateCommission,
    OrderCommission,
    ProviderCommissionProfile,
    SettlementDirection,
)
from settlement_engine.domain.money import Money

GRACE_PERIOD_DAYS = 90  # 3 months commission-free after onboarding
DEFAULT_COMMISSION_RATE = 7.0
MAX_COMMISSION_RATE = 7.0
MIN_COMMISSION_RATE = 0.0

# Net balances within ±0.50 EGP are rounding residue, not a settlement action
SETTLEMENT_BALANCE_THRESHOLD = Money.of("0.50")


def calculate_commission(subtotal: Money, discount: Money, rate: float) -> Money:
    """
    Commission on the discounted subtotal (delivery fee excluded).

    The base never drops below zero, so a discount larger than the subtotal
    yields zero commission rather than a negative one.

    Args:
        subtotal: Order subtotal without delivery
        discount: Discount applied to the order
        rate: Commission rate as a percentage (7 for 7%)
    """
    base = subtotal.subtract(discount).non_negative()
    return base.percent(rate)


def calculate_refund_commission_reduction(
    refund_amount: Money,
    order_base: Money,
    original_commission: Money,
) -> Money:
    """
    Commission clawed back by a refund, proportional to the refunded share.

    Example:
        base 200.00, commission 14.00, refund 100.00 → 7.00
    """
    if order_base.is_zero():
        return Money.zero()
    refund_ratio = refund_amount.to_number() / order_base.to_number()
    return original_commission.multiply(refund_ratio)


def calculate_net_balance(online_payout_owed: Money, cod_commission_owed: Money) -> Money:
    """
    Reconcile the two payment flows into one transfer.

    Returns: positive when the platform pays the provider, negative when the
    provider pays the platform.
    """
    return online_payout_owed.subtract(cod_commission_owed)


def get_settlement_direction(
    net_balance: Money,
    threshold: Money = SETTLEMENT_BALANCE_THRESHOLD,
) -> SettlementDirection:
    if net_balance.greater_than(threshold):
        return SettlementDirection.PLATFORM_PAYS_PROVIDER
    elif net_balance.less_than(threshold.negate()):
        return SettlementDirection.PROVIDER_PAYS_PLATFORM
    return SettlementDirection.BALANCED


def calculate_order_commission(
    subtotal: Money,
    discount: Money,
    rate: float,
    in_grace_period: bool,
) -> OrderCommission:
    """Theoretical vs charged commission; the grace period waives all of it"""
    theoretical = calculate_commission(subtotal, discount, rate)
    actual = Money.zero() if in_grace_period else theoretical
    return OrderCommission(
        theoretical=theoretical,
        actual=actual,
        grace_period_discount=theoretical.subtract(actual),
    )


# Commission rate rules


def calculate_grace_period_end(start_date: date) -> date:
    return start_date + timedelta(days=GRACE_PERIOD_DAYS)


def _grace_period_end(provider: ProviderCommissionProfile) -> Optional[date]:
    if provider.grace_period_end is not None:
        return provider.grace_period_end
    if provider.grace_period_start is not None:
        return calculate_grace_period_end(provider.grace_period_start)
    return None


def is_in_grace_period(provider: ProviderCommissionProfile, today: Optional[date] = None) -> bool:
    if provider.commission_status == CommissionStatus.IN_GRACE_PERIOD:
        return True
    if provider.grace_period_start is None:
        return False

    today = today or date.today()
    return today < _grace_period_end(provider)


def get_grace_period_days_remaining(
    provider: ProviderCommissionProfile,
    today: Optional[date] = None,
) -> Optional[int]:
    """Whole days left in the grace period, None when not in one"""
    today = today or date.today()
    if not is_in_grace_period(provider, today):
        return None

    end = _grace_period_end(provider)
    if end is None:
        return None
    return max(0, (end - today).days)


def calculate_commission_rate(
    provider: ProviderCommissionProfile,
    governorate: Optional[GovernorateCommission] = None,
    today: Optional[date] = None,
) -> float:
    """
    Rate precedence:
    1. Provider custom rate
    2. Exempt providers pay 0
    3. Grace period pays 0
    4. Governorate override, capped at MAX_COMMISSION_RATE
    5. DEFAULT_COMMISSION_RATE
    """
    if provider.custom_commission_rate is not None:
        return provider.custom_commission_rate

    if provider.commission_status == CommissionStatus.EXEMPT:
        return 0.0

    if is_in_grace_period(provider, today):
        return 0.0

    if governorate is not None and governorate.commission_override is not None:
        return min(governorate.commission_override, MAX_COMMISSION_RATE)

    return DEFAULT_COMMISSION_RATE


def get_commission_info(
    provider: ProviderCommissionProfile,
    governorate: Optional[GovernorateCommission] = None,
    today: Optional[date] = None,
) -> CommissionInfo:
    in_grace = is_in_grace_period(provider, today)
    status = provider.commission_status or (
        CommissionStatus.IN_GRACE_PERIOD if in_grace else CommissionStatus.ACTIVE
    )
    return CommissionInfo(
        status=status,
        rate=calculate_commission_rate(provider, governorate, today),
        grace_period_end_date=_grace_period_end(provider) if provider.grace_period_start else None,
        days_remaining=get_grace_period_days_remaining(provider, today),
        is_in_grace_period=in_grace,
    )


_COMMISSION_STATUS_LABELS = {
    CommissionStatus.IN_GRACE_PERIOD.value: {"ar": "فترة مجانية", "en": "Free Period"},
    CommissionStatus.ACTIVE.value: {"ar": "نشط", "en": "Active"},
    CommissionStatus.EXEMPT.value: {"ar": "معفى", "en": "Exempt"},
}


def format_commission_rate(rate: float, locale: str = "ar") -> str:
    if rate == 0:
        return "0% (فترة مجانية)" if locale == "ar" else "0% (Free Period)"
    return f"{rate:g}%"


def get_commission_status_label(status: str, locale: str = "ar") -> str:
    """Localized status label; unknown statuses come back unchanged"""
    value = getattr(status, "value", status)
    labels = _COMMISSION_STATUS_LABELS.get(value)
    if not labels:
        return value
    return labels["ar" if locale == "ar" else "en"]
