"""Fixed-point money - amounts stored as integer piasters (1/100 EGP)"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from settlement_engine.domain.exceptions import DivisionByZero

MINOR_UNITS_PER_MAJOR = 100

CURRENCY_LABELS = {"ar": "ج.م", "en": "EGP"}
SHORT_SUFFIXES = {"ar": ("ك", "م"), "en": ("K", "M")}

_EASTERN_DIGITS = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")
_EASTERN_SEPARATORS = str.maketrans({",": "٬", ".": "٫"})

Number = Union[int, float, str, Decimal]


def _to_decimal(value: object) -> Optional[Decimal]:
    """
    Read a numeric input as an exact Decimal.

    Floats go through repr() so 0.1 is read as Decimal("0.1") rather than its
    binary expansion. Returns None for anything unparsable, NaN or infinite.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, float):
        parsed = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None

    if not parsed.is_finite():
        return None
    return parsed


def _round_minor(value: Decimal) -> int:
    """Round to a whole number of piasters, half away from zero"""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _currency_label(locale: str) -> str:
    return CURRENCY_LABELS["ar" if locale == "ar" else "en"]


@dataclass(frozen=True, order=True)
class Money:
    """
    Immutable monetary amount in integer minor units.

    Every arithmetic operation returns a new instance and rounds to a whole
    piaster immediately, so rounding never accumulates across chained steps.

    Example:
        Money.of(0.1).add(Money.of(0.2)).to_number() == 0.3
        Money.of(100.50).percent(7) → 7.04 (703.5 piasters, rounded half up)
    """

    minor_units: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.minor_units, int) or isinstance(self.minor_units, bool):
            parsed = _to_decimal(self.minor_units)
            object.__setattr__(self, "minor_units", _round_minor(parsed) if parsed is not None else 0)

    # Factories

    @classmethod
    def of(cls, amount: object) -> "Money":
        """Parse a major-unit amount; malformed input yields zero"""
        parsed = _to_decimal(amount)
        if parsed is None:
            return cls(0)
        return cls(_round_minor(parsed * MINOR_UNITS_PER_MAJOR))

    @classmethod
    def of_minor_units(cls, minor_units: Number) -> "Money":
        return cls(minor_units)

    @classmethod
    def from_database(cls, value: object) -> "Money":
        """Hydrate a nullable NUMERIC column value"""
        if value is None:
            return cls(0)
        if isinstance(value, Money):
            return value
        return cls.of(value)

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    # Arithmetic

    def add(self, other: "Money") -> "Money":
        return Money(self.minor_units + other.minor_units)

    def subtract(self, other: "Money") -> "Money":
        return Money(self.minor_units - other.minor_units)

    def multiply(self, factor: Number) -> "Money":
        """Scale by a factor; a malformed factor scales to zero"""
        parsed = _to_decimal(factor)
        if parsed is None:
            return Money(0)
        return Money(_round_minor(self.minor_units * parsed))

    def divide(self, divisor: Number) -> "Money":
        """
        Divide by a factor.

        Raises:
            DivisionByZero: divisor is exactly zero
        """
        parsed = _to_decimal(divisor)
        if parsed is None:
            return Money(0)
        if parsed == 0:
            raise DivisionByZero("Cannot divide money by zero")
        return Money(_round_minor(self.minor_units / parsed))

    def percent(self, percent: Number) -> "Money":
        """percent(7) is 7% of this amount"""
        parsed = _to_decimal(percent)
        if parsed is None:
            return Money(0)
        return self.multiply(parsed / 100)

    def abs(self) -> "Money":
        return Money(abs(self.minor_units))

    def negate(self) -> "Money":
        return Money(-self.minor_units)

    def max(self, other: "Money") -> "Money":
        return self if self.minor_units >= other.minor_units else other

    def min(self, other: "Money") -> "Money":
        return self if self.minor_units <= other.minor_units else other

    def non_negative(self) -> "Money":
        return Money(0) if self.minor_units < 0 else self

    def __add__(self, other: "Money") -> "Money":
        return self.add(other)

    def __sub__(self, other: "Money") -> "Money":
        return self.subtract(other)

    def __neg__(self) -> "Money":
        return self.negate()

    def __abs__(self) -> "Money":
        return self.abs()

    # Comparison

    def equals(self, other: "Money") -> bool:
        return self.minor_units == other.minor_units

    def greater_than(self, other: "Money") -> bool:
        return self.minor_units > other.minor_units

    def greater_than_or_equal(self, other: "Money") -> bool:
        return self.minor_units >= other.minor_units

    def less_than(self, other: "Money") -> bool:
        return self.minor_units < other.minor_units

    def less_than_or_equal(self, other: "Money") -> bool:
        return self.minor_units <= other.minor_units

    def is_zero(self) -> bool:
        return self.minor_units == 0

    def is_positive(self) -> bool:
        return self.minor_units > 0

    def is_negative(self) -> bool:
        return self.minor_units < 0

    # Conversion

    def to_number(self) -> float:
        """Major units as float - display only, never feed back into arithmetic"""
        return self.minor_units / MINOR_UNITS_PER_MAJOR

    def to_minor_units(self) -> int:
        return self.minor_units

    def to_decimal(self) -> Decimal:
        return Decimal(self.minor_units).scaleb(-2)

    def to_fixed(self, decimals: int = 2) -> str:
        quantum = Decimal(1).scaleb(-decimals)
        return f"{self.to_decimal().quantize(quantum, rounding=ROUND_HALF_UP):f}"

    def __str__(self) -> str:
        return self.to_fixed(2)

    # Formatting

    def format(self, locale: str = "ar") -> str:
        """Display with currency; Arabic locale uses Eastern Arabic digits"""
        amount = self.to_fixed(2)
        if locale == "ar":
            amount = amount.translate(_EASTERN_DIGITS)
        return f"{amount} {_currency_label(locale)}"

    def format_western(self, locale: str = "ar") -> str:
        """Western digits with the localized currency label"""
        return f"{self.to_fixed(2)} {_currency_label(locale)}"

    def format_with_separators(self, locale: str = "ar") -> str:
        amount = f"{self.to_decimal():,.2f}"
        if locale == "ar":
            amount = amount.translate(_EASTERN_SEPARATORS).translate(_EASTERN_DIGITS)
        return f"{amount} {_currency_label(locale)}"

    def format_short(self, locale: str = "ar") -> str:
        """Abbreviated form: 1.5K, 2.3M"""
        thousands, millions = SHORT_SUFFIXES["ar" if locale == "ar" else "en"]
        amount = self.to_decimal()
        tenth = Decimal("0.1")

        if amount >= 1_000_000:
            formatted = f"{(amount / 1_000_000).quantize(tenth, rounding=ROUND_HALF_UP)}{millions}"
        elif amount >= 1_000:
            formatted = f"{(amount / 1_000).quantize(tenth, rounding=ROUND_HALF_UP)}{thousands}"
        else:
            formatted = self.to_fixed(2)

        return f"{formatted} {_currency_label(locale)}"


def sum_money(amounts: Iterable[Money]) -> Money:
    """Sum money values exactly in piasters"""
    return Money(sum(m.minor_units for m in amounts))


def to_money(value: object) -> Money:
    """Coerce a Money, number or numeric string to Money"""
    if isinstance(value, Money):
        return value
    return Money.of(value)
