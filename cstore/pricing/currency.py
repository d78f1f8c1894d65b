"""
Currency conversion and fixed-point money helpers.

Every configured currency is a ratio against one implicit base unit
("USD": 1, "EUR": 0.8, ...). Amounts travel through the engine as integer
minor units and are only rounded when a figure is emitted.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from cstore.errors import UnknownCurrency

CENT = Decimal('0.01')
MINOR_PER_MAJOR = 100


def round_half_up(value) -> int:
    """Round a Decimal to the nearest integer, halves away from zero."""
    return int(Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def to_minor(amount) -> Optional[int]:
    """Convert a major-unit amount (Decimal, int, float or str) to minor units."""
    if amount is None:
        return None
    if isinstance(amount, float):
        amount = repr(amount)
    value = Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)
    return int(value * MINOR_PER_MAJOR)


def from_minor(minor) -> Decimal:
    return (Decimal(minor) / MINOR_PER_MAJOR).quantize(CENT)


def format_minor(minor) -> str:
    """Render minor units as a decimal string fixed to 2 places."""
    return f'{from_minor(minor):.2f}'


def convert(amount, from_ratio, to_ratio) -> Decimal:
    """Convert an amount between two currencies given their ratios. No rounding."""
    return Decimal(amount) * (Decimal(str(to_ratio)) / Decimal(str(from_ratio)))


@dataclass(frozen=True)
class Currency:
    tag: str
    ratio: Decimal = Decimal('1')
    title: Optional[str] = None
    symbol: Optional[str] = None


class CurrencyTable:
    """The configured currency set. The first currency is the computation currency."""

    def __init__(self, currencies):
        self._currencies = {}
        for entry in currencies:
            currency = self._parse(entry)
            self._currencies.setdefault(currency.tag, currency)
        if not self._currencies:
            raise ValueError('At least one currency must be configured')
        self.base = next(iter(self._currencies.values()))

    @staticmethod
    def _parse(entry):
        if isinstance(entry, Currency):
            return entry
        ratio = entry.get('ratio')
        ratio = Decimal('1') if ratio is None else Decimal(str(ratio))
        if ratio <= 0:
            raise ValueError(f"Currency {entry.get('tag')!r} must have a positive ratio")
        return Currency(
            tag=entry['tag'],
            ratio=ratio,
            title=entry.get('title'),
            symbol=entry.get('symbol'),
        )

    def __contains__(self, tag):
        return tag in self._currencies

    def __iter__(self):
        return iter(self._currencies.values())

    def get(self, tag=None) -> Currency:
        """Look up a currency by tag; None means the computation currency."""
        if tag is None:
            return self.base
        try:
            return self._currencies[tag]
        except (KeyError, TypeError):
            raise UnknownCurrency(tag) from None

    def convert_minor(self, minor, to_tag, from_tag=None) -> int:
        """Convert minor units between currencies, rounding half-up once."""
        source = self.get(from_tag)
        target = self.get(to_tag)
        if source.tag == target.tag:
            return minor
        return round_half_up(convert(minor, source.ratio, target.ratio))

    def format_price(self, minor, tag=None) -> str:
        """Render an amount with its currency symbol, e.g. '210.00 $'."""
        currency = self.get(tag)
        amount = format_minor(minor)
        if currency.symbol:
            return f'{amount} {currency.symbol}'
        return amount
