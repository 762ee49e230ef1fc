"""Token balances written with an SI unit prefix, such as ``500.5MDOT``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Context, Decimal, InvalidOperation
from enum import Enum

# Largest value representable by a 96-bit decimal mantissa.
_MAX_MANTISSA = 2**96 - 1
_MAX_SCALE = 28
_CONTEXT = Context(prec=100)
_NUMBER = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)", re.ASCII)

_PARSE_VALUE_ERROR = (
    "Error while parsing the value. Please denominate and normalize the balance first."
)


class BalanceError(ValueError):
    """Raised when a balance cannot be parsed or converted."""


class UnitPrefix(Enum):
    """SI prefixes a denominated balance may carry."""

    GIGA = "G"
    MEGA = "M"
    KILO = "k"
    ONE = ""
    MILLI = "m"
    MICRO = "\u03bc"
    NANO = "n"

    @property
    def exponent(self) -> int:
        """Power of ten this prefix stands for."""
        return _EXPONENTS[self]

    @classmethod
    def from_char(cls, char: str) -> UnitPrefix:
        """Prefix named by ``char``; any unknown character means no prefix."""
        if char and char in _BY_CHAR:
            return _BY_CHAR[char]
        return cls.ONE


_EXPONENTS = {
    UnitPrefix.GIGA: 9,
    UnitPrefix.MEGA: 6,
    UnitPrefix.KILO: 3,
    UnitPrefix.ONE: 0,
    UnitPrefix.MILLI: -3,
    UnitPrefix.MICRO: -6,
    UnitPrefix.NANO: -9,
}
_BY_CHAR = {prefix.value: prefix for prefix in UnitPrefix if prefix.value}


def _normalize(value: Decimal) -> Decimal:
    """Strip trailing fractional zeros without switching to exponent form."""
    normalized = value.normalize(context=_CONTEXT)
    if normalized.as_tuple().exponent > 0:
        normalized = normalized.quantize(Decimal(1), context=_CONTEXT)
    return normalized


def _parse_exact(text: str) -> Decimal:
    """Parse ``text`` as a decimal that fits a 96-bit mantissa exactly."""
    if not _NUMBER.fullmatch(text):
        raise BalanceError(_PARSE_VALUE_ERROR)
    try:
        value = Decimal(text)
    except InvalidOperation as err:
        raise BalanceError(_PARSE_VALUE_ERROR) from err
    _, digits, exponent = value.as_tuple()
    mantissa = int("".join(map(str, digits)) or "0")
    scale = -exponent if exponent < 0 else 0
    if exponent > 0:
        mantissa *= 10**exponent
    if scale > _MAX_SCALE or mantissa > _MAX_MANTISSA:
        raise BalanceError(_PARSE_VALUE_ERROR)
    return value


@dataclass(frozen=True)
class DenominatedBalance:
    """A decimal amount with a unit prefix and a token symbol."""

    value: Decimal
    unit: UnitPrefix
    symbol: str

    def __str__(self) -> str:
        return f"{format(self.value, 'f')}{self.unit.value}{self.symbol}"


def parse_denominated(text: str) -> DenominatedBalance:
    """Parse a balance such as ``500.5MDOT`` or ``1DOT``.

    Without a recognised prefix the unit is :attr:`UnitPrefix.ONE` and the
    symbol is left empty.
    """
    position = 0
    while position < len(text) and (
        text[position].isnumeric() or text[position] in ".,"
    ):
        position += 1
    symbols = text[position:]
    if not symbols:
        raise BalanceError("no units or symbols present")

    unit = UnitPrefix.from_char(symbols[0])
    if unit is UnitPrefix.ONE:
        symbol = ""
    else:
        if len(symbols) < 2:
            raise BalanceError("cannot find the first char's index")
        symbol = symbols[1:]

    end = len(text)
    while end > 0 and text[end - 1].isalpha():
        end -= 1
    value = _normalize(_parse_exact(text[:end]))
    return DenominatedBalance(value, unit, symbol)