"""Balances given either as raw integers or denominated with a unit prefix."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Context, Decimal
from typing import Any, Union

from .units import BalanceError, DenominatedBalance, UnitPrefix, parse_denominated

_U128_MAX = 2**128 - 1
# Largest mantissa and scale a 96-bit decimal can hold.
_MAX_MANTISSA = 2**96 - 1
_MAX_SCALE = 28
_CONTEXT = Context(prec=100)
_RAW = re.compile(r"\+?[0-9]+", re.ASCII)

_DEFAULT_DECIMALS = 12
_DEFAULT_SYMBOL = "UNIT"


@dataclass(frozen=True)
class TokenMetadata:
    """How a chain's tokens are denominated."""

    token_decimals: int
    symbol: str

    @classmethod
    def from_system_properties(cls, properties: Mapping[str, Any]) -> TokenMetadata:
        """Build from a node's system properties, using the usual defaults."""
        decimals = properties.get("tokenDecimals", _DEFAULT_DECIMALS)
        if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
            raise BalanceError("error converting decimal to u64")
        symbol = properties.get("tokenSymbol", _DEFAULT_SYMBOL)
        if not isinstance(symbol, str):
            raise BalanceError("error converting symbol to string")
        return cls(decimals, symbol)


def _power_of_ten(zeros: int) -> int:
    if zeros > _MAX_SCALE:
        raise BalanceError(f"multiplier 1e{zeros} does not fit a decimal")
    return 10**zeros


def _plain(value: Decimal) -> Decimal:
    """Strip trailing fractional zeros, keeping integers without exponent."""
    normalized = value.normalize(context=_CONTEXT)
    if normalized.as_tuple().exponent > 0:
        normalized = normalized.quantize(Decimal(1), context=_CONTEXT)
    return normalized


def _fraction_scale(value: Decimal) -> int:
    exponent = _plain(value).as_tuple().exponent
    return -exponent if exponent < 0 else 0


@dataclass(frozen=True)
class BalanceVariant:
    """A balance, either raw (an integer) or denominated with a unit."""

    amount: Union[int, DenominatedBalance]

    @property
    def is_denominated(self) -> bool:
        return isinstance(self.amount, DenominatedBalance)

    def denominate_balance(self, token_metadata: TokenMetadata) -> int:
        """Convert to a raw integer balance using ``token_metadata``.

        Raises :class:`BalanceError` if the value has more precision than the
        token allows, or does not fit the balance type.
        """
        amount = self.amount
        if not isinstance(amount, DenominatedBalance):
            return amount

        zeros = token_metadata.token_decimals + amount.unit.exponent
        if zeros < 0:
            raise BalanceError("out of range integral type conversion attempted")
        _power_of_ten(zeros)
        if zeros < _fraction_scale(amount.value):
            raise BalanceError(
                "Given precision of a Balance value is higher than allowed"
            )
        product = amount.value.scaleb(zeros, context=_CONTEXT)
        raw = int(product)
        if abs(raw) > _MAX_MANTISSA:
            raise BalanceError(
                "error while converting balance to raw format. "
                "Overflow during multiplication!"
            )
        if raw < 0:
            raise BalanceError("Failed to convert a negative value to a balance")
        return raw

    def __str__(self) -> str:
        return str(self.amount)


def parse_balance(text: str) -> BalanceVariant:
    """Parse a balance, raw (``500``) or denominated (``500.5MDOT``).

    Underscores are ignored. Anything that is not a plain unsigned integer
    is parsed as a denominated balance.
    """
    cleaned = text.replace("_", "")
    if _RAW.fullmatch(cleaned):
        raw = int(cleaned)
        if raw <= _U128_MAX:
            return BalanceVariant(raw)
    return BalanceVariant(parse_denominated(cleaned))


def _select_unit(digits: int, decimals: int) -> tuple[UnitPrefix, int]:
    giga = decimals + 9
    mega = decimals + 6
    kilo = decimals + 3
    one = decimals
    milli = decimals - 3 if decimals >= 3 else None
    micro = decimals - 6 if decimals >= 6 else None
    nano = decimals - 9 if decimals >= 9 else None

    if digits > giga:
        return UnitPrefix.GIGA, giga
    if mega < digits <= giga:
        return UnitPrefix.MEGA, mega
    if kilo < digits <= mega:
        return UnitPrefix.KILO, kilo
    if one < digits <= kilo:
        return UnitPrefix.ONE, one
    if milli is not None and milli < digits <= one:
        return UnitPrefix.MILLI, milli
    if milli is not None and micro is not None and micro < digits <= milli:
        return UnitPrefix.MICRO, micro
    if nano is not None:
        return UnitPrefix.NANO, nano
    raise BalanceError("Invalid denomination")


def from_raw(value: int, token_metadata: TokenMetadata | None = None) -> BalanceVariant:
    """Express a raw balance in the largest fitting unit of ``token_metadata``.

    Without token metadata the balance stays raw.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise BalanceError("balance must be an integer")
    if not 0 <= value <= _U128_MAX:
        raise BalanceError("balance out of range")
    if token_metadata is None:
        return BalanceVariant(value)

    if value == 0:
        return BalanceVariant(
            DenominatedBalance(Decimal(0), UnitPrefix.ONE, token_metadata.symbol)
        )

    unit, zeros = _select_unit(len(str(value)), token_metadata.token_decimals)
    _power_of_ten(zeros)
    if value > _MAX_MANTISSA:
        raise BalanceError("value can not be converted into decimal")
    amount = _plain(Decimal(value).scaleb(-zeros, context=_CONTEXT))
    return BalanceVariant(DenominatedBalance(amount, unit, token_metadata.symbol))