"""Decimal-based helpers to enforce Binance spot precision rules."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP, ROUND_UP
from enum import Enum
from typing import Any

__all__ = [
    "Decimal",
    "ROUND_DOWN",
    "ROUND_UP",
    "RoundingMode",
    "decimals_of",
    "format_decimal",
    "normalize",
    "round_to_step",
    "round_to_tick",
    "to_decimal",
    "unit",
]


class RoundingMode(str, Enum):
    """Direction used by :func:`normalize`."""

    UP = "UP"
    DOWN = "DOWN"
    NEAREST = "NEAREST"


_DECIMAL_ROUNDING = {
    RoundingMode.UP: ROUND_UP,
    RoundingMode.DOWN: ROUND_DOWN,
    RoundingMode.NEAREST: ROUND_HALF_UP,
}


def to_decimal(value: Any) -> Decimal:
    """Return ``value`` converted to :class:`~decimal.Decimal`.

    ``float`` inputs are stringified first to avoid inheriting binary
    representation artefacts. ``None`` is treated as ``0``.
    """

    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    if isinstance(value, (int, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as err:
            raise ValueError(f"Cannot convert {value!r} to Decimal") from err
    try:
        return Decimal(str(float(value)))
    except (InvalidOperation, TypeError, ValueError) as err:
        raise ValueError(f"Cannot convert {value!r} to Decimal") from err


def unit(digits: int) -> Decimal:
    """Return one unit in the ``digits``-th decimal place (``2`` -> ``0.01``)."""

    return Decimal(1).scaleb(-int(digits))


def normalize(value: Any, digits: int, mode: RoundingMode | str = RoundingMode.NEAREST) -> Decimal:
    """Return ``value`` fixed to exactly ``digits`` decimal places.

    ``DOWN`` truncates, ``UP`` truncates and then adds one unit in the last
    retained digit when any discarded digit was non-zero, ``NEAREST`` rounds
    half up. The result always carries ``digits`` places so that
    ``normalize(normalize(x, d, m), d, m) == normalize(x, d, m)``.
    """

    if digits < 0:
        raise ValueError(f"digits must be >= 0, got {digits}")
    rounding_mode = RoundingMode(mode)
    return to_decimal(value).quantize(unit(digits), rounding=_DECIMAL_ROUNDING[rounding_mode])


def decimals_of(step: Any) -> int:
    """Return the number of significant decimals of a tick or step size.

    Binance pads filter values with zeros (``"0.01000000"``); trailing zeros
    are ignored so the result is ``2`` for that input and ``0`` for
    ``"1.00000000"``.
    """

    dec = to_decimal(step)
    if dec <= 0:
        return 0
    exponent = dec.normalize().as_tuple().exponent
    return max(-int(exponent), 0)


def round_to_tick(
    price: Any,
    tick_size: Any,
    *,
    side: str | None = None,
) -> Decimal:
    """Round ``price`` to the closest valid ``tick_size`` multiple.

    ``side`` determines the rounding direction: BUY prices round down,
    SELL prices round up. If ``side`` is omitted the value is rounded down.
    """

    tick = to_decimal(tick_size)
    if tick <= 0:
        return to_decimal(price)
    px = to_decimal(price)
    side_norm = (side or "").upper()
    rounding = ROUND_DOWN if side_norm != "SELL" else ROUND_UP
    steps = (px / tick).to_integral_value(rounding=rounding)
    return (steps * tick).quantize(unit(decimals_of(tick)))


def round_to_step(
    qty: Any,
    step_size: Any,
    *,
    rounding: str = ROUND_DOWN,
) -> Decimal:
    """Round ``qty`` to a valid ``step_size`` multiple using ``rounding``."""

    step = to_decimal(step_size)
    if step <= 0:
        return to_decimal(qty)
    quantity = to_decimal(qty)
    steps = (quantity / step).to_integral_value(rounding=rounding)
    return (steps * step).quantize(unit(decimals_of(step)))


def format_decimal(value: Any, max_places: int | None = None) -> str:
    """Return a string serialisation of ``value`` without binary tails."""

    dec = to_decimal(value)
    if max_places is not None:
        dec = dec.quantize(unit(max_places), rounding=ROUND_DOWN)
    text = format(dec, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
