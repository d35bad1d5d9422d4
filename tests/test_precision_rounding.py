from __future__ import annotations

from decimal import Decimal

import pytest

from common.notional import ensure_min_notional
from common.precision import (
    RoundingMode,
    decimals_of,
    format_decimal,
    normalize,
    round_to_step,
    round_to_tick,
    to_decimal,
)


SAMPLES = ["0.123456", "98.765", "1", "0.0000001", "12345.6789", "100.005"]


@pytest.mark.parametrize("mode", list(RoundingMode))
@pytest.mark.parametrize("digits", [0, 2, 5])
def test_normalize_is_idempotent(mode, digits):
    for raw in SAMPLES:
        once = normalize(raw, digits, mode)
        assert normalize(once, digits, mode) == once


@pytest.mark.parametrize("digits", [0, 1, 3, 6])
def test_normalize_direction(digits):
    for raw in SAMPLES:
        value = Decimal(raw)
        assert normalize(value, digits, RoundingMode.UP) >= value
        assert normalize(value, digits, RoundingMode.DOWN) <= value


def test_normalize_up_only_moves_when_digits_are_dropped():
    assert normalize("1.230", 2, RoundingMode.UP) == Decimal("1.23")
    assert normalize("1.2301", 2, RoundingMode.UP) == Decimal("1.24")
    assert normalize("1.239", 2, RoundingMode.DOWN) == Decimal("1.23")
    assert normalize("1.235", 2, RoundingMode.NEAREST) == Decimal("1.24")


def test_normalize_keeps_fixed_digits():
    assert str(normalize(1, 3, RoundingMode.DOWN)) == "1.000"


def test_normalize_rejects_negative_digits():
    with pytest.raises(ValueError):
        normalize("1.5", -1, RoundingMode.DOWN)


def test_float_inputs_do_not_leak_binary_tails():
    assert to_decimal(0.1) == Decimal("0.1")


@pytest.mark.parametrize(
    "step,expected",
    [("0.01000000", 2), ("1.00000000", 0), ("0.00001000", 5), ("10", 0)],
)
def test_decimals_of_ignores_padding(step, expected):
    assert decimals_of(step) == expected


def test_round_to_tick_direction_follows_side():
    assert round_to_tick("100.017", "0.01", side="BUY") == Decimal("100.01")
    assert round_to_tick("100.011", "0.01", side="SELL") == Decimal("100.02")
    assert round_to_tick("100.01", "0.01", side="SELL") == Decimal("100.01")
    assert round_to_tick("100.017", "0.01") == Decimal("100.01")


def test_round_to_step_default_truncates():
    assert round_to_step("1.0019", "0.001") == Decimal("1.001")
    assert round_to_step("1.0011", "0.001", rounding="ROUND_UP") == Decimal("1.002")


def test_format_decimal_strips_trailing_zeros():
    assert format_decimal(Decimal("50.2500")) == "50.25"
    assert format_decimal(Decimal("2.000")) == "2"
    assert format_decimal(Decimal("0")) == "0"


def test_min_notional_pads_to_next_step():
    result = ensure_min_notional(qty="0.05", price="100", step_size="0.001", min_notional="10")
    assert result.qty == Decimal("0.100")
    assert result.adjustments == ["qty_increased_for_min_notional"]

    untouched = ensure_min_notional(qty="1", price="100", step_size="0.001", min_notional="10")
    assert untouched.qty == Decimal("1")
    assert untouched.adjustments == []
