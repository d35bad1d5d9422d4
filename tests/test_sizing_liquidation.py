from __future__ import annotations

from decimal import Decimal

import pytest

from core.domain.models.market import FeeSchedule
from core.domain.models.orders import OrderSide
from strategies.channel_scalper.liquidation import (
    confirm_entry_exit_qty,
    liquidation_price,
    take_profit_pips,
)
from strategies.channel_scalper.sizing import (
    can_afford,
    entry_quantity,
    format_quantity,
    is_exchange_legal,
)


# ---------------------------------------------------------------------------
# Position sizer


def test_scenario_spend_fraction_of_quote_balance(rules):
    qty = entry_quantity(OrderSide.BUY, Decimal("100"), rules, Decimal("0.1"))
    assert qty == Decimal("1.000")
    assert qty * Decimal("100") <= rules.quote.balance


def test_sell_spends_fraction_of_base_balance(rules):
    qty = entry_quantity(OrderSide.SELL, Decimal("100"), rules, Decimal("0.1"))
    assert qty == Decimal("1.000")


def test_quantity_is_raised_to_min_notional(make_rules):
    rules = make_rules(quote_balance="50")
    qty = entry_quantity(OrderSide.BUY, Decimal("100"), rules, Decimal("0.1"))
    assert qty == Decimal("0.100")
    assert qty * Decimal("100") >= rules.min_notional


def test_unaffordable_order_returns_zero(make_rules):
    rules = make_rules(quote_balance="5")
    assert entry_quantity(OrderSide.BUY, Decimal("100"), rules, Decimal("0.1")) == 0


def test_unknown_balance_returns_zero(make_rules):
    rules = make_rules(quote_balance=None, base_balance=None)
    assert entry_quantity(OrderSide.BUY, Decimal("100"), rules, Decimal("0.1")) == 0
    assert entry_quantity(OrderSide.SELL, Decimal("100"), rules, Decimal("0.1")) == 0


def test_non_positive_price_returns_zero(rules):
    assert entry_quantity(OrderSide.BUY, Decimal("0"), rules, Decimal("0.1")) == 0


def test_quantity_is_capped_at_max_qty(make_rules):
    rules = make_rules(quote_balance="1000000", max_qty="5")
    qty = entry_quantity(OrderSide.BUY, Decimal("100"), rules, Decimal("0.1"))
    assert qty == Decimal("5.000")


@pytest.mark.parametrize("balance", ["0.5", "12", "99.99", "1000", "123456"])
@pytest.mark.parametrize("price", ["0.37", "99.99", "100", "2500.5"])
def test_sizer_output_is_legal_or_zero(make_rules, balance, price):
    rules = make_rules(quote_balance=balance, base_balance=balance, max_qty="50")
    for side in OrderSide:
        qty = entry_quantity(side, Decimal(price), rules, Decimal("0.1"))
        if qty == 0:
            continue
        assert rules.base.min_qty <= qty <= rules.base.max_qty
        assert qty * Decimal(price) >= rules.min_notional
        assert can_afford(side, qty, Decimal(price), rules)


def test_format_quantity_rounds_up_to_step(rules):
    assert format_quantity(Decimal("1.0001"), Decimal("100"), rules) == Decimal("1.001")
    assert format_quantity(Decimal("0.0001"), Decimal("100000"), rules) == Decimal("0.001")


def test_is_exchange_legal(rules):
    assert is_exchange_legal(Decimal("1"), Decimal("100"), rules)
    assert not is_exchange_legal(Decimal("0.01"), Decimal("100"), rules)
    assert not is_exchange_legal(Decimal("0"), Decimal("100"), rules)


# ---------------------------------------------------------------------------
# Liquidation pricer


def test_take_profit_pips_use_the_earning_asset_precision(rules):
    assert take_profit_pips(OrderSide.BUY, rules) == Decimal("0.01")
    assert take_profit_pips(OrderSide.SELL, rules, 3) == Decimal("3E-8")


def test_buy_exit_price_example(rules, fees):
    exit_price = liquidation_price(
        OrderSide.BUY,
        Decimal("1"),
        Decimal("100"),
        fees=fees,
        rules=rules,
        min_profit=Decimal("0.01"),
    )
    assert exit_price == Decimal("100.22")


def test_sell_exit_price_example(rules, fees):
    exit_price = liquidation_price(
        OrderSide.SELL,
        Decimal("1"),
        Decimal("100"),
        fees=fees,
        rules=rules,
        min_profit=Decimal("1E-8"),
    )
    assert exit_price == Decimal("99.80")


@pytest.mark.parametrize("maker", ["0", "0.075", "0.1", "0.5"])
@pytest.mark.parametrize("volume", ["0.001", "1", "3.7"])
@pytest.mark.parametrize("price", ["0.05", "99.99", "4321.5"])
def test_buy_round_trip_is_profitable(rules, maker, volume, price):
    fees = FeeSchedule(maker=Decimal(maker))
    factor = fees.maker_factor
    V, P, m = Decimal(volume), Decimal(price), Decimal("0.01")
    X = liquidation_price(OrderSide.BUY, V, P, fees=fees, rules=rules, min_profit=m)
    assert X > P
    assert V * X * factor * factor - V * P >= m
    assert V * X * factor - V * P >= m


@pytest.mark.parametrize("maker", ["0", "0.075", "0.1", "0.5"])
@pytest.mark.parametrize("volume", ["0.001", "1", "3.7"])
@pytest.mark.parametrize("price", ["0.05", "99.99", "4321.5"])
def test_sell_round_trip_is_profitable(rules, maker, volume, price):
    fees = FeeSchedule(maker=Decimal(maker))
    factor = fees.maker_factor
    V, P, m = Decimal(volume), Decimal(price), Decimal("1E-8")
    X = liquidation_price(OrderSide.SELL, V, P, fees=fees, rules=rules, min_profit=m)
    assert X < P
    assert V * P * factor * factor / X - V >= m


def test_min_ticks_widens_the_exit(rules):
    fees = FeeSchedule(maker=Decimal("0"))
    X = liquidation_price(
        OrderSide.BUY,
        Decimal("1"),
        Decimal("100"),
        fees=fees,
        rules=rules,
        min_profit=Decimal("0.01"),
        min_ticks=5,
    )
    assert X == Decimal("100.05")


def test_no_exit_without_volume_or_price(rules, fees):
    assert liquidation_price(OrderSide.BUY, 0, 100, fees=fees, rules=rules, min_profit=Decimal("0.01")) is None
    assert liquidation_price(OrderSide.SELL, 1, 0, fees=fees, rules=rules, min_profit=Decimal("0.01")) is None
    full_fee = FeeSchedule(maker=Decimal("100"))
    assert liquidation_price(OrderSide.BUY, 1, 100, fees=full_fee, rules=rules, min_profit=Decimal("0.01")) is None


def test_sell_exit_below_one_tick_is_rejected(rules, fees):
    assert liquidation_price(
        OrderSide.SELL,
        Decimal("1"),
        Decimal("0.01"),
        fees=fees,
        rules=rules,
        min_profit=Decimal("1E-8"),
    ) is None


def test_confirmed_buy_quantities_cover_the_exit(rules, fees):
    confirmed = confirm_entry_exit_qty(
        Decimal("99.99"),
        Decimal("100.21"),
        Decimal("1.001"),
        OrderSide.BUY,
        fees=fees,
        rules=rules,
    )
    assert confirmed.exit_qty == Decimal("1.000")
    assert confirmed.entry_qty == Decimal("1.002")
    assert confirmed.entry_qty * fees.maker_factor >= confirmed.exit_qty


def test_confirmed_sell_quantities_cover_the_exit(rules, fees):
    confirmed = confirm_entry_exit_qty(
        Decimal("100"),
        Decimal("99.80"),
        Decimal("1"),
        OrderSide.SELL,
        fees=fees,
        rules=rules,
    )
    proceeds = confirmed.entry_qty * Decimal("100") * fees.maker_factor
    assert confirmed.exit_qty * Decimal("99.80") <= proceeds


def test_confirm_returns_zero_for_missing_inputs(rules, fees):
    confirmed = confirm_entry_exit_qty(
        Decimal("100"), Decimal("101"), Decimal("0"), OrderSide.BUY, fees=fees, rules=rules
    )
    assert confirmed.entry_qty == 0 and confirmed.exit_qty == 0
