"""Self-describing client order ids.

Entry orders carry their take-profit target in the id::

    <prefix><nonce><B|S>-<exit price>-<exit qty>

with ``.`` written as ``x`` (``csxlz3k9a1b04B-50x25-2x5``). The engine keeps
the same data in a side-table; the encoded copy is what lets orders found on
the exchange at startup be liquidated after a restart.
"""

from __future__ import annotations

import itertools
import time
from decimal import Decimal, InvalidOperation

from common.precision import format_decimal
from common.utils import CLIENT_ORDER_ID_MAX_LEN, sanitize_client_order_id
from core.domain.models.orders import ExitTarget, OrderSide

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_SEQUENCE = itertools.count()


def _base36(value: int) -> str:
    if value <= 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def _nonce(now_ms: int | None = None) -> str:
    stamp = int(time.time() * 1000) if now_ms is None else int(now_ms)
    seq = next(_SEQUENCE) % (36 * 36)
    return _base36(stamp) + _base36(seq).rjust(2, "0")


def _encode_number(value: Decimal) -> str:
    return format_decimal(value).replace(".", "x")


def _decode_number(text: str) -> Decimal:
    if not text or text.count("x") > 1:
        raise ValueError(f"Malformed number {text!r}")
    try:
        value = Decimal(text.replace("x", "."))
    except InvalidOperation as err:
        raise ValueError(f"Malformed number {text!r}") from err
    if not value.is_finite():
        raise ValueError(f"Malformed number {text!r}")
    return value


def encode_client_order_id(
    prefix: str,
    side: OrderSide,
    exit_price: Decimal,
    exit_qty: Decimal,
    *,
    now_ms: int | None = None,
) -> str:
    """Return a fresh client order id for an entry order.

    When the exit price and quantity do not fit in Binance's 36 characters
    only ``<prefix><nonce><B|S>`` is returned.
    """

    head = f"{prefix}{_nonce(now_ms)}{side.value[0]}"
    full = f"{head}-{_encode_number(exit_price)}-{_encode_number(exit_qty)}"
    if len(full) <= CLIENT_ORDER_ID_MAX_LEN:
        return sanitize_client_order_id(full)
    return sanitize_client_order_id(head)


def decode_client_order_id(client_order_id: str, prefix: str) -> ExitTarget | None:
    """Return the exit target embedded in ``client_order_id``.

    ``None`` is returned for ids without ``prefix`` or without a parseable
    ``-<price>-<qty>`` tail.
    """

    if not client_order_id or not client_order_id.startswith(prefix):
        return None
    parts = client_order_id.split("-")
    if len(parts) != 3:
        return None
    try:
        exit_price = _decode_number(parts[1])
        exit_qty = _decode_number(parts[2])
    except ValueError:
        return None
    if exit_price <= 0 or exit_qty <= 0:
        return None
    return ExitTarget(exit_price=exit_price, exit_qty=exit_qty)


__all__ = ["decode_client_order_id", "encode_client_order_id"]
