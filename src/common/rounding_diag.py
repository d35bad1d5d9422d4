"""Optional diagnostics for the final payload of spot orders."""

from __future__ import annotations

import json
import logging
import os
from decimal import Decimal
from typing import Any, Mapping

from common.precision import format_decimal, to_decimal

__all__ = [
    "build_order_diag",
    "emit_rounding_diag",
    "format_rounding_diag_number",
    "is_rounding_diag_enabled",
]


_ENV_FLAG = "ROUNDING_DIAG"
_DEFAULT_LOGGER = logging.getLogger("bot.rounding_diag")


def is_rounding_diag_enabled() -> bool:
    """Return ``True`` when diagnostics are enabled via ``ROUNDING_DIAG``."""

    value = os.getenv(_ENV_FLAG)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def format_rounding_diag_number(value: Any) -> str | None:
    """Format ``value`` as a plain decimal string, or ``str(value)`` if it is not numeric."""

    if value is None:
        return None
    try:
        return format_decimal(to_decimal(value))
    except ValueError:
        return str(value)


def _is_multiple(value: Any, step: Decimal | None) -> bool | None:
    if value is None or not step:
        return None
    try:
        return to_decimal(value) % step == 0
    except ValueError:
        return None


def build_order_diag(
    payload: Mapping[str, Any],
    *,
    tick_size: Decimal | None = None,
    step_size: Decimal | None = None,
    tag: str = "order_payload",
) -> dict[str, Any]:
    """Summarize an order payload and whether it respects tick and step."""

    return {
        "tag": tag,
        "symbol": payload.get("symbol"),
        "side": payload.get("side"),
        "type": payload.get("type"),
        "price": format_rounding_diag_number(payload.get("price")),
        "qty": format_rounding_diag_number(payload.get("quantity")),
        "stop": format_rounding_diag_number(payload.get("stopPrice")),
        "price_is_multiple": _is_multiple(payload.get("price"), tick_size),
        "qty_is_multiple": _is_multiple(payload.get("quantity"), step_size),
        "cid": payload.get("newClientOrderId"),
    }


def emit_rounding_diag(
    payload: Mapping[str, Any], *, logger: logging.Logger | None = None
) -> None:
    """Serialize and emit ``payload`` if diagnostics are enabled."""

    if not is_rounding_diag_enabled():
        return
    target = logger or _DEFAULT_LOGGER
    target.info(json.dumps(dict(payload), ensure_ascii=False, separators=(",", ":")))
