"""Common utilities."""

from .utils import sanitize_client_order_id
from .symbols import normalize_symbol, pair_symbol

__all__ = ["sanitize_client_order_id", "normalize_symbol", "pair_symbol"]
