"""
Common utilities and helper functions for the flash arbitrage engine.

This module provides centralized helpers for logging, address normalization,
checked uint256 arithmetic, basis-point math and amount formatting.
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from web3 import Web3

from .constants import BPS_DENOMINATOR, UINT256_MAX
from .exceptions import ArithmeticOverflowError, ValidationError


# Timestamp utilities
def timestamp_to_iso(timestamp: float) -> str:
    """Convert Unix timestamp to ISO 8601 string."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


# JSON utilities
def safe_json_dump(data: Any, **kwargs) -> str:
    """
    Safely serialize data to JSON with sensible defaults.

    Args:
        data: Data to serialize
        **kwargs: Additional arguments to json.dumps

    Returns:
        JSON string
    """
    defaults = {"ensure_ascii": False, "indent": 2, "default": _json_default_handler}
    defaults.update(kwargs)
    return json.dumps(data, **defaults)


def _json_default_handler(obj: Any) -> Any:
    """Default JSON serialization handler for custom types."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    elif isinstance(obj, Decimal):
        return str(obj)
    elif hasattr(obj, "value") and hasattr(obj, "name"):
        return obj.value
    elif hasattr(obj, "__dict__"):
        return obj.__dict__
    else:
        return str(obj)


# Address utilities
def normalize_address(address: str) -> str:
    """
    Return the EIP-55 checksum form of an address.

    Raises:
        ValidationError: If the value is not a 20-byte hex address
    """
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ValidationError(f"Invalid address: {address!r}")
    return Web3.to_checksum_address(address)


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address comparison."""
    if a is None or b is None:
        return False
    return a.lower() == b.lower()


# Checked uint256 arithmetic
def require_uint256(value: Any, name: str = "amount") -> int:
    """Validate that value fits an unsigned 256-bit integer."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise ValidationError(f"{name} out of uint256 range: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    """Add two uint256 values, failing instead of wrapping."""
    result = a + b
    if result > UINT256_MAX:
        raise ArithmeticOverflowError(
            f"uint256 overflow: {a} + {b}", operation="add", operands=(a, b)
        )
    return result


def checked_sub(a: int, b: int) -> int:
    """Subtract two uint256 values, failing instead of wrapping."""
    if b > a:
        raise ArithmeticOverflowError(
            f"uint256 underflow: {a} - {b}", operation="sub", operands=(a, b)
        )
    return a - b


def checked_mul(a: int, b: int) -> int:
    """Multiply two uint256 values, failing instead of wrapping."""
    result = a * b
    if result > UINT256_MAX:
        raise ArithmeticOverflowError(
            f"uint256 overflow: {a} * {b}", operation="mul", operands=(a, b)
        )
    return result


# Math utilities
def apply_bps(amount: int, bps: int) -> int:
    """Scale amount by bps / 10000, rounding down."""
    return checked_mul(amount, bps) // BPS_DENOMINATOR


def slippage_floor(expected: int, tolerance_bps: int) -> int:
    """Minimum acceptable output for an expected output and tolerance."""
    if not 0 <= tolerance_bps <= BPS_DENOMINATOR:
        raise ValidationError(f"Slippage tolerance out of range: {tolerance_bps} bps")
    return apply_bps(expected, BPS_DENOMINATOR - tolerance_bps)


def format_token_amount(amount: int, decimals: int, precision: int = 6) -> str:
    """Render a raw token amount in whole units."""
    scaled = Decimal(amount) / (Decimal(10) ** decimals)
    return f"{scaled:.{precision}f}"


def to_raw_amount(amount: Union[str, float, Decimal], decimals: int) -> int:
    """Convert a whole-unit amount to raw integer units, truncating."""
    return int(Decimal(str(amount)) * (Decimal(10) ** decimals))


# Logging utilities
def get_logger(
    name: str,
    level: Union[str, int] = logging.INFO,
    extra: Optional[Dict[str, Any]] = None,
    minimal: bool = False,
) -> logging.Logger:
    """
    Get a structured logger with consistent formatting and extra context.

    Args:
        name: Logger name (typically __name__)
        level: Logging level
        extra: Additional context fields to include in all log messages
        minimal: If True, use simplified format (time + message only)

    Returns:
        Configured logger with structured output
    """
    logger = logging.getLogger(name)

    # Set level if not already set
    if logger.level == logging.NOTSET:
        logger.setLevel(level)

    # Add structured formatter if no handlers exist
    if not logger.handlers:
        handler = logging.StreamHandler()

        if minimal:
            format_str = "%(asctime)s | %(message)s"
        else:
            format_str = (
                "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | " "%(message)s"
            )

        if extra:
            extra_fields = " | ".join([f"{k}=%(extra_{k})s" for k in extra.keys()])
            format_str = format_str.replace(
                " | %(message)s", f" | {extra_fields} | %(message)s"
            )

        formatter = logging.Formatter(format_str, datefmt="%H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if extra:
            logger = logging.LoggerAdapter(
                logger, {"extra_" + k: v for k, v in extra.items()}
            )

    return logger
