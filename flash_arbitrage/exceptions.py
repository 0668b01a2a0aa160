"""
Exception hierarchy for the flash arbitrage engine.

Every failure is fatal to the transaction that raised it. The engine never
retries or recovers internally; the surrounding execution environment
reverts all effects and the caller sees one specific error.
"""

from typing import Optional, Dict, Any


class FlashArbitrageError(Exception):
    """Base exception for all flash arbitrage related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(FlashArbitrageError):
    """Raised when there are configuration-related issues."""

    pass


class ValidationError(FlashArbitrageError):
    """Raised when validation of data or configuration fails."""

    pass


class PayloadDecodingError(ValidationError):
    """Raised when a flash loan payload cannot be decoded for the active strategy."""

    def __init__(
        self,
        message: str,
        variant: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.variant = variant


class ArithmeticOverflowError(FlashArbitrageError):
    """Raised when checked uint256 arithmetic would overflow or underflow."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        operands: Optional[tuple] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.operation = operation
        self.operands = operands


class UnauthorizedError(FlashArbitrageError):
    """Raised when a caller is not allowed to invoke an operation."""

    def __init__(
        self,
        message: str,
        caller: Optional[str] = None,
        expected: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.caller = caller
        self.expected = expected


class ReentrancyError(FlashArbitrageError):
    """Raised when the callback is re-entered while already active."""

    pass


class AssetMismatchError(FlashArbitrageError):
    """Raised when the loaned asset is not the configured base asset."""

    def __init__(
        self,
        message: str,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.expected = expected
        self.actual = actual


class SelfArbitrageError(FlashArbitrageError):
    """Raised when the target token equals the base asset."""

    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.token = token


class DeadlineExceededError(FlashArbitrageError):
    """Raised when the request deadline has passed at callback entry."""

    def __init__(
        self,
        message: str,
        deadline: Optional[int] = None,
        now: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.deadline = deadline
        self.now = now


class InvalidTokenError(FlashArbitrageError):
    """Raised when the target token fails the decimals probe."""

    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.token = token


class InsufficientRepaymentError(FlashArbitrageError):
    """Raised when the final balance cannot cover principal plus premium."""

    def __init__(
        self,
        message: str,
        required: Optional[int] = None,
        available: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.required = required
        self.available = available


class InsufficientProfitError(FlashArbitrageError):
    """Raised when the final balance misses the configured profit floor."""

    def __init__(
        self,
        message: str,
        required: Optional[int] = None,
        available: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.required = required
        self.available = available


class ChainError(FlashArbitrageError):
    """Raised by an external collaborator (token, router, lending pool)."""

    def __init__(
        self,
        message: str,
        contract: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.contract = contract


class TokenTransferError(ChainError):
    """Raised when a token transfer lacks balance or allowance."""

    pass


class SwapError(ChainError):
    """Raised when a router rejects a swap."""

    pass


class FlashLoanError(ChainError):
    """Raised when the lending pool rejects or cannot settle a flash loan."""

    pass
