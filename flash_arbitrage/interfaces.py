"""
Dependency injection interfaces for the engine and its external collaborators.

Provides a time protocol (block timestamps) with production and deterministic
implementations, plus the protocols of the lending facility, the AMM routers
and the tokens the engine consumes. The paper chain implements all of them;
live adapters only need to match the same shapes.
"""

import time
from dataclasses import dataclass
from typing import List, Protocol, Sequence, runtime_checkable


@runtime_checkable
class TimeProvider(Protocol):
    """Protocol for time-related operations."""

    def current_timestamp(self) -> float:
        """Get current Unix timestamp."""
        ...

    def sleep(self, duration: float) -> None:
        """Sleep for specified duration in seconds."""
        ...


class SystemTimeProvider:
    """Production time provider using system time."""

    def current_timestamp(self) -> float:
        """Get current Unix timestamp."""
        return time.time()

    def sleep(self, duration: float) -> None:
        """Sleep for specified duration in seconds."""
        time.sleep(duration)


class DeterministicTimeProvider:
    """Deterministic time provider for testing and simulation."""

    def __init__(self, start_time: float = 1704067200.0):  # 2024-01-01
        self._current_time = start_time

    def current_timestamp(self) -> float:
        """Get current timestamp."""
        return self._current_time

    def sleep(self, duration: float) -> None:
        """Advance time by duration instead of actually sleeping."""
        self._current_time += duration

    def advance_time(self, seconds: float) -> None:
        """Manually advance time by specified seconds."""
        self._current_time += seconds


def block_timestamp(provider: TimeProvider) -> int:
    """Whole-second timestamp, as a block header would carry it."""
    return int(provider.current_timestamp())


# External collaborators


@runtime_checkable
class ERC20Token(Protocol):
    """Standard fungible token surface."""

    address: str

    def balance_of(self, account: str) -> int: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def approve(self, owner: str, spender: str, amount: int) -> bool: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> bool: ...

    def decimals(self) -> int: ...


@runtime_checkable
class WrappedNativeToken(ERC20Token, Protocol):
    """Token wrapping the chain's native currency."""

    def unwrap(self, account: str, amount: int) -> None: ...


@runtime_checkable
class NativeCurrency(Protocol):
    """Native currency balances and transfers."""

    def native_balance_of(self, account: str) -> int: ...

    def send_native(self, sender: str, recipient: str, amount: int) -> None: ...


@runtime_checkable
class TokenRegistry(Protocol):
    """Resolves token addresses to token contracts; carries the block clock."""

    time_provider: TimeProvider

    def token(self, address: str) -> ERC20Token: ...


@runtime_checkable
class FlashLoanReceiver(Protocol):
    """Contract the lending facility calls back during a flash loan."""

    address: str

    def execute_operation(
        self,
        caller: str,
        asset: str,
        amount: int,
        premium: int,
        initiator: str,
        params: bytes,
    ) -> bool: ...


@runtime_checkable
class LendingPool(Protocol):
    """Lending facility offering single-asset flash loans."""

    address: str

    def flash_loan(
        self,
        caller: str,
        receiver: FlashLoanReceiver,
        asset: str,
        amount: int,
        params: bytes,
        referral_code: int = 0,
    ) -> None: ...


@dataclass(frozen=True)
class ExactInputSingleParams:
    """Arguments of a single-pool exact-input swap."""

    token_in: str
    token_out: str
    fee: int
    recipient: str
    deadline: int
    amount_in: int
    amount_out_minimum: int
    sqrt_price_limit_x96: int = 0


@runtime_checkable
class FixedFeeRouter(Protocol):
    """Router swapping through a single pool chosen by fee tier."""

    address: str

    def exact_input_single(self, caller: str, params: ExactInputSingleParams) -> int: ...


@runtime_checkable
class PathRouter(Protocol):
    """Router swapping along a token path with read-only quotes."""

    address: str

    def swap_exact_tokens_for_tokens(
        self,
        caller: str,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        recipient: str,
        deadline: int,
    ) -> List[int]: ...

    def get_amounts_out(self, amount_in: int, path: Sequence[str]) -> List[int]: ...
