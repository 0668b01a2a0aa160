"""
Flash loan callback execution engine.

``ArbitrageEngine.execute_operation`` runs inside the lending pool's flash
loan, after the borrowed funds have arrived and before the pool pulls
repayment. Sequence:

    guard -> lender check -> asset check -> decode -> deadline -> token probe
          -> swap out -> swap back -> invariant -> approve repayment

Any failure raises and the surrounding transaction reverts every effect made
since entry; the engine keeps no state across calls besides its lock.
"""

import logging
import time
from typing import Optional

from .config_loader import EngineConfig
from .constants import UINT8_MAX
from .exceptions import (
    AssetMismatchError,
    ChainError,
    ConfigurationError,
    DeadlineExceededError,
    FlashArbitrageError,
    InvalidTokenError,
    UnauthorizedError,
)
from .guards import ReentrancyGuard
from .interfaces import ERC20Token, TimeProvider, TokenRegistry, block_timestamp
from .invariants import InvariantChecker, RepaymentCheck
from .metrics import EngineMetrics, get_metrics
from .params import ArbitrageRequest
from .strategies import SwapStrategy
from .utils import normalize_address, require_uint256, same_address

logger = logging.getLogger(__name__)


class ArbitrageEngine:
    """Orchestrates the two swap legs and the repayment invariant."""

    def __init__(
        self,
        config: EngineConfig,
        account: str,
        strategy: SwapStrategy,
        tokens: TokenRegistry,
        time_provider: TimeProvider,
        metrics: Optional[EngineMetrics] = None,
    ):
        if strategy.variant is not config.variant:
            raise ConfigurationError(
                f"Strategy {strategy.variant.value} does not match configured "
                f"variant {config.variant.value}"
            )
        self.config = config
        self.account = normalize_address(account)
        self.strategy = strategy
        self.tokens = tokens
        self.time_provider = time_provider
        self.metrics = metrics or get_metrics()
        self.guard = ReentrancyGuard()
        self.invariants = InvariantChecker(config.min_profit)

    def execute_operation(
        self,
        caller: str,
        asset: str,
        amount: int,
        premium: int,
        initiator: str,
        params: bytes,
    ) -> bool:
        """
        Flash loan callback.

        Args:
            caller: Immediate caller, expected to be the lending pool
            asset: Borrowed asset
            amount: Loan principal, already credited to this account
            premium: Fee owed on top of the principal
            initiator: Account that requested the loan (informational)
            params: ABI-encoded arbitrage payload

        Returns:
            True once the lending pool is approved for principal plus premium

        Raises:
            FlashArbitrageError: Any guard, swap or invariant failure
        """
        variant = self.config.variant.value
        started = time.perf_counter()

        try:
            with self.guard.acquire():
                check = self._run(caller, asset, amount, premium, initiator, params)
        except FlashArbitrageError as e:
            duration = time.perf_counter() - started
            self.metrics.record_execution_failed(variant, type(e).__name__, duration)
            logger.error(
                f"EXECUTION_FAILED: {{'variant': '{variant}', 'reason': '{type(e).__name__}', "
                f"'message': '{e}'}}"
            )
            raise

        duration = time.perf_counter() - started
        self.metrics.record_execution_succeeded(
            variant, self.config.base_asset_address, check.profit, duration
        )
        logger.info(
            f"EXECUTION_COMPLETE: {{'variant': '{variant}', 'final_balance': "
            f"{check.final_balance}, 'amount_owed': {check.amount_owed}, "
            f"'profit': {check.profit}}}"
        )
        return True

    def decode_request(
        self, asset: str, amount: int, premium: int, params: bytes
    ) -> ArbitrageRequest:
        """Decode the opaque payload into an ArbitrageRequest."""
        target_token, swap_params = self.strategy.decode_params(params)
        return ArbitrageRequest(
            borrowed_asset=normalize_address(asset),
            borrowed_amount=amount,
            premium=premium,
            target_token=target_token,
            swap_params=swap_params,
        )

    def _run(self, caller, asset, amount, premium, initiator, params) -> RepaymentCheck:
        self._verify_caller(caller)

        if not same_address(asset, self.config.base_asset_address):
            raise AssetMismatchError(
                f"Borrowed asset {asset} is not the base asset",
                expected=self.config.base_asset_address,
                actual=asset,
            )
        require_uint256(amount, "amount")
        require_uint256(premium, "premium")

        request = self.decode_request(asset, amount, premium, params)
        self._check_deadline(request)

        logger.info(
            f"EXECUTION_START: {{'variant': '{self.config.variant.value}', "
            f"'asset': '{request.borrowed_asset}', 'amount': {amount}, "
            f"'premium': {premium}, 'target': '{request.target_token}', "
            f"'initiator': '{initiator}'}}"
        )

        base = self.tokens.token(self.config.base_asset_address)
        target = self._resolve_target(request.target_token)
        if self.config.validate_token_decimals:
            self._probe_decimals(target)

        bought = self.strategy.swap_out(base, target, amount, request.swap_params)

        # Realized balance, not the leg-1 figure, tolerates fee-on-transfer drift
        target_balance = target.balance_of(self.account)
        self.strategy.swap_back(target, base, target_balance, request.swap_params, bought)

        final_balance = base.balance_of(self.account)
        check = self.invariants.check(final_balance, amount, premium)

        base.approve(self.account, self.config.lending_pool_address, check.amount_owed)
        return check

    def _verify_caller(self, caller: str) -> None:
        if not self.config.verify_lender_caller:
            return
        if not same_address(caller, self.config.lending_pool_address):
            raise UnauthorizedError(
                f"Callback caller {caller} is not the lending pool",
                caller=caller,
                expected=self.config.lending_pool_address,
                details={"operation": "execute_operation"},
            )

    def _check_deadline(self, request: ArbitrageRequest) -> None:
        deadline = request.deadline
        if deadline is None:
            return
        now = block_timestamp(self.time_provider)
        if now > deadline:
            raise DeadlineExceededError(
                f"Deadline {deadline} passed at {now}", deadline=deadline, now=now
            )

    def _resolve_target(self, address: str) -> ERC20Token:
        try:
            return self.tokens.token(address)
        except ChainError as e:
            raise InvalidTokenError(f"Unknown target token {address}", token=address) from e

    def _probe_decimals(self, token: ERC20Token) -> None:
        try:
            decimals = token.decimals()
        except Exception as e:
            raise InvalidTokenError(
                f"decimals() probe failed for {token.address}: {e}", token=token.address
            ) from e

        if isinstance(decimals, bool) or not isinstance(decimals, int):
            raise InvalidTokenError(
                f"decimals() returned non-integer {decimals!r}", token=token.address
            )
        if decimals <= 0 or decimals > UINT8_MAX:
            raise InvalidTokenError(
                f"decimals() returned degenerate value {decimals}", token=token.address
            )
