"""
Owner-triggered entry point that requests the flash loan.
"""

import logging
from typing import Optional

from .config_loader import EngineConfig
from .constants import DEFAULT_REFERRAL_CODE
from .exceptions import SelfArbitrageError
from .guards import AccessGuard
from .interfaces import FlashLoanReceiver, LendingPool
from .metrics import EngineMetrics, get_metrics
from .strategies import SwapStrategy
from .utils import normalize_address, require_uint256, same_address

logger = logging.getLogger(__name__)


class LoanInitiator:
    """Encodes an arbitrage request and asks the lending pool for the loan."""

    def __init__(
        self,
        config: EngineConfig,
        access: AccessGuard,
        strategy: SwapStrategy,
        lending_pool: LendingPool,
        metrics: Optional[EngineMetrics] = None,
    ):
        self.config = config
        self.access = access
        self.strategy = strategy
        self.lending_pool = lending_pool
        self.metrics = metrics or get_metrics()

    def request_loan(
        self,
        caller: str,
        receiver: FlashLoanReceiver,
        target_token: str,
        amount: int,
        min_out_buy: int = 0,
        fee_tier: Optional[int] = None,
        deadline: Optional[int] = None,
    ) -> None:
        """
        Request a flash loan of ``amount`` base asset to arbitrage against
        ``target_token``.

        Raises:
            UnauthorizedError: caller is not the owner
            SelfArbitrageError: target_token is the base asset
            ValidationError: swap values missing or out of range for the variant
        """
        self.access.require_owner(caller, "request_loan")

        target_token = normalize_address(target_token)
        if same_address(target_token, self.config.base_asset_address):
            raise SelfArbitrageError(
                "Cannot arbitrage the base asset against itself", token=target_token
            )
        require_uint256(amount, "amount")

        swap_params = self.strategy.build_params(
            min_out_buy=min_out_buy, fee_tier=fee_tier, deadline=deadline
        )
        payload = self.strategy.encode_params(target_token, swap_params)

        logger.info(
            f"LOAN_REQUESTED: {{'asset': '{self.config.base_asset_address}', "
            f"'amount': {amount}, 'target': '{target_token}', "
            f"'params': {swap_params}}}"
        )
        self.metrics.record_loan_requested(self.config.variant.value)
        self.lending_pool.flash_loan(
            receiver.address,
            receiver,
            self.config.base_asset_address,
            amount,
            payload,
            DEFAULT_REFERRAL_CODE,
        )
