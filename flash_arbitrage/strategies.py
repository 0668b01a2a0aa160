"""
Swap strategies for the two legs of a flash loan arbitrage.

One strategy is chosen per deployment:

- ``FixedFeeSingleHopStrategy`` swaps through a single pool at a caller
  chosen fee tier. The sell-back leg accepts no less than 95% of what the buy
  leg realized.
- ``PathSlippageStrategy`` swaps along ``[base, target]`` and back, pricing
  the sell-back floor from a live router quote minus the configured slippage
  tolerance.

Both grant the router an allowance of exactly the leg's input before each
leg and rely on the router to revert when output falls below the minimum.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from .config_loader import EngineConfig
from .constants import FIXED_FEE_SELL_BACK_BPS, StrategyVariant
from .exceptions import ConfigurationError, ValidationError
from .interfaces import (
    ERC20Token,
    ExactInputSingleParams,
    TimeProvider,
    block_timestamp,
)
from .params import (
    FixedFeeParams,
    SlippageParams,
    SwapParams,
    decode_payload,
    encode_payload,
)
from .utils import apply_bps, normalize_address, same_address, slippage_floor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapOutcome:
    """Realized result of one swap leg."""

    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    min_amount_out: int


class SwapStrategy(ABC):
    """Executes the buy (base -> target) and sell-back (target -> base) legs."""

    variant: StrategyVariant

    def __init__(self, router, account: str, time_provider: TimeProvider):
        self.router = router
        self.account = normalize_address(account)
        self.time_provider = time_provider

    @abstractmethod
    def build_params(
        self,
        min_out_buy: int = 0,
        fee_tier: Optional[int] = None,
        deadline: Optional[int] = None,
    ) -> SwapParams:
        """Build this variant's swap parameters from caller-supplied values."""

    @abstractmethod
    def swap_out(
        self, base: ERC20Token, target: ERC20Token, amount_in: int, params: SwapParams
    ) -> SwapOutcome:
        """Leg 1: spend base asset, receive target token."""

    @abstractmethod
    def swap_back(
        self,
        target: ERC20Token,
        base: ERC20Token,
        amount_in: int,
        params: SwapParams,
        previous: SwapOutcome,
    ) -> SwapOutcome:
        """Leg 2: spend target token, receive base asset."""

    def encode_params(self, target_token: str, params: SwapParams) -> bytes:
        return encode_payload(target_token, params)

    def decode_params(self, payload: bytes) -> Tuple[str, SwapParams]:
        return decode_payload(self.variant, payload)

    def _approve_router(self, token: ERC20Token, amount: int) -> None:
        # Fresh allowance per leg; residual allowances are never relied upon
        token.approve(self.account, self.router.address, amount)

    def _log_leg(self, leg: str, outcome: SwapOutcome) -> None:
        logger.info(
            f"SWAP_{leg}: "
            f"{{'variant': '{self.variant.value}', 'token_in': '{outcome.token_in}', "
            f"'token_out': '{outcome.token_out}', 'amount_in': {outcome.amount_in}, "
            f"'amount_out': {outcome.amount_out}, 'min_out': {outcome.min_amount_out}}}"
        )


class FixedFeeSingleHopStrategy(SwapStrategy):
    """Single-pool swaps at an explicit fee tier."""

    variant = StrategyVariant.FIXED_FEE

    def build_params(self, min_out_buy=0, fee_tier=None, deadline=None) -> FixedFeeParams:
        if fee_tier is None:
            raise ValidationError("fixed_fee strategy requires a fee_tier")
        if deadline is not None:
            logger.debug("Ignoring deadline: fixed_fee swaps use the block timestamp")
        return FixedFeeParams(fee_tier=fee_tier, min_out_buy=min_out_buy)

    def _swap(self, token_in, token_out, amount_in, fee_tier, min_out) -> SwapOutcome:
        self._approve_router(token_in, amount_in)
        amount_out = self.router.exact_input_single(
            self.account,
            ExactInputSingleParams(
                token_in=token_in.address,
                token_out=token_out.address,
                fee=fee_tier,
                recipient=self.account,
                deadline=block_timestamp(self.time_provider),
                amount_in=amount_in,
                amount_out_minimum=min_out,
            ),
        )
        return SwapOutcome(
            token_in=token_in.address,
            token_out=token_out.address,
            amount_in=amount_in,
            amount_out=amount_out,
            min_amount_out=min_out,
        )

    def swap_out(self, base, target, amount_in, params):
        outcome = self._swap(base, target, amount_in, params.fee_tier, params.min_out_buy)
        self._log_leg("OUT", outcome)
        return outcome

    def swap_back(self, target, base, amount_in, params, previous):
        min_out = apply_bps(previous.amount_out, FIXED_FEE_SELL_BACK_BPS)
        outcome = self._swap(target, base, amount_in, params.fee_tier, min_out)
        self._log_leg("BACK", outcome)
        return outcome


class PathSlippageStrategy(SwapStrategy):
    """Path swaps with a quote-derived sell-back floor."""

    variant = StrategyVariant.PATH_SLIPPAGE

    def __init__(
        self,
        router,
        account: str,
        slippage_tolerance_bps: int,
        time_provider: TimeProvider,
    ):
        super().__init__(router, account, time_provider)
        self.slippage_tolerance_bps = slippage_tolerance_bps

    def build_params(self, min_out_buy=0, fee_tier=None, deadline=None) -> SlippageParams:
        if deadline is None:
            raise ValidationError("path_slippage strategy requires a deadline")
        if fee_tier is not None:
            logger.debug("Ignoring fee_tier: path router pools carry their own fee")
        return SlippageParams(min_out_buy=min_out_buy, deadline=deadline)

    def _swap(self, token_in, token_out, amount_in, min_out, deadline) -> SwapOutcome:
        self._approve_router(token_in, amount_in)
        amounts = self.router.swap_exact_tokens_for_tokens(
            self.account,
            amount_in,
            min_out,
            [token_in.address, token_out.address],
            self.account,
            deadline,
        )
        return SwapOutcome(
            token_in=token_in.address,
            token_out=token_out.address,
            amount_in=amount_in,
            amount_out=amounts[-1],
            min_amount_out=min_out,
        )

    def swap_out(self, base, target, amount_in, params):
        outcome = self._swap(base, target, amount_in, params.min_out_buy, params.deadline)
        self._log_leg("OUT", outcome)
        return outcome

    def swap_back(self, target, base, amount_in, params, previous):
        expected = self.router.get_amounts_out(amount_in, [target.address, base.address])[-1]
        min_out = slippage_floor(expected, self.slippage_tolerance_bps)
        logger.debug(
            f"Sell-back quote: expected={expected} tolerance_bps={self.slippage_tolerance_bps} "
            f"min_out={min_out}"
        )
        outcome = self._swap(target, base, amount_in, min_out, params.deadline)
        self._log_leg("BACK", outcome)
        return outcome


def create_strategy(
    config: EngineConfig,
    router,
    account: str,
    time_provider: TimeProvider,
) -> SwapStrategy:
    """Select the swap strategy for a deployment."""
    if not same_address(router.address, config.router_address):
        raise ConfigurationError(
            f"Router {router.address} does not match configured {config.router_address}"
        )

    if config.variant is StrategyVariant.FIXED_FEE:
        return FixedFeeSingleHopStrategy(router, account, time_provider)
    if config.variant is StrategyVariant.PATH_SLIPPAGE:
        return PathSlippageStrategy(
            router, account, config.slippage_tolerance_bps, time_provider
        )
    raise ConfigurationError(f"Unsupported strategy variant: {config.variant}")
