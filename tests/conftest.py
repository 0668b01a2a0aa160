"""
Shared fixtures: a deterministic paper chain with three tokens, and a
``deploy`` factory wiring a FlashArbitrageur against either a real paper
router or a scripted one that pays fixed amounts.
"""

from dataclasses import dataclass
from typing import List, Optional

import pytest
from prometheus_client import CollectorRegistry
from web3 import Web3

from flash_arbitrage.arbitrageur import FlashArbitrageur
from flash_arbitrage.config_loader import EngineConfig
from flash_arbitrage.constants import DEFAULT_GENESIS_TIMESTAMP, StrategyVariant
from flash_arbitrage.exceptions import SwapError
from flash_arbitrage.interfaces import DeterministicTimeProvider
from flash_arbitrage.metrics import EngineMetrics
from flash_arbitrage.paper import (
    PaperChain,
    PaperLendingPool,
    PaperToken,
    PaperV2Router,
    PaperV3Router,
    WrappedNativeToken,
)


def address(n: int) -> str:
    return Web3.to_checksum_address(f"0x{n:040x}")


OWNER = address(0xA1)
STRANGER = address(0xBAD)
ARBITRAGEUR = address(0xF1A5)
LENDING_POOL = address(0x1E4D)
ROUTER = address(0x5A9)
USDC = address(0x1001)
WETH = address(0x1002)
WBTC = address(0x1003)

FEE_TIER = 3000


class ScriptedRouter:
    """
    Router paying a fixed output per swap, in call order.

    Implements both router surfaces. Inputs are pulled with transfer_from,
    so allowances are exercised exactly as with a real router.
    """

    def __init__(self, address: str, chain: PaperChain, outputs: List[int]):
        self.address = address
        self.chain = chain
        self.outputs = list(outputs)
        self.swap_count = 0
        self.calls = []

    def _next_output(self) -> int:
        return self.outputs[self.swap_count]

    def _settle(self, caller, token_in, token_out, amount_in, amount_out_min, recipient):
        self.chain.token(token_in).transfer_from(self.address, caller, self.address, amount_in)
        amount_out = self._next_output()
        if amount_out < amount_out_min:
            raise SwapError("Too little received", contract=self.address)
        self.chain.token(token_out).mint(recipient, amount_out)
        self.swap_count += 1
        return amount_out

    def exact_input_single(self, caller, params):
        self.calls.append(params)
        return self._settle(
            caller,
            params.token_in,
            params.token_out,
            params.amount_in,
            params.amount_out_minimum,
            params.recipient,
        )

    def get_amounts_out(self, amount_in, path):
        return [amount_in, self._next_output()]

    def swap_exact_tokens_for_tokens(
        self, caller, amount_in, amount_out_min, path, recipient, deadline
    ):
        self.calls.append((amount_in, amount_out_min, list(path), recipient, deadline))
        if self.chain.block_timestamp() > deadline:
            raise SwapError("EXPIRED", contract=self.address)
        amount_out = self._settle(
            caller, path[0], path[-1], amount_in, amount_out_min, recipient
        )
        return [amount_in, amount_out]


@dataclass
class Deployment:
    chain: PaperChain
    config: EngineConfig
    router: object
    lending_pool: PaperLendingPool
    arbitrageur: FlashArbitrageur
    metrics: EngineMetrics

    def balance(self, token: str, account: str = ARBITRAGEUR) -> int:
        return self.chain.token(token).balance_of(account)


def make_config(variant=StrategyVariant.FIXED_FEE, **overrides) -> EngineConfig:
    values = dict(
        owner=OWNER,
        base_asset_address=USDC,
        router_address=ROUTER,
        lending_pool_address=LENDING_POOL,
        variant=variant,
        wrapped_native_address=WETH,
    )
    if variant is StrategyVariant.PATH_SLIPPAGE:
        values["slippage_tolerance_bps"] = 50
    values.update(overrides)
    return EngineConfig(**values)


@pytest.fixture
def metrics():
    return EngineMetrics(CollectorRegistry())


@pytest.fixture
def time_provider():
    return DeterministicTimeProvider(float(DEFAULT_GENESIS_TIMESTAMP))


@pytest.fixture
def chain(time_provider):
    chain = PaperChain(time_provider)
    chain.add_token(PaperToken(USDC, "USDC", 6))
    chain.add_token(WrappedNativeToken(WETH, chain))
    chain.add_token(PaperToken(WBTC, "WBTC", 8))
    return chain


@pytest.fixture
def deploy(chain, metrics):
    """
    Factory deploying an arbitrageur.

    ``outputs`` selects a ScriptedRouter; otherwise a paper AMM router of the
    variant's kind is seeded with balanced USDC/WBTC pools.
    """

    def _deploy(
        variant=StrategyVariant.FIXED_FEE,
        outputs: Optional[List[int]] = None,
        router=None,
        premium_bps: int = 5,
        liquidity: int = 10**15,
        **config_overrides,
    ) -> Deployment:
        config = make_config(variant, **config_overrides)
        if router is None and outputs is not None:
            router = ScriptedRouter(ROUTER, chain, outputs)
        elif router is None:
            cls = PaperV3Router if variant is StrategyVariant.FIXED_FEE else PaperV2Router
            router = cls(ROUTER, chain)
            router.add_liquidity(USDC, WBTC, 10**13, 10**13, fee=FEE_TIER)

        lending_pool = PaperLendingPool(LENDING_POOL, chain, premium_bps)
        lending_pool.fund(USDC, liquidity)
        arbitrageur = FlashArbitrageur(
            ARBITRAGEUR,
            config,
            router,
            lending_pool,
            chain,
            native=chain,
            metrics=metrics,
        )
        return Deployment(chain, config, router, lending_pool, arbitrageur, metrics)

    return _deploy
