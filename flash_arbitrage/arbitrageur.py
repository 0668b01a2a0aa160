"""
Deployed flash loan arbitrageur.

``FlashArbitrageur`` is the account the lending pool lends to and calls back.
It composes the access guard, the swap strategy, the callback engine, the
loan initiator and the treasury, and exposes the four boundary operations:
``request_loan``, ``execute_operation``, ``get_balance`` and ``withdraw``.
"""

from typing import Optional

from .config_loader import EngineConfig
from .engine import ArbitrageEngine
from .exceptions import ConfigurationError
from .guards import AccessGuard
from .initiator import LoanInitiator
from .interfaces import LendingPool, NativeCurrency, TimeProvider, TokenRegistry
from .metrics import EngineMetrics, get_metrics
from .strategies import create_strategy
from .treasury import TreasuryOps
from .utils import normalize_address, same_address


class FlashArbitrageur:
    """Flash loan receiver running a two-leg arbitrage."""

    def __init__(
        self,
        address: str,
        config: EngineConfig,
        router,
        lending_pool: LendingPool,
        tokens: TokenRegistry,
        native: Optional[NativeCurrency] = None,
        time_provider: Optional[TimeProvider] = None,
        metrics: Optional[EngineMetrics] = None,
    ):
        if not same_address(lending_pool.address, config.lending_pool_address):
            raise ConfigurationError(
                f"Lending pool {lending_pool.address} does not match configured "
                f"{config.lending_pool_address}"
            )

        self.address = normalize_address(address)
        self.config = config
        metrics = metrics or get_metrics()
        # Deadlines are judged against the chain the arbitrageur runs on
        time_provider = time_provider or tokens.time_provider

        self.access = AccessGuard(config.owner)
        self.strategy = create_strategy(config, router, self.address, time_provider)
        self.engine = ArbitrageEngine(
            config, self.address, self.strategy, tokens, time_provider, metrics
        )
        self.initiator = LoanInitiator(
            config, self.access, self.strategy, lending_pool, metrics
        )
        self.treasury = TreasuryOps(
            config, self.address, self.access, tokens, native, metrics
        )

    @property
    def owner(self) -> str:
        return self.config.owner

    def request_loan(
        self,
        caller: str,
        target_token: str,
        amount: int,
        min_out_buy: int = 0,
        fee_tier: Optional[int] = None,
        deadline: Optional[int] = None,
    ) -> None:
        """Owner-only: borrow ``amount`` base asset and arbitrage ``target_token``."""
        self.initiator.request_loan(
            caller,
            self,
            target_token,
            amount,
            min_out_buy=min_out_buy,
            fee_tier=fee_tier,
            deadline=deadline,
        )

    def execute_operation(
        self,
        caller: str,
        asset: str,
        amount: int,
        premium: int,
        initiator: str,
        params: bytes,
    ) -> bool:
        """Flash loan callback, invoked by the lending pool."""
        return self.engine.execute_operation(caller, asset, amount, premium, initiator, params)

    def get_balance(self, token: str) -> int:
        return self.treasury.get_balance(token)

    def withdraw(self, caller: str, token: str) -> int:
        """Owner-only: sweep the full balance of ``token`` to the owner."""
        return self.treasury.withdraw(caller, token)
