"""
Builds a complete paper deployment from a simulation config: chain, tokens,
router with seeded pools, funded lending pool and the arbitrageur itself.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Union

from ..arbitrageur import FlashArbitrageur
from ..config_loader import EngineConfig, engine_config_from_settings
from ..config_schema import SimulationConfig
from ..constants import StrategyVariant
from ..exceptions import ConfigurationError, ValidationError
from ..interfaces import TimeProvider
from ..metrics import EngineMetrics
from ..utils import to_raw_amount
from .chain import PaperChain
from .lending_pool import PaperLendingPool
from .routers import PaperV2Router, PaperV3Router
from .tokens import PaperToken, WrappedNativeToken

NATIVE_DECIMALS = 18


@dataclass
class PaperEnvironment:
    """Everything deployed on one paper chain."""

    chain: PaperChain
    tokens: Dict[str, PaperToken]
    router: Union[PaperV2Router, PaperV3Router]
    lending_pool: PaperLendingPool
    arbitrageur: FlashArbitrageur
    engine_config: EngineConfig

    def token(self, symbol: str) -> PaperToken:
        try:
            return self.tokens[symbol]
        except KeyError:
            raise ValidationError(
                f"Unknown token symbol {symbol!r}; known: {', '.join(sorted(self.tokens))}"
            )

    def balances(self, account: str) -> Dict[str, int]:
        """Raw balance of every paper token held by account."""
        return {symbol: token.balance_of(account) for symbol, token in self.tokens.items()}


def build_paper_environment(
    config: SimulationConfig,
    time_provider: Optional[TimeProvider] = None,
    metrics: Optional[EngineMetrics] = None,
) -> PaperEnvironment:
    """Deploy the configured paper chain and arbitrageur."""
    paper = config.paper
    if paper is None:
        raise ConfigurationError("Configuration has no paper section")

    engine_config = engine_config_from_settings(config.engine)
    chain = PaperChain(time_provider, genesis_timestamp=paper.genesis_timestamp)

    tokens: Dict[str, PaperToken] = {}
    for entry in paper.tokens:
        if entry.wrapped_native:
            token = WrappedNativeToken(entry.address, chain, entry.symbol, entry.decimals)
        else:
            token = PaperToken(entry.address, entry.symbol, entry.decimals)
        tokens[entry.symbol] = chain.add_token(token)

    if engine_config.variant is StrategyVariant.FIXED_FEE:
        router = PaperV3Router(engine_config.router_address, chain)
    else:
        router = PaperV2Router(engine_config.router_address, chain)

    for pool in paper.pools:
        token_a, token_b = tokens[pool.token_a], tokens[pool.token_b]
        router.add_liquidity(
            token_a.address,
            token_b.address,
            to_raw_amount(pool.reserve_a, token_a.decimals()),
            to_raw_amount(pool.reserve_b, token_b.decimals()),
            fee=pool.fee,
        )

    lending_pool = PaperLendingPool(
        engine_config.lending_pool_address, chain, paper.lending_pool.premium_bps
    )
    for symbol, amount in paper.lending_pool.liquidity.items():
        token = tokens[symbol]
        lending_pool.fund(token.address, to_raw_amount(amount, token.decimals()))

    for account, amount in paper.initial_native.items():
        chain.credit_native(account, to_raw_amount(amount, NATIVE_DECIMALS))

    for symbol, amount in paper.arbitrageur_balances.items():
        token = tokens[symbol]
        token.mint(paper.arbitrageur, to_raw_amount(amount, token.decimals()))

    arbitrageur = FlashArbitrageur(
        paper.arbitrageur,
        engine_config,
        router,
        lending_pool,
        chain,
        native=chain,
        time_provider=chain.time_provider,
        metrics=metrics,
    )
    return PaperEnvironment(
        chain=chain,
        tokens=tokens,
        router=router,
        lending_pool=lending_pool,
        arbitrageur=arbitrageur,
        engine_config=engine_config,
    )
