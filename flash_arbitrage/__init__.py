"""
Flash Loan Arbitrage Engine.

Borrows a base asset through an uncollateralized flash loan, swaps it into a
target token and back through an AMM router, and approves repayment only when
the round trip covers principal, premium and an optional profit floor. Ships
with an in-memory paper chain for simulation.
"""

PROJECT_NAME = "Flash-Arbitrage-Engine"

from flash_arbitrage.version import __version__ as VERSION

from flash_arbitrage.arbitrageur import FlashArbitrageur
from flash_arbitrage.config_loader import (
    EngineConfig,
    load_engine_config,
    load_simulation_config,
)
from flash_arbitrage.constants import ReentrancyState, StrategyVariant
from flash_arbitrage.engine import ArbitrageEngine
from flash_arbitrage.exceptions import (
    AssetMismatchError,
    DeadlineExceededError,
    FlashArbitrageError,
    InsufficientProfitError,
    InsufficientRepaymentError,
    InvalidTokenError,
    ReentrancyError,
    SelfArbitrageError,
    UnauthorizedError,
)
from flash_arbitrage.guards import AccessGuard, ReentrancyGuard
from flash_arbitrage.initiator import LoanInitiator
from flash_arbitrage.invariants import InvariantChecker, RepaymentCheck
from flash_arbitrage.strategies import (
    FixedFeeSingleHopStrategy,
    PathSlippageStrategy,
    SwapStrategy,
    create_strategy,
)
from flash_arbitrage.treasury import TreasuryOps

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "FlashArbitrageur",
    "EngineConfig",
    "load_engine_config",
    "load_simulation_config",
    "ReentrancyState",
    "StrategyVariant",
    "ArbitrageEngine",
    "FlashArbitrageError",
    "UnauthorizedError",
    "ReentrancyError",
    "AssetMismatchError",
    "SelfArbitrageError",
    "DeadlineExceededError",
    "InvalidTokenError",
    "InsufficientRepaymentError",
    "InsufficientProfitError",
    "AccessGuard",
    "ReentrancyGuard",
    "LoanInitiator",
    "InvariantChecker",
    "RepaymentCheck",
    "SwapStrategy",
    "FixedFeeSingleHopStrategy",
    "PathSlippageStrategy",
    "create_strategy",
    "TreasuryOps",
]
