"""
Constants and enums for the flash arbitrage engine.

Centralizes numeric bounds, fee tiers and state enums shared by the engine,
the strategies and the paper chain.
"""

from enum import Enum


class StrategyVariant(Enum):
    """Swap strategy selected per deployment."""

    FIXED_FEE = "fixed_fee"
    PATH_SLIPPAGE = "path_slippage"


class ReentrancyState(Enum):
    """Callback lock state."""

    IDLE = "idle"
    ACTIVE = "active"


class ExecutionOutcome(Enum):
    """Outcome labels recorded for a callback execution."""

    SUCCESS = "success"
    FAILED = "failed"


# Solidity uint256 bounds
UINT256_MAX = 2**256 - 1
UINT24_MAX = 2**24 - 1
UINT8_MAX = 2**8 - 1

# Basis points
BPS_DENOMINATOR = 10_000

# Sell-back leg of the fixed-fee strategy accepts 95% of the buy leg output
FIXED_FEE_SELL_BACK_BPS = 9_500

# Uniswap V3 fee tiers, in hundredths of a bip
FEE_TIER_LOWEST = 100  # 0.01%
FEE_TIER_LOW = 500  # 0.05%
FEE_TIER_MEDIUM = 3_000  # 0.30%
FEE_TIER_HIGH = 10_000  # 1.00%
FEE_DENOMINATOR = 1_000_000

# Uniswap V2 routers charge a flat 0.30%
V2_FEE = FEE_TIER_MEDIUM

# Aave V3 flash loan premium
DEFAULT_FLASH_LOAN_PREMIUM_BPS = 5
DEFAULT_REFERRAL_CODE = 0

# Default block time the paper chain starts at (2024-01-01T00:00:00Z)
DEFAULT_GENESIS_TIMESTAMP = 1_704_067_200

