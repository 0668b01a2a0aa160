"""
Configuration schema validation using Pydantic
"""

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from web3 import Web3

from .constants import (
    DEFAULT_FLASH_LOAN_PREMIUM_BPS,
    DEFAULT_GENESIS_TIMESTAMP,
    FEE_TIER_MEDIUM,
    UINT24_MAX,
)


def _checksum(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not Web3.is_address(value):
        raise ValueError(f"Invalid address: {value}")
    return Web3.to_checksum_address(value)


class EngineSettings(BaseModel):
    """Deployment settings of one arbitrage engine"""

    owner: Optional[str] = Field(default=None, description="Owner address")
    owner_key_env: Optional[str] = Field(
        default=None, description="Env var holding the owner's private key"
    )
    base_asset: str = Field(description="Address of the borrowed asset")
    router: str = Field(description="Address of the AMM router")
    lending_pool: str = Field(description="Address of the lending facility")
    variant: Literal["fixed_fee", "path_slippage"]
    slippage_tolerance_bps: Optional[int] = Field(default=None, ge=0, le=10000)
    min_profit: Optional[int] = Field(
        default=None, ge=0, description="Profit floor in raw base asset units"
    )
    wrapped_native: Optional[str] = None
    validate_token_decimals: bool = False
    verify_lender_caller: bool = True

    @field_validator("owner", "base_asset", "router", "lending_pool", "wrapped_native")
    @classmethod
    def validate_address(cls, v):
        return _checksum(v)

    @model_validator(mode="after")
    def validate_variant_fields(self):
        if self.owner is None and not self.owner_key_env:
            raise ValueError("Either owner or owner_key_env must be set")
        if self.variant == "path_slippage" and self.slippage_tolerance_bps is None:
            raise ValueError("path_slippage variant requires slippage_tolerance_bps")
        return self


class TokenSettings(BaseModel):
    """Paper token definition"""

    symbol: str = Field(min_length=1, max_length=16)
    address: str
    decimals: int = Field(ge=0, le=255)
    wrapped_native: bool = False

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return _checksum(v)


class PoolSettings(BaseModel):
    """Paper liquidity pool, reserves in whole token units"""

    token_a: str
    token_b: str
    reserve_a: Decimal = Field(gt=0)
    reserve_b: Decimal = Field(gt=0)
    fee: int = Field(default=FEE_TIER_MEDIUM, gt=0, le=UINT24_MAX)

    @model_validator(mode="after")
    def validate_distinct_tokens(self):
        if self.token_a == self.token_b:
            raise ValueError(f"Pool tokens must differ: {self.token_a}")
        return self


class LendingPoolSettings(BaseModel):
    """Paper flash loan pool"""

    premium_bps: int = Field(default=DEFAULT_FLASH_LOAN_PREMIUM_BPS, ge=0, le=10000)
    liquidity: dict = Field(
        default_factory=dict, description="Available liquidity per token symbol"
    )

    @field_validator("liquidity")
    @classmethod
    def validate_liquidity(cls, v):
        for symbol, amount in v.items():
            if Decimal(str(amount)) < 0:
                raise ValueError(f"Liquidity for {symbol} cannot be negative: {amount}")
        return v


class PaperChainSettings(BaseModel):
    """In-memory chain used for simulation"""

    genesis_timestamp: int = Field(default=DEFAULT_GENESIS_TIMESTAMP, ge=0)
    arbitrageur: str = Field(description="Address the arbitrageur is deployed at")
    tokens: List[TokenSettings] = Field(min_length=2)
    pools: List[PoolSettings] = Field(min_length=1)
    lending_pool: LendingPoolSettings = Field(default_factory=LendingPoolSettings)
    initial_native: dict = Field(default_factory=dict)
    arbitrageur_balances: dict = Field(
        default_factory=dict,
        description="Token balances minted to the arbitrageur before the run, by symbol",
    )

    @field_validator("arbitrageur")
    @classmethod
    def validate_address(cls, v):
        return _checksum(v)

    @field_validator("initial_native")
    @classmethod
    def validate_initial_native(cls, v):
        normalized = {}
        for account, amount in v.items():
            if Decimal(str(amount)) < 0:
                raise ValueError(f"Native balance for {account} cannot be negative")
            normalized[_checksum(str(account))] = amount
        return normalized

    @model_validator(mode="after")
    def validate_references(self):
        symbols = [t.symbol for t in self.tokens]
        if len(set(symbols)) != len(symbols):
            raise ValueError("Token symbols must be unique")
        addresses = [t.address for t in self.tokens]
        if len(set(addresses)) != len(addresses):
            raise ValueError("Token addresses must be unique")
        if sum(1 for t in self.tokens if t.wrapped_native) > 1:
            raise ValueError("At most one token can be the wrapped native token")

        known = set(symbols)
        seen = set()
        for pool in self.pools:
            for symbol in (pool.token_a, pool.token_b):
                if symbol not in known:
                    raise ValueError(f"Pool references unknown token: {symbol}")
            key = (frozenset((pool.token_a, pool.token_b)), pool.fee)
            if key in seen:
                raise ValueError(
                    f"Duplicate pool {pool.token_a}/{pool.token_b} fee {pool.fee}"
                )
            seen.add(key)
        for symbol in self.lending_pool.liquidity:
            if symbol not in known:
                raise ValueError(f"Lending pool references unknown token: {symbol}")
        for symbol, amount in self.arbitrageur_balances.items():
            if symbol not in known:
                raise ValueError(f"Arbitrageur balance references unknown token: {symbol}")
            if Decimal(str(amount)) < 0:
                raise ValueError(f"Arbitrageur balance for {symbol} cannot be negative")
        return self


class SimulationConfig(BaseModel):
    """Top-level configuration file"""

    name: str = Field(default="flash_arbitrage", min_length=1)
    engine: EngineSettings
    paper: Optional[PaperChainSettings] = None

    @model_validator(mode="after")
    def validate_paper_consistency(self):
        if self.paper is None:
            return self
        by_address = {t.address: t for t in self.paper.tokens}
        if self.engine.base_asset not in by_address:
            raise ValueError("engine.base_asset is not a paper token")
        if self.engine.wrapped_native is not None:
            token = by_address.get(self.engine.wrapped_native)
            if token is None or not token.wrapped_native:
                raise ValueError(
                    "engine.wrapped_native must be the paper wrapped native token"
                )
        if self.engine.variant == "path_slippage":
            # The path router holds a single pool per pair
            pairs = set()
            for pool in self.paper.pools:
                pair = frozenset((pool.token_a, pool.token_b))
                if pair in pairs:
                    raise ValueError(
                        f"path_slippage allows one pool per pair: "
                        f"{pool.token_a}/{pool.token_b} declared twice"
                    )
                pairs.add(pair)
        return self


def validate_config_dict(config_dict: dict) -> SimulationConfig:
    """Validate a configuration dictionary"""
    return SimulationConfig(**config_dict)

