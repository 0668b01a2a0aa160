"""
Configuration loading and normalization for the flash arbitrage engine.

Loads YAML files, validates them against the pydantic schema and normalizes
the engine section into the immutable ``EngineConfig`` every component
receives explicitly.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from eth_account import Account

from .config_schema import EngineSettings, SimulationConfig, validate_config_dict
from .constants import BPS_DENOMINATOR, StrategyVariant
from .exceptions import ConfigurationError, ValidationError
from .utils import normalize_address, require_uint256


@dataclass(frozen=True)
class EngineConfig:
    """Immutable deployment configuration of one arbitrage engine."""

    owner: str
    base_asset_address: str
    router_address: str
    lending_pool_address: str
    variant: StrategyVariant
    slippage_tolerance_bps: Optional[int] = None
    min_profit: Optional[int] = None
    wrapped_native_address: Optional[str] = None
    validate_token_decimals: bool = False
    verify_lender_caller: bool = True

    def __post_init__(self):
        try:
            for name in (
                "owner",
                "base_asset_address",
                "router_address",
                "lending_pool_address",
            ):
                object.__setattr__(self, name, normalize_address(getattr(self, name)))
            if self.wrapped_native_address is not None:
                object.__setattr__(
                    self,
                    "wrapped_native_address",
                    normalize_address(self.wrapped_native_address),
                )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid engine address: {e}") from e

        if not isinstance(self.variant, StrategyVariant):
            try:
                object.__setattr__(self, "variant", StrategyVariant(self.variant))
            except ValueError as e:
                raise ConfigurationError(f"Unknown strategy variant: {self.variant}") from e

        if self.variant is StrategyVariant.PATH_SLIPPAGE:
            if self.slippage_tolerance_bps is None:
                raise ConfigurationError(
                    "path_slippage variant requires slippage_tolerance_bps"
                )
        if self.slippage_tolerance_bps is not None and not (
            0 <= self.slippage_tolerance_bps <= BPS_DENOMINATOR
        ):
            raise ConfigurationError(
                f"slippage_tolerance_bps out of range: {self.slippage_tolerance_bps}"
            )
        if self.min_profit is not None:
            try:
                require_uint256(self.min_profit, "min_profit")
            except ValidationError as e:
                raise ConfigurationError(str(e)) from e


def load_yaml_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load and parse YAML configuration file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to load config {config_path}: {e}")

    if config_dict is None:
        raise ConfigurationError(f"Empty configuration file: {config_path}")
    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

    return config_dict


def resolve_owner(settings: EngineSettings) -> str:
    """Owner address from settings, or derived from the owner's private key."""
    if settings.owner is not None:
        return settings.owner

    private_key = os.getenv(settings.owner_key_env)
    if not private_key:
        raise ConfigurationError(
            f"Owner key environment variable {settings.owner_key_env} not set"
        )
    try:
        return Account.from_key(private_key).address
    except (ValueError, TypeError) as e:
        raise ConfigurationError(
            f"Invalid private key in {settings.owner_key_env}: {e}"
        ) from e


def engine_config_from_settings(settings: EngineSettings) -> EngineConfig:
    """Normalize validated engine settings into an EngineConfig."""
    return EngineConfig(
        owner=resolve_owner(settings),
        base_asset_address=settings.base_asset,
        router_address=settings.router,
        lending_pool_address=settings.lending_pool,
        variant=StrategyVariant(settings.variant),
        slippage_tolerance_bps=settings.slippage_tolerance_bps,
        min_profit=settings.min_profit,
        wrapped_native_address=settings.wrapped_native,
        validate_token_decimals=settings.validate_token_decimals,
        verify_lender_caller=settings.verify_lender_caller,
    )


def load_simulation_config(config_path: Union[str, Path]) -> SimulationConfig:
    """
    Load and validate a configuration file.

    Raises:
        ConfigurationError: If the file cannot be loaded
        ValidationError: If the configuration fails schema validation
    """
    config_dict = load_yaml_config(config_path)

    try:
        return validate_config_dict(config_dict)
    except Exception as e:
        raise ValidationError(f"Configuration validation failed: {e}")


def load_engine_config(config_path: Union[str, Path]) -> EngineConfig:
    """Load a configuration file and return its normalized engine section."""
    return engine_config_from_settings(load_simulation_config(config_path).engine)
