"""
Arbitrage request types and the flash loan payload codec.

The payload travels through the lending pool as opaque bytes. It is ABI
encoded exactly as a Solidity receiver would expect:

    fixed-fee variant:  (address targetToken, uint24 feeTier, uint256 minOutBuy)
    path variant:       (address targetToken, uint256 minOutBuy, uint256 deadline)
"""

from dataclasses import dataclass
from typing import Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from web3 import Web3

from .constants import UINT24_MAX, StrategyVariant
from .exceptions import PayloadDecodingError, ValidationError
from .utils import normalize_address, require_uint256

FIXED_FEE_PAYLOAD_TYPES = ["address", "uint24", "uint256"]
SLIPPAGE_PAYLOAD_TYPES = ["address", "uint256", "uint256"]


@dataclass(frozen=True)
class FixedFeeParams:
    """Swap parameters of the fixed-fee single-hop strategy."""

    fee_tier: int
    min_out_buy: int

    def __post_init__(self):
        if isinstance(self.fee_tier, bool) or not isinstance(self.fee_tier, int):
            raise ValidationError(f"fee_tier must be an integer: {self.fee_tier!r}")
        if not 0 < self.fee_tier <= UINT24_MAX:
            raise ValidationError(f"fee_tier out of uint24 range: {self.fee_tier}")
        require_uint256(self.min_out_buy, "min_out_buy")


@dataclass(frozen=True)
class SlippageParams:
    """Swap parameters of the path-based strategy."""

    min_out_buy: int
    deadline: int

    def __post_init__(self):
        require_uint256(self.min_out_buy, "min_out_buy")
        require_uint256(self.deadline, "deadline")


SwapParams = Union[FixedFeeParams, SlippageParams]


@dataclass(frozen=True)
class ArbitrageRequest:
    """One flash loan arbitrage, as seen inside the repayment callback."""

    borrowed_asset: str
    borrowed_amount: int
    premium: int
    target_token: str
    swap_params: SwapParams

    @property
    def deadline(self):
        """Request deadline, or None when the variant carries none."""
        return getattr(self.swap_params, "deadline", None)


def encode_payload(target_token: str, swap_params: SwapParams) -> bytes:
    """ABI-encode the target token and swap parameters."""
    target = normalize_address(target_token)
    try:
        if isinstance(swap_params, FixedFeeParams):
            return encode(
                FIXED_FEE_PAYLOAD_TYPES,
                [target, swap_params.fee_tier, swap_params.min_out_buy],
            )
        if isinstance(swap_params, SlippageParams):
            return encode(
                SLIPPAGE_PAYLOAD_TYPES,
                [target, swap_params.min_out_buy, swap_params.deadline],
            )
    except EncodingError as e:
        raise ValidationError(f"Cannot encode swap parameters: {e}") from e
    raise ValidationError(f"Unsupported swap parameters: {type(swap_params).__name__}")


def decode_payload(variant: StrategyVariant, payload: bytes):
    """
    Decode a payload produced by ``encode_payload`` for the given variant.

    Returns:
        Tuple of (target_token, swap_params)

    Raises:
        PayloadDecodingError: If the bytes do not decode for the variant
    """
    if not isinstance(payload, (bytes, bytearray)):
        raise PayloadDecodingError(
            f"Payload must be bytes, got {type(payload).__name__}",
            variant=variant.value,
        )

    types = (
        FIXED_FEE_PAYLOAD_TYPES
        if variant is StrategyVariant.FIXED_FEE
        else SLIPPAGE_PAYLOAD_TYPES
    )
    try:
        target, first, second = decode(types, bytes(payload))
    except (DecodingError, ValueError, TypeError) as e:
        raise PayloadDecodingError(
            f"Malformed {variant.value} payload: {e}", variant=variant.value
        ) from e

    target = Web3.to_checksum_address(target)
    try:
        if variant is StrategyVariant.FIXED_FEE:
            return target, FixedFeeParams(fee_tier=first, min_out_buy=second)
        return target, SlippageParams(min_out_buy=first, deadline=second)
    except ValidationError as e:
        raise PayloadDecodingError(str(e), variant=variant.value) from e
