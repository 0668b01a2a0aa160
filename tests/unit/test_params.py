"""Tests for arbitrage request types and the payload codec."""

import pytest
from eth_abi import encode

from conftest import USDC, WBTC
from flash_arbitrage.constants import UINT24_MAX, StrategyVariant
from flash_arbitrage.exceptions import PayloadDecodingError, ValidationError
from flash_arbitrage.params import (
    ArbitrageRequest,
    FixedFeeParams,
    SlippageParams,
    decode_payload,
    encode_payload,
)


class TestSwapParams:
    def test_fixed_fee_params_bounds(self):
        assert FixedFeeParams(fee_tier=UINT24_MAX, min_out_buy=0).fee_tier == UINT24_MAX
        with pytest.raises(ValidationError):
            FixedFeeParams(fee_tier=0, min_out_buy=0)
        with pytest.raises(ValidationError):
            FixedFeeParams(fee_tier=UINT24_MAX + 1, min_out_buy=0)
        with pytest.raises(ValidationError):
            FixedFeeParams(fee_tier=3000, min_out_buy=-1)

    def test_slippage_params_require_uint256(self):
        with pytest.raises(ValidationError):
            SlippageParams(min_out_buy=0, deadline=-5)

    def test_request_deadline(self):
        fixed = ArbitrageRequest(USDC, 100, 1, WBTC, FixedFeeParams(3000, 0))
        path = ArbitrageRequest(USDC, 100, 1, WBTC, SlippageParams(0, 1704067500))
        assert fixed.deadline is None
        assert path.deadline == 1704067500


class TestPayloadCodec:
    def test_fixed_fee_payload_matches_abi_layout(self):
        payload = encode_payload(WBTC, FixedFeeParams(fee_tier=500, min_out_buy=42))
        assert payload == encode(["address", "uint24", "uint256"], [WBTC, 500, 42])
        assert len(payload) == 96

    def test_decode_fixed_fee(self):
        payload = encode_payload(WBTC.lower(), FixedFeeParams(fee_tier=500, min_out_buy=42))
        target, params = decode_payload(StrategyVariant.FIXED_FEE, payload)
        assert target == WBTC
        assert params == FixedFeeParams(fee_tier=500, min_out_buy=42)

    def test_decode_path(self):
        payload = encode_payload(WBTC, SlippageParams(min_out_buy=7, deadline=1704067500))
        target, params = decode_payload(StrategyVariant.PATH_SLIPPAGE, payload)
        assert target == WBTC
        assert params.deadline == 1704067500
        assert params.min_out_buy == 7

    def test_truncated_payload(self):
        payload = encode_payload(WBTC, FixedFeeParams(fee_tier=500, min_out_buy=42))
        with pytest.raises(PayloadDecodingError) as exc_info:
            decode_payload(StrategyVariant.FIXED_FEE, payload[:40])
        assert exc_info.value.variant == "fixed_fee"

    def test_out_of_range_fee_word_is_rejected(self):
        # A path payload whose second word does not fit a uint24 fee tier
        payload = encode_payload(WBTC, SlippageParams(min_out_buy=2**30, deadline=0))
        with pytest.raises(PayloadDecodingError):
            decode_payload(StrategyVariant.FIXED_FEE, payload)

    def test_non_bytes_payload(self):
        with pytest.raises(PayloadDecodingError):
            decode_payload(StrategyVariant.PATH_SLIPPAGE, "0xdeadbeef")

    def test_encode_rejects_unknown_params(self):
        with pytest.raises(ValidationError):
            encode_payload(WBTC, object())
