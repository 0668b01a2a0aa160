"""Tests for the paper chain: tokens, routers, lending pool and atomicity."""

import pytest

from conftest import ARBITRAGEUR, LENDING_POOL, OWNER, ROUTER, STRANGER, USDC, WBTC, WETH, address
from flash_arbitrage.constants import UINT256_MAX
from flash_arbitrage.exceptions import (
    ChainError,
    FlashLoanError,
    SwapError,
    TokenTransferError,
)
from flash_arbitrage.interfaces import ExactInputSingleParams
from flash_arbitrage.paper import (
    FeeOnTransferToken,
    PaperLendingPool,
    PaperToken,
    PaperV2Router,
    PaperV3Router,
    get_amount_out,
)
from flash_arbitrage.paper.routers import _PaperRouter


class TestPaperToken:
    def test_transfer_and_allowance(self, chain):
        usdc = chain.token(USDC)
        usdc.mint(OWNER, 100)
        usdc.approve(OWNER, STRANGER, 60)

        usdc.transfer_from(STRANGER, OWNER, ARBITRAGEUR, 40)

        assert usdc.balance_of(ARBITRAGEUR) == 40
        assert usdc.allowance(OWNER, STRANGER) == 20
        with pytest.raises(TokenTransferError):
            usdc.transfer_from(STRANGER, OWNER, ARBITRAGEUR, 21)

    def test_infinite_allowance_not_consumed(self, chain):
        usdc = chain.token(USDC)
        usdc.mint(OWNER, 100)
        usdc.approve(OWNER, STRANGER, UINT256_MAX)
        usdc.transfer_from(STRANGER, OWNER, ARBITRAGEUR, 100)
        assert usdc.allowance(OWNER, STRANGER) == UINT256_MAX

    def test_insufficient_balance(self, chain):
        with pytest.raises(TokenTransferError):
            chain.token(USDC).transfer(OWNER, ARBITRAGEUR, 1)

    def test_fee_on_transfer_burns_from_recipient(self, chain):
        fot = chain.add_token(FeeOnTransferToken(address(0x3001), "FOT", fee_bps=100))
        fot.mint(OWNER, 10_000)
        fot.transfer(OWNER, ARBITRAGEUR, 10_000)
        assert fot.balance_of(ARBITRAGEUR) == 9_900
        assert fot.total_supply == 9_900

    def test_wrap_and_unwrap(self, chain):
        weth = chain.token(WETH)
        chain.credit_native(OWNER, 10)
        weth.wrap(OWNER, 10)
        assert chain.native_balance_of(OWNER) == 0
        weth.unwrap(OWNER, 4)
        assert weth.balance_of(OWNER) == 6
        assert chain.native_balance_of(OWNER) == 4


class TestPaperChain:
    def test_duplicate_and_unknown_tokens(self, chain):
        with pytest.raises(ChainError):
            chain.add_token(PaperToken(USDC, "USDC2", 6))
        with pytest.raises(ChainError):
            chain.token(address(0x9999))

    def test_transaction_reverts_all_participants(self, chain):
        usdc = chain.token(USDC)
        usdc.mint(OWNER, 100)
        chain.credit_native(OWNER, 7)

        with pytest.raises(RuntimeError):
            with chain.transaction():
                usdc.transfer(OWNER, ARBITRAGEUR, 60)
                chain.send_native(OWNER, ARBITRAGEUR, 7)
                raise RuntimeError("boom")

        assert usdc.balance_of(OWNER) == 100
        assert usdc.balance_of(ARBITRAGEUR) == 0
        assert chain.native_balance_of(OWNER) == 7
        assert chain.transactions_reverted == 1

    def test_nested_revert_keeps_outer_effects(self, chain):
        usdc = chain.token(USDC)
        usdc.mint(OWNER, 100)

        with chain.transaction():
            usdc.transfer(OWNER, ARBITRAGEUR, 10)
            with pytest.raises(TokenTransferError):
                with chain.transaction():
                    usdc.transfer(OWNER, ARBITRAGEUR, 20)
                    usdc.transfer(OWNER, ARBITRAGEUR, 1000)

        assert usdc.balance_of(ARBITRAGEUR) == 10
        assert chain.transactions_committed == 1
        assert chain.transactions_reverted == 1

    def test_block_timestamp_follows_time_provider(self, chain):
        start = chain.block_timestamp()
        chain.advance_time(12)
        assert chain.block_timestamp() == start + 12


class TestRouters:
    def test_get_amount_out(self):
        # 1000 in against 1:1 reserves of 1e6 at 0.3%
        assert get_amount_out(1000, 10**6, 10**6, 3000) == 996
        with pytest.raises(SwapError):
            get_amount_out(0, 10**6, 10**6, 3000)
        with pytest.raises(SwapError):
            get_amount_out(10, 0, 10**6, 3000)

    def test_v2_swap_moves_reserves(self, chain):
        router = PaperV2Router(ROUTER, chain)
        router.add_liquidity(USDC, WBTC, 10**6, 10**6)
        usdc = chain.token(USDC)
        usdc.mint(OWNER, 1000)
        usdc.approve(OWNER, ROUTER, 1000)

        amounts = router.swap_exact_tokens_for_tokens(
            OWNER, 1000, 990, [USDC, WBTC], OWNER, chain.block_timestamp()
        )

        assert amounts == [1000, 996]
        assert chain.token(WBTC).balance_of(OWNER) == 996
        pool = router.pool(USDC, WBTC)
        assert pool.reserves_for(USDC) == (10**6 + 1000, 10**6 - 996)

    def test_v2_swap_checks(self, chain):
        router = PaperV2Router(ROUTER, chain)
        router.add_liquidity(USDC, WBTC, 10**6, 10**6)
        usdc = chain.token(USDC)
        usdc.mint(OWNER, 1000)
        usdc.approve(OWNER, ROUTER, 1000)
        now = chain.block_timestamp()

        with pytest.raises(SwapError, match="EXPIRED"):
            router.swap_exact_tokens_for_tokens(OWNER, 1000, 0, [USDC, WBTC], OWNER, now - 1)
        with pytest.raises(SwapError, match="INSUFFICIENT_OUTPUT_AMOUNT"):
            router.swap_exact_tokens_for_tokens(OWNER, 1000, 997, [USDC, WBTC], OWNER, now)
        with pytest.raises(SwapError):
            router.get_amounts_out(1000, [USDC, WETH])

    def test_v2_pair_cannot_take_second_fee(self, chain):
        router = PaperV2Router(ROUTER, chain)
        router.add_liquidity(USDC, WBTC, 100, 100, fee=500)
        with pytest.raises(ChainError, match="already exists with fee=500"):
            router.add_liquidity(WBTC, USDC, 900, 900, fee=10000)
        assert router.pool(USDC, WBTC).reserves_for(USDC) == (100, 100)
        assert chain.token(USDC).balance_of(ROUTER) == 100

    def test_v2_top_up_same_fee(self, chain):
        router = PaperV2Router(ROUTER, chain)
        router.add_liquidity(USDC, WBTC, 100, 100, fee=500)
        pool = router.add_liquidity(USDC, WBTC, 50, 50, fee=500)
        assert pool.reserves_for(USDC) == (150, 150)

    def test_router_base_is_abstract(self, chain):
        with pytest.raises(TypeError):
            _PaperRouter(ROUTER, chain)

    def test_v3_pools_keyed_by_fee_tier(self, chain):
        router = PaperV3Router(ROUTER, chain)
        router.add_liquidity(USDC, WBTC, 10**6, 10**6, fee=500)
        router.add_liquidity(USDC, WBTC, 10**6, 2 * 10**6, fee=3000)
        assert router.quote_exact_input_single(USDC, WBTC, 500, 1000) == 998
        assert router.quote_exact_input_single(USDC, WBTC, 3000, 1000) == 1992
        with pytest.raises(SwapError):
            router.quote_exact_input_single(USDC, WBTC, 10000, 1000)

    def test_v3_swap_requires_allowance(self, chain):
        router = PaperV3Router(ROUTER, chain)
        router.add_liquidity(USDC, WBTC, 10**6, 10**6, fee=3000)
        chain.token(USDC).mint(OWNER, 1000)
        params = ExactInputSingleParams(
            token_in=USDC,
            token_out=WBTC,
            fee=3000,
            recipient=OWNER,
            deadline=chain.block_timestamp(),
            amount_in=1000,
            amount_out_minimum=0,
        )
        with pytest.raises(TokenTransferError):
            router.exact_input_single(OWNER, params)

        chain.token(USDC).approve(OWNER, ROUTER, 1000)
        assert router.exact_input_single(OWNER, params) == 996
        assert router.swap_count == 1

    def test_router_reserves_revert_with_transaction(self, chain):
        router = PaperV2Router(ROUTER, chain)
        router.add_liquidity(USDC, WBTC, 10**6, 10**6)
        usdc = chain.token(USDC)
        usdc.mint(OWNER, 1000)
        usdc.approve(OWNER, ROUTER, 1000)

        with pytest.raises(RuntimeError):
            with chain.transaction():
                router.swap_exact_tokens_for_tokens(
                    OWNER, 1000, 0, [USDC, WBTC], OWNER, chain.block_timestamp()
                )
                raise RuntimeError("revert")

        assert router.pool(USDC, WBTC).reserves_for(USDC) == (10**6, 10**6)
        assert usdc.balance_of(OWNER) == 1000


class _Receiver:
    def __init__(self, address, result=True, repay=True):
        self.address = address
        self.result = result
        self.repay = repay
        self.calls = []

    def execute_operation(self, caller, asset, amount, premium, initiator, params):
        self.calls.append((caller, asset, amount, premium, initiator, params))
        if self.repay:
            self.token.approve(self.address, caller, amount + premium)
        return self.result


class TestPaperLendingPool:
    def _pool(self, chain, premium_bps=9):
        pool = PaperLendingPool(LENDING_POOL, chain, premium_bps)
        pool.fund(USDC, 10**9)
        return pool

    def test_premium_rounds_half_up(self, chain):
        pool = PaperLendingPool(LENDING_POOL, chain, 5)
        assert pool.premium_for(1000) == 1  # 0.5 rounds up
        assert pool.premium_for(999) == 0
        assert pool.premium_for(10**6) == 500

    def test_flash_loan_calls_back_and_collects(self, chain):
        pool = self._pool(chain)
        receiver = _Receiver(ARBITRAGEUR)
        receiver.token = chain.token(USDC)
        receiver.token.mint(ARBITRAGEUR, 900)

        pool.flash_loan(OWNER, receiver, USDC, 10**6, b"\x01", 0)

        assert receiver.calls == [(LENDING_POOL, USDC, 10**6, 900, OWNER, b"\x01")]
        assert pool.available_liquidity(USDC) == 10**9 + 900
        assert pool.loans_executed == 1

    def test_unpaid_loan_reverts(self, chain):
        pool = self._pool(chain)
        receiver = _Receiver(ARBITRAGEUR)
        receiver.token = chain.token(USDC)

        with pytest.raises(TokenTransferError):
            pool.flash_loan(OWNER, receiver, USDC, 10**6, b"")

        assert pool.available_liquidity(USDC) == 10**9
        assert chain.token(USDC).balance_of(ARBITRAGEUR) == 0

    def test_false_return_reverts(self, chain):
        pool = self._pool(chain)
        receiver = _Receiver(ARBITRAGEUR, result=False)
        receiver.token = chain.token(USDC)
        with pytest.raises(FlashLoanError, match="INVALID_FLASHLOAN_EXECUTOR_RETURN"):
            pool.flash_loan(OWNER, receiver, USDC, 10**6, b"")
        assert pool.loans_executed == 0

    def test_rejects_zero_and_oversized_loans(self, chain):
        pool = self._pool(chain)
        receiver = _Receiver(ARBITRAGEUR)
        receiver.token = chain.token(USDC)
        with pytest.raises(FlashLoanError):
            pool.flash_loan(OWNER, receiver, USDC, 0, b"")
        with pytest.raises(FlashLoanError):
            pool.flash_loan(OWNER, receiver, USDC, 10**9 + 1, b"")
        assert receiver.calls == []
