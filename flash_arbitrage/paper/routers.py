"""
Paper AMM routers.

Both routers price swaps with the Uniswap V2 constant-product formula, with
the fee embedded in the input:

    amountInWithFee = amountIn * (1e6 - fee)
    amountOut = amountInWithFee * reserveOut / (reserveIn * 1e6 + amountInWithFee)

``fee`` is expressed in hundredths of a bip (3000 = 0.30%), matching the V3
fee tier encoding. ``PaperV2Router`` exposes the path interface,
``PaperV3Router`` the single-pool exact-input interface keyed by fee tier.
Both pull input with ``transfer_from`` and therefore need an allowance.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from ..constants import FEE_DENOMINATOR, V2_FEE
from ..exceptions import ChainError, SwapError
from ..interfaces import ExactInputSingleParams
from ..utils import get_logger, normalize_address, require_uint256

logger = get_logger(__name__)


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int, fee: int) -> int:
    """
    Constant-product output for an exact input, rounded down.

    Raises:
        SwapError: If the input is zero or either reserve is empty
    """
    if amount_in <= 0:
        raise SwapError("INSUFFICIENT_INPUT_AMOUNT")
    if reserve_in <= 0 or reserve_out <= 0:
        raise SwapError("INSUFFICIENT_LIQUIDITY")
    if not 0 <= fee < FEE_DENOMINATOR:
        raise SwapError(f"Invalid fee: {fee}")

    amount_in_with_fee = amount_in * (FEE_DENOMINATOR - fee)
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * FEE_DENOMINATOR + amount_in_with_fee
    return numerator // denominator


@dataclass
class PaperPool:
    """Two-token reserve pair; token0 sorts before token1."""

    token0: str
    token1: str
    fee: int
    reserve0: int = 0
    reserve1: int = 0

    def reserves_for(self, token_in: str) -> Tuple[int, int]:
        if token_in == self.token0:
            return self.reserve0, self.reserve1
        return self.reserve1, self.reserve0

    def credit(self, token: str, amount: int) -> None:
        if token == self.token0:
            self.reserve0 += amount
        else:
            self.reserve1 += amount

    def debit(self, token: str, amount: int) -> None:
        if token == self.token0:
            self.reserve0 -= amount
        else:
            self.reserve1 -= amount


def _sort(token_a: str, token_b: str) -> Tuple[str, str]:
    a, b = normalize_address(token_a), normalize_address(token_b)
    if a == b:
        raise SwapError(f"IDENTICAL_ADDRESSES: {a}")
    return (a, b) if a.lower() < b.lower() else (b, a)


class _PaperRouter(ABC):
    """Shared liquidity bookkeeping. The router address holds all reserves."""

    def __init__(self, address: str, chain):
        self.address = normalize_address(address)
        self.chain = chain
        self._pools: Dict[tuple, PaperPool] = {}
        self.swap_count = 0
        chain.register(self)

    @abstractmethod
    def _key(self, token_a: str, token_b: str, fee: int) -> tuple:
        """Pool identity within this router."""

    def add_liquidity(
        self, token_a: str, token_b: str, amount_a: int, amount_b: int, fee: int = V2_FEE
    ) -> PaperPool:
        """Mint reserves into a (new or existing) pool."""
        require_uint256(amount_a, "amount_a")
        require_uint256(amount_b, "amount_b")
        token0, token1 = _sort(token_a, token_b)
        key = self._key(token0, token1, fee)
        pool = self._pools.get(key)
        if pool is None:
            pool = PaperPool(token0=token0, token1=token1, fee=fee)
            self._pools[key] = pool
        elif pool.fee != fee:
            raise ChainError(
                f"Pool {token0}/{token1} already exists with fee={pool.fee}, not {fee}",
                contract=self.address,
            )

        for token, amount in ((token_a, amount_a), (token_b, amount_b)):
            token = normalize_address(token)
            self.chain.token(token).mint(self.address, amount)
            pool.credit(token, amount)
        logger.debug(f"Liquidity added to {token0}/{token1} fee={fee}")
        return pool

    def pool(self, token_a: str, token_b: str, fee: int = V2_FEE) -> PaperPool:
        token0, token1 = _sort(token_a, token_b)
        pool = self._pools.get(self._key(token0, token1, fee))
        if pool is None:
            raise SwapError(
                f"No pool for {token0}/{token1} fee={fee}", contract=self.address
            )
        return pool

    def _check_deadline(self, deadline: int) -> None:
        if self.chain.block_timestamp() > deadline:
            raise SwapError("EXPIRED", contract=self.address, details={"deadline": deadline})

    def _pull(self, token: str, payer: str, amount: int) -> int:
        """Pull input from payer and return what actually arrived."""
        contract = self.chain.token(token)
        before = contract.balance_of(self.address)
        contract.transfer_from(self.address, payer, self.address, amount)
        return contract.balance_of(self.address) - before

    def _hop(self, pool: PaperPool, token_in: str, token_out: str, amount_in: int) -> int:
        reserve_in, reserve_out = pool.reserves_for(token_in)
        amount_out = get_amount_out(amount_in, reserve_in, reserve_out, pool.fee)
        pool.credit(token_in, amount_in)
        pool.debit(token_out, amount_out)
        return amount_out

    def snapshot(self):
        return {
            key: (pool.reserve0, pool.reserve1) for key, pool in self._pools.items()
        }

    def restore(self, state) -> None:
        for key in list(self._pools):
            if key not in state:
                del self._pools[key]
        for key, (reserve0, reserve1) in state.items():
            self._pools[key].reserve0 = reserve0
            self._pools[key].reserve1 = reserve1


class PaperV2Router(_PaperRouter):
    """Path router: one pool per token pair."""

    def _key(self, token0, token1, fee):
        return (token0, token1)

    def pool(self, token_a: str, token_b: str, fee: int = V2_FEE) -> PaperPool:
        return super().pool(token_a, token_b, fee)

    def get_amounts_out(self, amount_in: int, path: Sequence[str]) -> List[int]:
        if len(path) < 2:
            raise SwapError("INVALID_PATH", contract=self.address)
        amounts = [amount_in]
        for token_in, token_out in zip(path, path[1:]):
            pool = self.pool(token_in, token_out)
            reserve_in, reserve_out = pool.reserves_for(normalize_address(token_in))
            amounts.append(get_amount_out(amounts[-1], reserve_in, reserve_out, pool.fee))
        return amounts

    def swap_exact_tokens_for_tokens(
        self,
        caller: str,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        recipient: str,
        deadline: int,
    ) -> List[int]:
        self._check_deadline(deadline)
        path = [normalize_address(token) for token in path]
        quoted = self.get_amounts_out(amount_in, path)
        if quoted[-1] < amount_out_min:
            raise SwapError(
                "INSUFFICIENT_OUTPUT_AMOUNT",
                contract=self.address,
                details={"amount_out": quoted[-1], "amount_out_min": amount_out_min},
            )

        amounts = [self._pull(path[0], caller, amount_in)]
        for token_in, token_out in zip(path, path[1:]):
            amounts.append(
                self._hop(self.pool(token_in, token_out), token_in, token_out, amounts[-1])
            )
        if amounts[-1] < amount_out_min:
            raise SwapError(
                "INSUFFICIENT_OUTPUT_AMOUNT",
                contract=self.address,
                details={"amount_out": amounts[-1], "amount_out_min": amount_out_min},
            )

        self.chain.token(path[-1]).transfer(self.address, recipient, amounts[-1])
        self.swap_count += 1
        return amounts


class PaperV3Router(_PaperRouter):
    """Single-pool exact-input router: pools keyed by pair and fee tier."""

    def _key(self, token0, token1, fee):
        return (token0, token1, fee)

    def quote_exact_input_single(
        self, token_in: str, token_out: str, fee: int, amount_in: int
    ) -> int:
        pool = self.pool(token_in, token_out, fee)
        reserve_in, reserve_out = pool.reserves_for(normalize_address(token_in))
        return get_amount_out(amount_in, reserve_in, reserve_out, pool.fee)

    def exact_input_single(self, caller: str, params: ExactInputSingleParams) -> int:
        if self.chain.block_timestamp() > params.deadline:
            raise SwapError("Transaction too old", contract=self.address)

        token_in = normalize_address(params.token_in)
        token_out = normalize_address(params.token_out)
        quoted = self.quote_exact_input_single(
            token_in, token_out, params.fee, params.amount_in
        )
        if quoted < params.amount_out_minimum:
            raise SwapError(
                "Too little received",
                contract=self.address,
                details={"amount_out": quoted, "amount_out_minimum": params.amount_out_minimum},
            )

        received = self._pull(token_in, caller, params.amount_in)
        amount_out = self._hop(
            self.pool(token_in, token_out, params.fee), token_in, token_out, received
        )
        if amount_out < params.amount_out_minimum:
            raise SwapError(
                "Too little received",
                contract=self.address,
                details={"amount_out": amount_out, "amount_out_minimum": params.amount_out_minimum},
            )

        self.chain.token(token_out).transfer(self.address, params.recipient, amount_out)
        self.swap_count += 1
        return amount_out
