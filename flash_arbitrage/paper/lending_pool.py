"""
Paper flash loan pool modelled on the Aave simple flash loan flow:

1. transfer ``amount`` to the receiver
2. call ``receiver.execute_operation(pool, asset, amount, premium, initiator, params)``
3. pull ``amount + premium`` back with ``transfer_from``

The whole loan runs inside one chain transaction, so a failing callback or
an unpaid loan reverts every effect the receiver made.
"""

from ..constants import BPS_DENOMINATOR, DEFAULT_FLASH_LOAN_PREMIUM_BPS
from ..exceptions import FlashLoanError
from ..interfaces import FlashLoanReceiver
from ..utils import checked_add, get_logger, normalize_address, require_uint256

logger = get_logger(__name__)

HALF_BPS = BPS_DENOMINATOR // 2


class PaperLendingPool:
    """Single-asset flash loans out of the pool's own token balances."""

    def __init__(self, address: str, chain, premium_bps: int = DEFAULT_FLASH_LOAN_PREMIUM_BPS):
        if not 0 <= premium_bps <= BPS_DENOMINATOR:
            raise ValueError(f"premium_bps out of range: {premium_bps}")
        self.address = normalize_address(address)
        self.chain = chain
        self.premium_bps = premium_bps
        self.loans_executed = 0

    def fund(self, asset: str, amount: int) -> None:
        """Mint lendable liquidity to the pool."""
        self.chain.token(asset).mint(self.address, amount)

    def available_liquidity(self, asset: str) -> int:
        return self.chain.token(asset).balance_of(self.address)

    def premium_for(self, amount: int) -> int:
        """Premium in raw units, rounded half up."""
        return (amount * self.premium_bps + HALF_BPS) // BPS_DENOMINATOR

    def flash_loan(
        self,
        caller: str,
        receiver: FlashLoanReceiver,
        asset: str,
        amount: int,
        params: bytes,
        referral_code: int = 0,
    ) -> None:
        require_uint256(amount, "amount")
        asset = normalize_address(asset)
        token = self.chain.token(asset)

        with self.chain.transaction():
            if amount == 0:
                raise FlashLoanError("INVALID_AMOUNT", contract=self.address)
            available = token.balance_of(self.address)
            if amount > available:
                raise FlashLoanError(
                    f"Insufficient liquidity: {available} < {amount}",
                    contract=self.address,
                    details={"asset": asset, "available": available},
                )

            premium = self.premium_for(amount)
            token.transfer(self.address, receiver.address, amount)

            ok = receiver.execute_operation(
                self.address, asset, amount, premium, normalize_address(caller), params
            )
            if not ok:
                raise FlashLoanError(
                    "INVALID_FLASHLOAN_EXECUTOR_RETURN", contract=self.address
                )

            token.transfer_from(
                self.address, receiver.address, self.address, checked_add(amount, premium)
            )
            self.loans_executed += 1
            logger.debug(
                f"Flash loan settled: asset={asset} amount={amount} premium={premium} "
                f"referral={referral_code}"
            )
