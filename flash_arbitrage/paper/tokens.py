"""
Paper tokens: ERC20-style ledgers with allowances, a wrapped native token
and a fee-on-transfer token.
"""

from typing import Any, Dict, Tuple

from ..constants import BPS_DENOMINATOR, UINT256_MAX
from ..exceptions import TokenTransferError
from ..utils import checked_add, get_logger, normalize_address, require_uint256

logger = get_logger(__name__)


class PaperToken:
    """Fungible token with balances and allowances keyed by checksum address."""

    def __init__(self, address: str, symbol: str, decimals: int = 18):
        self.address = normalize_address(address)
        self.symbol = symbol
        self._decimals = decimals
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self.total_supply = 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.symbol}@{self.address})"

    def decimals(self) -> int:
        return self._decimals

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get(
            (normalize_address(owner), normalize_address(spender)), 0
        )

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        require_uint256(amount)
        self._allowances[(normalize_address(owner), normalize_address(spender))] = amount
        return True

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        self._move(sender, recipient, amount)
        return True

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        require_uint256(amount)
        key = (normalize_address(owner), normalize_address(spender))
        allowed = self._allowances.get(key, 0)
        if allowed < amount:
            raise TokenTransferError(
                f"{self.symbol}: insufficient allowance {allowed} < {amount}",
                contract=self.address,
                details={"owner": key[0], "spender": key[1]},
            )
        if allowed != UINT256_MAX:
            self._allowances[key] = allowed - amount
        self._move(owner, recipient, amount)
        return True

    def mint(self, account: str, amount: int) -> None:
        require_uint256(amount)
        account = normalize_address(account)
        self.total_supply = checked_add(self.total_supply, amount)
        self._balances[account] = self._balances.get(account, 0) + amount

    def burn(self, account: str, amount: int) -> None:
        self._debit(normalize_address(account), amount)
        self.total_supply -= amount

    def _debit(self, account: str, amount: int) -> None:
        balance = self._balances.get(account, 0)
        if balance < amount:
            raise TokenTransferError(
                f"{self.symbol}: insufficient balance {balance} < {amount}",
                contract=self.address,
                details={"account": account},
            )
        self._balances[account] = balance - amount

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        require_uint256(amount)
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)
        self._debit(sender, amount)
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        logger.debug(f"{self.symbol} transfer {sender} -> {recipient}: {amount}")

    def snapshot(self) -> Any:
        return dict(self._balances), dict(self._allowances), self.total_supply

    def restore(self, state: Any) -> None:
        balances, allowances, total_supply = state
        self._balances = dict(balances)
        self._allowances = dict(allowances)
        self.total_supply = total_supply


class WrappedNativeToken(PaperToken):
    """Token backed 1:1 by the chain's native currency."""

    def __init__(self, address: str, chain, symbol: str = "WETH", decimals: int = 18):
        super().__init__(address, symbol, decimals)
        self.chain = chain

    def wrap(self, account: str, amount: int) -> None:
        self.chain.debit_native(account, amount)
        self.mint(account, amount)

    def unwrap(self, account: str, amount: int) -> None:
        self.burn(account, amount)
        self.chain.credit_native(account, amount)


class FeeOnTransferToken(PaperToken):
    """Token that burns a share of every transfer."""

    def __init__(self, address: str, symbol: str, decimals: int = 18, fee_bps: int = 100):
        super().__init__(address, symbol, decimals)
        if not 0 <= fee_bps <= BPS_DENOMINATOR:
            raise ValueError(f"fee_bps out of range: {fee_bps}")
        self.fee_bps = fee_bps

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        fee = amount * self.fee_bps // BPS_DENOMINATOR
        super()._move(sender, recipient, amount)
        if fee:
            self.burn(recipient, fee)
