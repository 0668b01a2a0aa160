"""
Paper Chain

In-memory execution environment for simulating flash loan arbitrage.
Holds the token registry and native currency balances, provides the block
timestamp, and gives every transaction all-or-nothing semantics: state of
each registered participant is snapshotted on entry and restored if the
transaction body raises.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol

from ..constants import DEFAULT_GENESIS_TIMESTAMP
from ..exceptions import ChainError, TokenTransferError
from ..interfaces import DeterministicTimeProvider, TimeProvider, block_timestamp
from ..utils import normalize_address, require_uint256

logger = logging.getLogger(__name__)


class StatefulParticipant(Protocol):
    """Anything whose state must revert with a failed transaction."""

    def snapshot(self) -> Any: ...

    def restore(self, state: Any) -> None: ...


class PaperChain:
    """
    Deterministic single-threaded chain.

    Usage:
        chain = PaperChain()
        usdc = chain.add_token(PaperToken(addr, "USDC", 6))
        with chain.transaction():
            ...  # any exception reverts every registered participant
    """

    def __init__(
        self,
        time_provider: Optional[TimeProvider] = None,
        genesis_timestamp: int = DEFAULT_GENESIS_TIMESTAMP,
    ):
        self.time_provider = time_provider or DeterministicTimeProvider(
            float(genesis_timestamp)
        )
        self._tokens: Dict[str, Any] = {}
        self._native: Dict[str, int] = {}
        self._participants: List[StatefulParticipant] = [self]
        self.transactions_committed = 0
        self.transactions_reverted = 0

    # Participants

    def register(self, participant: StatefulParticipant) -> None:
        if participant not in self._participants:
            self._participants.append(participant)

    def add_token(self, token):
        address = normalize_address(token.address)
        if address in self._tokens:
            raise ChainError(f"Token already deployed at {address}", contract=address)
        self._tokens[address] = token
        self.register(token)
        return token

    def token(self, address: str):
        try:
            return self._tokens[normalize_address(address)]
        except KeyError:
            raise ChainError(f"No token deployed at {address}", contract=address)

    @property
    def tokens(self) -> Dict[str, Any]:
        return dict(self._tokens)

    # Time

    def block_timestamp(self) -> int:
        return block_timestamp(self.time_provider)

    def advance_time(self, seconds: float) -> None:
        self.time_provider.sleep(seconds)

    # Native currency

    def native_balance_of(self, account: str) -> int:
        return self._native.get(normalize_address(account), 0)

    def credit_native(self, account: str, amount: int) -> None:
        require_uint256(amount)
        account = normalize_address(account)
        self._native[account] = self._native.get(account, 0) + amount

    def debit_native(self, account: str, amount: int) -> None:
        require_uint256(amount)
        account = normalize_address(account)
        balance = self._native.get(account, 0)
        if balance < amount:
            raise TokenTransferError(
                f"Insufficient native balance: {account} has {balance}, needs {amount}",
                details={"account": account, "balance": balance, "amount": amount},
            )
        self._native[account] = balance - amount

    def send_native(self, sender: str, recipient: str, amount: int) -> None:
        self.debit_native(sender, amount)
        self.credit_native(recipient, amount)

    # Atomicity

    def snapshot(self) -> Dict[str, int]:
        return dict(self._native)

    def restore(self, state: Dict[str, int]) -> None:
        self._native = dict(state)

    @contextmanager
    def transaction(self) -> Iterator["PaperChain"]:
        """
        Run a block atomically.

        Nested blocks revert only their own effects when they raise, the way
        a reverted inner call does; the exception keeps propagating.
        """
        states = [(p, p.snapshot()) for p in self._participants]
        try:
            yield self
        except BaseException as e:
            for participant, state in states:
                participant.restore(state)
            self.transactions_reverted += 1
            logger.debug(f"Transaction reverted: {type(e).__name__}: {e}")
            raise
        self.transactions_committed += 1
