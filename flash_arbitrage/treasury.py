"""
Balance inspection and owner withdrawals.
"""

import logging
from typing import Optional

from .config_loader import EngineConfig
from .exceptions import ConfigurationError
from .guards import AccessGuard
from .interfaces import NativeCurrency, TokenRegistry
from .metrics import EngineMetrics, get_metrics
from .utils import normalize_address, same_address

logger = logging.getLogger(__name__)


class TreasuryOps:
    """Reads and sweeps the balances held by the arbitrage account."""

    def __init__(
        self,
        config: EngineConfig,
        account: str,
        access: AccessGuard,
        tokens: TokenRegistry,
        native: Optional[NativeCurrency] = None,
        metrics: Optional[EngineMetrics] = None,
    ):
        self.config = config
        self.account = normalize_address(account)
        self.access = access
        self.tokens = tokens
        self.native = native
        self.metrics = metrics or get_metrics()

        if config.wrapped_native_address is not None and native is None:
            raise ConfigurationError(
                "Unwrapping the wrapped native token requires a native currency ledger"
            )

    def get_balance(self, token: str) -> int:
        """Balance of ``token`` held by the account. Read-only."""
        return self.tokens.token(token).balance_of(self.account)

    def withdraw(self, caller: str, token: str) -> int:
        """
        Send the full balance of ``token`` to the owner.

        The wrapped native token is unwrapped first and paid out in native
        currency. A zero balance transfers zero.

        Returns:
            Amount withdrawn
        """
        self.access.require_owner(caller, "withdraw")

        contract = self.tokens.token(token)
        balance = contract.balance_of(self.account)
        unwrap = same_address(token, self.config.wrapped_native_address)

        if unwrap:
            contract.unwrap(self.account, balance)
            self.native.send_native(self.account, self.config.owner, balance)
        else:
            contract.transfer(self.account, self.config.owner, balance)

        logger.info(
            f"WITHDRAWN: {{'token': '{contract.address}', 'amount': {balance}, "
            f"'unwrapped': {unwrap}, 'to': '{self.config.owner}'}}"
        )
        self.metrics.record_withdrawal(contract.address, unwrap)
        return balance
