"""
Repayment and minimum-profit invariant.

This check alone decides whether a flash loan arbitrage is accepted. It runs
after both swap legs and before the lending pool is approved for repayment.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .exceptions import InsufficientProfitError, InsufficientRepaymentError
from .utils import checked_add, checked_sub, require_uint256

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepaymentCheck:
    """Outcome of a passed invariant check."""

    final_balance: int
    amount_owed: int
    profit: Optional[int] = None


class InvariantChecker:
    """Validates repayment sufficiency and the optional profit floor."""

    def __init__(self, min_profit: Optional[int] = None):
        if min_profit is not None:
            require_uint256(min_profit, "min_profit")
        self.min_profit = min_profit

    def check(self, final_balance: int, borrowed_amount: int, premium: int) -> RepaymentCheck:
        """
        Verify the base asset held after both legs covers the loan.

        Args:
            final_balance: Base asset balance after the sell-back leg
            borrowed_amount: Loan principal
            premium: Lending pool fee

        Returns:
            RepaymentCheck with the owed amount, and the profit when a
            profit floor is configured

        Raises:
            InsufficientRepaymentError: final_balance < borrowed + premium
            InsufficientProfitError: final_balance < borrowed + premium + min_profit
        """
        amount_owed = checked_add(borrowed_amount, premium)

        if final_balance < amount_owed:
            raise InsufficientRepaymentError(
                f"Insufficient funds to repay: have {final_balance}, owe {amount_owed}",
                required=amount_owed,
                available=final_balance,
            )

        if self.min_profit is None:
            return RepaymentCheck(final_balance=final_balance, amount_owed=amount_owed)

        required = checked_add(amount_owed, self.min_profit)
        if final_balance < required:
            raise InsufficientProfitError(
                f"Profit below floor: have {final_balance}, need {required}",
                required=required,
                available=final_balance,
                details={"min_profit": self.min_profit},
            )

        profit = checked_sub(final_balance, amount_owed)
        logger.debug(f"Invariant passed: owed={amount_owed} profit={profit}")
        return RepaymentCheck(
            final_balance=final_balance, amount_owed=amount_owed, profit=profit
        )
