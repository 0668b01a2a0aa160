"""
Authorization and single-flight guards.

``AccessGuard`` restricts privileged operations to the configured owner.
``ReentrancyGuard`` is the only concurrency primitive of the engine: it turns
a nested call into the flash loan callback into an immediate failure instead
of interleaved balance mutation, and always releases on the way out.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from .constants import ReentrancyState
from .exceptions import ReentrancyError, UnauthorizedError
from .utils import normalize_address, same_address

logger = logging.getLogger(__name__)


class AccessGuard:
    """Owner-only authorization check."""

    def __init__(self, owner: str):
        self._owner = normalize_address(owner)

    @property
    def owner(self) -> str:
        return self._owner

    def require_owner(self, caller: str, operation: str = "operation") -> None:
        """Fail with UnauthorizedError unless caller is the owner."""
        if not same_address(caller, self._owner):
            logger.warning(f"Unauthorized {operation} attempt by {caller}")
            raise UnauthorizedError(
                f"Caller {caller} is not the owner",
                caller=caller,
                expected=self._owner,
                details={"operation": operation},
            )


class ReentrancyGuard:
    """
    Single-flight lock around the flash loan callback.

    Usage:
        with guard.acquire():
            ...  # callback body; nested acquire() raises ReentrancyError
    """

    def __init__(self):
        self._state = ReentrancyState.IDLE

    @property
    def state(self) -> ReentrancyState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is ReentrancyState.ACTIVE

    @contextmanager
    def acquire(self) -> Iterator[None]:
        if self._state is ReentrancyState.ACTIVE:
            logger.error("Reentrant call rejected while callback is active")
            raise ReentrancyError("Reentrant call")

        self._state = ReentrancyState.ACTIVE
        try:
            yield
        finally:
            self._state = ReentrancyState.IDLE
