"""
Paper chain: in-memory stand-ins for the lending pool, routers and tokens
the engine talks to, with transaction-level atomicity.
"""

from .chain import PaperChain
from .environment import PaperEnvironment, build_paper_environment
from .lending_pool import PaperLendingPool
from .routers import PaperPool, PaperV2Router, PaperV3Router, get_amount_out
from .tokens import FeeOnTransferToken, PaperToken, WrappedNativeToken

__all__ = [
    "PaperChain",
    "PaperEnvironment",
    "build_paper_environment",
    "PaperLendingPool",
    "PaperPool",
    "PaperV2Router",
    "PaperV3Router",
    "get_amount_out",
    "PaperToken",
    "WrappedNativeToken",
    "FeeOnTransferToken",
]
