"""
User operation model and wallet execution calldata.

The authorization core never dispatches calls; it only decodes what a user
operation asks the wallet to do so the validators can judge it.
"""

from .calldata import (
    BATCH_NORMAL_EXECUTE,
    BATCH_SUDO_EXECUTE,
    NORMAL_EXECUTE,
    SUDO_EXECUTE,
    InvalidBatchLengthError,
    InvalidWalletOperationError,
    Operation,
    WalletCall,
    WalletExecution,
    build_batch_normal_execute,
    build_batch_sudo_execute,
    build_function_call,
    build_normal_execute,
    build_sudo_execute,
    decode_wallet_execution,
    selector_of,
)
from .userop import UserOperation

__all__ = [
    "BATCH_NORMAL_EXECUTE",
    "BATCH_SUDO_EXECUTE",
    "NORMAL_EXECUTE",
    "SUDO_EXECUTE",
    "InvalidBatchLengthError",
    "InvalidWalletOperationError",
    "Operation",
    "UserOperation",
    "WalletCall",
    "WalletExecution",
    "build_batch_normal_execute",
    "build_batch_sudo_execute",
    "build_function_call",
    "build_normal_execute",
    "build_sudo_execute",
    "decode_wallet_execution",
    "selector_of",
]
