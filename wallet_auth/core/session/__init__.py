"""
Session-delegated authorization

Lets a wallet hand a third-party operator a narrowly scoped, budgeted set of
call permissions.

Usage:
    from wallet_auth.core.session import OperatorPermission, Session, build_session_tree

    tree = build_session_tree([transfer_session])
    permission = OperatorPermission(
        session_root=tree.root,
        valid_until=deadline,
        gas_remaining=10**16,
        times_remaining=10,
    )
    authority.set_operator_permission(CallContext.self_call(wallet), operator, permission)
"""

from .authority import SessionAuthority, intersect_validity
from .errors import (
    ExceedUsageError,
    GasFeeExceedsRemainingError,
    InvalidArgumentsError,
    InvalidPaymasterError,
    InvalidPermitError,
    InvalidSelectorError,
    InvalidSessionRootError,
    InvalidTargetError,
    InvalidValidationDurationError,
    PermitAlreadyUsedError,
    RuleShapeMismatchError,
    SessionValueExceededError,
    UnsupportedError,
)
from .ledger import Usage, UsageLedger
from .models import (
    OperatorPermission,
    Session,
    SessionProof,
    build_session_tree,
    encode_session_payload,
    permit_digest,
)

__all__ = [
    "ExceedUsageError",
    "GasFeeExceedsRemainingError",
    "InvalidArgumentsError",
    "InvalidPaymasterError",
    "InvalidPermitError",
    "InvalidSelectorError",
    "InvalidSessionRootError",
    "InvalidTargetError",
    "InvalidValidationDurationError",
    "OperatorPermission",
    "PermitAlreadyUsedError",
    "RuleShapeMismatchError",
    "Session",
    "SessionAuthority",
    "SessionProof",
    "SessionValueExceededError",
    "UnsupportedError",
    "Usage",
    "UsageLedger",
    "build_session_tree",
    "encode_session_payload",
    "intersect_validity",
    "permit_digest",
]
