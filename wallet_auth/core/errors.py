"""
Error Classification

Authorization decisions fail in one of two ways:

- soft failure: a return value (``None`` from a decoder, or a packed
  validation word with the failure bit set). State changes made before the
  soft failure are kept and the caller can still account for the work done.
- hard abort: an ``AuthorizationAbort`` exception. Every public mutating
  operation runs inside ``StateStore.atomic()`` so a hard abort unwinds all
  state written during the current request.

Subsystems define their concrete abort types next to the code that raises
them; all of them carry an ``ErrorCode`` from this module.
"""

from enum import Enum
from typing import Any, Dict


class ErrorCode(str, Enum):
    """Stable identifiers for hard aborts."""

    # Ordered identifier set
    INVALID_IDENTIFIER = "invalid_identifier"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    STALE_PREDECESSOR = "stale_predecessor"
    INVALID_PAGE = "invalid_page"

    # Plugin lifecycle
    UNAUTHORIZED = "unauthorized"
    PLUGIN_PROBE_FAILED = "plugin_probe_failed"
    PLUGIN_ALREADY_INITIALIZED = "plugin_already_initialized"
    PLUGIN_NOT_INITIALIZED = "plugin_not_initialized"
    INVALID_INIT_DATA = "invalid_init_data"

    # Validator registry
    INVALID_VALIDATOR_TYPE = "invalid_validator_type"
    LAST_SUDO_VALIDATOR = "last_sudo_validator"
    VALIDATOR_NOT_ENABLED = "validator_not_enabled"
    VALIDATOR_CLASS_MISMATCH = "validator_class_mismatch"
    BANNED_OPERATION = "banned_operation"

    # Signature codec
    SCHEDULED_FEE_EXCEEDED = "scheduled_fee_exceeded"
    INVALID_VALIDATION_DATA = "invalid_validation_data"

    # Predicate engine
    INVALID_PREDICATE_TAG = "invalid_predicate_tag"
    INVALID_ARGUMENTS_LENGTH = "invalid_arguments_length"
    MALFORMED_RULES = "malformed_rules"
    PREDICATE_LIMIT = "predicate_limit"
    VALUE_MISMATCH = "value_mismatch"

    # Session authority
    INVALID_WALLET_OPERATION = "invalid_wallet_operation"
    UNSUPPORTED = "unsupported"
    INVALID_BATCH_LENGTH = "invalid_batch_length"
    GAS_FEE_EXCEEDS_REMAINING = "gas_fee_exceeds_remaining"
    EXCEED_USAGE = "exceed_usage"
    RULE_SHAPE_MISMATCH = "rule_shape_mismatch"
    INVALID_TARGET = "invalid_target"
    INVALID_SELECTOR = "invalid_selector"
    INVALID_ARGUMENTS = "invalid_arguments"
    SESSION_VALUE_EXCEEDED = "session_value_exceeded"
    INVALID_PAYMASTER = "invalid_paymaster"
    INVALID_SESSION_ROOT = "invalid_session_root"
    INVALID_VALIDATION_DURATION = "invalid_validation_duration"
    INVALID_PERMIT = "invalid_permit"
    PERMIT_ALREADY_USED = "permit_already_used"

    # Multi-signature validator
    INVALID_THRESHOLD = "invalid_threshold"
    NOT_A_GUARDIAN = "not_a_guardian"
    HASH_ALREADY_APPROVED = "hash_already_approved"


class AuthorizationAbort(Exception):
    """
    Base class for hard aborts.

    Raising one of these means continuing would corrupt an invariant or the
    request is structurally invalid. Callers never see partial state from a
    request that raised.
    """

    code: ErrorCode = ErrorCode.UNAUTHORIZED
    default_message: str = "authorization aborted"

    def __init__(self, message: str = "", **details: Any):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class UnauthorizedError(AuthorizationAbort):
    """Raised when a mutation is attempted outside the wallet's self-governance context."""

    code = ErrorCode.UNAUTHORIZED
    default_message = "caller is not the wallet itself"
