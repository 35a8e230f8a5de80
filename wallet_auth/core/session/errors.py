"""
Session authorization errors.
"""

from ..errors import AuthorizationAbort, ErrorCode


class UnsupportedError(AuthorizationAbort):
    code = ErrorCode.UNSUPPORTED
    default_message = "only plain calls can be session-authorized"


class ExceedUsageError(AuthorizationAbort):
    code = ErrorCode.EXCEED_USAGE
    default_message = "operator usage budget exhausted"


class GasFeeExceedsRemainingError(ExceedUsageError):
    code = ErrorCode.GAS_FEE_EXCEEDS_REMAINING
    default_message = "gas fee exceeds the operator's remaining gas budget"


class RuleShapeMismatchError(AuthorizationAbort):
    code = ErrorCode.RULE_SHAPE_MISMATCH
    default_message = "rlpCalldata is not equally encoded from execution data"


class InvalidTargetError(AuthorizationAbort):
    code = ErrorCode.INVALID_TARGET
    default_message = "call target does not match the session"


class InvalidSelectorError(AuthorizationAbort):
    code = ErrorCode.INVALID_SELECTOR
    default_message = "function selector does not match the session"


class InvalidArgumentsError(AuthorizationAbort):
    code = ErrorCode.INVALID_ARGUMENTS
    default_message = "call arguments are not allowed by the session"


class SessionValueExceededError(AuthorizationAbort):
    code = ErrorCode.SESSION_VALUE_EXCEEDED
    default_message = "call value exceeds the session's value limit"


class InvalidPaymasterError(AuthorizationAbort):
    code = ErrorCode.INVALID_PAYMASTER
    default_message = "paymaster is not allowed for this operator"


class InvalidSessionRootError(AuthorizationAbort):
    code = ErrorCode.INVALID_SESSION_ROOT
    default_message = "session is not part of the operator's session root"


class InvalidValidationDurationError(AuthorizationAbort):
    code = ErrorCode.INVALID_VALIDATION_DURATION
    default_message = "invalid validation duration"


class InvalidPermitError(AuthorizationAbort):
    code = ErrorCode.INVALID_PERMIT
    default_message = "permit was not signed by the wallet's sudo authority"


class PermitAlreadyUsedError(AuthorizationAbort):
    code = ErrorCode.PERMIT_ALREADY_USED
    default_message = "permit already redeemed"
