"""Authorization blob decoding, canonical hashes, and packed validation words."""

from .codec import (
    INSTANT_LENGTH,
    SCHEDULED_LENGTH,
    SIG_VALIDATION_FAILED,
    SIG_VALIDATION_SUCCESS,
    IntentKind,
    InvalidValidationDataError,
    ScheduledFeeExceededError,
    SignedIntent,
    ValidationData,
    check_fee_ceiling,
    decode,
    decode_payload,
    encode_instant,
    encode_scheduled,
    pack_validation_data,
    scheduled_hash,
    unpack_validation_data,
    validator_of,
)

__all__ = [
    "INSTANT_LENGTH",
    "SCHEDULED_LENGTH",
    "SIG_VALIDATION_FAILED",
    "SIG_VALIDATION_SUCCESS",
    "IntentKind",
    "InvalidValidationDataError",
    "ScheduledFeeExceededError",
    "SignedIntent",
    "ValidationData",
    "check_fee_ceiling",
    "decode",
    "decode_payload",
    "encode_instant",
    "encode_scheduled",
    "pack_validation_data",
    "scheduled_hash",
    "unpack_validation_data",
    "validator_of",
]
