"""
Authorization blob codec.

Wire layout::

    [20B validator][1B kind] + kind 0 (Instant):   [65B signature]                      -> 86 bytes
                               kind 1 (Scheduled): [6B validUntil][6B validAfter]
                                                   [32B maxFeePerGas][32B maxPriorityFeePerGas]
                                                   [65B signature]                      -> 162 bytes

A Scheduled intent signs the operation hash together with its window and fee
ceilings, so it cannot be replayed at a higher fee than the owner accepted.
Malformed blobs decode to ``None``; they are a denied request, not a defect.
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Union

from eth_abi import encode
from eth_utils import keccak

from ..errors import AuthorizationAbort, ErrorCode
from ..types import hex_to_bytes, normalize_address

logger = logging.getLogger(__name__)

VALIDATOR_LENGTH = 20
KIND_OFFSET = 20
PAYLOAD_OFFSET = 21
SIGNATURE_LENGTH = 65
INSTANT_LENGTH = PAYLOAD_OFFSET + SIGNATURE_LENGTH
SCHEDULED_HEADER_LENGTH = 6 + 6 + 32 + 32
SCHEDULED_LENGTH = PAYLOAD_OFFSET + SCHEDULED_HEADER_LENGTH + SIGNATURE_LENGTH

UINT48_MAX = (1 << 48) - 1
ADDRESS_MASK = (1 << 160) - 1

SIG_VALIDATION_SUCCESS = 0
SIG_VALIDATION_FAILED = 1


class IntentKind(IntEnum):
    INSTANT = 0
    SCHEDULED = 1


class ScheduledFeeExceededError(AuthorizationAbort):
    code = ErrorCode.SCHEDULED_FEE_EXCEEDED
    default_message = "operation fees are not below the signed ceilings"


class InvalidValidationDataError(AuthorizationAbort):
    code = ErrorCode.INVALID_VALIDATION_DATA
    default_message = "validation window does not fit in 48 bits"


@dataclass(frozen=True)
class SignedIntent:
    validator: str
    kind: IntentKind
    signature: bytes
    canonical_hash: bytes
    op_hash: bytes = field(repr=False, default=b"")
    valid_until: int = 0
    valid_after: int = 0
    max_fee_per_gas: int = 0
    max_priority_fee_per_gas: int = 0

    @property
    def is_scheduled(self) -> bool:
        return self.kind == IntentKind.SCHEDULED

    @property
    def extra_data(self) -> bytes:
        """ABI encoding of the scheduled window and fee ceilings."""
        return encode(
            ["uint256", "uint256", "uint256", "uint256"],
            [self.valid_until, self.valid_after, self.max_fee_per_gas, self.max_priority_fee_per_gas],
        )

    def bound_hash(self, validator_address: str) -> bytes:
        """Digest that also commits to the validator the blob is addressed to."""
        validator_address = normalize_address(validator_address)
        if self.is_scheduled:
            return keccak(
                encode(
                    ["bytes32", "address", "bytes"],
                    [self.op_hash, validator_address, self.extra_data],
                )
            )
        return keccak(encode(["bytes32", "address"], [self.op_hash, validator_address]))


@dataclass(frozen=True)
class ValidationData:
    """Unpacked form of the validation word returned to the EntryPoint."""
    aggregator: int = 0
    valid_until: int = 0
    valid_after: int = 0

    @property
    def sig_failed(self) -> bool:
        return self.aggregator == SIG_VALIDATION_FAILED

    def pack(self) -> int:
        return pack_validation_data(self.aggregator, self.valid_until, self.valid_after)


def scheduled_hash(
    op_hash: bytes,
    valid_until: int,
    valid_after: int,
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
) -> bytes:
    extra = encode(
        ["uint256", "uint256", "uint256", "uint256"],
        [valid_until, valid_after, max_fee_per_gas, max_priority_fee_per_gas],
    )
    return keccak(encode(["bytes32", "bytes"], [op_hash, extra]))


def _split(blob: bytes, op_hash: bytes, exact: bool) -> Optional[SignedIntent]:
    if len(blob) < PAYLOAD_OFFSET:
        return None

    validator = normalize_address(blob[:VALIDATOR_LENGTH])
    kind_byte = blob[KIND_OFFSET]

    if kind_byte == IntentKind.INSTANT:
        signature = blob[PAYLOAD_OFFSET:]
        if exact and len(blob) != INSTANT_LENGTH:
            return None
        return SignedIntent(
            validator=validator,
            kind=IntentKind.INSTANT,
            signature=signature,
            canonical_hash=op_hash,
            op_hash=op_hash,
        )

    if kind_byte == IntentKind.SCHEDULED:
        if exact and len(blob) != SCHEDULED_LENGTH:
            return None
        if len(blob) < PAYLOAD_OFFSET + SCHEDULED_HEADER_LENGTH:
            return None
        cursor = PAYLOAD_OFFSET
        valid_until = int.from_bytes(blob[cursor:cursor + 6], "big")
        valid_after = int.from_bytes(blob[cursor + 6:cursor + 12], "big")
        max_fee = int.from_bytes(blob[cursor + 12:cursor + 44], "big")
        max_priority_fee = int.from_bytes(blob[cursor + 44:cursor + 76], "big")
        return SignedIntent(
            validator=validator,
            kind=IntentKind.SCHEDULED,
            signature=blob[cursor + 76:],
            canonical_hash=scheduled_hash(op_hash, valid_until, valid_after, max_fee, max_priority_fee),
            op_hash=op_hash,
            valid_until=valid_until,
            valid_after=valid_after,
            max_fee_per_gas=max_fee,
            max_priority_fee_per_gas=max_priority_fee,
        )

    return None


def decode(blob: Union[bytes, str], op_hash: bytes) -> Optional[SignedIntent]:
    """Parse an 86- or 162-byte blob; ``None`` on unknown kind or wrong length."""
    intent = _split(hex_to_bytes(blob), op_hash, exact=True)
    if intent is None:
        logger.debug("Rejected malformed authorization blob")
    return intent


def decode_payload(blob: Union[bytes, str], op_hash: bytes) -> Optional[SignedIntent]:
    """Like ``decode`` but the trailing signature may have any length.

    Used by validators whose inner signature is not a single ECDSA signature,
    e.g. concatenated guardian signatures or an ABI-encoded session proof.
    """
    return _split(hex_to_bytes(blob), op_hash, exact=False)


def validator_of(blob: Union[bytes, str]) -> Optional[str]:
    raw = hex_to_bytes(blob)
    if len(raw) < VALIDATOR_LENGTH:
        return None
    return normalize_address(raw[:VALIDATOR_LENGTH])


def encode_instant(validator: str, signature: bytes) -> bytes:
    return (
        bytes.fromhex(normalize_address(validator)[2:])
        + bytes([IntentKind.INSTANT])
        + bytes(signature)
    )


def encode_scheduled(
    validator: str,
    signature: bytes,
    valid_until: int,
    valid_after: int,
    max_fee_per_gas: int,
    max_priority_fee_per_gas: int,
) -> bytes:
    _check_uint48(valid_until, valid_after)
    return (
        bytes.fromhex(normalize_address(validator)[2:])
        + bytes([IntentKind.SCHEDULED])
        + valid_until.to_bytes(6, "big")
        + valid_after.to_bytes(6, "big")
        + max_fee_per_gas.to_bytes(32, "big")
        + max_priority_fee_per_gas.to_bytes(32, "big")
        + bytes(signature)
    )


def check_fee_ceiling(intent: SignedIntent, max_fee_per_gas: int, max_priority_fee_per_gas: int) -> None:
    """Scheduled intents require actual fees strictly below the signed ceilings."""
    if not intent.is_scheduled:
        return
    if (
        max_fee_per_gas >= intent.max_fee_per_gas
        or max_priority_fee_per_gas >= intent.max_priority_fee_per_gas
    ):
        raise ScheduledFeeExceededError(
            "Invalid scheduled transaction gas fee",
            max_fee_per_gas=max_fee_per_gas,
            signed_max_fee_per_gas=intent.max_fee_per_gas,
            max_priority_fee_per_gas=max_priority_fee_per_gas,
            signed_max_priority_fee_per_gas=intent.max_priority_fee_per_gas,
        )


def _check_uint48(*values: int) -> None:
    for value in values:
        if value < 0 or value > UINT48_MAX:
            raise InvalidValidationDataError(f"{value} does not fit in 48 bits", value=value)


def pack_validation_data(failed: Union[bool, int], valid_until: int, valid_after: int) -> int:
    """``failed`` in bits 0-159, validUntil in 160-207, validAfter in 208-255."""
    aggregator = int(failed)
    if aggregator < 0 or aggregator > ADDRESS_MASK:
        raise InvalidValidationDataError(f"aggregator {aggregator} does not fit in 160 bits")
    _check_uint48(valid_until, valid_after)
    return aggregator | (valid_until << 160) | (valid_after << 208)


def unpack_validation_data(word: int) -> ValidationData:
    return ValidationData(
        aggregator=word & ADDRESS_MASK,
        valid_until=(word >> 160) & UINT48_MAX,
        valid_after=(word >> 208) & UINT48_MAX,
    )
