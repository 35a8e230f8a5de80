"""
Tests for the authorization blob codec and validation word packing.
"""

import pytest
from eth_abi import encode
from eth_utils import keccak

from wallet_auth.core.signature import (
    INSTANT_LENGTH,
    SCHEDULED_LENGTH,
    IntentKind,
    InvalidValidationDataError,
    ScheduledFeeExceededError,
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

from conftest import ECDSA_VALIDATOR


OP_HASH = keccak(text="user operation")
SIGNATURE = bytes(range(65))


# =============================================================================
# Decoding
# =============================================================================

class TestDecode:

    def test_instant_layout(self):
        blob = encode_instant(ECDSA_VALIDATOR, SIGNATURE)
        assert len(blob) == INSTANT_LENGTH == 86

        intent = decode(blob, OP_HASH)
        assert intent.validator == ECDSA_VALIDATOR
        assert intent.kind == IntentKind.INSTANT
        assert intent.signature == SIGNATURE
        assert intent.canonical_hash == OP_HASH
        assert (intent.valid_until, intent.valid_after) == (0, 0)

    def test_scheduled_layout(self):
        blob = encode_scheduled(ECDSA_VALIDATOR, SIGNATURE, 2_000, 1_000, 100, 7)
        assert len(blob) == SCHEDULED_LENGTH == 162

        intent = decode(blob, OP_HASH)
        assert intent.kind == IntentKind.SCHEDULED
        assert intent.valid_until == 2_000
        assert intent.valid_after == 1_000
        assert intent.max_fee_per_gas == 100
        assert intent.max_priority_fee_per_gas == 7
        assert intent.signature == SIGNATURE

    def test_scheduled_canonical_hash(self):
        blob = encode_scheduled(ECDSA_VALIDATOR, SIGNATURE, 2_000, 1_000, 100, 7)
        extra = encode(["uint256", "uint256", "uint256", "uint256"], [2_000, 1_000, 100, 7])
        expected = keccak(encode(["bytes32", "bytes"], [OP_HASH, extra]))

        assert decode(blob, OP_HASH).canonical_hash == expected
        assert scheduled_hash(OP_HASH, 2_000, 1_000, 100, 7) == expected

    def test_hex_input_accepted(self):
        blob = "0x" + encode_instant(ECDSA_VALIDATOR, SIGNATURE).hex()
        assert decode(blob, OP_HASH).signature == SIGNATURE

    @pytest.mark.parametrize("blob", [
        b"",
        b"\x01" * 20,
        bytes.fromhex(ECDSA_VALIDATOR[2:]) + b"\x00" + SIGNATURE[:64],
        bytes.fromhex(ECDSA_VALIDATOR[2:]) + b"\x00" + SIGNATURE + b"\x00",
        bytes.fromhex(ECDSA_VALIDATOR[2:]) + b"\x01" + SIGNATURE,
    ])
    def test_wrong_length_is_soft_failure(self, blob):
        assert decode(blob, OP_HASH) is None

    def test_unknown_kind_is_soft_failure(self):
        blob = bytes.fromhex(ECDSA_VALIDATOR[2:]) + b"\x02" + SIGNATURE
        assert decode(blob, OP_HASH) is None
        assert decode_payload(blob, OP_HASH) is None

    def test_payload_allows_any_trailing_length(self):
        blob = encode_instant(ECDSA_VALIDATOR, SIGNATURE * 3)
        assert decode(blob, OP_HASH) is None
        assert decode_payload(blob, OP_HASH).signature == SIGNATURE * 3

    def test_validator_of(self):
        assert validator_of(encode_instant(ECDSA_VALIDATOR, SIGNATURE)) == ECDSA_VALIDATOR
        assert validator_of(b"\x01" * 19) is None


# =============================================================================
# Validator-bound hashes
# =============================================================================

class TestBoundHash:

    def test_instant(self):
        intent = decode(encode_instant(ECDSA_VALIDATOR, SIGNATURE), OP_HASH)
        expected = keccak(encode(["bytes32", "address"], [OP_HASH, ECDSA_VALIDATOR]))
        assert intent.bound_hash(ECDSA_VALIDATOR) == expected

    def test_differs_per_validator(self):
        intent = decode(encode_instant(ECDSA_VALIDATOR, SIGNATURE), OP_HASH)
        other = "0x" + "99" * 20
        assert intent.bound_hash(ECDSA_VALIDATOR) != intent.bound_hash(other)

    def test_scheduled_commits_to_window(self):
        early = decode(encode_scheduled(ECDSA_VALIDATOR, SIGNATURE, 2_000, 1_000, 100, 7), OP_HASH)
        late = decode(encode_scheduled(ECDSA_VALIDATOR, SIGNATURE, 3_000, 1_000, 100, 7), OP_HASH)
        assert early.bound_hash(ECDSA_VALIDATOR) != late.bound_hash(ECDSA_VALIDATOR)


# =============================================================================
# Fee ceiling
# =============================================================================

class TestFeeCeiling:

    @pytest.fixture
    def scheduled(self):
        return decode(encode_scheduled(ECDSA_VALIDATOR, SIGNATURE, 0, 0, 100, 10), OP_HASH)

    def test_below_ceiling_passes(self, scheduled):
        check_fee_ceiling(scheduled, 99, 9)

    @pytest.mark.parametrize("max_fee, priority_fee", [(100, 9), (99, 10), (150, 1), (1, 11)])
    def test_at_or_above_ceiling_aborts(self, scheduled, max_fee, priority_fee):
        with pytest.raises(ScheduledFeeExceededError):
            check_fee_ceiling(scheduled, max_fee, priority_fee)

    def test_instant_has_no_ceiling(self):
        instant = decode(encode_instant(ECDSA_VALIDATOR, SIGNATURE), OP_HASH)
        check_fee_ceiling(instant, 10**30, 10**30)


# =============================================================================
# Validation word
# =============================================================================

class TestValidationData:

    def test_bit_offsets(self):
        word = pack_validation_data(1, 0x1234, 0x5678)
        assert word & ((1 << 160) - 1) == 1
        assert (word >> 160) & ((1 << 48) - 1) == 0x1234
        assert word >> 208 == 0x5678

    def test_success_without_window_is_zero(self):
        assert pack_validation_data(False, 0, 0) == 0

    def test_unpack(self):
        data = unpack_validation_data(pack_validation_data(0, 200, 50))
        assert not data.sig_failed
        assert (data.valid_until, data.valid_after) == (200, 50)
        assert data.pack() == pack_validation_data(0, 200, 50)

    def test_window_must_fit_uint48(self):
        with pytest.raises(InvalidValidationDataError):
            pack_validation_data(0, 1 << 48, 0)
        with pytest.raises(InvalidValidationDataError):
            encode_scheduled(ECDSA_VALIDATOR, SIGNATURE, 0, 1 << 48, 1, 1)
