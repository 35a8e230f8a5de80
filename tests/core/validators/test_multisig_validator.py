"""
Tests for the guardian multi-signature validator.
"""

import pytest
from eth_abi import encode

from wallet_auth.core.registry.plugins import InvalidInitDataError
from wallet_auth.core.registry.validator_registry import ValidatorType
from wallet_auth.core.signature import SIG_VALIDATION_FAILED, decode_payload, encode_instant
from wallet_auth.core.validators import (
    HashAlreadyApprovedError,
    InvalidThresholdError,
    MultisigValidator,
    NotAGuardianError,
)
from wallet_auth.crypto import sign_digest

from conftest import CHAIN_ID, ENTRY_POINT, MULTISIG_VALIDATOR, WALLET, make_op


def guardian_data(accounts, threshold: int) -> bytes:
    return encode(["address[]", "uint256"], [[a.address for a in accounts], threshold])


def signed_op(signers, **overrides):
    """User operation authorized by ``signers`` in the given order."""
    op = make_op(**overrides)
    op_hash = op.hash(ENTRY_POINT, CHAIN_ID)
    bound = decode_payload(encode_instant(MULTISIG_VALIDATOR, b""), op_hash).bound_hash(MULTISIG_VALIDATOR)
    signatures = b"".join(sign_digest(signer.key, bound) for signer in signers)
    return op.with_signature(encode_instant(MULTISIG_VALIDATOR, signatures)), op_hash


@pytest.fixture
def guarded(authorizer, owned_wallet, multisig_validator, ctx, guardians) -> MultisigValidator:
    """Multisig enabled for WALLET with 2-of-3 guardians."""
    authorizer.validators.enable_validator(ctx, MULTISIG_VALIDATOR, ValidatorType.SUDO, guardian_data(guardians, 2))
    return multisig_validator


class TestInit:

    def test_guardians_and_threshold(self, guarded, guardians):
        assert guarded.guardian_count(WALLET) == 3
        assert guarded.threshold(WALLET) == 2
        assert all(guarded.is_guardian(WALLET, g.address) for g in guardians)

    @pytest.mark.parametrize("threshold", [0, 4])
    def test_inconsistent_threshold(self, multisig_validator, ctx, guardians, threshold):
        with pytest.raises(InvalidInitDataError):
            multisig_validator.init_wallet_config(ctx, guardian_data(guardians, threshold))

    def test_no_guardians(self, multisig_validator, ctx):
        with pytest.raises(InvalidInitDataError):
            multisig_validator.init_wallet_config(ctx, encode(["address[]", "uint256"], [[], 1]))


class TestValidateSignature:

    def test_threshold_met_in_order(self, guarded, guardians):
        op, op_hash = signed_op(guardians[:2])
        assert guarded.validate_signature(op, op_hash) == 0

    def test_all_guardians(self, guarded, guardians):
        op, op_hash = signed_op(guardians)
        assert guarded.validate_signature(op, op_hash) == 0

    def test_below_threshold(self, guarded, guardians):
        op, op_hash = signed_op(guardians[:1])
        assert guarded.validate_signature(op, op_hash) == SIG_VALIDATION_FAILED

    def test_out_of_order(self, guarded, guardians):
        op, op_hash = signed_op([guardians[1], guardians[0]])
        assert guarded.validate_signature(op, op_hash) == SIG_VALIDATION_FAILED

    def test_duplicate_guardian(self, guarded, guardians):
        op, op_hash = signed_op([guardians[0], guardians[0]])
        assert guarded.validate_signature(op, op_hash) == SIG_VALIDATION_FAILED

    def test_non_guardian_signer(self, guarded, guardians, stranger):
        signers = sorted([guardians[0], stranger], key=lambda acct: int(acct.address, 16))
        op, op_hash = signed_op(signers)
        assert guarded.validate_signature(op, op_hash) == SIG_VALIDATION_FAILED

    def test_truncated_signatures(self, guarded, guardians):
        op, op_hash = signed_op(guardians[:2])
        truncated = op.with_signature(op.signature_bytes[:-1])
        assert guarded.validate_signature(truncated, op_hash) == SIG_VALIDATION_FAILED

    def test_signature_bound_to_validator(self, guarded, guardians):
        op, op_hash = signed_op(guardians[:2])
        bound = decode_payload(op.signature_bytes, op_hash).bound_hash(MULTISIG_VALIDATOR)
        assert bound != op_hash

    def test_through_wallet_authorizer(self, authorizer, guarded, guardians):
        op, op_hash = signed_op(guardians[1:])
        assert authorizer.validate_user_op(op, op_hash) == 0


class TestGuardianManagement:

    def test_add_guardian(self, guarded, ctx, stranger):
        guarded.add_guardian(ctx, stranger.address, 3)
        assert guarded.guardian_count(WALLET) == 4
        assert guarded.threshold(WALLET) == 3

    def test_add_with_invalid_threshold_rolls_back(self, guarded, ctx, stranger):
        with pytest.raises(InvalidThresholdError):
            guarded.add_guardian(ctx, stranger.address, 5)
        assert not guarded.is_guardian(WALLET, stranger.address)
        assert guarded.threshold(WALLET) == 2

    def test_revoke_guardian(self, guarded, ctx, guardians):
        guarded.revoke_guardian(ctx, guardians[0].address, 2)
        assert not guarded.is_guardian(WALLET, guardians[0].address)
        assert guarded.guardian_count(WALLET) == 2

    def test_revoke_below_threshold(self, guarded, ctx, guardians):
        guarded.change_threshold(ctx, 3)
        with pytest.raises(InvalidThresholdError):
            guarded.revoke_guardian(ctx, guardians[0].address, 3)
        assert guarded.guardian_count(WALLET) == 3

    def test_revoke_unknown(self, guarded, ctx, stranger):
        with pytest.raises(NotAGuardianError):
            guarded.revoke_guardian(ctx, stranger.address, 2)

    @pytest.mark.parametrize("threshold", [0, 4])
    def test_change_threshold_bounds(self, guarded, ctx, threshold):
        with pytest.raises(InvalidThresholdError):
            guarded.change_threshold(ctx, threshold)

    def test_reset_guardians(self, guarded, ctx, guardians, stranger, operator):
        guarded.reset_guardians(ctx, 1, [g.address for g in guardians], [stranger.address, operator.address])

        assert guarded.guardian_count(WALLET) == 2
        assert guarded.threshold(WALLET) == 1
        assert guarded.is_guardian(WALLET, stranger.address)
        assert not guarded.is_guardian(WALLET, guardians[0].address)

    def test_reset_to_empty_fails(self, guarded, ctx, guardians):
        with pytest.raises(InvalidThresholdError):
            guarded.reset_guardians(ctx, 1, [g.address for g in guardians], [])
        assert guarded.guardian_count(WALLET) == 3


class TestIsValidSignature:

    DIGEST = b"\x24" * 32

    def test_guardian_signatures(self, guarded, guardians):
        signatures = b"".join(sign_digest(g.key, self.DIGEST) for g in guardians[:2])
        assert guarded.is_valid_signature(self.DIGEST, signatures, WALLET)

    def test_insufficient_signatures(self, guarded, guardians):
        assert not guarded.is_valid_signature(self.DIGEST, sign_digest(guardians[0].key, self.DIGEST), WALLET)

    def test_approved_hash_with_empty_signature(self, guarded, ctx):
        assert not guarded.is_valid_signature(self.DIGEST, b"", WALLET)

        guarded.approve_hash(ctx, self.DIGEST)
        assert guarded.is_valid_signature(self.DIGEST, b"", WALLET)

        with pytest.raises(HashAlreadyApprovedError):
            guarded.approve_hash(ctx, self.DIGEST)

        guarded.revoke_hash(ctx, self.DIGEST)
        assert not guarded.is_valid_signature(self.DIGEST, b"", WALLET)
