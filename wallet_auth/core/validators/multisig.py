"""
Threshold multi-signature validator.

Each wallet has a guardian set and a threshold. A valid authorization is at
least ``threshold`` 65-byte signatures concatenated in strictly increasing
order of the recovered guardian address, which rules out counting the same
guardian twice. Guardians sign the validator-bound hash, so a signature made
for one validator cannot be replayed through another.
"""

import logging
from typing import List, Optional, Sequence

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from ...crypto.backend import CryptoBackend, default_backend
from ..errors import AuthorizationAbort, ErrorCode
from ..execution.userop import UserOperation
from ..registry.ordered_set import OrderedIdentifierSet
from ..registry.plugins import InvalidInitDataError
from ..signature import codec
from ..state.store import StateStore
from ..types import CallContext, normalize_address
from .base import Validator

logger = logging.getLogger(__name__)


class InvalidThresholdError(AuthorizationAbort):
    code = ErrorCode.INVALID_THRESHOLD
    default_message = "invalid guardian threshold"


class NotAGuardianError(AuthorizationAbort):
    code = ErrorCode.NOT_A_GUARDIAN
    default_message = "address is not a guardian"


class HashAlreadyApprovedError(AuthorizationAbort):
    code = ErrorCode.HASH_ALREADY_APPROVED
    default_message = "hash already approved"


class MultisigValidator(Validator):

    def __init__(self, store: StateStore, address: str, backend: CryptoBackend = default_backend):
        super().__init__(store, address)
        self.backend = backend

    def guardians(self, wallet: str) -> OrderedIdentifierSet:
        return OrderedIdentifierSet(self.store, self.namespace(normalize_address(wallet), "guardians"))

    def is_guardian(self, wallet: str, guardian: str) -> bool:
        return self.guardians(wallet).contains(guardian)

    def guardian_count(self, wallet: str) -> int:
        return self.guardians(wallet).size()

    def threshold(self, wallet: str) -> int:
        return self.store.get(self.namespace(normalize_address(wallet), "threshold"), 0)

    def is_hash_approved(self, wallet: str, hash: bytes) -> bool:
        return bool(self.store.get(self.namespace(normalize_address(wallet), "approved", bytes(hash))))

    def _init_wallet(self, wallet: str, data: bytes) -> None:
        try:
            guardians, threshold = decode(["address[]", "uint256"], data)
        except (DecodingError, ValueError) as exc:
            raise InvalidInitDataError(f"Invalid init data: {exc}", validator=self.address) from exc
        if not guardians or threshold == 0 or threshold > len(guardians):
            raise InvalidInitDataError(
                "Guardian set and threshold are inconsistent",
                guardians=len(guardians),
                threshold=threshold,
            )
        for guardian in guardians:
            self.guardians(wallet).add(guardian)
        self._store_threshold(wallet, threshold)
        logger.info(f"Multisig validator {self.address} initialized for {wallet}: {threshold}/{len(guardians)}")

    def _store_threshold(self, wallet: str, threshold: int) -> None:
        self.store.set(self.namespace(wallet, "threshold"), threshold)

    def _check_threshold(self, wallet: str, threshold: int) -> None:
        count = self.guardian_count(wallet)
        if threshold == 0 or threshold > count:
            raise InvalidThresholdError(
                f"Threshold {threshold} invalid for {count} guardians",
                threshold=threshold,
                guardians=count,
            )

    def _revoke(self, wallet: str, guardian: str) -> None:
        guardians = self.guardians(wallet)
        if not guardians.contains(guardian):
            raise NotAGuardianError(guardian=guardian)
        guardians.remove(guardians.find_predecessor(guardian), guardian)

    def add_guardian(self, ctx: CallContext, guardian: str, threshold: int) -> None:
        self.add_guardians(ctx, [guardian], threshold)

    def add_guardians(self, ctx: CallContext, guardians: Sequence[str], threshold: int) -> None:
        wallet = self._require_enabled(ctx)
        with self.store.atomic():
            for guardian in guardians:
                self.guardians(wallet).add(guardian)
            self._check_threshold(wallet, threshold)
            self._store_threshold(wallet, threshold)
        logger.info(f"Added {len(guardians)} guardian(s) for {wallet}")

    def revoke_guardian(self, ctx: CallContext, guardian: str, threshold: int) -> None:
        wallet = self._require_enabled(ctx)
        with self.store.atomic():
            self._revoke(wallet, normalize_address(guardian))
            self._check_threshold(wallet, threshold)
            self._store_threshold(wallet, threshold)
        logger.info(f"Revoked guardian {guardian} for {wallet}")

    def change_threshold(self, ctx: CallContext, threshold: int) -> None:
        wallet = self._require_enabled(ctx)
        self._check_threshold(wallet, threshold)
        self._store_threshold(wallet, threshold)
        logger.info(f"Threshold for {wallet} set to {threshold}")

    def reset_guardians(
        self,
        ctx: CallContext,
        threshold: int,
        remove: Sequence[str],
        add: Sequence[str],
    ) -> None:
        wallet = self._require_enabled(ctx)
        with self.store.atomic():
            for guardian in remove:
                self._revoke(wallet, normalize_address(guardian))
            for guardian in add:
                self.guardians(wallet).add(guardian)
            self._check_threshold(wallet, threshold)
            self._store_threshold(wallet, threshold)
        logger.info(f"Reset guardians for {wallet}: -{len(remove)} +{len(add)}")

    def approve_hash(self, ctx: CallContext, hash: bytes) -> None:
        wallet = self._require_enabled(ctx)
        if self.is_hash_approved(wallet, hash):
            raise HashAlreadyApprovedError(hash=bytes(hash).hex())
        self.store.set(self.namespace(wallet, "approved", bytes(hash)), True)

    def revoke_hash(self, ctx: CallContext, hash: bytes) -> None:
        wallet = self._require_enabled(ctx)
        self.store.delete(self.namespace(wallet, "approved", bytes(hash)))

    def _recover_all(self, digest: bytes, signatures: bytes) -> Optional[List[str]]:
        if not signatures or len(signatures) % codec.SIGNATURE_LENGTH:
            return None
        signers = []
        for offset in range(0, len(signatures), codec.SIGNATURE_LENGTH):
            signer = self.backend.recover_signer(digest, signatures[offset:offset + codec.SIGNATURE_LENGTH])
            if signer is None:
                return None
            signers.append(signer)
        return signers

    def _meets_threshold(self, wallet: str, signers: Optional[List[str]]) -> bool:
        if signers is None or len(signers) < self.threshold(wallet):
            return False
        previous = 0
        for signer in signers:
            as_int = int(signer, 16)
            if as_int <= previous or not self.is_guardian(wallet, signer):
                return False
            previous = as_int
        return True

    def validate_signature(self, op: UserOperation, op_hash: bytes) -> int:
        intent = codec.decode_payload(op.signature_bytes, op_hash)
        if intent is None:
            return codec.SIG_VALIDATION_FAILED
        codec.check_fee_ceiling(intent, op.max_fee_per_gas, op.max_priority_fee_per_gas)

        signers = self._recover_all(intent.bound_hash(self.address), intent.signature)
        if not self._meets_threshold(op.sender, signers):
            return codec.SIG_VALIDATION_FAILED
        return codec.pack_validation_data(0, intent.valid_until, intent.valid_after)

    def is_valid_signature(self, hash: bytes, signature: bytes, wallet: str) -> bool:
        """Guardian signatures over ``hash``, or an empty signature for a pre-approved hash."""
        wallet = normalize_address(wallet)
        if not signature:
            return self.is_hash_approved(wallet, hash)
        return self._meets_threshold(wallet, self._recover_all(hash, bytes(signature)))
