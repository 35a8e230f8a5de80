"""
Single-owner ECDSA validator.
"""

import logging
from typing import Optional

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from ...crypto.backend import CryptoBackend, default_backend
from ..execution.userop import UserOperation
from ..registry.plugins import InvalidInitDataError
from ..signature import codec
from ..state.store import StateStore
from ..types import ZERO_ADDRESS, CallContext, normalize_address
from .base import Validator

logger = logging.getLogger(__name__)


class EcdsaValidator(Validator):
    """One signer per wallet; the signer personal-signs the canonical hash."""

    def __init__(self, store: StateStore, address: str, backend: CryptoBackend = default_backend):
        super().__init__(store, address)
        self.backend = backend

    def _set(self, wallet: str, signer: str) -> None:
        signer = normalize_address(signer)
        if signer == ZERO_ADDRESS:
            raise InvalidInitDataError("Invalid signer address", validator=self.address)
        self.store.set(self.namespace(wallet, "signer"), signer)

    def _init_wallet(self, wallet: str, data: bytes) -> None:
        try:
            (signer,) = decode(["address"], data)
        except (DecodingError, ValueError) as exc:
            raise InvalidInitDataError(f"Invalid init data: {exc}", validator=self.address) from exc
        self._set(wallet, signer)
        logger.info(f"ECDSA validator {self.address} initialized for {wallet}")

    def set_signer(self, ctx: CallContext, signer: str) -> None:
        wallet = self._require_enabled(ctx)
        self._set(wallet, signer)
        logger.info(f"ECDSA signer for {wallet} changed")

    def get_signer(self, wallet: str) -> Optional[str]:
        return self.store.get(self.namespace(normalize_address(wallet), "signer"))

    def validate_signature(self, op: UserOperation, op_hash: bytes) -> int:
        intent = codec.decode(op.signature_bytes, op_hash)
        if intent is None:
            return codec.SIG_VALIDATION_FAILED
        codec.check_fee_ceiling(intent, op.max_fee_per_gas, op.max_priority_fee_per_gas)

        signer = self.get_signer(op.sender)
        recovered = self.backend.recover_signer(intent.canonical_hash, intent.signature)
        if signer is None or recovered != signer:
            return codec.SIG_VALIDATION_FAILED
        return codec.pack_validation_data(0, intent.valid_until, intent.valid_after)

    def is_valid_signature(self, hash: bytes, signature: bytes, wallet: str) -> bool:
        signer = self.get_signer(wallet)
        if signer is None:
            return False
        return self.backend.recover_signer(hash, bytes(signature)) == signer
