"""Validator plugins: single-owner ECDSA and guardian multi-signature."""

from .base import Validator, ValidatorNotEnabledError
from .ecdsa import EcdsaValidator
from .multisig import (
    HashAlreadyApprovedError,
    InvalidThresholdError,
    MultisigValidator,
    NotAGuardianError,
)

__all__ = [
    "EcdsaValidator",
    "HashAlreadyApprovedError",
    "InvalidThresholdError",
    "MultisigValidator",
    "NotAGuardianError",
    "Validator",
    "ValidatorNotEnabledError",
]
