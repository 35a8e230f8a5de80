"""
Signer recovery for 65-byte secp256k1 signatures.

Wallet owners, guardians, and session operators all sign 32-byte hashes
with the EIP-191 personal-message prefix (``signMessage(arrayify(hash))``).
Recovery failures are soft: callers get ``None`` and decide.
"""

import logging
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature
from eth_utils import to_checksum_address

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 65


def recover_signer(digest: bytes, signature: bytes) -> Optional[str]:
    """Address that personal-signed ``digest``, or None if the signature is unusable."""
    if len(signature) != SIGNATURE_LENGTH or len(digest) != 32:
        return None
    try:
        signer = Account.recover_message(encode_defunct(primitive=digest), signature=signature)
    except (BadSignature, ValueError) as exc:
        logger.debug(f"Signature recovery failed: {exc}")
        return None
    return to_checksum_address(signer)


def sign_digest(private_key, digest: bytes) -> bytes:
    """Personal-sign a 32-byte digest; the inverse of ``recover_signer``."""
    signed = Account.sign_message(encode_defunct(primitive=digest), private_key=private_key)
    return bytes(signed.signature)
