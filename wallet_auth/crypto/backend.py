"""
Cryptographic capabilities the authorization logic depends on.
"""

from typing import Optional, Protocol, Sequence

from .merkle import verify_merkle_proof
from .signer import recover_signer


class CryptoBackend(Protocol):
    def verify_merkle_proof(self, proof: Sequence[bytes], root: bytes, leaf: bytes) -> bool:
        ...

    def recover_signer(self, digest: bytes, signature: bytes) -> Optional[str]:
        ...


class EthCryptoBackend:
    """keccak256 Merkle trees and EIP-191 secp256k1 recovery."""

    def verify_merkle_proof(self, proof: Sequence[bytes], root: bytes, leaf: bytes) -> bool:
        return verify_merkle_proof(proof, root, leaf)

    def recover_signer(self, digest: bytes, signature: bytes) -> Optional[str]:
        return recover_signer(digest, signature)


default_backend = EthCryptoBackend()
