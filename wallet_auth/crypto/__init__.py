"""Merkle proofs and signer recovery behind a swappable backend."""

from .backend import CryptoBackend, EthCryptoBackend, default_backend
from .merkle import MerkleProof, StandardMerkleTree, hash_pair, leaf_hash, verify_merkle_proof
from .signer import recover_signer, sign_digest

__all__ = [
    "CryptoBackend",
    "EthCryptoBackend",
    "MerkleProof",
    "StandardMerkleTree",
    "default_backend",
    "hash_pair",
    "leaf_hash",
    "recover_signer",
    "sign_digest",
    "verify_merkle_proof",
]
