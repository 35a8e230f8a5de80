"""
OpenZeppelin "standard" Merkle trees over ABI-encoded leaves.

Leaves are ``keccak256(keccak256(abi.encode(types, values)))``; internal
nodes hash the sorted pair of their children, so proofs carry no direction
bits. Trees built here produce the same roots and proofs as
``@openzeppelin/merkle-tree``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Sequence

from eth_abi import encode
from eth_utils import keccak


def leaf_hash(types: Sequence[str], values: Sequence[Any]) -> bytes:
    return keccak(keccak(encode(list(types), list(values))))


def hash_pair(a: bytes, b: bytes) -> bytes:
    return keccak(a + b) if a < b else keccak(b + a)


def process_proof(proof: Sequence[bytes], leaf: bytes) -> bytes:
    computed = leaf
    for sibling in proof:
        computed = hash_pair(computed, sibling)
    return computed


def verify_merkle_proof(proof: Sequence[bytes], root: bytes, leaf: bytes) -> bool:
    return process_proof(proof, leaf) == root


@dataclass
class MerkleProof:
    """Inclusion proof for one value of a ``StandardMerkleTree``."""
    leaf: bytes
    proof: List[bytes]
    root: bytes

    def verify(self) -> bool:
        return verify_merkle_proof(self.proof, self.root, self.leaf)


class StandardMerkleTree:
    """
    Complete binary tree stored as a flat array, leaves sorted by hash.

    ``tree[0]`` is the root; leaves occupy the tail in reverse sorted order.
    """

    def __init__(self, values: Sequence[Sequence[Any]], types: Sequence[str]):
        if not values:
            raise ValueError("Expected at least one leaf")
        self.types = list(types)
        self.values = [tuple(v) for v in values]

        hashed = sorted(
            ((leaf_hash(self.types, value), index) for index, value in enumerate(self.values)),
            key=lambda item: item[0],
        )
        size = 2 * len(hashed) - 1
        self._tree: List[bytes] = [b""] * size
        self._positions = {}
        for i, (digest, value_index) in enumerate(hashed):
            position = size - 1 - i
            self._tree[position] = digest
            self._positions[value_index] = position
        for i in range(size - 1 - len(hashed), -1, -1):
            self._tree[i] = hash_pair(self._tree[2 * i + 1], self._tree[2 * i + 2])

    @classmethod
    def of(cls, values: Sequence[Sequence[Any]], types: Sequence[str]) -> "StandardMerkleTree":
        return cls(values, types)

    @property
    def root(self) -> bytes:
        return self._tree[0]

    def leaf_hash(self, value: Sequence[Any]) -> bytes:
        return leaf_hash(self.types, value)

    def _index_of(self, value: Sequence[Any]) -> int:
        try:
            return self.values.index(tuple(value))
        except ValueError:
            raise ValueError("Value is not a leaf of this tree") from None

    def get_proof(self, value_or_index) -> List[bytes]:
        index = value_or_index if isinstance(value_or_index, int) else self._index_of(value_or_index)
        position = self._positions[index]
        proof = []
        while position > 0:
            sibling = position - 1 if position % 2 == 0 else position + 1
            proof.append(self._tree[sibling])
            position = (position - 1) // 2
        return proof

    def get_merkle_proof(self, value_or_index) -> MerkleProof:
        index = value_or_index if isinstance(value_or_index, int) else self._index_of(value_or_index)
        return MerkleProof(
            leaf=leaf_hash(self.types, self.values[index]),
            proof=self.get_proof(index),
            root=self.root,
        )

    def __len__(self) -> int:
        return len(self.values)
