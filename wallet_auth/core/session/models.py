"""
Sessions, operator permissions, and the hashes that commit to them.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

from eth_abi import encode
from eth_utils import keccak

from ...crypto.merkle import StandardMerkleTree, leaf_hash
from ..types import ZERO_ADDRESS, ZERO_HASH, normalize_address

SESSION_LEAF_TYPES = ("address", "uint256", "bytes4", "bytes")
SESSION_TUPLE = "(address,uint256,bytes4,bytes)"


@dataclass(frozen=True)
class Session:
    """One delegated call shape: target, value ceiling, selector, allowed arguments."""
    target: str
    value_limit: int
    selector: bytes
    allowed_arguments: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "target", normalize_address(self.target))
        if len(self.selector) != 4:
            raise ValueError(f"Selector must be 4 bytes, got {len(self.selector)}")

    def as_leaf(self) -> Tuple:
        return (self.target, self.value_limit, self.selector, self.allowed_arguments)

    def leaf_hash(self) -> bytes:
        return leaf_hash(SESSION_LEAF_TYPES, self.as_leaf())

    @classmethod
    def from_leaf(cls, leaf: Sequence) -> "Session":
        target, value_limit, selector, allowed_arguments = leaf
        return cls(
            target=target,
            value_limit=value_limit,
            selector=bytes(selector),
            allowed_arguments=bytes(allowed_arguments),
        )


def build_session_tree(sessions: Sequence[Session]) -> StandardMerkleTree:
    return StandardMerkleTree.of([session.as_leaf() for session in sessions], SESSION_LEAF_TYPES)


@dataclass(frozen=True)
class OperatorPermission:
    """The envelope a wallet grants one operator."""
    session_root: bytes = ZERO_HASH
    allowed_paymaster: str = ZERO_ADDRESS
    valid_until: int = 0
    valid_after: int = 0
    gas_remaining: int = 0
    times_remaining: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "allowed_paymaster", normalize_address(self.allowed_paymaster))

    def permission_hash(self) -> bytes:
        return keccak(
            encode(
                ["bytes32", "address", "uint48", "uint48", "uint256", "uint256"],
                [
                    self.session_root,
                    self.allowed_paymaster,
                    self.valid_until,
                    self.valid_after,
                    self.gas_remaining,
                    self.times_remaining,
                ],
            )
        )


def permit_digest(
    wallet: str,
    operator: str,
    permission: OperatorPermission,
    spending_limit_config_hash: bytes,
) -> bytes:
    """What the wallet's sudo authority signs to pre-authorize an operator."""
    return keccak(
        encode(
            ["address", "address", "bytes32", "bytes32"],
            [
                normalize_address(wallet),
                normalize_address(operator),
                permission.permission_hash(),
                spending_limit_config_hash,
            ],
        )
    )


@dataclass(frozen=True)
class SessionProof:
    """Per-call material carried in a session authorization."""
    session: Session
    proof: Tuple[bytes, ...]
    arguments: bytes


def encode_session_payload(
    operator: str,
    proofs: Sequence[SessionProof],
    operator_signature: bytes,
) -> bytes:
    """ABI payload that follows the codec header in a session authorization."""
    return encode(
        ["bytes32[][]", "address", f"{SESSION_TUPLE}[]", "bytes[]", "bytes"],
        [
            [list(item.proof) for item in proofs],
            normalize_address(operator),
            [item.session.as_leaf() for item in proofs],
            [item.arguments for item in proofs],
            operator_signature,
        ],
    )
