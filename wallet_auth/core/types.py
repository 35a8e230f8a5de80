"""
Shared identifier helpers and call context.
"""

from dataclasses import dataclass
from typing import Union

from eth_utils import is_address, to_bytes, to_checksum_address

from .errors import AuthorizationAbort, ErrorCode


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
SENTINEL = "0x0000000000000000000000000000000000000001"
ZERO_HASH = b"\x00" * 32


class InvalidIdentifierError(AuthorizationAbort):
    code = ErrorCode.INVALID_IDENTIFIER
    default_message = "identifier is not a valid 20-byte address"


def normalize_address(value: Union[str, bytes]) -> str:
    """Return the EIP-55 checksum form of a 20-byte identifier."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise InvalidIdentifierError(f"Expected 20 bytes, got {len(value)}", identifier=value.hex())
        return to_checksum_address(bytes(value))
    if not is_address(value):
        raise InvalidIdentifierError(f"Invalid address: {value}", identifier=value)
    return to_checksum_address(value)


def is_reserved(address: str) -> bool:
    """Zero and the sentinel can never be stored as real entries."""
    return address in (ZERO_ADDRESS, SENTINEL)


def hex_to_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if value in ("", "0x"):
        return b""
    return to_bytes(hexstr=value)


@dataclass(frozen=True)
class CallContext:
    """
    Who is calling, on behalf of which wallet.

    ``sender == wallet`` is the self-governance context: the wallet
    executing a call on itself, reachable only after its own authorization.
    """

    wallet: str
    sender: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "wallet", normalize_address(self.wallet))
        object.__setattr__(self, "sender", normalize_address(self.sender))

    @classmethod
    def self_call(cls, wallet: str) -> "CallContext":
        return cls(wallet=wallet, sender=wallet)

    @property
    def is_self_governed(self) -> bool:
        return self.sender == self.wallet
