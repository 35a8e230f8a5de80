"""
ERC-4337 UserOperation model and hashing.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from eth_abi import encode
from eth_utils import keccak

from ...config import settings
from ..types import ZERO_ADDRESS, hex_to_bytes, normalize_address


def _to_hex(value: int) -> str:
    return hex(value)


@dataclass
class UserOperation:
    """
    ERC-4337 UserOperation payload.

    Gas and fee values are raw units (gas / wei). Byte fields are 0x-prefixed
    hex strings as they arrive over RPC.
    """
    sender: str
    nonce: int
    init_code: str
    call_data: str
    call_gas_limit: int
    verification_gas_limit: int
    pre_verification_gas: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    paymaster_and_data: str = "0x"
    signature: str = "0x"

    def __post_init__(self) -> None:
        self.sender = normalize_address(self.sender)

    @property
    def call_data_bytes(self) -> bytes:
        return hex_to_bytes(self.call_data)

    @property
    def signature_bytes(self) -> bytes:
        return hex_to_bytes(self.signature)

    @property
    def paymaster(self) -> Optional[str]:
        """Sponsor address from ``paymasterAndData``, or None when absent."""
        data = hex_to_bytes(self.paymaster_and_data)
        if len(data) < 20:
            return None
        return normalize_address(data[:20])

    def with_signature(self, signature: Any) -> "UserOperation":
        if isinstance(signature, (bytes, bytearray)):
            signature = "0x" + bytes(signature).hex()
        return replace(self, signature=signature)

    def pack(self) -> bytes:
        """ABI encoding of every field except the signature, dynamic fields hashed."""
        return encode(
            [
                "address", "uint256", "bytes32", "bytes32",
                "uint256", "uint256", "uint256", "uint256", "uint256",
                "bytes32",
            ],
            [
                self.sender,
                self.nonce,
                keccak(hex_to_bytes(self.init_code)),
                keccak(self.call_data_bytes),
                self.call_gas_limit,
                self.verification_gas_limit,
                self.pre_verification_gas,
                self.max_fee_per_gas,
                self.max_priority_fee_per_gas,
                keccak(hex_to_bytes(self.paymaster_and_data)),
            ],
        )

    def hash(self, entry_point: Optional[str] = None, chain_id: Optional[int] = None) -> bytes:
        """The userOpHash the EntryPoint hands to ``validateUserOp``.

        Entry point and chain default to the configured ones.
        """
        return self._bind(keccak(self.pack()), entry_point, chain_id)

    @staticmethod
    def _bind(inner: bytes, entry_point: Optional[str], chain_id: Optional[int]) -> bytes:
        entry_point = entry_point or settings.entry_point_address
        chain_id = settings.chain_id if chain_id is None else chain_id
        return keccak(
            encode(
                ["bytes32", "address", "uint256"],
                [inner, normalize_address(entry_point), chain_id],
            )
        )

    def scheduled_hash(self, entry_point: Optional[str] = None, chain_id: Optional[int] = None) -> bytes:
        """Hash that leaves out both fee fields.

        A scheduled operation locks its fee ceilings inside the signed
        authorization instead, so the bundler can pick actual fees later.
        """
        packed = encode(
            [
                "address", "uint256", "bytes32", "bytes32",
                "uint256", "uint256", "uint256", "bytes32",
            ],
            [
                self.sender,
                self.nonce,
                keccak(hex_to_bytes(self.init_code)),
                keccak(self.call_data_bytes),
                self.call_gas_limit,
                self.verification_gas_limit,
                self.pre_verification_gas,
                keccak(hex_to_bytes(self.paymaster_and_data)),
            ],
        )
        return self._bind(keccak(packed), entry_point, chain_id)

    def required_prefund(self, paymaster_multiplier: int = 3) -> int:
        """Maximum fee the operation can cost its payer."""
        multiplier = paymaster_multiplier if self.paymaster not in (None, ZERO_ADDRESS) else 1
        gas = (
            self.call_gas_limit
            + self.verification_gas_limit * multiplier
            + self.pre_verification_gas
        )
        return gas * self.max_fee_per_gas

    def to_rpc_dict(self) -> Dict[str, Any]:
        return {
            "sender": self.sender,
            "nonce": _to_hex(self.nonce),
            "initCode": self.init_code,
            "callData": self.call_data,
            "callGasLimit": _to_hex(self.call_gas_limit),
            "verificationGasLimit": _to_hex(self.verification_gas_limit),
            "preVerificationGas": _to_hex(self.pre_verification_gas),
            "maxFeePerGas": _to_hex(self.max_fee_per_gas),
            "maxPriorityFeePerGas": _to_hex(self.max_priority_fee_per_gas),
            "paymasterAndData": self.paymaster_and_data,
            "signature": self.signature,
        }

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "UserOperation":
        def parse_int(value: Any) -> int:
            if isinstance(value, int):
                return value
            return int(value, 16) if str(value).startswith("0x") else int(value)

        return cls(
            sender=data["sender"],
            nonce=parse_int(data["nonce"]),
            init_code=data.get("initCode", "0x"),
            call_data=data.get("callData", "0x"),
            call_gas_limit=parse_int(data["callGasLimit"]),
            verification_gas_limit=parse_int(data["verificationGasLimit"]),
            pre_verification_gas=parse_int(data["preVerificationGas"]),
            max_fee_per_gas=parse_int(data["maxFeePerGas"]),
            max_priority_fee_per_gas=parse_int(data["maxPriorityFeePerGas"]),
            paymaster_and_data=data.get("paymasterAndData", "0x"),
            signature=data.get("signature", "0x"),
        )
