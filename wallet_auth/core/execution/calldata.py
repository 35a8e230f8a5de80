"""
Wallet execution calldata: builders and decoder for the four entry points a
user operation can invoke on the wallet.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import List, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak

from ..errors import AuthorizationAbort, ErrorCode
from ..types import hex_to_bytes, normalize_address


def _selector_from_signature(signature: str) -> bytes:
    return keccak(text=signature)[:4]


NORMAL_EXECUTE = "normalExecute(address,uint256,bytes,uint8)"
BATCH_NORMAL_EXECUTE = "batchNormalExecute(address[],uint256[],bytes[],uint8[])"
SUDO_EXECUTE = "sudoExecute(address,uint256,bytes,uint8)"
BATCH_SUDO_EXECUTE = "batchSudoExecute(address[],uint256[],bytes[],uint8[])"

_SINGLE_TYPES = ["address", "uint256", "bytes", "uint8"]
_BATCH_TYPES = ["address[]", "uint256[]", "bytes[]", "uint8[]"]

EMPTY_SELECTOR = b"\x00" * 4


class Operation(IntEnum):
    CALL = 0
    DELEGATE_CALL = 1


class InvalidWalletOperationError(AuthorizationAbort):
    code = ErrorCode.INVALID_WALLET_OPERATION
    default_message = "calldata is not a recognised wallet execution"


class InvalidBatchLengthError(AuthorizationAbort):
    code = ErrorCode.INVALID_BATCH_LENGTH
    default_message = "batch arrays have different lengths"


@dataclass(frozen=True)
class WalletCall:
    to: str
    value: int
    data: bytes
    operation: Operation = Operation.CALL

    @property
    def selector(self) -> bytes:
        """First four bytes of the inner calldata; zero for plain transfers."""
        return self.data[:4] if len(self.data) >= 4 else EMPTY_SELECTOR

    @property
    def arguments(self) -> bytes:
        return self.data[4:]


@dataclass(frozen=True)
class WalletExecution:
    """Decoded wallet entry-point invocation."""
    entry_point: str
    calls: List[WalletCall]

    @property
    def is_sudo(self) -> bool:
        return self.entry_point in (SUDO_EXECUTE, BATCH_SUDO_EXECUTE)

    @property
    def is_batch(self) -> bool:
        return self.entry_point in (BATCH_NORMAL_EXECUTE, BATCH_SUDO_EXECUTE)


_SELECTORS = {
    _selector_from_signature(sig): sig
    for sig in (NORMAL_EXECUTE, BATCH_NORMAL_EXECUTE, SUDO_EXECUTE, BATCH_SUDO_EXECUTE)
}


def selector_of(signature: str) -> bytes:
    return _selector_from_signature(signature)


def decode_wallet_execution(call_data) -> WalletExecution:
    raw = hex_to_bytes(call_data)
    entry_point = _SELECTORS.get(raw[:4])
    if entry_point is None:
        raise InvalidWalletOperationError(
            f"Unknown wallet selector 0x{raw[:4].hex()}",
            selector=raw[:4].hex(),
        )

    batch = entry_point in (BATCH_NORMAL_EXECUTE, BATCH_SUDO_EXECUTE)
    try:
        decoded = decode(_BATCH_TYPES if batch else _SINGLE_TYPES, raw[4:])
    except (DecodingError, ValueError) as exc:
        raise InvalidWalletOperationError(f"Malformed {entry_point} calldata: {exc}") from exc

    if not batch:
        to, value, data, operation = decoded
        return WalletExecution(entry_point, [_make_call(to, value, data, operation)])

    targets, values, datas, operations = decoded
    if not (len(targets) == len(values) == len(datas) == len(operations)):
        raise InvalidBatchLengthError(
            targets=len(targets), values=len(values), data=len(datas), operations=len(operations),
        )
    calls = [
        _make_call(to, value, data, operation)
        for to, value, data, operation in zip(targets, values, datas, operations)
    ]
    return WalletExecution(entry_point, calls)


def _make_call(to: str, value: int, data: bytes, operation: int) -> WalletCall:
    try:
        op = Operation(operation)
    except ValueError as exc:
        raise InvalidWalletOperationError(f"Unknown operation type {operation}") from exc
    return WalletCall(to=normalize_address(to), value=value, data=bytes(data), operation=op)


def _encode(signature: str, types: Sequence[str], values: Sequence) -> str:
    return "0x" + (_selector_from_signature(signature) + encode(list(types), list(values))).hex()


def build_normal_execute(to: str, value: int, data="0x", operation: Operation = Operation.CALL) -> str:
    return _encode(NORMAL_EXECUTE, _SINGLE_TYPES, [to, value, hex_to_bytes(data), int(operation)])


def build_sudo_execute(to: str, value: int, data="0x", operation: Operation = Operation.CALL) -> str:
    return _encode(SUDO_EXECUTE, _SINGLE_TYPES, [to, value, hex_to_bytes(data), int(operation)])


def build_batch_normal_execute(calls: Sequence[WalletCall]) -> str:
    return _encode(BATCH_NORMAL_EXECUTE, _BATCH_TYPES, _batch_columns(calls))


def build_batch_sudo_execute(calls: Sequence[WalletCall]) -> str:
    return _encode(BATCH_SUDO_EXECUTE, _BATCH_TYPES, _batch_columns(calls))


def _batch_columns(calls: Sequence[WalletCall]) -> list:
    return [
        [call.to for call in calls],
        [call.value for call in calls],
        [call.data for call in calls],
        [int(call.operation) for call in calls],
    ]


def build_function_call(signature: str, types: Sequence[str], values: Sequence) -> bytes:
    """Calldata for an arbitrary target function, e.g. an ERC-20 transfer."""
    return _selector_from_signature(signature) + encode(list(types), list(values))
