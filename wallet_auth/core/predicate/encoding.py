"""
Builders for allowed-argument rule trees and the matching argument lists.
"""

from typing import Any, List, Sequence

import rlp
from eth_abi import encode

from .models import PredicateNode, PredicateTag


def abi_literal(abi_type: str, value: Any) -> bytes:
    return encode([abi_type], [value])


def any_(abi_type: str = "uint256", value: Any = 0) -> PredicateNode:
    return PredicateNode(tag=PredicateTag.ANY, literal=abi_literal(abi_type, value))


def eq(abi_type: str, value: Any) -> PredicateNode:
    return PredicateNode(tag=PredicateTag.EQ, literal=abi_literal(abi_type, value))


def ne(abi_type: str, value: Any) -> PredicateNode:
    return PredicateNode(tag=PredicateTag.NE, literal=abi_literal(abi_type, value))


def gt(abi_type: str, value: Any) -> PredicateNode:
    return PredicateNode(tag=PredicateTag.GT, literal=abi_literal(abi_type, value))


def lt(abi_type: str, value: Any) -> PredicateNode:
    return PredicateNode(tag=PredicateTag.LT, literal=abi_literal(abi_type, value))


def and_(*rules: PredicateNode) -> PredicateNode:
    return PredicateNode(tag=PredicateTag.AND, children=tuple(rules))


def or_(*rules: PredicateNode) -> PredicateNode:
    return PredicateNode(tag=PredicateTag.OR, children=tuple(rules))


def _to_item(node: PredicateNode) -> list:
    tag = bytes([node.tag])
    if node.is_composite:
        return [tag, [_to_item(child) for child in node.children]]
    return [tag, node.literal]


def encode_rules(rules: Sequence[PredicateNode]) -> bytes:
    return rlp.encode([_to_item(rule) for rule in rules])


def abi_arguments(types: Sequence[str], values: Sequence[Any]) -> List[bytes]:
    """Each argument ABI-encoded on its own, in call order."""
    return [abi_literal(abi_type, value) for abi_type, value in zip(types, values)]


def encode_arguments(arguments: Sequence[bytes]) -> bytes:
    return rlp.encode(list(arguments))


def call_arguments(value: int, types: Sequence[str], values: Sequence[Any]) -> bytes:
    """RLP argument list for a call: native value first, then the function arguments."""
    return encode_arguments([abi_literal("uint256", value)] + abi_arguments(types, values))
