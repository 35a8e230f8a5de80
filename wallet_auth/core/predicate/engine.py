"""
Calldata predicate engine.

A rule tree is an RLP list with one ``[tag, operand]`` node per call
argument. Slot 0 is the native value sent with the call. Composite nodes
(AND / OR) hold a list of sub-rules that all judge the same argument, which
is how ranges such as ``100 < x < 200`` are expressed.
"""

import logging
from typing import List, Optional, Sequence, Union

import rlp
from rlp.exceptions import DecodingError as RLPDecodingError

from ...config import settings
from ..types import hex_to_bytes
from .models import (
    COMPOSITE_TAGS,
    LITERAL_TAGS,
    InvalidArgumentsLengthError,
    InvalidPredicateTagError,
    MalformedRulesError,
    PredicateLimitError,
    PredicateNode,
    PredicateTag,
    ValueMismatchError,
)

logger = logging.getLogger(__name__)

WORD = 32


def _rlp_decode(buffer: Union[bytes, str], what: str):
    raw = hex_to_bytes(buffer)
    if not raw:
        raise MalformedRulesError(f"Empty {what} buffer")
    try:
        return rlp.decode(raw)
    except RLPDecodingError as exc:
        raise MalformedRulesError(f"Malformed {what} encoding: {exc}") from exc


def parse_rules(
    buffer: Union[bytes, str],
    max_depth: Optional[int] = None,
    max_nodes: Optional[int] = None,
) -> List[PredicateNode]:
    """Decode a rule buffer into nodes, enforcing depth and size limits."""
    if max_depth is None:
        max_depth = settings.predicate_max_depth
    if max_nodes is None:
        max_nodes = settings.predicate_max_nodes

    decoded = _rlp_decode(buffer, "rule")
    if not isinstance(decoded, list):
        raise MalformedRulesError("Rule tree must be a list")

    budget = [max_nodes]

    def parse_node(item, depth: int) -> PredicateNode:
        if depth > max_depth:
            raise PredicateLimitError(f"Rule tree deeper than {max_depth}", max_depth=max_depth)
        budget[0] -= 1
        if budget[0] < 0:
            raise PredicateLimitError(f"Rule tree has more than {max_nodes} nodes", max_nodes=max_nodes)
        if not isinstance(item, list) or len(item) != 2 or not isinstance(item[0], bytes):
            raise MalformedRulesError("Each rule must be a [tag, operand] pair")
        if len(item[0]) > 1:
            raise MalformedRulesError(f"Rule tag must be a single byte, got 0x{item[0].hex()}")

        tag = int.from_bytes(item[0], "big")
        operand = item[1]
        if tag in COMPOSITE_TAGS and not isinstance(operand, list):
            raise MalformedRulesError(f"{PredicateTag(tag).name} operand must be a list of rules")
        if tag in LITERAL_TAGS and isinstance(operand, list):
            raise MalformedRulesError(f"{PredicateTag(tag).name} operand must be a literal")
        if isinstance(operand, list):
            children = tuple(parse_node(child, depth + 1) for child in operand)
            return PredicateNode(tag=tag, children=children)
        return PredicateNode(tag=tag, literal=operand)

    return [parse_node(item, 1) for item in decoded]


def parse_arguments(buffer: Union[bytes, str]) -> List[bytes]:
    """Decode the RLP list of individually ABI-encoded call arguments."""
    decoded = _rlp_decode(buffer, "argument")
    if not isinstance(decoded, list) or any(not isinstance(item, bytes) for item in decoded):
        raise MalformedRulesError("Arguments must be a flat list of byte strings")
    return decoded


def _as_uint(data: bytes) -> int:
    return int.from_bytes(data, "big")


def _is_word(data: bytes) -> bool:
    return len(data) == WORD


def evaluate_node(node: PredicateNode, argument: bytes) -> bool:
    tag = node.tag
    if tag == PredicateTag.ANY:
        return True
    if tag in COMPOSITE_TAGS and not node.children and node.literal:
        raise MalformedRulesError(f"{PredicateTag(tag).name} operand must be a list of rules")
    if tag in LITERAL_TAGS and node.children:
        raise MalformedRulesError(f"{PredicateTag(tag).name} operand must be a literal")
    if tag == PredicateTag.EQ:
        return node.literal == argument
    if tag == PredicateTag.NE:
        # Only holds between a literal and an argument of the same kind, static or dynamic
        return _is_word(node.literal) == _is_word(argument) and node.literal != argument
    if tag == PredicateTag.GT:
        return _is_word(argument) and _as_uint(argument) > _as_uint(node.literal)
    if tag == PredicateTag.LT:
        return _is_word(argument) and _as_uint(argument) < _as_uint(node.literal)
    if tag == PredicateTag.AND:
        for child in node.children:
            if not evaluate_node(child, argument):
                return False
        return True
    if tag == PredicateTag.OR:
        if not node.children:
            return True
        for child in node.children:
            if evaluate_node(child, argument):
                return True
        return False
    raise InvalidPredicateTagError(f"Invalid calldata prefix 0x{tag:02x}", tag=tag)


def evaluate(rules: Sequence[PredicateNode], arguments: Sequence[bytes]) -> bool:
    """True when every rule accepts the argument in its slot."""
    if len(rules) != len(arguments):
        raise InvalidArgumentsLengthError(
            f"{len(rules)} rules for {len(arguments)} arguments",
            rules=len(rules),
            arguments=len(arguments),
        )
    for rule, argument in zip(rules, arguments):
        if not evaluate_node(rule, argument):
            return False
    return True


def check_value_slot(arguments: Sequence[bytes], value: int) -> None:
    """Slot 0 must carry exactly the native value the call sends."""
    if not arguments:
        raise InvalidArgumentsLengthError("Missing value slot", arguments=0)
    slot = arguments[0]
    if len(slot) != WORD or _as_uint(slot) != value:
        raise ValueMismatchError(value=value, parsed=_as_uint(slot))


def is_allowed_calldata(
    rules_buffer: Union[bytes, str],
    arguments_buffer: Union[bytes, str],
    value: int,
) -> bool:
    rules = parse_rules(rules_buffer)
    arguments = parse_arguments(arguments_buffer)
    check_value_slot(arguments, value)
    return evaluate(rules, arguments)


def _is_dynamic(item: bytes) -> bool:
    return len(item) > WORD and _as_uint(item[:WORD]) == WORD


def flatten_arguments(arguments: Sequence[bytes]) -> bytes:
    """Lay individually ABI-encoded arguments out as one function call body.

    Static arguments go into the head as-is. A dynamic argument (its own
    encoding starts with the 0x20 offset word) contributes an offset word to
    the head and its contents to the tail.
    """
    head_size = sum(WORD if _is_dynamic(item) else len(item) for item in arguments)
    head = bytearray()
    tail = bytearray()
    for item in arguments:
        if _is_dynamic(item):
            head += (head_size + len(tail)).to_bytes(WORD, "big")
            tail += item[WORD:]
        else:
            head += item
    return bytes(head + tail)


def is_canonical_argument(item: bytes) -> bool:
    """True for one static word, or one ``bytes``/``string`` encoding.

    A dynamic argument must be exactly ``[0x20][length][data]`` with the data
    zero-padded to the next word, so its end is fixed by its own length word.
    Dynamic arrays are not accepted.
    """
    if _is_word(item):
        return True
    if len(item) < 2 * WORD or _as_uint(item[:WORD]) != WORD:
        return False
    length = _as_uint(item[WORD:2 * WORD])
    body = item[2 * WORD:]
    padded = -(-length // WORD) * WORD
    return len(body) == padded and not any(body[length:])
