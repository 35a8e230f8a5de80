"""
Rule tree nodes and predicate errors.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Tuple

from ..errors import AuthorizationAbort, ErrorCode


class PredicateTag(IntEnum):
    ANY = 0
    NE = 1
    EQ = 2
    GT = 3
    LT = 4
    AND = 5
    OR = 6


LITERAL_TAGS = (PredicateTag.NE, PredicateTag.EQ, PredicateTag.GT, PredicateTag.LT)
COMPOSITE_TAGS = (PredicateTag.AND, PredicateTag.OR)


@dataclass(frozen=True)
class PredicateNode:
    """
    One ``[tag, operand]`` slot of a rule tree.

    ``tag`` is kept as the raw integer read off the wire; an unknown tag is
    only an error if evaluation actually reaches the node.
    """
    tag: int
    literal: bytes = b""
    children: Tuple["PredicateNode", ...] = field(default_factory=tuple)

    @property
    def is_composite(self) -> bool:
        return self.tag in COMPOSITE_TAGS

    def count(self) -> int:
        return 1 + sum(child.count() for child in self.children)


class InvalidPredicateTagError(AuthorizationAbort):
    code = ErrorCode.INVALID_PREDICATE_TAG
    default_message = "Invalid calldata prefix"


class InvalidArgumentsLengthError(AuthorizationAbort):
    code = ErrorCode.INVALID_ARGUMENTS_LENGTH
    default_message = "rule count does not match argument count"


class MalformedRulesError(AuthorizationAbort):
    code = ErrorCode.MALFORMED_RULES
    default_message = "rule tree is not a well-formed nested list"


class PredicateLimitError(AuthorizationAbort):
    code = ErrorCode.PREDICATE_LIMIT
    default_message = "rule tree exceeds configured size limits"


class ValueMismatchError(AuthorizationAbort):
    code = ErrorCode.VALUE_MISMATCH
    default_message = "msg.value not corresponding to parsed value"
