"""
Calldata predicate engine

Decides whether the concrete arguments of a delegated call fall inside the
values a session allows.

Usage:
    from wallet_auth.core.predicate import encode_rules, eq, and_, gt, lt, is_allowed_calldata

    rules = encode_rules([
        eq("uint256", 0),                              # no native value
        eq("address", recipient),                      # transfer: to
        and_(gt("uint256", 100), lt("uint256", 200)),  # transfer: 100 < amount < 200
    ])
"""

from .encoding import (
    abi_arguments,
    abi_literal,
    and_,
    any_,
    call_arguments,
    encode_arguments,
    encode_rules,
    eq,
    gt,
    lt,
    ne,
    or_,
)
from .engine import (
    check_value_slot,
    evaluate,
    evaluate_node,
    flatten_arguments,
    is_allowed_calldata,
    is_canonical_argument,
    parse_arguments,
    parse_rules,
)
from .models import (
    InvalidArgumentsLengthError,
    InvalidPredicateTagError,
    MalformedRulesError,
    PredicateLimitError,
    PredicateNode,
    PredicateTag,
    ValueMismatchError,
)

__all__ = [
    "InvalidArgumentsLengthError",
    "InvalidPredicateTagError",
    "MalformedRulesError",
    "PredicateLimitError",
    "PredicateNode",
    "PredicateTag",
    "ValueMismatchError",
    "abi_arguments",
    "abi_literal",
    "and_",
    "any_",
    "call_arguments",
    "check_value_slot",
    "encode_arguments",
    "encode_rules",
    "eq",
    "evaluate",
    "evaluate_node",
    "flatten_arguments",
    "gt",
    "is_allowed_calldata",
    "is_canonical_argument",
    "lt",
    "ne",
    "or_",
    "parse_arguments",
    "parse_rules",
]
