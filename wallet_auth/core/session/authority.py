"""
Session authority: narrowly scoped delegated execution for third-party
operators.

A wallet grants an operator an ``OperatorPermission``: a Merkle root over
the sessions (call shapes) the operator may use, an optional sponsor, a
validity window, and gas / call-count budgets. The operator then signs user
operations itself and proves each call against one of its sessions.

Validation runs every check before touching the usage ledger, so a request
that fails for any reason consumes nothing.
"""

import logging
from typing import Callable, List, Optional, Tuple

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from ...config import settings
from ...crypto.backend import CryptoBackend, default_backend
from ..execution.calldata import (
    InvalidBatchLengthError,
    InvalidWalletOperationError,
    Operation,
    WalletCall,
    decode_wallet_execution,
)
from ..execution.userop import UserOperation
from ..predicate.engine import (
    check_value_slot,
    evaluate,
    flatten_arguments,
    is_canonical_argument,
    parse_arguments,
    parse_rules,
)
from ..signature import codec
from ..state.store import StateStore
from ..types import ZERO_ADDRESS, ZERO_HASH, CallContext, normalize_address
from ..validators.base import Validator
from .errors import (
    InvalidArgumentsError,
    InvalidPaymasterError,
    InvalidPermitError,
    InvalidSelectorError,
    InvalidSessionRootError,
    InvalidTargetError,
    InvalidValidationDurationError,
    PermitAlreadyUsedError,
    RuleShapeMismatchError,
    SessionValueExceededError,
    UnsupportedError,
)
from .ledger import Usage, UsageLedger
from .models import SESSION_TUPLE, OperatorPermission, Session, SessionProof, permit_digest

logger = logging.getLogger(__name__)

SudoSignatureCheck = Callable[[str, bytes, bytes], bool]

PAYLOAD_TYPES = ["bytes32[][]", "address", f"{SESSION_TUPLE}[]", "bytes[]", "bytes"]


def intersect_validity(
    valid_until_1: int,
    valid_until_2: int,
    valid_after_1: int,
    valid_after_2: int,
) -> Tuple[int, int]:
    """Intersection of two windows; a validUntil of 0 means no upper bound.

    Returns ``(valid_until, valid_after)``.
    """
    bounded = [until for until in (valid_until_1, valid_until_2) if until != 0]
    valid_until = min(bounded) if bounded else 0
    valid_after = max(valid_after_1, valid_after_2)
    if valid_until != 0 and valid_until <= valid_after:
        raise InvalidValidationDurationError(valid_until=valid_until, valid_after=valid_after)
    return valid_until, valid_after


class SessionAuthority(Validator):
    """Validator that authorizes operator-signed calls against session proofs."""

    def __init__(
        self,
        store: StateStore,
        address: str,
        sudo_verifier: Optional[SudoSignatureCheck] = None,
        backend: CryptoBackend = default_backend,
        paymaster_multiplier: Optional[int] = None,
    ):
        super().__init__(store, address)
        self.sudo_verifier = sudo_verifier
        self.backend = backend
        self.paymaster_multiplier = paymaster_multiplier or settings.paymaster_verification_gas_multiplier
        self.ledger = UsageLedger(store, lambda wallet, operator: self.namespace(wallet, "usage", operator))

    def _permission_key(self, wallet: str, operator: str) -> tuple:
        return self.namespace(wallet, "permission", operator)

    def _redeemed_key(self, wallet: str, digest: bytes) -> tuple:
        # Lives outside the wallet namespace so disabling the authority never reopens a permit
        return (type(self).__name__, self.address, "redeemed", wallet, digest)

    def get_operator_permission(self, wallet: str, operator: str) -> Optional[OperatorPermission]:
        return self.store.get(self._permission_key(normalize_address(wallet), normalize_address(operator)))

    def get_usage(self, wallet: str, operator: str) -> Usage:
        return self.ledger.get(normalize_address(wallet), normalize_address(operator))

    def _write_permission(self, wallet: str, operator: str, permission: OperatorPermission) -> None:
        self.store.set(self._permission_key(wallet, operator), permission)
        self.ledger.reset(
            wallet,
            operator,
            Usage(gas_remaining=permission.gas_remaining, times_remaining=permission.times_remaining),
        )

    def set_operator_permission(self, ctx: CallContext, operator: str, permission: OperatorPermission) -> None:
        """Governance path: the wallet overwrites an operator's envelope directly."""
        wallet = self._require_enabled(ctx)
        operator = normalize_address(operator)
        with self.store.atomic():
            self._write_permission(wallet, operator, permission)
        logger.info(f"Operator {operator} permission set for {wallet}")

    def revoke_operator(self, ctx: CallContext, operator: str) -> None:
        wallet = self._require_enabled(ctx)
        operator = normalize_address(operator)
        with self.store.atomic():
            self.store.delete(self._permission_key(wallet, operator))
            self.ledger.delete(wallet, operator)
        logger.info(f"Operator {operator} revoked for {wallet}")

    def activate_permission(
        self,
        wallet: str,
        operator: str,
        permission: OperatorPermission,
        spending_limit_config_hash: bytes,
        owner_signature: bytes,
    ) -> None:
        """Redeem an owner-signed permit, installing the operator's envelope.

        The permit digest binds wallet, operator, the full permission, and
        the spending-limit configuration; each digest can be redeemed once.
        """
        wallet = normalize_address(wallet)
        operator = normalize_address(operator)
        digest = permit_digest(wallet, operator, permission, spending_limit_config_hash)
        used_key = self._redeemed_key(wallet, digest)

        if not self.is_initialized(wallet):
            raise InvalidPermitError("Session authority is not enabled for this wallet", wallet=wallet)
        if self.store.get(used_key):
            raise PermitAlreadyUsedError(digest=digest.hex())
        if self.sudo_verifier is None or not self.sudo_verifier(wallet, digest, bytes(owner_signature)):
            raise InvalidPermitError(wallet=wallet, operator=operator)

        with self.store.atomic():
            self._write_permission(wallet, operator, permission)
            self.store.set(self.namespace(wallet, "spending_limit", operator), spending_limit_config_hash)
            self.store.set(used_key, True)
        logger.info(
            f"Activated permission for operator {operator} of {wallet}",
            extra={"event": "permission_activated", "operator": operator},
        )

    def spending_limit_config_hash(self, wallet: str, operator: str) -> bytes:
        return self.store.get(
            self.namespace(normalize_address(wallet), "spending_limit", normalize_address(operator)),
            ZERO_HASH,
        )

    def validate_signature(self, op: UserOperation, op_hash: bytes) -> int:
        with self.store.atomic():
            return self._validate(op, op_hash, commit=True)

    def simulate_validation(self, op: UserOperation, op_hash: bytes) -> int:
        """Dry run of ``validate_signature``. Never consumes budget or reserves it."""
        return self._validate(op, op_hash, commit=False)

    def is_valid_signature(self, hash: bytes, signature: bytes, wallet: str) -> bool:
        # Operators authorize user operations only, never wallet messages.
        return False

    def _decode_payload(self, payload: bytes) -> Optional[Tuple[str, List[SessionProof], bytes]]:
        try:
            proofs, operator, sessions, arguments, operator_signature = decode(PAYLOAD_TYPES, payload)
        except (DecodingError, ValueError, OverflowError) as exc:
            logger.debug(f"Malformed session payload: {exc}")
            return None
        if not (len(proofs) == len(sessions) == len(arguments)):
            raise InvalidBatchLengthError(
                proofs=len(proofs), sessions=len(sessions), arguments=len(arguments),
            )
        items = [
            SessionProof(session=Session.from_leaf(leaf), proof=tuple(proof), arguments=args)
            for proof, leaf, args in zip(proofs, sessions, arguments)
        ]
        return normalize_address(operator), items, operator_signature

    def _calls_of(self, op: UserOperation) -> List[WalletCall]:
        execution = decode_wallet_execution(op.call_data)
        if execution.is_sudo:
            raise InvalidWalletOperationError(
                f"{execution.entry_point} cannot be session-authorized",
                entry_point=execution.entry_point,
            )
        for call in execution.calls:
            if call.operation != Operation.CALL:
                raise UnsupportedError(operation=call.operation.name, target=call.to)
        return execution.calls

    def _check_call(self, root: bytes, item: SessionProof, call: WalletCall) -> None:
        session = item.session
        if not self.backend.verify_merkle_proof(list(item.proof), root, session.leaf_hash()):
            raise InvalidSessionRootError(target=session.target)
        if call.to != session.target:
            raise InvalidTargetError(target=call.to, expected=session.target)
        if call.selector != session.selector:
            raise InvalidSelectorError(selector=call.selector.hex(), expected=session.selector.hex())
        if call.value > session.value_limit:
            raise SessionValueExceededError(value=call.value, value_limit=session.value_limit)

        rules = parse_rules(session.allowed_arguments)
        arguments = parse_arguments(item.arguments)
        check_value_slot(arguments, call.value)
        if not all(is_canonical_argument(argument) for argument in arguments[1:]):
            raise RuleShapeMismatchError("Arguments must be single words or bytes encodings", target=call.to)
        if flatten_arguments(arguments[1:]) != call.arguments:
            raise RuleShapeMismatchError(target=call.to)
        if not evaluate(rules, arguments):
            raise InvalidArgumentsError(target=call.to, selector=call.selector.hex())

    def _check_paymaster(self, op: UserOperation, permission: OperatorPermission) -> None:
        paymaster = op.paymaster
        if paymaster is not None and paymaster != permission.allowed_paymaster:
            raise InvalidPaymasterError(paymaster=paymaster, allowed=permission.allowed_paymaster)

    def _validate(self, op: UserOperation, op_hash: bytes, commit: bool) -> int:
        intent = codec.decode_payload(op.signature_bytes, op_hash)
        if intent is None:
            return codec.SIG_VALIDATION_FAILED
        decoded = self._decode_payload(intent.signature)
        if decoded is None:
            return codec.SIG_VALIDATION_FAILED
        operator, items, operator_signature = decoded

        codec.check_fee_ceiling(intent, op.max_fee_per_gas, op.max_priority_fee_per_gas)

        calls = self._calls_of(op)
        if len(calls) != len(items):
            raise InvalidBatchLengthError(calls=len(calls), sessions=len(items))

        wallet = op.sender
        permission = self.get_operator_permission(wallet, operator)
        if permission is None or permission.session_root == ZERO_HASH:
            raise InvalidSessionRootError("Operator has no session root", operator=operator)

        valid_until, valid_after = intersect_validity(
            intent.valid_until, permission.valid_until, intent.valid_after, permission.valid_after,
        )

        signer = self.backend.recover_signer(intent.bound_hash(self.address), operator_signature)
        if signer != operator:
            return codec.SIG_VALIDATION_FAILED

        for item, call in zip(items, calls):
            self._check_call(permission.session_root, item, call)
        self._check_paymaster(op, permission)

        gas_cost = op.required_prefund(self.paymaster_multiplier)
        if commit:
            self.ledger.charge(wallet, operator, gas_cost, len(calls))
        else:
            self.ledger.check(wallet, operator, gas_cost, len(calls))

        return codec.pack_validation_data(0, valid_until, valid_after)
