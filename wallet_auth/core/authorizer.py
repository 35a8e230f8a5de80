"""
Wallet-level entry points for the authorization core.

``WalletAuthorizer`` is what a wallet's ``validateUserOp`` and
``isValidSignature`` delegate to: it reads the validator named in the
authorization blob, checks it is enabled with the class the operation
needs, and forwards to it.
"""

import logging
from typing import Optional

from ..config import settings
from ..logging_config import bind_wallet_context, clear_wallet_context
from .errors import AuthorizationAbort, ErrorCode
from .execution.calldata import Operation, WalletExecution, decode_wallet_execution
from .execution.userop import UserOperation
from .registry.plugins import PluginDirectory
from .registry.validator_registry import ValidatorRegistry, ValidatorType
from .signature import codec
from .state.store import StateStore
from .types import hex_to_bytes, normalize_address

logger = logging.getLogger(__name__)


class InvalidValidatorError(AuthorizationAbort):
    code = ErrorCode.VALIDATOR_NOT_ENABLED
    default_message = "authorization names a validator that is not enabled"


class ValidatorClassMismatchError(AuthorizationAbort):
    code = ErrorCode.VALIDATOR_CLASS_MISMATCH
    default_message = "sudo execution requires a sudo validator"


class BannedOperationError(AuthorizationAbort):
    code = ErrorCode.BANNED_OPERATION
    default_message = "normal execution cannot perform this operation"


class WalletAuthorizer:
    """Routes authorization requests for every wallet sharing a state store."""

    def __init__(
        self,
        store: Optional[StateStore] = None,
        directory: Optional[PluginDirectory] = None,
        page_limit: Optional[int] = None,
    ):
        self.store = store or StateStore()
        self.directory = directory or PluginDirectory()
        self.validators = ValidatorRegistry(
            self.store,
            self.directory,
            page_limit=page_limit or settings.registry_page_limit,
        )

    def _check_normal_call(self, wallet: str, execution: WalletExecution) -> None:
        """Normal validators may not delegatecall, reconfigure the wallet, or call its plugins."""
        for call in execution.calls:
            if call.operation != Operation.CALL:
                raise BannedOperationError("delegatecall is sudo-only", target=call.to)
            if call.to == wallet and call.data:
                raise BannedOperationError("self-calls with data are sudo-only", target=call.to)
            if self.validators.is_validator_enabled(wallet, call.to):
                raise BannedOperationError("calls to enabled validators are sudo-only", target=call.to)

    def validate_user_op(self, op: UserOperation, op_hash: bytes) -> int:
        bind_wallet_context(op.sender)
        try:
            return self._validate_user_op(op, op_hash)
        except AuthorizationAbort as exc:
            logger.warning(f"Rejected op for {op.sender}: {exc.message}", extra={"abort": exc.to_dict()})
            raise
        finally:
            clear_wallet_context()

    def _validate_user_op(self, op: UserOperation, op_hash: bytes) -> int:
        validator_id = codec.validator_of(op.signature_bytes)
        if validator_id is None:
            raise InvalidValidatorError("authorization is shorter than a validator id")

        validator_type = self.validators.get_validator_type(op.sender, validator_id)
        if validator_type == ValidatorType.DISABLED:
            raise InvalidValidatorError(validator=validator_id, wallet=op.sender)

        execution = decode_wallet_execution(op.call_data)
        if execution.is_sudo and validator_type != ValidatorType.SUDO:
            raise ValidatorClassMismatchError(validator=validator_id, entry_point=execution.entry_point)
        if not execution.is_sudo:
            self._check_normal_call(op.sender, execution)

        validator = self.validators.resolve(validator_id)
        result = validator.validate_signature(op, op_hash)
        logger.debug(
            f"Validated op for {op.sender} via {validator_id}",
            extra={"validation_data": result, "validator_type": validator_type.name},
        )
        return result

    def is_valid_signature(self, wallet: str, hash: bytes, signature) -> bool:
        """Off-chain message check: ``[20B sudo validator][validator-specific signature]``.

        This is also the "current Sudo signer" lookup used to verify permits.
        """
        wallet = normalize_address(wallet)
        raw = hex_to_bytes(signature)
        validator_id = codec.validator_of(raw)
        if validator_id is None:
            return False
        if self.validators.get_validator_type(wallet, validator_id) != ValidatorType.SUDO:
            return False
        validator = self.validators.resolve(validator_id)
        return validator.is_valid_signature(hash, raw[codec.VALIDATOR_LENGTH:], wallet)
