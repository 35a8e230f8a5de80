"""
Validator plugin interface.
"""

from abc import ABC, abstractmethod

from ..errors import AuthorizationAbort, ErrorCode
from ..execution.userop import UserOperation
from ..registry.plugins import PLUGIN_INTERFACE_ID, VALIDATOR_INTERFACE_ID, BasePlugin
from ..types import CallContext


class ValidatorNotEnabledError(AuthorizationAbort):
    code = ErrorCode.VALIDATOR_NOT_ENABLED
    default_message = "Validator is not enabled"


class Validator(BasePlugin, ABC):
    """
    A plugin that authorizes user operations and off-chain messages.

    ``validate_signature`` returns a packed validation word: soft failures
    come back as ``SIG_VALIDATION_FAILED``, hard aborts are raised.
    """

    interface_ids = (PLUGIN_INTERFACE_ID, VALIDATOR_INTERFACE_ID)

    def _require_enabled(self, ctx: CallContext) -> str:
        """Configuration calls come from the wallet itself; returns that wallet."""
        if not self.is_initialized(ctx.sender):
            raise ValidatorNotEnabledError(validator=self.address, wallet=ctx.sender)
        return ctx.sender

    @abstractmethod
    def validate_signature(self, op: UserOperation, op_hash: bytes) -> int:
        ...

    @abstractmethod
    def is_valid_signature(self, hash: bytes, signature: bytes, wallet: str) -> bool:
        ...
