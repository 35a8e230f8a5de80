"""
Validator registry: Sudo and Normal validators per wallet.

A wallet's first validator must be Sudo and the registry refuses any change
that would leave an initialized wallet without a Sudo validator.
"""

import logging
from enum import IntEnum
from typing import Optional, Tuple

from ..errors import AuthorizationAbort, ErrorCode
from ..types import SENTINEL, CallContext, normalize_address
from ..validators.base import Validator
from .ordered_set import IdentifierNotFoundError, OrderedIdentifierSet, Page
from .plugin_registry import BasePluginRegistry, DisableResult, PluginEvent
from .plugins import PLUGIN_INTERFACE_ID, VALIDATOR_INTERFACE_ID

logger = logging.getLogger(__name__)


class ValidatorType(IntEnum):
    DISABLED = 0
    SUDO = 1
    NORMAL = 2


class ValidatorAlreadyEnabledError(AuthorizationAbort):
    code = ErrorCode.ALREADY_EXISTS
    default_message = "validator already enabled"


class InvalidValidatorTypeError(AuthorizationAbort):
    code = ErrorCode.INVALID_VALIDATOR_TYPE
    default_message = "validator type must be Sudo or Normal"


class LastSudoValidatorError(AuthorizationAbort):
    code = ErrorCode.LAST_SUDO_VALIDATOR
    default_message = "wallet must keep at least one Sudo validator"


class ValidatorRegistry(BasePluginRegistry):
    kind = "validator"
    expected_type = Validator
    interface_ids = (PLUGIN_INTERFACE_ID, VALIDATOR_INTERFACE_ID)

    def entries(self, wallet: str, validator_type: ValidatorType) -> OrderedIdentifierSet:
        if validator_type == ValidatorType.DISABLED:
            raise InvalidValidatorTypeError(validator_type=int(validator_type))
        return OrderedIdentifierSet(
            self.store,
            ("validator_registry", normalize_address(wallet), int(validator_type)),
        )

    def get_validator_type(self, wallet: str, validator_id: str) -> ValidatorType:
        for validator_type in (ValidatorType.SUDO, ValidatorType.NORMAL):
            if self.entries(wallet, validator_type).contains(validator_id):
                return validator_type
        return ValidatorType.DISABLED

    def is_validator_enabled(self, wallet: str, validator_id: str) -> bool:
        return self.get_validator_type(wallet, validator_id) != ValidatorType.DISABLED

    def validator_size(self, wallet: str) -> Tuple[int, int]:
        """(sudo_size, normal_size)"""
        return (
            self.entries(wallet, ValidatorType.SUDO).size(),
            self.entries(wallet, ValidatorType.NORMAL).size(),
        )

    def list_validators(
        self,
        wallet: str,
        validator_type: ValidatorType,
        start: str = SENTINEL,
        limit: Optional[int] = None,
    ) -> Page:
        limit = min(limit or self.page_limit, self.page_limit)
        return self.entries(wallet, validator_type).list(start, limit)

    def resolve(self, validator_id: str) -> Optional[Validator]:
        return self._resolve_enabled(normalize_address(validator_id))

    def enable_validator(
        self,
        ctx: CallContext,
        validator_id: str,
        validator_type: ValidatorType,
        init_data: bytes = b"",
    ) -> Validator:
        self._require_self(ctx)
        validator_id = normalize_address(validator_id)
        validator_type = ValidatorType(validator_type)
        if validator_type == ValidatorType.DISABLED:
            raise InvalidValidatorTypeError(validator=validator_id)
        if self.is_validator_enabled(ctx.wallet, validator_id):
            raise ValidatorAlreadyEnabledError(f"{validator_id} already enabled", validator=validator_id)

        with self.store.atomic():
            sudo = self.entries(ctx.wallet, ValidatorType.SUDO)
            if validator_type == ValidatorType.NORMAL and sudo.is_empty():
                raise LastSudoValidatorError(
                    "first validator of a wallet must be Sudo",
                    validator=validator_id,
                )
            validator = self.probe(validator_id)
            self.entries(ctx.wallet, validator_type).add(validator_id)
            self._initialize(ctx, validator, init_data)

        logger.info(
            f"Enabled {validator_type.name.lower()} validator {validator_id} for {ctx.wallet}",
            extra={"event": PluginEvent.ENABLED.value, "validator": validator_id},
        )
        return validator

    def disable_validator(self, ctx: CallContext, prev: str, validator_id: str) -> DisableResult:
        self._require_self(ctx)
        validator_id = normalize_address(validator_id)
        validator_type = self.get_validator_type(ctx.wallet, validator_id)
        if validator_type == ValidatorType.DISABLED:
            raise IdentifierNotFoundError(f"{validator_id} is not enabled", identifier=validator_id)

        with self.store.atomic():
            entries = self.entries(ctx.wallet, validator_type)
            entries.remove(prev, validator_id)
            if validator_type == ValidatorType.SUDO and entries.is_empty():
                raise LastSudoValidatorError(validator=validator_id)
            result = self._clear(ctx, validator_id)

        logger.info(
            f"Disabled validator {validator_id} for {ctx.wallet}",
            extra={"event": result.event.value, "validator": validator_id},
        )
        return result

    def toggle_validator_type(self, ctx: CallContext, prev: str, validator_id: str) -> ValidatorType:
        """Move a validator between the Sudo and Normal classes."""
        self._require_self(ctx)
        validator_id = normalize_address(validator_id)
        current = self.get_validator_type(ctx.wallet, validator_id)
        if current == ValidatorType.DISABLED:
            raise IdentifierNotFoundError(f"{validator_id} is not enabled", identifier=validator_id)
        target = ValidatorType.NORMAL if current == ValidatorType.SUDO else ValidatorType.SUDO

        with self.store.atomic():
            source = self.entries(ctx.wallet, current)
            source.remove(prev, validator_id)
            if current == ValidatorType.SUDO and source.is_empty():
                raise LastSudoValidatorError(validator=validator_id)
            self.entries(ctx.wallet, target).add(validator_id)

        logger.info(f"Validator {validator_id} for {ctx.wallet} is now {target.name.lower()}")
        return target

    def find_predecessor(self, wallet: str, validator_id: str) -> str:
        validator_type = self.get_validator_type(wallet, validator_id)
        if validator_type == ValidatorType.DISABLED:
            raise IdentifierNotFoundError(f"{validator_id} is not enabled", identifier=validator_id)
        return self.entries(wallet, validator_type).find_predecessor(validator_id)
