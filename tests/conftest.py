"""
Test configuration and fixtures
"""

import pytest
from eth_abi import encode
from eth_account import Account
from eth_utils import to_checksum_address

from wallet_auth.core.authorizer import WalletAuthorizer
from wallet_auth.core.execution import UserOperation, build_normal_execute
from wallet_auth.core.registry.validator_registry import ValidatorType
from wallet_auth.core.types import CallContext
from wallet_auth.core.validators import EcdsaValidator, MultisigValidator


WALLET = to_checksum_address("0x" + "ab" * 20)
OTHER_WALLET = to_checksum_address("0x" + "cd" * 20)
ECDSA_VALIDATOR = to_checksum_address("0x" + "e1" * 20)
SECOND_ECDSA_VALIDATOR = to_checksum_address("0x" + "e2" * 20)
MULTISIG_VALIDATOR = to_checksum_address("0x" + "f1" * 20)
SESSION_VALIDATOR = to_checksum_address("0x" + "5e" * 20)
TOKEN = to_checksum_address("0x" + "70" * 20)
ENTRY_POINT = to_checksum_address("0x" + "e0" * 20)
CHAIN_ID = 1


def _account(seed: int):
    return Account.from_key(seed.to_bytes(32, "big"))


@pytest.fixture
def owner():
    return _account(0x1001)


@pytest.fixture
def stranger():
    return _account(0x2002)


@pytest.fixture
def operator():
    return _account(0x3003)


@pytest.fixture
def guardians():
    """Three guardian accounts sorted by address."""
    accounts = [_account(0x4000 + i) for i in range(3)]
    return sorted(accounts, key=lambda acct: int(acct.address, 16))


@pytest.fixture
def ctx() -> CallContext:
    return CallContext.self_call(WALLET)


@pytest.fixture
def authorizer() -> WalletAuthorizer:
    return WalletAuthorizer()


@pytest.fixture
def ecdsa_validator(authorizer: WalletAuthorizer) -> EcdsaValidator:
    validator = EcdsaValidator(authorizer.store, ECDSA_VALIDATOR)
    authorizer.directory.publish(validator)
    return validator


@pytest.fixture
def multisig_validator(authorizer: WalletAuthorizer) -> MultisigValidator:
    validator = MultisigValidator(authorizer.store, MULTISIG_VALIDATOR)
    authorizer.directory.publish(validator)
    return validator


@pytest.fixture
def owned_wallet(authorizer: WalletAuthorizer, ecdsa_validator: EcdsaValidator, ctx: CallContext, owner):
    """WALLET with the ECDSA validator enabled as Sudo for ``owner``."""
    authorizer.validators.enable_validator(
        ctx,
        ecdsa_validator.address,
        ValidatorType.SUDO,
        encode(["address"], [owner.address]),
    )
    return WALLET


def make_op(**overrides) -> UserOperation:
    fields = dict(
        sender=WALLET,
        nonce=0,
        init_code="0x",
        call_data=build_normal_execute(TOKEN, 0, "0x"),
        call_gas_limit=2_150_000,
        verification_gas_limit=2_150_000,
        pre_verification_gas=2_150_000,
        max_fee_per_gas=0,
        max_priority_fee_per_gas=0,
        paymaster_and_data="0x",
        signature="0x",
    )
    fields.update(overrides)
    return UserOperation(**fields)
