"""
Plugin base class, interface identifiers, and the directory that resolves a
plugin address to the object implementing it.
"""

import logging
from functools import reduce
from typing import Dict, Optional

from eth_utils import keccak

from ..errors import AuthorizationAbort, ErrorCode
from ..state.store import StateStore
from ..types import CallContext, normalize_address

logger = logging.getLogger(__name__)


def selector(signature: str) -> bytes:
    return keccak(text=signature)[:4]


def interface_id(*signatures: str) -> bytes:
    """ERC-165 style identifier: XOR of the member selectors."""
    return reduce(
        lambda acc, sig: bytes(a ^ b for a, b in zip(acc, selector(sig))),
        signatures,
        b"\x00" * 4,
    )


PLUGIN_INTERFACE_ID = interface_id("initWalletConfig(bytes)", "clearWalletConfig()")
VALIDATOR_INTERFACE_ID = interface_id(
    "validateSignature((address,uint256,bytes,bytes,uint256,uint256,uint256,uint256,uint256,bytes,bytes),bytes32)",
    "isValidSignature(bytes32,bytes,address)",
)


class PluginAlreadyInitializedError(AuthorizationAbort):
    code = ErrorCode.PLUGIN_ALREADY_INITIALIZED
    default_message = "plugin already initialized for this wallet"


class PluginNotInitializedError(AuthorizationAbort):
    code = ErrorCode.PLUGIN_NOT_INITIALIZED
    default_message = "plugin not initialized for this wallet"


class InvalidInitDataError(AuthorizationAbort):
    code = ErrorCode.INVALID_INIT_DATA
    default_message = "invalid plugin init data"


class BasePlugin:
    """
    A component a wallet can enable.

    Subclasses keep their wallet-scoped state in the shared store under
    ``self.namespace(wallet)`` and implement ``_init_wallet`` /
    ``_clear_wallet``. The initialized flag is tracked here so a plugin can
    neither be initialized twice nor cleared before it was initialized.
    """

    interface_ids = (PLUGIN_INTERFACE_ID,)

    def __init__(self, store: StateStore, address: str):
        self.store = store
        self.address = normalize_address(address)

    def namespace(self, wallet: str, *parts) -> tuple:
        return (type(self).__name__, self.address, wallet) + parts

    def supports_interface(self, iface: bytes) -> bool:
        return iface in self.interface_ids

    def is_initialized(self, wallet: str) -> bool:
        return bool(self.store.get(self.namespace(normalize_address(wallet), "initialized")))

    def init_wallet_config(self, ctx: CallContext, data: bytes = b"") -> None:
        if self.is_initialized(ctx.wallet):
            raise PluginAlreadyInitializedError(plugin=self.address, wallet=ctx.wallet)
        self.store.set(self.namespace(ctx.wallet, "initialized"), True)
        self._init_wallet(ctx.wallet, data)

    def clear_wallet_config(self, ctx: CallContext) -> None:
        if not self.is_initialized(ctx.wallet):
            raise PluginNotInitializedError(plugin=self.address, wallet=ctx.wallet)
        self.store.delete_prefix(self.namespace(ctx.wallet))
        self._clear_wallet(ctx.wallet)

    def _init_wallet(self, wallet: str, data: bytes) -> None:
        pass

    def _clear_wallet(self, wallet: str) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"


class PluginDirectory:
    """Resolves addresses to deployed plugin objects."""

    def __init__(self) -> None:
        self._plugins: Dict[str, object] = {}

    def register(self, address: str, plugin: object) -> None:
        self._plugins[normalize_address(address)] = plugin

    def publish(self, plugin: BasePlugin) -> BasePlugin:
        self.register(plugin.address, plugin)
        return plugin

    def resolve(self, address: str) -> Optional[object]:
        return self._plugins.get(normalize_address(address))
