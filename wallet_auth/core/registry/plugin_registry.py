"""
Generic enable/disable lifecycle for wallet plugins.

Only the wallet itself may change its registries. A candidate is probed
before it is accepted; probe failure aborts the enable. On disable the
plugin's clear hook runs in its own rollback scope and a failure there is
reported as an event, never propagated.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Type

from ..errors import AuthorizationAbort, ErrorCode, UnauthorizedError
from ..state.store import StateStore
from ..types import SENTINEL, CallContext, normalize_address
from .ordered_set import OrderedIdentifierSet, Page
from .plugins import PLUGIN_INTERFACE_ID, BasePlugin, PluginDirectory

logger = logging.getLogger(__name__)


class PluginProbeError(AuthorizationAbort):
    code = ErrorCode.PLUGIN_PROBE_FAILED
    default_message = "candidate does not implement the expected plugin interface"


class PluginEvent(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    DISABLED_WITH_ERROR = "disabled_with_error"


@dataclass
class DisableResult:
    plugin: str
    event: PluginEvent
    error: Optional[str] = None


class BasePluginRegistry:
    """Shared probing, initialization, and clear-hook handling."""

    kind: str = "plugin"
    expected_type: Type[BasePlugin] = BasePlugin
    interface_ids: Tuple[bytes, ...] = (PLUGIN_INTERFACE_ID,)

    def __init__(self, store: StateStore, directory: PluginDirectory, page_limit: int = 100):
        self.store = store
        self.directory = directory
        self.page_limit = page_limit

    def _require_self(self, ctx: CallContext) -> None:
        if not ctx.is_self_governed:
            raise UnauthorizedError(
                f"{self.kind} registry can only be changed by the wallet itself",
                wallet=ctx.wallet,
                sender=ctx.sender,
            )

    def probe(self, plugin_id: str) -> BasePlugin:
        """Resolve ``plugin_id`` and confirm it speaks the expected interface.

        Objects that subclass ``expected_type`` are accepted on their declared
        type. Anything else must answer the runtime capability query for every
        required interface id.
        """
        plugin_id = normalize_address(plugin_id)
        candidate = self.directory.resolve(plugin_id)
        if candidate is None:
            raise PluginProbeError(f"No code at {plugin_id}", plugin=plugin_id)
        if isinstance(candidate, self.expected_type):
            return candidate

        query = getattr(candidate, "supports_interface", None)
        if not callable(query):
            raise PluginProbeError(f"{plugin_id} does not expose supports_interface", plugin=plugin_id)
        for iface in self.interface_ids:
            try:
                supported = query(iface)
            except Exception as exc:
                raise PluginProbeError(
                    f"Interface probe of {plugin_id} failed: {exc}",
                    plugin=plugin_id,
                    interface=iface.hex(),
                ) from exc
            if supported is not True:
                raise PluginProbeError(
                    f"{plugin_id} does not support interface 0x{iface.hex()}",
                    plugin=plugin_id,
                    interface=iface.hex(),
                )
        return candidate

    def _resolve_enabled(self, plugin_id: str) -> Optional[BasePlugin]:
        return self.directory.resolve(plugin_id)

    def _initialize(self, ctx: CallContext, plugin: BasePlugin, init_data: bytes) -> None:
        plugin.init_wallet_config(ctx, init_data)

    def _clear(self, ctx: CallContext, plugin_id: str) -> DisableResult:
        plugin = self._resolve_enabled(plugin_id)
        try:
            with self.store.atomic():
                if plugin is None:
                    raise PluginProbeError(f"No code at {plugin_id}", plugin=plugin_id)
                plugin.clear_wallet_config(ctx)
        except Exception as exc:
            logger.warning(
                f"Clear hook of {self.kind} {plugin_id} failed for {ctx.wallet}: {exc}",
                extra={"event": PluginEvent.DISABLED_WITH_ERROR.value, "plugin": plugin_id},
            )
            return DisableResult(plugin=plugin_id, event=PluginEvent.DISABLED_WITH_ERROR, error=str(exc))
        return DisableResult(plugin=plugin_id, event=PluginEvent.DISABLED)


class PluginRegistry(BasePluginRegistry):
    """A single ordered list of enabled plugins per wallet."""

    def __init__(
        self,
        store: StateStore,
        directory: PluginDirectory,
        kind: str = "plugin",
        expected_type: Type[BasePlugin] = BasePlugin,
        interface_ids: Tuple[bytes, ...] = (PLUGIN_INTERFACE_ID,),
        page_limit: int = 100,
    ):
        super().__init__(store, directory, page_limit=page_limit)
        self.kind = kind
        self.expected_type = expected_type
        self.interface_ids = interface_ids

    def entries(self, wallet: str) -> OrderedIdentifierSet:
        return OrderedIdentifierSet(self.store, (f"{self.kind}_registry", normalize_address(wallet)))

    def is_enabled(self, wallet: str, plugin_id: str) -> bool:
        return self.entries(wallet).contains(plugin_id)

    def list(self, wallet: str, start: str = SENTINEL, limit: Optional[int] = None) -> Page:
        return self.entries(wallet).list(start, min(limit or self.page_limit, self.page_limit))

    def enable(self, ctx: CallContext, plugin_id: str, init_data: bytes = b"") -> BasePlugin:
        self._require_self(ctx)
        plugin_id = normalize_address(plugin_id)
        with self.store.atomic():
            plugin = self.probe(plugin_id)
            self.entries(ctx.wallet).add(plugin_id)
            self._initialize(ctx, plugin, init_data)
        logger.info(f"Enabled {self.kind} {plugin_id} for {ctx.wallet}")
        return plugin

    def disable(self, ctx: CallContext, prev: str, plugin_id: str) -> DisableResult:
        self._require_self(ctx)
        plugin_id = normalize_address(plugin_id)
        with self.store.atomic():
            self.entries(ctx.wallet).remove(prev, plugin_id)
            result = self._clear(ctx, plugin_id)
        logger.info(f"Disabled {self.kind} {plugin_id} for {ctx.wallet} ({result.event.value})")
        return result
