"""
Plugin registries

Ordered, wallet-partitioned lists of enabled plugins. The validator
registry builds on these and lives in ``registry.validator_registry``.
"""

from .ordered_set import (
    AlreadyExistsError,
    IdentifierNotFoundError,
    InvalidPageError,
    OrderedIdentifierSet,
    Page,
    StalePredecessorError,
)
from .plugin_registry import (
    BasePluginRegistry,
    DisableResult,
    PluginEvent,
    PluginProbeError,
    PluginRegistry,
)
from .plugins import (
    PLUGIN_INTERFACE_ID,
    VALIDATOR_INTERFACE_ID,
    BasePlugin,
    InvalidInitDataError,
    PluginAlreadyInitializedError,
    PluginDirectory,
    PluginNotInitializedError,
)

__all__ = [
    "PLUGIN_INTERFACE_ID",
    "VALIDATOR_INTERFACE_ID",
    "AlreadyExistsError",
    "BasePlugin",
    "BasePluginRegistry",
    "DisableResult",
    "IdentifierNotFoundError",
    "InvalidInitDataError",
    "InvalidPageError",
    "OrderedIdentifierSet",
    "Page",
    "PluginAlreadyInitializedError",
    "PluginDirectory",
    "PluginEvent",
    "PluginNotInitializedError",
    "PluginProbeError",
    "PluginRegistry",
    "StalePredecessorError",
]
