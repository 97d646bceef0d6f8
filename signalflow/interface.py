"""
SignalPlugin interface for signalflow.

Defines the contract for code that observes or transforms a Signal on
demand. Plugins don't need to inherit from this ABC: any object with an
`id` string and a callable `execute(signal, options=None)` is accepted.
`init` and `cleanup` are optional hooks run once by the registry.

Usage:
    class AuditPlugin(SignalPlugin):
        @property
        def id(self) -> str:
            return "audit"

        def execute(self, signal, options=None):
            return signal.reflect("Audited", {"by": "audit"})

    register_plugin(AuditPlugin())
    Signal.success(42).use("audit")
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SignalPlugin(ABC):
    """
    Interface for units of behavior that can be applied to a Signal.

    `execute` receives the Signal and the per-call options and returns a
    Signal, either the same one or a transformed one.
    """

    @property
    @abstractmethod
    def id(self) -> str:
        """Unique identifier used to register and look up the plugin."""
        ...

    def init(self, options: Any = None) -> None:
        """Called once, when the plugin is registered."""

    @abstractmethod
    def execute(self, signal: Any, options: Any = None) -> Any:
        ...

    def cleanup(self) -> None:
        """Called once, when the plugin is unregistered."""


class PluginConfig(BaseModel):
    """Per-call plugin selection: which plugin, and what options to hand it."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(min_length=1, description="Registered plugin identifier")
    options: Optional[Any] = Field(
        default=None,
        description="Passed through to the plugin's execute()",
    )


def resolve_config(plugin: Union[str, PluginConfig, Dict[str, Any]]) -> PluginConfig:
    """Normalize the accepted selector shapes into a PluginConfig."""
    if isinstance(plugin, PluginConfig):
        return plugin
    if isinstance(plugin, str):
        return PluginConfig(id=plugin)
    return PluginConfig.model_validate(plugin)


def validate_plugin(plugin: Any) -> Dict[str, Any]:
    """
    Validate that an object satisfies the plugin contract.

    Returns:
        {"valid": True/False, "errors": [...]}
    """
    errors = []

    try:
        plugin_id = getattr(plugin, "id", None)
    except Exception as e:
        return {"valid": False, "errors": [f"Reading 'id' failed: {e}"]}

    if plugin_id is None:
        errors.append("Plugin missing required attribute: 'id'")
    elif not isinstance(plugin_id, str) or not plugin_id:
        errors.append("'id' must be a non-empty string")

    if not callable(getattr(plugin, "execute", None)):
        errors.append("Plugin missing required callable: 'execute'")

    for hook in ("init", "cleanup"):
        value = getattr(plugin, hook, None)
        if value is not None and not callable(value):
            errors.append(f"'{hook}' must be callable when present")

    return {"valid": len(errors) == 0, "errors": errors}
