"""
signalflow: result values that carry their own execution trace.

Provides the Signal type, the trace data model, and the plugin contract
and registry for code that observes or transforms Signals.

Usage:
    from signalflow import Signal

    # Start a flow
    signal = Signal.success(config).layer("Repository").reflect("Config loaded")

    # Continue it in another component
    result = (
        Signal.extend(signal)
        .layer("UseCase")
        .flat_map(enhance_config)
        .reflect("Processing complete")
    )

    # Inspect
    result.trace_data()   # plain dicts
    print(result.trace())
"""

from signalflow.errors import EnsureError, SignalError
from signalflow.interface import PluginConfig, SignalPlugin, validate_plugin
from signalflow.registry import (
    PluginRegistry,
    get_registry,
    register_plugin,
    unregister_plugin,
)
from signalflow.signal import Signal, failure, success
from signalflow.summary import render_trace, safe_repr, to_plain, trace_data
from signalflow.trace import Reflection, TraceEntry

__all__ = [
    "Signal",
    "success",
    "failure",
    "Reflection",
    "TraceEntry",
    "SignalError",
    "EnsureError",
    "SignalPlugin",
    "PluginConfig",
    "validate_plugin",
    "PluginRegistry",
    "get_registry",
    "register_plugin",
    "unregister_plugin",
    "trace_data",
    "render_trace",
    "to_plain",
    "safe_repr",
]
