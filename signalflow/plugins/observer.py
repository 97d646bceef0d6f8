"""
Observer plugin: runs caller callbacks against a Signal.

`always` fires first, then `on_success` or `on_failure` depending on the
signal's state. Each callback receives the Signal itself. The returned
signal carries an extra "Observed by observer plugin" reflection.
"""

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict

from signalflow.interface import SignalPlugin

Callback = Callable[[Any], Any]


class ObserverPluginOptions(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    on_success: Optional[Callback] = None
    on_failure: Optional[Callback] = None
    always: Optional[Callback] = None


class ObserverPlugin(SignalPlugin):

    @property
    def id(self) -> str:
        return "observer"

    def execute(self, signal, options: Any = None):
        opts = ObserverPluginOptions.model_validate(options or {})

        if opts.always is not None:
            opts.always(signal)

        if signal.is_success and opts.on_success is not None:
            opts.on_success(signal)
        elif signal.is_failure and opts.on_failure is not None:
            opts.on_failure(signal)

        return signal.reflect("Observed by observer plugin")
