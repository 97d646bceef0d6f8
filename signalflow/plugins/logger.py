"""
Logger plugin: writes a Signal's state to the signalflow log.

Usage:
    register_plugin(LoggerPlugin())
    signal.use({"id": "logger", "options": {"level": "debug", "include_trace": True}})
"""

import logging
from typing import Any, Callable, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from signalflow.interface import SignalPlugin
from signalflow.utils.logger import get_logger

logger = get_logger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class LoggerPluginOptions(BaseModel):
    """Options accepted by LoggerPlugin.execute()."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Log level the record is emitted at",
    )
    include_value: bool = Field(default=True, description="Log the success value")
    include_trace: bool = Field(default=False, description="Log trace_data() too")
    formatter: Optional[Callable[[Any], str]] = Field(
        default=None,
        description="Builds the whole message from the signal",
    )


class LoggerPlugin(SignalPlugin):
    """Logs the signal and hands it back unchanged."""

    @property
    def id(self) -> str:
        return "logger"

    def init(self, options: Any = None) -> None:
        logger.debug(f"Logger plugin initialized: {options}")

    def execute(self, signal, options: Any = None):
        opts = LoggerPluginOptions.model_validate(options or {})
        level = _LEVELS[opts.level]

        if opts.formatter is not None:
            logger.log(level, opts.formatter(signal))
            return signal

        log_data: Dict[str, Any] = {"id": signal.id}
        if opts.include_value:
            log_data["value"] = signal.value
        if signal.is_failure:
            log_data["error"] = str(signal.error)
        if opts.include_trace:
            log_data["trace"] = signal.trace_data()

        logger.log(level, f"Signal {signal.id}: {log_data}")
        return signal

    def cleanup(self) -> None:
        logger.debug("Logger plugin cleaned up")
