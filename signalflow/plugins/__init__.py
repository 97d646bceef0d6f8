from signalflow.plugins.logger import LoggerPlugin, LoggerPluginOptions
from signalflow.plugins.observer import ObserverPlugin, ObserverPluginOptions

__all__ = [
    "LoggerPlugin",
    "LoggerPluginOptions",
    "ObserverPlugin",
    "ObserverPluginOptions",
]
