"""Logger factory shared by every signalflow module."""

import logging

_PACKAGE_LOGGER = "signalflow"

# Handlers and levels belong to the host application
logging.getLogger(_PACKAGE_LOGGER).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package hierarchy."""
    return logging.getLogger(name)
