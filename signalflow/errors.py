"""Exception types carried inside failed Signals."""


class SignalError(Exception):
    """Generic failure built from a plain message."""


class EnsureError(SignalError):
    """An ensure() predicate rejected the current value."""
