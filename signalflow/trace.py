"""
Trace data model for signalflow.

A Signal's trace is an ordered tuple of TraceEntry values, one per layer.
Each entry groups the Reflections recorded while that layer was current.
Both types are frozen: extending a trace always builds new entries and
shares the untouched ones with the source Signal.

Usage:
    entry = TraceEntry(layer="Repository")
    entry = entry.with_reflection(Reflection(message="Config loaded"))
    entry = entry.with_error(ValueError("bad row"))
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from signalflow import config

STATUS_ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _detach(value: Any, memo: Dict[int, Any], depth: int) -> Any:
    """Copy nested dicts and lists, keeping shared and cyclic references intact."""
    if not isinstance(value, (dict, list)) or depth >= config.MAX_DEPTH:
        return value
    key = id(value)
    if key in memo:
        return memo[key]
    if isinstance(value, dict):
        copy: Any = {}
        memo[key] = copy
        for k, v in value.items():
            copy[k] = _detach(v, memo, depth + 1)
    else:
        copy = []
        memo[key] = copy
        copy.extend(_detach(item, memo, depth + 1) for item in value)
    return copy


def format_timestamp(ts: datetime) -> str:
    """Fixed-width ISO-8601 rendering, sortable as plain text."""
    return ts.isoformat(timespec="microseconds")


@dataclass(frozen=True)
class Reflection:
    """A single note recorded inside a layer."""
    message: str
    context: Optional[Dict[str, Any]] = None
    component: Optional[str] = None     # "Class.method" or a bare label
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if self.context is not None:
            # Detach from the caller's containers so later edits don't leak in
            context = self.context if isinstance(self.context, dict) else dict(self.context)
            object.__setattr__(self, "context", _detach(context, {}, 0))

    @property
    def method(self) -> Optional[str]:
        if not self.component:
            return None
        return self.component.rsplit(".", 1)[-1]

    @property
    def class_name(self) -> Optional[str]:
        if not self.component or "." not in self.component:
            return None
        return self.component.rsplit(".", 1)[0]


@dataclass(frozen=True)
class TraceEntry:
    """One logical stage of a Signal's history."""
    layer: str = field(default_factory=lambda: config.ROOT_LAYER)
    reflections: Tuple[Reflection, ...] = ()
    status: Optional[str] = None        # success|error
    error: Optional[BaseException] = None
    timestamp: datetime = field(default_factory=_utcnow)
    implicit: bool = field(default=False, repr=False)

    @classmethod
    def root(cls) -> "TraceEntry":
        """The entry every fresh Signal starts in."""
        return cls(layer=config.ROOT_LAYER, implicit=True)

    def with_reflection(self, reflection: Reflection) -> "TraceEntry":
        return replace(self, reflections=self.reflections + (reflection,))

    def with_reflections(self, reflections: Tuple[Reflection, ...]) -> "TraceEntry":
        if not reflections:
            return self
        return replace(self, reflections=self.reflections + tuple(reflections))

    def with_error(self, error: BaseException) -> "TraceEntry":
        return replace(self, status=STATUS_ERROR, error=error)

    @property
    def is_empty(self) -> bool:
        """True when nothing was ever recorded in this entry."""
        return not self.reflections and self.status is None


def append_reflection(
    entries: Tuple[TraceEntry, ...], reflection: Reflection
) -> Tuple[TraceEntry, ...]:
    """Return a new trace with `reflection` added to the last entry."""
    if not entries:
        return (TraceEntry.root().with_reflection(reflection),)
    return entries[:-1] + (entries[-1].with_reflection(reflection),)


def mark_error(
    entries: Tuple[TraceEntry, ...], error: BaseException
) -> Tuple[TraceEntry, ...]:
    """Return a new trace whose last entry carries `error`."""
    if not entries:
        return (TraceEntry.root().with_error(error),)
    return entries[:-1] + (entries[-1].with_error(error),)
