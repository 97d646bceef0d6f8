"""
Signal: an immutable success/failure value with an execution trace.

Usage:
    result = (
        Signal.success(user)
        .layer("UserService")
        .reflect("Processing user")
        .ensure(lambda u: u.active, "User is not active")
        .map(lambda u: u.name.upper())
        .layer("NotificationService")
        .reflect("Preparing notification")
    )

    if result.is_failure:
        logger.warning(result.trace())

Every operation returns a new Signal. Value-transforming operations (map,
traced_map, flat_map, ensure) only run on success and pass failures through
untouched; reflect records on both paths. Exceptions raised by the functions
handed to those operations become failures instead of propagating.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar, Union

from signalflow.errors import EnsureError, SignalError
from signalflow.interface import PluginConfig, resolve_config
from signalflow.registry import PluginRegistry, get_registry
from signalflow.summary import render_trace, trace_data
from signalflow.trace import (
    Reflection,
    TraceEntry,
    append_reflection,
    mark_error,
)
from signalflow.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
U = TypeVar("U")


def _new_id() -> str:
    return uuid.uuid4().hex


def _as_error(error: Union[BaseException, str]) -> BaseException:
    if isinstance(error, BaseException):
        return error
    return SignalError(str(error))


@dataclass(frozen=True, eq=False)
class Signal(Generic[T]):
    """
    Result of a computation plus the trace of how it was reached.

    Build instances with Signal.success(), Signal.failure() or
    Signal.extend(); the constructor is for internal use.
    """
    id: str
    is_success: bool
    value: Optional[T] = None
    error: Optional[BaseException] = None
    entries: Tuple[TraceEntry, ...] = field(default=(), repr=False)

    def __post_init__(self):
        if self.is_success and self.error is not None:
            raise ValueError("A successful Signal cannot carry an error")
        if not self.is_success and self.error is None:
            raise ValueError("A failed Signal must carry an error")
        if not self.is_success and self.value is not None:
            raise ValueError("A failed Signal cannot carry a value")

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    # --- Construction ---

    @classmethod
    def success(cls, value: T) -> "Signal[T]":
        """A new successful Signal holding `value`."""
        return cls(id=_new_id(), is_success=True, value=value, entries=(TraceEntry.root(),))

    @classmethod
    def failure(
        cls,
        error: Union[BaseException, str],
        layer: Optional[str] = None,
    ) -> "Signal[Any]":
        """
        A new failed Signal.

        Strings are wrapped in SignalError. When `layer` is given the error
        is recorded in a freshly opened layer of that name.
        """
        err = _as_error(error)
        entries: Tuple[TraceEntry, ...] = (TraceEntry.root(),)
        if layer is not None:
            entries += (TraceEntry(layer=layer),)
        return cls(id=_new_id(), is_success=False, error=err, entries=mark_error(entries, err))

    @classmethod
    def extend(
        cls,
        source: "Signal[T]",
        transform: Optional[Callable[[T], U]] = None,
    ) -> "Signal[Any]":
        """
        Continue `source`'s identity and trace in a new Signal.

        On success, `transform` (if given) replaces the value. Failures are
        carried over as they are and `transform` is not called.
        """
        if source.is_failure or transform is None:
            return cls(
                id=source.id,
                is_success=source.is_success,
                value=source.value,
                error=source.error,
                entries=source.entries,
            )
        try:
            new_value = transform(source.value)
        except Exception as e:
            return source._fault(e, "extend")
        return source._continue(new_value)

    # --- Internal builders ---

    def _continue(self, value: Any, entries: Optional[Tuple[TraceEntry, ...]] = None) -> "Signal[Any]":
        return Signal(
            id=self.id,
            is_success=True,
            value=value,
            entries=self.entries if entries is None else entries,
        )

    def _fail_with(self, error: BaseException, entries: Tuple[TraceEntry, ...]) -> "Signal[Any]":
        return Signal(
            id=self.id,
            is_success=False,
            error=error,
            entries=mark_error(entries, error),
        )

    def _fault(
        self,
        error: BaseException,
        operation: str,
        entries: Optional[Tuple[TraceEntry, ...]] = None,
    ) -> "Signal[Any]":
        logger.debug(f"Signal {self.id}: {operation} raised {type(error).__name__}: {error}")
        return self._fail_with(error, self.entries if entries is None else entries)

    def _open(self, layer: Optional[str]) -> Tuple[TraceEntry, ...]:
        if layer is None:
            return self.entries
        return self.entries + (TraceEntry(layer=layer),)

    # --- Tracing ---

    def reflect(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        component: Optional[str] = None,
    ) -> "Signal[T]":
        """Record a note in the current layer. Runs on success and failure alike."""
        reflection = Reflection(message=message, context=context, component=component)
        return Signal(
            id=self.id,
            is_success=self.is_success,
            value=self.value,
            error=self.error,
            entries=append_reflection(self.entries, reflection),
        )

    def layer(self, name: str, context: Optional[Dict[str, Any]] = None) -> "Signal[T]":
        """
        Open a new layer; later reflections land in it.

        A `context` is stored as the layer's first reflection
        ("Layer opened").
        """
        entry = TraceEntry(layer=name)
        if context is not None:
            entry = entry.with_reflection(
                Reflection(message="Layer opened", context=context, component="layer")
            )
        return Signal(
            id=self.id,
            is_success=self.is_success,
            value=self.value,
            error=self.error,
            entries=self.entries + (entry,),
        )

    # --- Continuations ---

    def succeed(self, value: U) -> "Signal[U]":
        """Same identity and trace, now successful with `value`."""
        return self._continue(value)

    def fail(self, error: Union[BaseException, str], layer: Optional[str] = None) -> "Signal[Any]":
        """Same identity and trace, now failed with `error`."""
        return self._fail_with(_as_error(error), self._open(layer))

    # --- Chaining algebra ---

    def map(self, fn: Callable[[T], U], layer: Optional[str] = None) -> "Signal[U]":
        """Transform the value. Failures pass through and `fn` is not called."""
        if self.is_failure:
            return self
        entries = self._open(layer)
        try:
            new_value = fn(self.value)
        except Exception as e:
            return self._fault(e, "map", entries)
        return self._continue(new_value, entries)

    def traced_map(self, fn: Callable[[T], U], layer: Optional[str] = None) -> "Signal[U]":
        """Like map(), but records a reflection describing the transform."""
        if self.is_failure:
            return self
        entries = self._open(layer)
        try:
            new_value = fn(self.value)
        except Exception as e:
            entries = append_reflection(
                entries,
                Reflection(message="Map failed", context={"error": str(e)}, component="traced_map"),
            )
            return self._fault(e, "traced_map", entries)

        entries = append_reflection(
            entries,
            Reflection(
                message="Mapped value",
                context={
                    "from": type(self.value).__name__,
                    "to": type(new_value).__name__,
                },
                component="traced_map",
            ),
        )
        return self._continue(new_value, entries)

    def flat_map(self, fn: Callable[[T], "Signal[U]"], layer: Optional[str] = None) -> "Signal[U]":
        """
        Chain a Signal-returning function.

        The callee's outcome becomes the result and its trace is appended to
        ours: its implicit root layer merges into our current layer, its
        named layers follow our entries.
        """
        if self.is_failure:
            return self
        entries = self._open(layer)
        try:
            result = fn(self.value)
        except Exception as e:
            return self._fault(e, "flat_map", entries)

        if not isinstance(result, Signal):
            error = TypeError(
                f"flat_map function must return a Signal, got {type(result).__name__}"
            )
            return self._fault(error, "flat_map", entries)

        merged = _merge_traces(entries, result.entries)
        return Signal(
            id=self.id,
            is_success=result.is_success,
            value=result.value,
            error=result.error,
            entries=merged,
        )

    def ensure(self, predicate: Callable[[T], bool], message: str) -> "Signal[T]":
        """Fail with `message` unless `predicate(value)` holds."""
        if self.is_failure:
            return self
        try:
            ok = predicate(self.value)
        except Exception as e:
            return self._fault(e, "ensure")
        if ok:
            return self
        return self._fail_with(EnsureError(message), self.entries)

    def on_success(self, fn: Callable[[T], Any]) -> "Signal[T]":
        """Call `fn(value)` if successful; returns this Signal."""
        if self.is_success:
            fn(self.value)
        return self

    def on_failure(self, fn: Callable[[BaseException], Any]) -> "Signal[T]":
        """Call `fn(error)` if failed; returns this Signal."""
        if self.is_failure:
            fn(self.error)
        return self

    # --- Plugins ---

    def use(
        self,
        plugin: Union[str, PluginConfig, Dict[str, Any]],
        registry: Optional[PluginRegistry] = None,
    ) -> "Signal[Any]":
        """
        Apply a registered plugin and return whatever Signal it produces.

        An unknown plugin id is not an error: this Signal is returned as is.
        Errors raised by the plugin propagate.
        """
        selector = resolve_config(plugin)
        registry = registry if registry is not None else get_registry()

        found = registry.get_plugin(selector.id)
        if found is None:
            logger.warning(f"Plugin '{selector.id}' is not registered; signal passed through")
            return self
        if selector.options is None:
            return found.execute(self)
        return found.execute(self, selector.options)

    @staticmethod
    def register_plugin(plugin: Any, options: Any = None) -> bool:
        return get_registry().register(plugin, options)

    @staticmethod
    def unregister_plugin(plugin_id: str) -> bool:
        return get_registry().unregister(plugin_id)

    # --- Export ---

    def trace_data(self) -> List[Dict[str, Any]]:
        """The trace as plain, serializable dicts."""
        return trace_data(self.entries)

    def trace(self) -> str:
        """The trace as readable text. Never raises."""
        return render_trace(self)

    def __repr__(self) -> str:
        state = "success" if self.is_success else "failure"
        return f"Signal(id={self.id[:8]}, {state}, layers={len(self.entries)})"


def _merge_traces(
    caller: Tuple[TraceEntry, ...], callee: Tuple[TraceEntry, ...]
) -> Tuple[TraceEntry, ...]:
    merged = caller
    for entry in callee:
        if entry.implicit and merged:
            current = merged[-1].with_reflections(entry.reflections)
            if entry.error is not None:
                current = current.with_error(entry.error)
            merged = merged[:-1] + (current,)
        else:
            merged = merged + (entry,)
    return merged


def success(value: T) -> Signal[T]:
    return Signal.success(value)


def failure(error: Union[BaseException, str], layer: Optional[str] = None) -> Signal[Any]:
    return Signal.failure(error, layer)
