"""
Trace export: plain data and human-readable text.

Two outputs:
1. trace_data(entries) -> list of plain dicts, one per exported layer
2. render_trace(signal) -> multi-line text for logs

Both must survive whatever the caller put into values and contexts,
including self-referential structures and objects whose __repr__ raises.
Containers are walked with the set of ids on the current path; re-entering
one yields the circular marker instead of recursing.
"""

import dataclasses
import reprlib
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Set

from signalflow import config
from signalflow.trace import Reflection, TraceEntry, format_timestamp
from signalflow.utils.logger import get_logger

logger = get_logger(__name__)

_LEAF_TYPES = (str, bytes, int, float, complex, bool, type(None))


def to_plain(value: Any, _path: Optional[Set[int]] = None) -> Any:
    """
    Convert containers into plain dicts/lists, breaking reference cycles.

    Mappings, lists, tuples, sets and dataclass instances are copied;
    anything else passes through untouched. Containers nested deeper than
    config.MAX_DEPTH are replaced by the depth marker.
    """
    if isinstance(value, _LEAF_TYPES):
        return value

    is_dataclass = dataclasses.is_dataclass(value) and not isinstance(value, type)
    if not (is_dataclass or isinstance(value, (Mapping, list, tuple, set, frozenset))):
        return value

    if _path is None:
        _path = set()
    marker = id(value)
    if marker in _path:
        return config.CIRCULAR_MARKER
    if len(_path) >= config.MAX_DEPTH:
        return config.MAX_DEPTH_MARKER

    _path.add(marker)
    try:
        if is_dataclass:
            return {
                f.name: to_plain(getattr(value, f.name), _path)
                for f in dataclasses.fields(value)
            }
        if isinstance(value, Mapping):
            return {k: to_plain(v, _path) for k, v in value.items()}
        return [to_plain(item, _path) for item in value]
    finally:
        _path.discard(marker)


def safe_repr(value: Any) -> str:
    """Bounded repr that never raises."""
    limit = config.MAX_REPR_LENGTH
    r = reprlib.Repr()
    r.maxstring = limit
    r.maxother = limit
    try:
        text = r.repr(value)
    except Exception:
        return f"<unrenderable {type(value).__name__}>"
    if len(text) > limit:
        text = text[: max(limit - 3, 0)] + "..."
    return text


def _error_text(error: Optional[BaseException]) -> Optional[str]:
    if error is None:
        return None
    try:
        return str(error) or type(error).__name__
    except Exception:
        return f"<unrenderable {type(error).__name__}>"


def _reflection_data(reflection: Reflection) -> Dict[str, Any]:
    data: Dict[str, Any] = {"message": reflection.message}
    if reflection.method:
        data["method"] = reflection.method
    if reflection.class_name:
        data["class"] = reflection.class_name
    data["timestamp"] = format_timestamp(reflection.timestamp)
    if reflection.context is not None:
        data["context"] = to_plain(reflection.context)
    return data


def entry_data(entry: TraceEntry) -> Dict[str, Any]:
    """Reduce one TraceEntry to plain data."""
    data: Dict[str, Any] = {
        "layer": entry.layer,
        "timestamp": format_timestamp(entry.timestamp),
    }
    if entry.status:
        data["status"] = entry.status
    if entry.error is not None:
        data["error"] = _error_text(entry.error)
    if entry.reflections:
        data["reflections"] = [_reflection_data(r) for r in entry.reflections]
    return data


def exported_entries(entries) -> List[TraceEntry]:
    """Entries worth showing: implicit root layers that never recorded anything are dropped."""
    return [e for e in entries if not (e.implicit and e.is_empty)]


def trace_data(entries) -> List[Dict[str, Any]]:
    """Export a trace as a list of plain dicts."""
    return [entry_data(e) for e in exported_entries(entries)]


def _render_entry(entry: TraceEntry) -> List[str]:
    header = f"  [{entry.layer}] {format_timestamp(entry.timestamp)}"
    if entry.status:
        header += f" status={entry.status}"
    if entry.error is not None:
        header += f" error={_error_text(entry.error)}"
    lines = [header]

    for reflection in entry.reflections:
        try:
            line = f"    - {reflection.message}"
            if reflection.component:
                line += f" ({reflection.component})"
            if reflection.context is not None:
                line += f" {safe_repr(reflection.context)}"
        except Exception:
            line = "    - <unrenderable reflection>"
        lines.append(line)
    return lines


def render_trace(signal) -> str:
    """
    Render a Signal and its full layer/reflection history as text.

    Example:
        Signal 3f2a... success value='Notification for JOHN prepared'
          [UserService] 2026-10-19T08:00:00.000000+00:00
            - Processing user
          [NotificationService] 2026-10-19T08:00:00.000120+00:00
            - Preparing notification
    """
    if signal.is_success:
        header = f"Signal {signal.id} success value={safe_repr(signal.value)}"
    else:
        header = f"Signal {signal.id} failure error={_error_text(signal.error)}"
    lines = [header]

    for entry in exported_entries(signal.entries):
        try:
            lines.extend(_render_entry(entry))
        except Exception as e:
            logger.debug(f"Failed to render trace entry: {e}")
            lines.append(f"  [{entry.layer}] <unrenderable>")

    if len(lines) == 1:
        lines.append("  (no trace recorded)")
    return "\n".join(lines)
