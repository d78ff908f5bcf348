from __future__ import annotations

import re
from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, List, Tuple


@dataclass
class TimerStat:
    count: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0


LabelSet = Tuple[Tuple[str, str], ...]

_lock = Lock()
_counters: Dict[Tuple[str, LabelSet], int] = {}
_timers: Dict[Tuple[str, LabelSet], TimerStat] = {}


def _labels(labels: Dict[str, Any]) -> LabelSet:
    return tuple(sorted((str(k), str(v)) for k, v in labels.items()))


def inc_counter(name: str, value: int = 1, **labels: Any) -> None:
    key = (name, _labels(labels))
    with _lock:
        _counters[key] = _counters.get(key, 0) + int(value)


def observe_ms(name: str, value_ms: float, **labels: Any) -> None:
    key = (name, _labels(labels))
    with _lock:
        stat = _timers.setdefault(key, TimerStat())
        stat.count += 1
        stat.total_ms += float(value_ms)
        stat.max_ms = max(stat.max_ms, float(value_ms))


def reset_metrics() -> None:
    with _lock:
        _counters.clear()
        _timers.clear()


def _metric_name(name: str) -> str:
    sanitized = re.sub(r"[^a-zA-Z0-9_:]", "_", name)
    if not re.match(r"^[a-zA-Z_:]", sanitized):
        sanitized = f"metric_{sanitized}"
    return sanitized


def _format_labels(labels: LabelSet) -> str:
    if not labels:
        return ""
    parts = []
    for k, v in labels:
        escaped = v.replace("\\", "\\\\").replace("\n", "\\n").replace("\"", "\\\"")
        parts.append(f'{re.sub(r"[^a-zA-Z0-9_]", "_", k)}="{escaped}"')
    return "{" + ",".join(parts) + "}"


def render_prometheus_metrics() -> str:
    """Render counters and timers in the Prometheus text exposition format."""
    with _lock:
        counters = dict(_counters)
        timers = {k: TimerStat(v.count, v.total_ms, v.max_ms) for k, v in _timers.items()}

    lines: List[str] = []

    for name in sorted({n for n, _ in counters}):
        metric = _metric_name(name)
        lines.append(f"# TYPE {metric} counter")
        for (n, labels), value in sorted(counters.items()):
            if n == name:
                lines.append(f"{metric}{_format_labels(labels)} {value}")

    for name in sorted({n for n, _ in timers}):
        metric = _metric_name(name)
        lines.append(f"# TYPE {metric}_count counter")
        lines.append(f"# TYPE {metric}_sum counter")
        lines.append(f"# TYPE {metric}_max gauge")
        for (n, labels), stat in sorted(timers.items(), key=lambda item: item[0]):
            if n != name:
                continue
            label_text = _format_labels(labels)
            lines.append(f"{metric}_count{label_text} {stat.count}")
            lines.append(f"{metric}_sum{label_text} {round(stat.total_ms, 3)}")
            lines.append(f"{metric}_max{label_text} {round(stat.max_ms, 3)}")

    return "\n".join(lines) + "\n" if lines else ""
