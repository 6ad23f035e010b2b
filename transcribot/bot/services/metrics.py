from __future__ import annotations

"""In-process pipeline metrics rendered in Prometheus text format."""

from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from time import perf_counter
from typing import Dict, Iterator, Tuple


Labels = Tuple[Tuple[str, str], ...]


def _freeze(labels: Dict[str, str] | None) -> Labels:
    return tuple(sorted((labels or {}).items()))


def _render_labels(labels: Labels) -> str:
    if not labels:
        return ""
    return "{" + ",".join(f'{k}="{v}"' for k, v in labels) + "}"


@dataclass
class _Family:
    kind: str  # "counter" or "summary"
    values: Dict[Labels, list[float]] = field(default_factory=dict)


class Metrics:
    """Counters and count/sum summaries keyed by name and label set."""

    def __init__(self, prefix: str = "transcribot") -> None:
        self._prefix = prefix
        self._families: Dict[str, _Family] = {}
        self._lock = Lock()

    def _family(self, name: str, kind: str) -> _Family:
        full = f"{self._prefix}_{name}"
        fam = self._families.get(full)
        if fam is None:
            fam = self._families[full] = _Family(kind=kind)
        return fam

    def inc(self, name: str, *, labels: Dict[str, str] | None = None, value: float = 1.0) -> None:
        with self._lock:
            slot = self._family(name, "counter").values.setdefault(_freeze(labels), [0.0])
            slot[0] += value

    def observe(self, name: str, value: float, *, labels: Dict[str, str] | None = None) -> None:
        with self._lock:
            slot = self._family(name, "summary").values.setdefault(_freeze(labels), [0.0, 0.0])
            slot[0] += 1.0
            slot[1] += float(value)

    @contextmanager
    def timer(self, name: str, *, labels: Dict[str, str] | None = None) -> Iterator[None]:
        """Observe the wall time of the wrapped block, including failures."""

        start = perf_counter()
        try:
            yield
        finally:
            self.observe(name, perf_counter() - start, labels=labels)

    def value(self, name: str, *, labels: Dict[str, str] | None = None) -> float:
        """Current counter value (or summary count); 0.0 when never recorded."""

        fam = self._families.get(f"{self._prefix}_{name}")
        if fam is None:
            return 0.0
        slot = fam.values.get(_freeze(labels))
        return slot[0] if slot else 0.0

    def to_prometheus(self) -> str:
        lines: list[str] = []
        with self._lock:
            for name, fam in self._families.items():
                lines.append(f"# TYPE {name} {fam.kind}")
                for labels, slot in fam.values.items():
                    rendered = _render_labels(labels)
                    if fam.kind == "counter":
                        lines.append(f"{name}{rendered} {slot[0]}")
                    else:
                        lines.append(f"{name}_count{rendered} {slot[0]}")
                        lines.append(f"{name}_sum{rendered} {slot[1]}")
        return "\n".join(lines) + "\n"


metrics = Metrics()
