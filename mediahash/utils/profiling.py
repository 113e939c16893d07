from __future__ import annotations

"""
Opt-in timing of the hashing kernels.

With MEDIAHASH_PROFILE=1 every @profiled call logs its wall time and RSS
change to the "profiler" logger and is added to a per-label aggregate.
snapshot() returns the aggregate; it is also written to
MEDIAHASH_PROFILE_OUT_CSV when the interpreter exits.
"""

import atexit
import csv
import functools
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Deque, Dict, Optional, ParamSpec, TypeVar

import numpy as np
import psutil

from mediahash.core.config import settings

P = ParamSpec("P")
R = TypeVar("R")

_logger = logging.getLogger("profiler")
# timings are opt-in; emit them even when the root level is WARNING
_logger.setLevel(logging.INFO)

# recent durations kept per label for the percentiles
WINDOW = 2048

CSV_FIELDS = (
    "name",
    "calls",
    "total_ms",
    "mean_ms",
    "p50_ms",
    "p95_ms",
    "max_ms",
    "rss_mb_total",
)

_MB = 1024.0 * 1024.0


@dataclass
class KernelTimings:
    calls: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0
    rss_mb_total: float = 0.0
    recent: Deque[float] = field(default_factory=lambda: deque(maxlen=WINDOW))

    def record(self, ms: float, rss_mb: float) -> None:
        self.calls += 1
        self.total_ms += ms
        self.max_ms = max(self.max_ms, ms)
        self.rss_mb_total += rss_mb
        self.recent.append(ms)

    def summary(self) -> Dict[str, float]:
        if self.recent:
            p50, p95 = np.percentile(np.fromiter(self.recent, float), [50, 95])
        else:
            p50 = p95 = 0.0
        return {
            "calls": self.calls,
            "total_ms": round(self.total_ms, 3),
            "mean_ms": round(self.total_ms / self.calls, 3) if self.calls else 0.0,
            "p50_ms": round(float(p50), 3),
            "p95_ms": round(float(p95), 3),
            "max_ms": round(self.max_ms, 3),
            "rss_mb_total": round(self.rss_mb_total, 3),
        }


_TIMINGS: Dict[str, KernelTimings] = {}
_TIMINGS_LOCK = threading.Lock()


def _record(label: str, ms: float, rss_mb: float) -> None:
    with _TIMINGS_LOCK:
        _TIMINGS.setdefault(label, KernelTimings()).record(ms, rss_mb)


def snapshot() -> Dict[str, Dict[str, float]]:
    """Per-label summary: calls, total/mean/p50/p95/max ms, RSS growth."""
    with _TIMINGS_LOCK:
        return {label: t.summary() for label, t in _TIMINGS.items()}


def flush_csv(path: Optional[Path] = None) -> None:
    """Write snapshot() as CSV to `path` or settings.PROFILE_OUT_CSV."""
    target = path or settings.PROFILE_OUT_CSV
    rows = snapshot()
    if not target or not rows:
        return
    target = Path(target)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for label in sorted(rows):
                writer.writerow({"name": label, **rows[label]})
    except OSError as e:
        _logger.warning("Failed to write profile CSV %s: %s", target, e)


atexit.register(flush_csv)


def profiled(name: str | None = None) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Time a kernel when settings.PROFILE is on; otherwise call straight through.

    The label defaults to the function's qualified name.
    """

    def deco(fn: Callable[P, R]) -> Callable[P, R]:
        label = name or f"{fn.__module__}.{fn.__qualname__}"

        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            if not settings.PROFILE:
                return fn(*args, **kwargs)

            proc = psutil.Process()
            rss0 = proc.memory_info().rss
            t0 = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                ms = (time.perf_counter() - t0) * 1000.0
                rss_mb = (proc.memory_info().rss - rss0) / _MB
                _logger.info("[PROFILE] %s: %.1f ms, ΔRSS=%.2f MB", label, ms, rss_mb)
                _record(label, ms, rss_mb)

        return wrapper

    return deco
