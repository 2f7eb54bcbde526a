"""
Process resource monitoring for long-running loads.

`resource_monitor` samples RSS on a background thread while the wrapped block
runs (the asyncio loop keeps running undisturbed), then records wall-clock
duration, peak RSS, and a CPU percent snapshot.

Usage:
    from lookup_bench.utils.profiler import resource_monitor

    with resource_monitor("seed-postgres") as stats:
        asyncio.run(loader.load(total, batch))

    print(stats.duration_seconds, stats.peak_rss_bytes)
"""

from __future__ import annotations

import contextlib
import threading
import time
from dataclasses import dataclass, field
from typing import Generator, Optional

import psutil


@dataclass
class ResourceStats:
    """
    Container for resource measurements of one monitored block.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    peak_rss_bytes: Optional[int] = field(default=None)
    cpu_percent: Optional[float] = field(default=None)

    @property
    def peak_rss_mb(self) -> Optional[float]:
        if self.peak_rss_bytes is None:
            return None
        return self.peak_rss_bytes / (1024 * 1024)


@contextlib.contextmanager
def resource_monitor(
    label: str, sample_interval_ms: int = 250
) -> Generator[ResourceStats, None, None]:
    """
    Measure duration, peak RSS, and CPU usage of a block.

    Parameters
    ----------
    label : str
        Human-friendly label for the monitored block.
    sample_interval_ms : int
        Interval in milliseconds between RSS samples.
    """
    stats = ResourceStats(label=label)
    process = psutil.Process()
    peak_rss = process.memory_info().rss
    stop_sampling = threading.Event()

    def _sample_memory() -> None:
        nonlocal peak_rss
        while not stop_sampling.is_set():
            try:
                peak_rss = max(peak_rss, process.memory_info().rss)
            except psutil.Error:
                return
            stop_sampling.wait(timeout=sample_interval_ms / 1000.0)

    # cpu_percent needs a priming call
    process.cpu_percent(interval=None)

    sampler = threading.Thread(target=_sample_memory, name=f"rss-{label}", daemon=True)
    sampler.start()

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts

        stop_sampling.set()
        sampler.join(timeout=1.0)

        stats.peak_rss_bytes = peak_rss if peak_rss > 0 else None
        stats.cpu_percent = process.cpu_percent(interval=None)


__all__ = ["ResourceStats", "resource_monitor"]
