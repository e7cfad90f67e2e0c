"""
Resource profiling for the streaming phase of a run.

`profile_block` reports wall time, process CPU percent and two peaks sampled
on a background thread: resident memory and live thread count. The thread peak
shows how many streamer workers were actually running alongside the generator.

Usage:
    from bqwrite.utils.profiler import profile_block

    with profile_block("stream") as stats:
        stream_records()

    print(stats.duration_seconds, stats.peak_rss_bytes, stats.peak_threads)
"""

from __future__ import annotations

import contextlib
import threading
import time
from dataclasses import dataclass
from typing import Iterator, Optional

import psutil


@dataclass
class ProfileStats:
    label: str
    start_ts: float = 0.0
    end_ts: float = 0.0
    duration_seconds: float = 0.0
    peak_rss_bytes: Optional[int] = None
    peak_threads: Optional[int] = None
    cpu_percent: Optional[float] = None

    def rate(self, count: int) -> float:
        """Items per second over the block, 0.0 for an instantaneous block."""
        return count / self.duration_seconds if self.duration_seconds > 0 else 0.0


class _Sampler(threading.Thread):
    def __init__(self, process: psutil.Process, interval: float, label: str) -> None:
        super().__init__(name=f"profile-{label}", daemon=True)
        self.process = process
        self.interval = interval
        self.stopped = threading.Event()
        self.peak_rss = 0
        self.peak_threads = 0

    def sample(self) -> None:
        with self.process.oneshot():
            self.peak_rss = max(self.peak_rss, self.process.memory_info().rss)
            self.peak_threads = max(self.peak_threads, self.process.num_threads())

    def run(self) -> None:
        while not self.stopped.is_set():
            try:
                self.sample()
            except psutil.Error:
                return
            self.stopped.wait(self.interval)


@contextlib.contextmanager
def profile_block(label: str, sample_interval_ms: int = 100) -> Iterator[ProfileStats]:
    """
    Profile the enclosed block.

    Parameters
    ----------
    label : str
        Name of the profiled phase; also names the sampler thread.
    sample_interval_ms : int
        Sampling period for the RSS and thread-count peaks.

    Notes
    -----
    Peaks are taken once before the block starts and once after it ends in
    addition to the periodic samples, so even very short blocks report them.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()
    sampler = _Sampler(process, sample_interval_ms / 1000.0, label)
    sampler.sample()
    process.cpu_percent(interval=None)  # first call only primes the counter
    sampler.start()

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts
        sampler.stopped.set()
        sampler.join(timeout=1.0)
        with contextlib.suppress(psutil.Error):
            sampler.sample()
            stats.cpu_percent = process.cpu_percent(interval=None)
        stats.peak_rss_bytes = sampler.peak_rss or None
        stats.peak_threads = sampler.peak_threads or None


__all__ = ["ProfileStats", "profile_block"]
