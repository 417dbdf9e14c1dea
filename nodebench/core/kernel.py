"""
Probe execution kernel.

``run_timed`` repeatedly executes one unit of work until its duration elapses,
counting successes, failures and processed bytes. The deadline is checked
between whole units only, so the real elapsed time may exceed the request by
up to one unit's latency.
"""

from __future__ import annotations
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from .budget import NANOS_PER_SECOND, Ratio, allocate

logger = logging.getLogger(__name__)

__all__ = ["CancelToken", "LoopStats", "Unit", "run_timed", "run_phases"]

# A unit returns False on failure, or the number of bytes it processed on
# success. Any other return value (None, True, an object) is a success that
# processed no bytes.
Unit = Callable[[], object]

BYTES_PER_MB = 1024 * 1024


class CancelToken:
    """Cooperative cancellation signal, checked once per loop iteration."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class LoopStats:
    """Counters accumulated by one timed loop."""
    successes: int = 0
    failures: int = 0
    bytes_processed: int = 0
    elapsed_ns: int = 0
    busy_ns: int = 0  # time spent inside units
    cancelled: bool = False

    @property
    def iterations(self) -> int:
        return self.successes + self.failures

    @property
    def elapsed_s(self) -> float:
        return self.elapsed_ns / NANOS_PER_SECOND

    @property
    def all_failed(self) -> bool:
        return self.successes == 0 and self.failures > 0

    def rate(self) -> float:
        """Successful units per elapsed second (0 for an empty loop)."""
        if self.elapsed_ns <= 0 or self.successes == 0:
            return 0.0
        return self.successes / self.elapsed_s

    def count_rate(self, count: int) -> float:
        """Any counter divided by elapsed seconds, guarded the same way."""
        if self.elapsed_ns <= 0 or count <= 0:
            return 0.0
        return count / self.elapsed_s

    def byte_rate(self) -> float:
        return self.count_rate(self.bytes_processed)

    def mb_per_second(self) -> float:
        return self.byte_rate() / BYTES_PER_MB

    def avg_latency_ns(self) -> float:
        if self.iterations == 0:
            return 0.0
        return self.busy_ns / self.iterations


def run_timed(duration_ns: int,
              unit: Unit,
              cancel: Optional[CancelToken] = None,
              clock: Optional[Callable[[], int]] = None) -> LoopStats:
    """Run ``unit`` until ``duration_ns`` has elapsed or ``cancel`` fires.

    Exceptions raised by ``unit`` count as failures and the loop continues.

    Args:
        duration_ns: Time budget in nanoseconds.
        unit: Zero-argument callable, see ``Unit``.
        cancel: Optional cancellation token.
        clock: Nanosecond clock, ``time.perf_counter_ns`` by default.

    Returns:
        The accumulated LoopStats.
    """
    now = clock or time.perf_counter_ns
    stats = LoopStats()
    first_error_logged = False

    start = now()
    while True:
        t0 = now()
        if t0 - start >= duration_ns:
            break
        if cancel is not None and cancel.is_cancelled():
            stats.cancelled = True
            break
        try:
            outcome = unit()
        except Exception as exc:
            outcome = False
            if not first_error_logged:
                logger.debug(f"unit failed ({type(exc).__name__}: {exc}); further failures are only counted")
                first_error_logged = True
        stats.busy_ns += now() - t0

        if outcome is False:
            stats.failures += 1
        else:
            stats.successes += 1
            if isinstance(outcome, int) and not isinstance(outcome, bool):
                stats.bytes_processed += max(0, outcome)

    stats.elapsed_ns = now() - start
    return stats


def run_phases(total_ns: int,
               fractions: Mapping[str, Ratio],
               units: Mapping[str, Unit],
               cancel: Optional[CancelToken] = None,
               clock: Optional[Callable[[], int]] = None) -> Dict[str, LoopStats]:
    """Run sequential phases sharing one total duration.

    Phase durations are fixed up front; a phase that overruns or finishes
    early does not change the budget of the phases after it.
    """
    durations = allocate(total_ns, fractions)
    return {
        name: run_timed(durations[name], units[name], cancel=cancel, clock=clock)
        for name in fractions
    }
