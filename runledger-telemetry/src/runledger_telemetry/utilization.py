"""CPU and memory utilization sampling.

Each utilization tracker records instantaneous host readings as percentages
and folds them into a UtilizationSummary on the finished report. Every
reading feeds min/max/avg; only readings that moved by at least
``precision`` percentage points since the last kept point are kept on the
timeline, so a quiet run produces a short timeline.

Classes:
    CpuUtilization: Host CPU utilization.
    RamUtilization: Host memory utilization.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from abc import ABC, abstractmethod

import psutil

from runledger_core.types.common import TimestampMS
from runledger_core.types.report import Report, UtilizationSummary

logger = logging.getLogger(__name__)


class Utilization(ABC):
    """Base class for a percentage-valued utilization tracker.

    Args:
        precision: Minimum change in percentage points for a reading to be
            kept on the timeline.
    """

    def __init__(self, precision: float = 10.0) -> None:
        if precision < 0:
            raise ValueError("precision must be non-negative")
        self._precision = precision
        self._values: list[float] = []
        self._timeline: list[tuple[TimestampMS, float]] = []

    @property
    def precision(self) -> float:
        """Timeline precision in percentage points."""
        return self._precision

    @property
    def sample_count(self) -> int:
        """Number of successful readings so far."""
        return len(self._values)

    @abstractmethod
    def _read(self) -> float:
        """Return the current utilization percentage."""

    def sample(self) -> float | None:
        """Record one instantaneous reading.

        A failed OS query is logged and skipped; it never raises.

        Returns:
            The recorded percentage, or None if the reading failed.
        """
        try:
            value = round(float(self._read()), 1)
        except (psutil.Error, OSError) as exc:
            logger.debug("%s sample skipped: %s", type(self).__name__, exc)
            return None

        self._values.append(value)
        if not self._timeline or abs(value - self._timeline[-1][1]) >= self._precision:
            self._timeline.append((TimestampMS(int(time.time() * 1000)), value))
        return value

    def summary(self) -> UtilizationSummary | None:
        """Fold the readings into a summary.

        Returns:
            The summary, or None if no reading succeeded.
        """
        if not self._values:
            return None
        return UtilizationSummary(
            min=min(self._values),
            max=max(self._values),
            avg=round(sum(self._values) / len(self._values), 1),
            count=len(self._values),
            timeline=tuple(self._timeline),
        )

    @abstractmethod
    def enrich(self, report: Report) -> Report:
        """Return a copy of the report carrying this tracker's summary."""


class CpuUtilization(Utilization):
    """Host CPU utilization across all cores.

    psutil measures CPU use between two calls, so the first reading is taken
    over a short blocking interval; later readings cover the time since the
    previous one.

    Args:
        precision: Timeline precision in percentage points.
        first_interval: Seconds the first reading blocks for.
    """

    def __init__(self, precision: float = 10.0, first_interval: float = 0.1) -> None:
        super().__init__(precision)
        if first_interval <= 0:
            raise ValueError("first_interval must be positive")
        self._first_interval = first_interval
        self._primed = False

    def _read(self) -> float:
        if not self._primed:
            value = psutil.cpu_percent(interval=self._first_interval)
            self._primed = True
            return value
        return psutil.cpu_percent(interval=None)

    def enrich(self, report: Report) -> Report:
        """Attach the CPU core count and CPU summary to the report."""
        return dataclasses.replace(
            report,
            cpu_count=psutil.cpu_count(),
            cpu=self.summary(),
        )


class RamUtilization(Utilization):
    """Host memory utilization."""

    def _read(self) -> float:
        return psutil.virtual_memory().percent

    def enrich(self, report: Report) -> Report:
        """Attach total memory and the memory summary to the report."""
        try:
            total = psutil.virtual_memory().total
        except (psutil.Error, OSError) as exc:
            logger.debug("Total memory unavailable: %s", exc)
            total = None
        return dataclasses.replace(report, ram_bytes=total, ram=self.summary())
