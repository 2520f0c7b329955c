"""Background host telemetry sampling.

The SystemSampler takes one reading when constructed, then samples on a
fixed cadence once started. Starting returns a SamplingHandle that owns the
background task; stopping the handle cancels it. The run's owner stops the
handle once at run end and takes one last reading to close the window.

Example:
    sampler = SystemSampler()
    handle = sampler.start()
    ...  # run executes
    await handle.stop()
    sampler.sample()
    report = sampler.enrich(report)
"""

from __future__ import annotations

import asyncio
import logging

from runledger_core.types.report import Report

from runledger_telemetry.utilization import CpuUtilization, RamUtilization

logger = logging.getLogger(__name__)


class SamplingHandle:
    """Owned handle to a running sampling cadence.

    Args:
        task: The background task driving the cadence.
    """

    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task
        self._stopped = False

    @property
    def is_active(self) -> bool:
        """Return True until the handle has been stopped."""
        return not self._stopped and not self._task.done()

    async def stop(self) -> bool:
        """Cancel the cadence.

        Only the first call cancels; later calls are no-ops.

        Returns:
            True if this call cancelled the cadence.
        """
        if self._stopped:
            logger.debug("Sampling already stopped")
            return False
        self._stopped = True
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        return True


class SystemSampler:
    """Samples host CPU and memory utilization.

    Args:
        precision: Timeline precision in percentage points.
        interval: Seconds between background samples.
        cpu: CPU tracker (created if not given).
        ram: Memory tracker (created if not given).
    """

    def __init__(
        self,
        precision: float = 10.0,
        interval: float = 1.0,
        *,
        cpu: CpuUtilization | None = None,
        ram: RamUtilization | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._interval = interval
        self.cpu = cpu or CpuUtilization(precision=precision)
        self.ram = ram or RamUtilization(precision=precision)
        self.sample()

    @property
    def interval(self) -> float:
        """Seconds between background samples."""
        return self._interval

    def sample(self) -> None:
        """Take one CPU and one memory reading."""
        self.cpu.sample()
        self.ram.sample()

    def start(self) -> SamplingHandle:
        """Start the background cadence on the running event loop.

        Returns:
            The handle that must be stopped at run end.

        Raises:
            RuntimeError: If called without a running event loop.
        """
        task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("Started telemetry sampling every %.2fs", self._interval)
        return SamplingHandle(task)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sample()
            except Exception as exc:  # pylint: disable=broad-except
                logger.debug("Telemetry sample failed: %s", exc)

    def enrich(self, report: Report) -> Report:
        """Return a copy of the report carrying CPU and memory summaries."""
        return self.ram.enrich(self.cpu.enrich(report))
