"""Host telemetry sampling for runledger reports."""

from runledger_telemetry.sampler import SamplingHandle, SystemSampler
from runledger_telemetry.utilization import CpuUtilization, RamUtilization, Utilization

__all__ = [
    "CpuUtilization",
    "RamUtilization",
    "SamplingHandle",
    "SystemSampler",
    "Utilization",
]
