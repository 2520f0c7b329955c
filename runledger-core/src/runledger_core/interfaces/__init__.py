"""Protocol-based interfaces for runledger collaborators.

Protocols:
    ReportSink: Durable persistence of a finished report.
    ReportUploader: Remote delivery of a persisted report.
"""

from runledger_core.interfaces.sink import ReportSink, ReportUploader

__all__ = [
    "ReportSink",
    "ReportUploader",
]
