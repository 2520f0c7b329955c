"""Core library for runledger test reports.

This package provides the data types, interfaces and error types shared by
the runledger packages. It has no third-party dependencies so it can serve
as the base layer for the telemetry and report packages.

Key components:
    - Types: The immutable normalized report document (Report, Suite, Test,
      RunAttempt, TestStep, ...), content-addressed Attachment blobs, and
      the mutable live tree a test engine delivers (LiveSuite, LiveTest,
      LiveResult, ...).
    - Interfaces: Protocols for the report sink and uploader.
    - Errors: Hierarchy of exception types for the failure modes.

Example:
    >>> from runledger_core import to_duration_ms
    >>> to_duration_ms(-1)
    0
"""

from runledger_core.errors import (
    AttachmentError,
    ReportFormatError,
    RunledgerError,
    UploadError,
    WorktreeError,
)
from runledger_core.interfaces import ReportSink, ReportUploader
from runledger_core.types import (
    REPORT_VERSION,
    Annotation,
    Attachment,
    AttachmentId,
    AttachmentRef,
    CommitId,
    DurationMS,
    Environment,
    LiveAnnotation,
    LiveAttachment,
    LiveConfig,
    LiveError,
    LiveLocation,
    LiveProject,
    LiveResult,
    LiveStep,
    LiveSuite,
    LiveTest,
    Location,
    Report,
    RunAttempt,
    RunResult,
    SourceFile,
    STDIOEntry,
    Suite,
    SuiteType,
    Test,
    TestError,
    TestStatus,
    TestStep,
    TimestampMS,
    UtilizationSummary,
    to_duration_ms,
    to_timestamp_ms,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Common types
    "AttachmentId",
    "CommitId",
    "DurationMS",
    "TimestampMS",
    "to_duration_ms",
    "to_timestamp_ms",
    # Report document
    "REPORT_VERSION",
    "Annotation",
    "Attachment",
    "AttachmentRef",
    "Environment",
    "Location",
    "Report",
    "RunAttempt",
    "SourceFile",
    "STDIOEntry",
    "Suite",
    "SuiteType",
    "Test",
    "TestError",
    "TestStatus",
    "TestStep",
    "UtilizationSummary",
    # Live tree
    "LiveAnnotation",
    "LiveAttachment",
    "LiveConfig",
    "LiveError",
    "LiveLocation",
    "LiveProject",
    "LiveResult",
    "LiveStep",
    "LiveSuite",
    "LiveTest",
    "RunResult",
    # Interfaces
    "ReportSink",
    "ReportUploader",
    # Errors
    "AttachmentError",
    "ReportFormatError",
    "RunledgerError",
    "UploadError",
    "WorktreeError",
]
