"""Core data types for runledger.

Submodules:
    common: Identifier and unit aliases (DurationMS, TimestampMS, CommitId,
        AttachmentId) and coercion helpers.
    report: Immutable normalized report document.
    attachment: Content-addressed attachment blobs.
    live: Mutable execution tree delivered by a test engine.

All types are exported from this package for convenience.
"""

from runledger_core.types.attachment import Attachment
from runledger_core.types.common import (
    AttachmentId,
    CommitId,
    DurationMS,
    TimestampMS,
    to_duration_ms,
    to_timestamp_ms,
)
from runledger_core.types.live import (
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
    RunResult,
)
from runledger_core.types.report import (
    REPORT_VERSION,
    Annotation,
    AttachmentRef,
    Environment,
    Location,
    Report,
    RunAttempt,
    SourceFile,
    STDIOEntry,
    Suite,
    SuiteType,
    Test,
    TestError,
    TestStatus,
    TestStep,
    UtilizationSummary,
)

__all__ = [
    # Common
    "AttachmentId",
    "CommitId",
    "DurationMS",
    "TimestampMS",
    "to_duration_ms",
    "to_timestamp_ms",
    # Attachment
    "Attachment",
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
    # Report document
    "REPORT_VERSION",
    "Annotation",
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
]
