"""Exception types for runledger-core.

This module defines the exception hierarchy used throughout runledger.
All runledger exceptions inherit from RunledgerError, allowing consumers to
catch all framework-specific errors with a single except clause.

Exception hierarchy:
    RunledgerError (base)
    +-- WorktreeError: No git repository or commit identity (fatal)
    +-- AttachmentError: Attachment content could not be read
    +-- ReportFormatError: A written report could not be read back
    +-- UploadError: The upload service rejected a report
"""


class RunledgerError(Exception):
    """Base exception for all runledger errors.

    This is the root of the runledger exception hierarchy. Catch this to
    handle any framework-specific error.
    """


class WorktreeError(RunledgerError):
    """Raised when the git worktree or its commit identity cannot be resolved.

    This is the only condition that aborts report generation: without a
    commit identity the report has no primary key.
    """


class AttachmentError(RunledgerError):
    """Raised when an attachment's content cannot be read.

    The attachment store converts this into an inaccessible entry; it never
    escapes a single attachment's resolution.
    """


class ReportFormatError(RunledgerError):
    """Raised when a report folder is missing or holds a malformed document."""


class UploadError(RunledgerError):
    """Raised when the upload service rejects a report.

    Upload happens after the report is written locally, so callers treat
    this as advisory.
    """
