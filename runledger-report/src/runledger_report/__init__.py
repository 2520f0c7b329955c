"""Report normalization, attachment deduplication and delivery for runledger.

Key components:
    - Reporter: Receives test engine events and writes the run's report.
    - build_report: Normalizes a finished live tree into an immutable Report.
    - AttachmentStore: Content-addressed, deduplicating attachment storage.
    - GitWorktree: Repository root and commit identity.
    - write_report / read_report: The local report folder format.
    - HttpReportUploader: Delivery to the report upload service.

Example:
    >>> from runledger_report import Reporter, load_reporter_options
    >>> reporter = Reporter(load_reporter_options())
"""

from runledger_report.assembler import BuildResult, assemble_report, build_report
from runledger_report.attachments import AttachmentStore, content_id
from runledger_report.browsers import collect_browser_versions, probe_browser_version
from runledger_report.config import OpenMode, ReporterOptions, load_reporter_options
from runledger_report.environments import create_environments
from runledger_report.normalizer import NormalizationContext, TreeNormalizer
from runledger_report.reporter import Reporter
from runledger_report.sources import collect_sources
from runledger_report.uploader import HttpReportUploader
from runledger_report.worktree import GitWorktree
from runledger_report.writer import ReportWriter, read_report, write_report

__all__ = [
    # Reporter
    "Reporter",
    # Configuration
    "OpenMode",
    "ReporterOptions",
    "load_reporter_options",
    # Assembly
    "AttachmentStore",
    "BuildResult",
    "GitWorktree",
    "NormalizationContext",
    "TreeNormalizer",
    "assemble_report",
    "build_report",
    "collect_browser_versions",
    "collect_sources",
    "content_id",
    "create_environments",
    "probe_browser_version",
    # Persistence and delivery
    "HttpReportUploader",
    "ReportWriter",
    "read_report",
    "write_report",
]
