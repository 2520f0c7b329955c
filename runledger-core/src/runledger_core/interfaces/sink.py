"""Report persistence and delivery interfaces.

The report core does not decide how a finished report is encoded or where it
goes. It hands one Report plus the distinct Attachment blobs to a sink, and
optionally to an uploader afterwards.

Protocols:
    ReportSink: Durably persist a report and its attachments.
    ReportUploader: Deliver a persisted report to remote storage.
"""

# pylint: disable=unnecessary-ellipsis  # Ellipsis required for Protocol method stubs

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

from runledger_core.types.attachment import Attachment
from runledger_core.types.report import Report


class ReportSink(Protocol):
    """Protocol for durably persisting a finished report.

    A sink is written exactly once per run. Implementations choose the
    on-disk encoding; the document's internal references are already
    self-consistent when it arrives.
    """

    async def write(
        self, report: Report, attachments: list[Attachment], folder: Path
    ) -> list[Attachment]:
        """Persist the report and its attachments.

        Args:
            report: The assembled report.
            attachments: Every distinct attachment the report references.
            folder: Destination folder.

        Returns:
            The attachments as persisted, pointing at their stored copies.
        """
        ...


class ReportUploader(Protocol):
    """Protocol for delivering a persisted report to remote storage.

    Delivery happens after the report is on disk, so failures are advisory.
    """

    async def upload(self, report: dict[str, Any], attachments: list[Attachment]) -> None:
        """Upload a report document and its attachments.

        Args:
            report: The serialized report document.
            attachments: Attachments referenced by the document.

        Raises:
            UploadError: If the remote service rejects the upload.
        """
        ...
