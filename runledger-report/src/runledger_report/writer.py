"""Durable local report sink.

Layout of a written report folder::

    <folder>/
        report.json          Report.to_dict(), UTF-8, indented
        attachments/<id>     one file per distinct attachment

Writing replaces any previous content of the folder.
"""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
from pathlib import Path
from typing import Any

from runledger_core.errors import ReportFormatError
from runledger_core.types.attachment import Attachment
from runledger_core.types.common import AttachmentId
from runledger_core.types.report import Report

logger = logging.getLogger(__name__)

REPORT_FILE = "report.json"
ATTACHMENTS_DIR = "attachments"


def _write_sync(report: Report, attachments: list[Attachment], folder: Path) -> list[Attachment]:
    # A report that cannot be encoded leaves the folder untouched.
    document = json.dumps(report.to_dict(), indent=2, ensure_ascii=False)

    if folder.exists():
        shutil.rmtree(folder)
    attachments_dir = folder / ATTACHMENTS_DIR
    attachments_dir.mkdir(parents=True)

    written: list[Attachment] = []
    for attachment in attachments:
        target = attachments_dir / attachment.id
        if attachment.path is not None:
            shutil.copyfile(attachment.path, target)
        else:
            target.write_bytes(attachment.read_bytes())
        written.append(
            Attachment(id=attachment.id, content_type=attachment.content_type, path=target)
        )

    (folder / REPORT_FILE).write_text(document, encoding="utf-8")
    return written


async def write_report(
    report: Report, attachments: list[Attachment], folder: Path
) -> list[Attachment]:
    """Write a report and its attachments to ``folder``.

    Args:
        report: The assembled report.
        attachments: Every distinct attachment the report references.
        folder: Destination folder; existing content is removed.

    Returns:
        The attachments, pointing at their copies inside ``folder``.

    Raises:
        OSError: If the folder or a file cannot be written.
        TypeError: If the report holds a value JSON cannot encode; the
            folder is left untouched.
    """
    written = await asyncio.to_thread(_write_sync, report, attachments, Path(folder))
    logger.info("Report written to %s (%d attachments)", folder, len(written))
    return written


class ReportWriter:
    """ReportSink that writes the local folder layout."""

    async def write(
        self, report: Report, attachments: list[Attachment], folder: Path
    ) -> list[Attachment]:
        """Persist the report; see ``write_report``."""
        return await write_report(report, attachments, folder)


def _content_types(report: Report) -> dict[AttachmentId, str]:
    content_types: dict[AttachmentId, str] = {}
    for test in report.iter_tests():
        for attempt in test.attempts:
            for ref in attempt.attachments:
                content_types.setdefault(ref.id, ref.content_type)
    return content_types


def read_report(folder: Path) -> tuple[Report, list[Attachment]]:
    """Read a report folder written by ``write_report``.

    Args:
        folder: The report folder.

    Returns:
        The report and the attachments found for it. Attachments missing
        from the folder are skipped.

    Raises:
        ReportFormatError: If ``report.json`` is missing or malformed.
    """
    folder = Path(folder)
    report_path = folder / REPORT_FILE
    try:
        with open(report_path, encoding="utf-8") as f:
            data: Any = json.load(f)
    except FileNotFoundError as exc:
        raise ReportFormatError(f"No report found in {folder}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise ReportFormatError(f"Cannot read {report_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ReportFormatError(f"{report_path} does not contain a report object")
    try:
        report = Report.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise ReportFormatError(f"Malformed report in {report_path}: {exc}") from exc

    attachments: list[Attachment] = []
    for attachment_id, content_type in _content_types(report).items():
        path = folder / ATTACHMENTS_DIR / attachment_id
        if not path.is_file():
            logger.warning("Attachment %s missing from %s", attachment_id, folder)
            continue
        attachments.append(Attachment(id=attachment_id, content_type=content_type, path=path))
    return report, attachments
