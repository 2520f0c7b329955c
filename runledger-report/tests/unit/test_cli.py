"""Unit tests for the runledger CLI."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from runledger_core.errors import UploadError
from runledger_core.types.common import CommitId, DurationMS, TimestampMS
from runledger_core.types.report import Report

from runledger_report.cli import main
from runledger_report.writer import write_report


@pytest.fixture
def report_folder(tmp_path: Path) -> Path:
    """Write an empty report to disk."""
    report = Report(
        category="pytest",
        commit_id=CommitId("e" * 40),
        environments=(),
        suites=(),
        duration=DurationMS(1),
        start_timestamp=TimestampMS(0),
    )
    folder = tmp_path / "runledger-report"
    asyncio.run(write_report(report, [], folder))
    return folder


class TestMain:
    """Tests for the CLI entry point."""

    def test_no_command(self) -> None:
        """Verify running without a command prints help and fails."""
        assert main([]) == 1

    def test_show(self, report_folder: Path) -> None:
        """Verify show opens the written report."""
        with patch("runledger_report.cli.open_report", return_value=True) as mock_open:
            assert main(["show", str(report_folder)]) == 0
        mock_open.assert_called_once_with(report_folder)

    def test_show_missing(self, tmp_path: Path) -> None:
        """Verify show fails for a folder without a report."""
        assert main(["show", str(tmp_path)]) == 1

    def test_upload_requires_credentials(
        self, report_folder: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Verify upload fails without an endpoint and token."""
        monkeypatch.delenv("RUNLEDGER_ENDPOINT", raising=False)
        monkeypatch.delenv("RUNLEDGER_ACCESS_TOKEN", raising=False)
        assert main(["upload", str(report_folder)]) == 1

    def test_upload(self, report_folder: Path) -> None:
        """Verify upload sends the written report."""
        with patch("runledger_report.cli.HttpReportUploader") as mock_cls:
            mock_cls.return_value.upload = AsyncMock()
            code = main(
                ["upload", str(report_folder), "--endpoint", "https://r.example.com", "--token", "t"]
            )
        assert code == 0
        mock_cls.assert_called_once_with("https://r.example.com", "t")
        payload, attachments = mock_cls.return_value.upload.await_args.args
        assert payload["commit_id"] == "e" * 40
        assert attachments == []

    def test_upload_failure(self, report_folder: Path) -> None:
        """Verify a rejected upload exits with an error."""
        with patch("runledger_report.cli.HttpReportUploader") as mock_cls:
            mock_cls.return_value.upload = AsyncMock(side_effect=UploadError("denied"))
            code = main(
                ["upload", str(report_folder), "--endpoint", "https://r.example.com", "--token", "t"]
            )
        assert code == 1

    def test_upload_missing_report(self, tmp_path: Path) -> None:
        """Verify upload fails for a folder without a report."""
        code = main(["upload", str(tmp_path), "--endpoint", "https://r.example.com", "--token", "t"])
        assert code == 1
