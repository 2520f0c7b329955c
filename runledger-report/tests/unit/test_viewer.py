"""Unit tests for the viewer launcher."""

from pathlib import Path
from unittest.mock import patch

import pytest

from runledger_report.config import OpenMode
from runledger_report.viewer import open_report, report_entry, should_open, show_command


class TestShouldOpen:
    """Tests for the open policy."""

    @pytest.mark.parametrize(
        ("mode", "status", "expected"),
        [
            (OpenMode.ALWAYS, "passed", True),
            (OpenMode.ALWAYS, "failed", True),
            (OpenMode.ON_FAILURE, "passed", False),
            (OpenMode.ON_FAILURE, "failed", True),
            (OpenMode.ON_FAILURE, "interrupted", False),
            (OpenMode.NEVER, "failed", False),
        ],
    )
    def test_policy(self, mode: OpenMode, status: str, expected: bool) -> None:
        """Verify the policy in an interactive terminal."""
        assert should_open(mode, status, interactive=True, ci=False) is expected

    def test_never_in_ci_or_non_interactive(self) -> None:
        """Verify the viewer never opens in CI or without a terminal."""
        assert should_open(OpenMode.ALWAYS, "failed", interactive=True, ci=True) is False
        assert should_open(OpenMode.ALWAYS, "failed", interactive=False, ci=False) is False


class TestOpenReport:
    """Tests for open_report."""

    def test_prefers_index(self, tmp_path: Path) -> None:
        """Verify an HTML entry point is preferred over the JSON document."""
        (tmp_path / "report.json").write_text("{}", encoding="utf-8")
        (tmp_path / "index.html").write_text("<html></html>", encoding="utf-8")
        assert report_entry(tmp_path) == tmp_path / "index.html"

    def test_opens_browser(self, tmp_path: Path) -> None:
        """Verify the browser is pointed at the report file."""
        (tmp_path / "report.json").write_text("{}", encoding="utf-8")
        with patch("runledger_report.viewer.webbrowser.open", return_value=True) as mock_open:
            assert open_report(tmp_path) is True
        mock_open.assert_called_once_with((tmp_path / "report.json").resolve().as_uri())

    def test_missing_report(self, tmp_path: Path) -> None:
        """Verify a folder without a report is rejected."""
        with pytest.raises(FileNotFoundError):
            open_report(tmp_path)


class TestShowCommand:
    """Tests for show_command."""

    def test_relative_to_cwd(self, tmp_path: Path) -> None:
        """Verify the folder is shown relative to the working directory."""
        assert show_command(tmp_path / "runledger-report", tmp_path) == (
            "runledger show runledger-report"
        )

    def test_outside_cwd_quoted(self, tmp_path: Path) -> None:
        """Verify folders outside the working directory are shown as given."""
        folder = tmp_path / "my report"
        command = show_command(folder, tmp_path / "elsewhere")
        assert command == f"runledger show '{folder}'"
