"""Local report viewer launcher and open policy."""

from __future__ import annotations

import logging
import shlex
import webbrowser
from pathlib import Path

from runledger_report.config import OpenMode
from runledger_report.writer import REPORT_FILE

logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"


def should_open(mode: OpenMode, run_status: str, *, interactive: bool, ci: bool) -> bool:
    """Decide whether to open the viewer after a run.

    The viewer is only ever opened from an interactive terminal outside CI.

    Args:
        mode: Configured open policy.
        run_status: Final run status (``passed``, ``failed``, ``timedout`` or ``interrupted``).
        interactive: Whether stdin is a terminal.
        ci: Whether the run happens under CI.

    Returns:
        True if the viewer should be opened.
    """
    if not interactive or ci:
        return False
    if mode == OpenMode.ALWAYS:
        return True
    if mode == OpenMode.ON_FAILURE:
        return run_status == "failed"
    return False


def report_entry(folder: Path) -> Path:
    """Return the file the viewer should open for a report folder.

    Raises:
        FileNotFoundError: If the folder holds no report.
    """
    for name in (INDEX_FILE, REPORT_FILE):
        candidate = Path(folder) / name
        if candidate.is_file():
            return candidate
    raise FileNotFoundError(f"No report found in {folder}")


def open_report(folder: Path) -> bool:
    """Open a written report in the default browser.

    Args:
        folder: The report folder.

    Returns:
        True if a browser was launched.

    Raises:
        FileNotFoundError: If the folder holds no report.
    """
    entry = report_entry(folder).resolve()
    logger.info("Opening report %s", entry)
    return webbrowser.open(entry.as_uri())


def show_command(folder: Path, cwd: Path | None = None) -> str:
    """Return the shell command that opens a written report.

    The folder is shown relative to ``cwd`` when it lies beneath it.
    """
    folder = Path(folder)
    shown = str(folder)
    if cwd is not None:
        try:
            shown = str(folder.resolve().relative_to(Path(cwd).resolve()))
        except ValueError:
            pass
    return f"runledger show {shlex.quote(shown)}"
