"""Source collection for report display.

Walks a finished report, gathers every file referenced by a location and
embeds the file text so a viewer can show code around errors and steps
without access to the repository. Files that cannot be read are skipped.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Iterable, Iterator

from runledger_core.types.report import (
    Location,
    Report,
    RunAttempt,
    SourceFile,
    Suite,
    TestError,
    TestStep,
)

from runledger_report.worktree import GitWorktree

logger = logging.getLogger(__name__)


def _error_locations(errors: Iterable[TestError]) -> Iterator[Location]:
    for error in errors:
        if error.location is not None:
            yield error.location


def _step_locations(steps: Iterable[TestStep]) -> Iterator[Location]:
    for step in steps:
        if step.location is not None:
            yield step.location
        if step.error is not None and step.error.location is not None:
            yield step.error.location
        if step.steps:
            yield from _step_locations(step.steps)


def _attempt_locations(attempt: RunAttempt) -> Iterator[Location]:
    for annotation in attempt.annotations:
        if annotation.location is not None:
            yield annotation.location
    yield from _error_locations(attempt.errors or ())
    yield from _step_locations(attempt.steps or ())


def _suite_locations(suite: Suite) -> Iterator[Location]:
    if suite.location is not None:
        yield suite.location
    for test in suite.tests:
        yield test.location
        for attempt in test.attempts:
            yield from _attempt_locations(attempt)
    for child in suite.suites:
        yield from _suite_locations(child)


def iter_locations(report: Report) -> Iterator[Location]:
    """Yield every location in the report, in document order."""
    for suite in report.suites:
        yield from _suite_locations(suite)
    yield from _error_locations(report.unattributed_errors)


def collect_sources(worktree: GitWorktree, report: Report) -> Report:
    """Return a copy of the report with referenced source files embedded.

    Args:
        worktree: Worktree the report's locations are relative to.
        report: The assembled report. Not modified.

    Returns:
        The report with ``sources`` set, one entry per distinct file.
    """
    files = list(dict.fromkeys(location.file for location in iter_locations(report)))
    sources: list[SourceFile] = []
    for file_path in files:
        try:
            text = (worktree.root / file_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read source file %s: %s", file_path, exc)
            continue
        sources.append(SourceFile(file_path=file_path, text=text))
    return dataclasses.replace(report, sources=tuple(sources))
