"""Live tree normalization.

The TreeNormalizer converts the engine's live suite tree into the immutable
suite forest of a report. Children are always resolved first and the parent
is then built from the finished children, so no node is touched after it is
created. Sibling subtrees are resolved concurrently; their relative order is
preserved.

Rules applied while recursing:
    - Root and project suites, and any suite without a location, are
      transparent: their children are spliced into the parent.
    - A leading ``@`` is stripped from each tag.
    - Every recorded attempt is converted, in arrival order.
    - Negative step durations become zero.
    - Empty step, error and output lists are omitted.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from runledger_core.types.common import to_duration_ms, to_timestamp_ms
from runledger_core.types.live import (
    LiveAnnotation,
    LiveError,
    LiveLocation,
    LiveProject,
    LiveResult,
    LiveStep,
    LiveSuite,
    LiveTest,
)
from runledger_core.types.report import (
    Annotation,
    Location,
    RunAttempt,
    STDIOEntry,
    Suite,
    SuiteType,
    Test,
    TestError,
    TestStatus,
    TestStep,
)

from runledger_report.attachments import AttachmentStore
from runledger_report.worktree import GitWorktree

logger = logging.getLogger(__name__)

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")

TRANSPARENT_SUITE_TYPES = frozenset({"root", "project"})

_STATUS_ALIASES = {
    "timedOut": TestStatus.TIMED_OUT,
    "timedout": TestStatus.TIMED_OUT,
}


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from ``text``."""
    return _ANSI_RE.sub("", text)


def parse_status(value: TestStatus | str) -> TestStatus:
    """Map an engine status to a TestStatus.

    Raises:
        ValueError: If the status is unknown.
    """
    if isinstance(value, TestStatus):
        return value
    alias = _STATUS_ALIASES.get(value)
    if alias is not None:
        return alias
    return TestStatus(value)


def normalize_tag(tag: str) -> str:
    """Strip a single leading ``@`` marker from a tag."""
    return tag[1:] if tag.startswith("@") else tag


@dataclass
class NormalizationContext:
    """Per-run state consulted while normalizing.

    Attributes:
        worktree: Worktree used to make locations relative.
        attachments: Store that receives every attachment.
        environment_indices: Environment index of each project.
        default_environment_idx: Index used for tests outside any project.
    """

    worktree: GitWorktree
    attachments: AttachmentStore
    environment_indices: dict[LiveProject, int] = field(default_factory=dict)
    default_environment_idx: int = 0

    def environment_index(self, project: LiveProject | None) -> int:
        """Return the environment index for ``project``."""
        if project is None:
            return self.default_environment_idx
        idx = self.environment_indices.get(project)
        if idx is None:
            logger.debug("Project %r has no environment, using default", project.name)
            return self.default_environment_idx
        return idx


class TreeNormalizer:
    """Converts a live suite tree into an immutable suite forest.

    Args:
        context: Worktree, attachment store and environment indices.
        results: Recorded results per test, in arrival order.
    """

    def __init__(
        self,
        context: NormalizationContext,
        results: Mapping[LiveTest, Sequence[LiveResult]],
    ) -> None:
        self._context = context
        self._results = results

    async def suites(self, suite: LiveSuite) -> list[Suite]:
        """Normalize a suite subtree.

        Args:
            suite: The live suite to convert.

        Returns:
            A single materialized suite, or the spliced children of a
            transparent suite.
        """
        child_lists = await asyncio.gather(*(self.suites(child) for child in suite.suites))
        children = tuple(child for child_list in child_lists for child in child_list)

        if suite.type in TRANSPARENT_SUITE_TYPES or suite.location is None:
            return list(children)

        tests = await asyncio.gather(*(self.test(test) for test in suite.tests))

        if suite.type == "file":
            suite_type = SuiteType.FILE
        elif suite.type == "describe" and not suite.title:
            suite_type = SuiteType.ANONYMOUS
        else:
            suite_type = SuiteType.SUITE

        return [
            Suite(
                type=suite_type,
                title=suite.title,
                location=self.location(suite.location),
                suites=children,
                tests=tuple(tests),
            )
        ]

    async def test(self, test: LiveTest) -> Test:
        """Normalize a test and every attempt recorded for it."""
        results = self._results.get(test, ())
        attempts = await asyncio.gather(*(self.attempt(test, result) for result in results))
        return Test(
            title=test.title,
            location=self.location(test.location),
            tags=tuple(normalize_tag(tag) for tag in test.tags),
            attempts=tuple(attempts),
        )

    async def attempt(self, test: LiveTest, result: LiveResult) -> RunAttempt:
        """Normalize one attempt, resolving its attachments concurrently."""
        attachments = await self._context.attachments.resolve(result.attachments)
        return RunAttempt(
            environment_idx=self._context.environment_index(test.project()),
            status=parse_status(result.status),
            expected_status=parse_status(test.expected_status),
            start_timestamp=to_timestamp_ms(result.start_time),
            duration=to_duration_ms(result.duration),
            timeout=to_duration_ms(test.timeout),
            parallel_index=result.parallel_index,
            annotations=tuple(self.annotation(a) for a in test.annotations),
            errors=tuple(self.error(e) for e in result.errors) or None,
            stdout=tuple(STDIOEntry.from_output(o) for o in result.stdout) or None,
            stderr=tuple(STDIOEntry.from_output(o) for o in result.stderr) or None,
            steps=tuple(self.step(s) for s in result.steps) or None,
            attachments=attachments,
        )

    def step(self, step: LiveStep) -> TestStep:
        """Normalize a step subtree."""
        return TestStep(
            title=step.title,
            duration=to_duration_ms(step.duration),
            location=self.location(step.location) if step.location else None,
            error=self.error(step.error) if step.error else None,
            steps=tuple(self.step(child) for child in step.steps) or None,
        )

    def annotation(self, annotation: LiveAnnotation) -> Annotation:
        """Normalize a test annotation."""
        return Annotation(
            type=annotation.type,
            description=annotation.description,
            location=self.location(annotation.location) if annotation.location else None,
        )

    def error(self, error: LiveError) -> TestError:
        """Normalize an error, keeping the first line of its plain message."""
        return TestError(
            message=strip_ansi(error.message or "").split("\n")[0],
            location=self.location(error.location) if error.location else None,
            snippet=error.snippet,
            stack=error.stack,
            value=error.value,
        )

    def location(self, location: LiveLocation) -> Location:
        """Make a location worktree-relative."""
        return Location(
            file=self._context.worktree.git_path(location.file),
            line=location.line,
            column=location.column,
        )
