"""Live execution tree as delivered by a test engine.

These are the mutable objects a test engine hands to a reporter while a run
is in progress. Suites are revisited by reference each time a descendant
fires, results are appended as retries happen, and nothing here is final
until the run ends. The normalizer only reads these objects.

Objects compare by identity (``eq=False``) so they can key the reporter's
result bookkeeping the same way the engine's own objects would.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any


@dataclass(eq=False)
class LiveLocation:
    """Absolute source location as reported by the engine."""

    file: str
    line: int
    column: int


@dataclass(eq=False)
class LiveError:
    """Error payload as reported by the engine. ``message`` may carry ANSI colors."""

    message: str | None = None
    location: LiveLocation | None = None
    snippet: str | None = None
    stack: str | None = None
    value: str | None = None


@dataclass(eq=False)
class LiveAttachment:
    """Attachment reference: either a file path or an inline body."""

    name: str
    content_type: str
    path: str | Path | None = None
    body: bytes | str | None = None


@dataclass(eq=False)
class LiveStep:
    """A step within a result. ``duration`` is -1 when the engine never set it."""

    title: str
    duration: float = -1
    location: LiveLocation | None = None
    error: LiveError | None = None
    steps: list[LiveStep] = field(default_factory=list)


@dataclass(eq=False)
class LiveAnnotation:
    """A test annotation."""

    type: str
    description: str | None = None
    location: LiveLocation | None = None


@dataclass(eq=False)
class LiveResult:  # pylint: disable=too-many-instance-attributes
    """One attempt's result payload, delivered on test end."""

    status: str
    start_time: datetime | float
    duration: float
    parallel_index: int = 0
    retry: int = 0
    errors: list[LiveError] = field(default_factory=list)
    stdout: list[str | bytes] = field(default_factory=list)
    stderr: list[str | bytes] = field(default_factory=list)
    steps: list[LiveStep] = field(default_factory=list)
    attachments: list[LiveAttachment] = field(default_factory=list)


@dataclass(eq=False)
class LiveProject:
    """A project (execution configuration) from the engine config.

    Attributes:
        name: Project name. May be blank.
        metadata: Arbitrary JSON-like metadata.
        use: Engine options; ``browser_name``, ``channel`` and
            ``executable_path`` are read by browser probing.
    """

    name: str
    metadata: dict[str, Any] = field(default_factory=dict)
    use: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class LiveTest:  # pylint: disable=too-many-instance-attributes
    """A test case node."""

    __test__ = False

    title: str
    location: LiveLocation
    tags: list[str] = field(default_factory=list)
    annotations: list[LiveAnnotation] = field(default_factory=list)
    timeout: float = 0
    expected_status: str = "passed"
    parent: LiveSuite | None = field(default=None, repr=False)

    def project(self) -> LiveProject | None:
        """Return the project this test runs under."""
        return self.parent.project() if self.parent is not None else None


@dataclass(eq=False)
class LiveSuite:
    """A suite node.

    Attributes:
        type: One of ``root``, ``project``, ``file`` or ``describe``.
        title: Suite title; empty for anonymous groupings.
        location: Source location; None for root and project suites.
        suites: Child suites in declaration order.
        tests: Child tests in declaration order.
        parent: Enclosing suite, or None for the root.
        project_ref: The project, set on project suites.
    """

    type: str
    title: str = ""
    location: LiveLocation | None = None
    suites: list[LiveSuite] = field(default_factory=list)
    tests: list[LiveTest] = field(default_factory=list)
    parent: LiveSuite | None = field(default=None, repr=False)
    project_ref: LiveProject | None = None

    def add_suite(self, suite: LiveSuite) -> LiveSuite:
        """Append a child suite and return it."""
        suite.parent = self
        self.suites.append(suite)
        return suite

    def add_test(self, test: LiveTest) -> LiveTest:
        """Append a child test and return it."""
        test.parent = self
        self.tests.append(test)
        return test

    def project(self) -> LiveProject | None:
        """Return the nearest enclosing project."""
        if self.project_ref is not None:
            return self.project_ref
        return self.parent.project() if self.parent is not None else None


@dataclass(eq=False)
class LiveConfig:
    """Engine configuration delivered at run begin.

    Attributes:
        root_dir: Directory the engine resolved tests from.
        projects: Projects in configuration order.
        config_file: Absolute path of the engine config file, if any.
    """

    root_dir: str | Path
    projects: list[LiveProject] = field(default_factory=list)
    config_file: str | Path | None = None


@dataclass(eq=False)
class RunResult:
    """Final run status delivered at run end."""

    status: str
    start_time: datetime | float
    duration: float
