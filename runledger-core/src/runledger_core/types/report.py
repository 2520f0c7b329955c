"""Normalized report document types.

This module provides the immutable value types that make up a finished
report: the suite forest, tests and their attempts, step trees, errors,
environments and run-level metadata. Every type is a frozen dataclass and
every collection is a tuple, so a document cannot be mutated once built.

Optional fields that are None are omitted from ``to_dict()`` output. This
keeps the document compact and lets a consumer tell "no errors" (field
absent) apart from "an empty list of errors".

Classes:
    TestStatus: Outcome of a single attempt.
    SuiteType: Kind of a materialized suite node.
    Location: Worktree-relative source location.
    TestError: Error reported by a test, step or the run itself.
    STDIOEntry: One chunk of captured stdout or stderr.
    Annotation: A test annotation.
    AttachmentRef: Reference from an attempt to a stored attachment.
    TestStep: A node in an attempt's step tree.
    RunAttempt: One execution try of a test.
    Test: A logical test with all its attempts.
    Suite: A node of the suite forest.
    Environment: A uniquely named execution configuration.
    SourceFile: Collected source text for display.
    UtilizationSummary: Folded telemetry samples.
    Report: The root document.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from runledger_core.types.common import (
    AttachmentId,
    CommitId,
    DurationMS,
    TimestampMS,
)

REPORT_VERSION = 1
"""Schema version written into every report."""


def _compact(data: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None."""
    return {key: value for key, value in data.items() if value is not None}


class TestStatus(Enum):
    """Outcome of a single test attempt.

    Attributes:
        PASSED: The attempt passed.
        FAILED: The attempt failed.
        TIMED_OUT: The attempt exceeded its timeout.
        SKIPPED: The attempt was skipped.
        INTERRUPTED: The run was interrupted while the attempt executed.
    """

    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    SKIPPED = "skipped"
    INTERRUPTED = "interrupted"


class SuiteType(Enum):
    """Kind of a materialized suite node.

    Attributes:
        SUITE: A titled grouping of tests.
        FILE: A test file.
        ANONYMOUS: An untitled grouping.
    """

    SUITE = "suite"
    FILE = "file"
    ANONYMOUS = "anonymous suite"


@dataclass(frozen=True)
class Location:
    """Source location relative to the repository root.

    Attributes:
        file: Worktree-relative POSIX path. Never absolute.
        line: 1-based line number.
        column: 1-based column number.
    """

    file: str
    line: int
    column: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary."""
        return {"file": self.file, "line": self.line, "column": self.column}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Location:
        """Deserialize from a dictionary."""
        return cls(file=data["file"], line=int(data["line"]), column=int(data["column"]))


def _location_or_none(data: dict[str, Any] | None) -> Location | None:
    return Location.from_dict(data) if data is not None else None


@dataclass(frozen=True)
class TestError:
    """An error reported by an attempt, a step, or the run itself.

    Attributes:
        message: First line of the de-colorized error message.
        location: Where the error was raised, if known.
        snippet: Source snippet around the error, if the engine provided one.
        stack: Full stack trace, if available.
        value: String form of a thrown non-error value, if any.
    """

    __test__ = False

    message: str
    location: Location | None = None
    snippet: str | None = None
    stack: str | None = None
    value: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary, omitting unset fields."""
        return _compact(
            {
                "message": self.message,
                "location": self.location.to_dict() if self.location else None,
                "snippet": self.snippet,
                "stack": self.stack,
                "value": self.value,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestError:
        """Deserialize from a dictionary."""
        return cls(
            message=data.get("message", ""),
            location=_location_or_none(data.get("location")),
            snippet=data.get("snippet"),
            stack=data.get("stack"),
            value=data.get("value"),
        )


@dataclass(frozen=True)
class STDIOEntry:
    """One chunk of captured output.

    Exactly one of the two fields is set: ``text`` for string output,
    ``buffer`` (base64) for binary output.
    """

    text: str | None = None
    buffer: str | None = None

    @classmethod
    def from_output(cls, data: str | bytes) -> STDIOEntry:
        """Build an entry from a raw engine output chunk.

        Args:
            data: Text or binary output.

        Returns:
            An entry holding text as-is and bytes as base64.
        """
        if isinstance(data, (bytes, bytearray)):
            return cls(buffer=base64.b64encode(bytes(data)).decode("ascii"))
        return cls(text=data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary."""
        return _compact({"text": self.text, "buffer": self.buffer})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> STDIOEntry:
        """Deserialize from a dictionary."""
        return cls(text=data.get("text"), buffer=data.get("buffer"))


@dataclass(frozen=True)
class Annotation:
    """A test annotation such as ``skip`` or ``issue``."""

    type: str
    description: str | None = None
    location: Location | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary."""
        return _compact(
            {
                "type": self.type,
                "description": self.description,
                "location": self.location.to_dict() if self.location else None,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Annotation:
        """Deserialize from a dictionary."""
        return cls(
            type=data["type"],
            description=data.get("description"),
            location=_location_or_none(data.get("location")),
        )


@dataclass(frozen=True)
class AttachmentRef:
    """Reference from an attempt to a stored attachment.

    Attributes:
        id: Content identity of the stored attachment.
        name: Attachment name as given by the test.
        content_type: MIME type of the content.
    """

    id: AttachmentId
    name: str
    content_type: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary."""
        return {"id": self.id, "name": self.name, "content_type": self.content_type}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AttachmentRef:
        """Deserialize from a dictionary."""
        return cls(
            id=AttachmentId(data["id"]),
            name=data["name"],
            content_type=data["content_type"],
        )


@dataclass(frozen=True)
class TestStep:
    """A node in an attempt's step tree.

    ``error`` and ``steps`` are None (and omitted from the document) when
    there is nothing to report.
    """

    __test__ = False

    title: str
    duration: DurationMS
    location: Location | None = None
    error: TestError | None = None
    steps: tuple[TestStep, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary, omitting unset fields."""
        return _compact(
            {
                "title": self.title,
                "duration": self.duration,
                "location": self.location.to_dict() if self.location else None,
                "error": self.error.to_dict() if self.error else None,
                "steps": [s.to_dict() for s in self.steps] if self.steps is not None else None,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestStep:
        """Deserialize from a dictionary."""
        steps = data.get("steps")
        error = data.get("error")
        return cls(
            title=data["title"],
            duration=DurationMS(int(data.get("duration", 0))),
            location=_location_or_none(data.get("location")),
            error=TestError.from_dict(error) if error is not None else None,
            steps=tuple(cls.from_dict(s) for s in steps) if steps is not None else None,
        )


@dataclass(frozen=True)
class RunAttempt:  # pylint: disable=too-many-instance-attributes
    """One execution try of a test.

    Attributes:
        environment_idx: Index into the report's environment list.
        status: Actual outcome.
        expected_status: Outcome the test declared as expected.
        start_timestamp: When the attempt started.
        duration: How long the attempt took.
        timeout: The test's configured timeout.
        parallel_index: Index of the worker that ran the attempt.
        annotations: Test annotations at the time of the attempt.
        errors: Errors in reporting order, or None when there were none.
        stdout: Captured stdout, or None when the engine reported none.
        stderr: Captured stderr, or None when the engine reported none.
        steps: Top-level steps, or None when the engine reported none.
        attachments: References to stored attachments, in input order.
    """

    environment_idx: int
    status: TestStatus
    expected_status: TestStatus
    start_timestamp: TimestampMS
    duration: DurationMS
    timeout: DurationMS = DurationMS(0)
    parallel_index: int = 0
    annotations: tuple[Annotation, ...] = ()
    errors: tuple[TestError, ...] | None = None
    stdout: tuple[STDIOEntry, ...] | None = None
    stderr: tuple[STDIOEntry, ...] | None = None
    steps: tuple[TestStep, ...] | None = None
    attachments: tuple[AttachmentRef, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary, omitting unset fields."""

        def _list(items: tuple[Any, ...] | None) -> list[dict[str, Any]] | None:
            return [item.to_dict() for item in items] if items is not None else None

        return _compact(
            {
                "environment_idx": self.environment_idx,
                "status": self.status.value,
                "expected_status": self.expected_status.value,
                "start_timestamp": self.start_timestamp,
                "duration": self.duration,
                "timeout": self.timeout,
                "parallel_index": self.parallel_index,
                "annotations": _list(self.annotations),
                "errors": _list(self.errors),
                "stdout": _list(self.stdout),
                "stderr": _list(self.stderr),
                "steps": _list(self.steps),
                "attachments": _list(self.attachments),
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunAttempt:
        """Deserialize from a dictionary."""

        def _tuple(key: str, item_type: Any) -> Any:
            items = data.get(key)
            return tuple(item_type.from_dict(i) for i in items) if items is not None else None

        return cls(
            environment_idx=int(data["environment_idx"]),
            status=TestStatus(data["status"]),
            expected_status=TestStatus(data["expected_status"]),
            start_timestamp=TimestampMS(int(data["start_timestamp"])),
            duration=DurationMS(int(data["duration"])),
            timeout=DurationMS(int(data.get("timeout", 0))),
            parallel_index=int(data.get("parallel_index", 0)),
            annotations=_tuple("annotations", Annotation) or (),
            errors=_tuple("errors", TestError),
            stdout=_tuple("stdout", STDIOEntry),
            stderr=_tuple("stderr", STDIOEntry),
            steps=_tuple("steps", TestStep),
            attachments=_tuple("attachments", AttachmentRef) or (),
        )


@dataclass(frozen=True)
class Test:
    """A logical test and every attempt recorded for it.

    Attempts are in arrival order and are not deduplicated; picking "the"
    result of a test is left to consumers of the report.
    """

    __test__ = False

    title: str
    location: Location
    tags: tuple[str, ...] = ()
    attempts: tuple[RunAttempt, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary."""
        return {
            "title": self.title,
            "location": self.location.to_dict(),
            "tags": list(self.tags),
            "attempts": [a.to_dict() for a in self.attempts],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Test:
        """Deserialize from a dictionary."""
        return cls(
            title=data["title"],
            location=Location.from_dict(data["location"]),
            tags=tuple(data.get("tags", ())),
            attempts=tuple(RunAttempt.from_dict(a) for a in data.get("attempts", ())),
        )


@dataclass(frozen=True)
class Suite:
    """A materialized node of the suite forest."""

    type: SuiteType
    title: str
    location: Location | None = None
    suites: tuple[Suite, ...] = ()
    tests: tuple[Test, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary."""
        return _compact(
            {
                "type": self.type.value,
                "title": self.title,
                "location": self.location.to_dict() if self.location else None,
                "suites": [s.to_dict() for s in self.suites],
                "tests": [t.to_dict() for t in self.tests],
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Suite:
        """Deserialize from a dictionary."""
        return cls(
            type=SuiteType(data["type"]),
            title=data.get("title", ""),
            location=_location_or_none(data.get("location")),
            suites=tuple(cls.from_dict(s) for s in data.get("suites", ())),
            tests=tuple(Test.from_dict(t) for t in data.get("tests", ())),
        )


@dataclass(frozen=True)
class Environment:
    """A uniquely named execution configuration.

    Attributes:
        name: Name, unique within a report.
        metadata: Project metadata with raw source diffs stripped.
        system_data: Host operating system description.
        user_supplied_data: Environment-variable overlay and probed values.
    """

    name: str
    metadata: dict[str, Any] = field(default_factory=dict)
    system_data: dict[str, str] = field(default_factory=dict)
    user_supplied_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary."""
        return {
            "name": self.name,
            "metadata": self.metadata,
            "system_data": self.system_data,
            "user_supplied_data": self.user_supplied_data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Environment:
        """Deserialize from a dictionary."""
        return cls(
            name=data["name"],
            metadata=dict(data.get("metadata", {})),
            system_data=dict(data.get("system_data", {})),
            user_supplied_data=dict(data.get("user_supplied_data", {})),
        )


@dataclass(frozen=True)
class SourceFile:
    """Text of a source file referenced by the report."""

    file_path: str
    text: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary."""
        return {"file_path": self.file_path, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceFile:
        """Deserialize from a dictionary."""
        return cls(file_path=data["file_path"], text=data["text"])


@dataclass(frozen=True)
class UtilizationSummary:
    """Summary of utilization samples collected during a run.

    Attributes:
        min: Lowest sampled percentage.
        max: Highest sampled percentage.
        avg: Mean of all samples.
        count: Number of samples folded into the summary.
        timeline: (timestamp, percentage) points where the value changed by
            at least the sampler's precision.
    """

    min: float
    max: float
    avg: float
    count: int
    timeline: tuple[tuple[TimestampMS, float], ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary."""
        return {
            "min": self.min,
            "max": self.max,
            "avg": self.avg,
            "count": self.count,
            "timeline": [[ts, value] for ts, value in self.timeline],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UtilizationSummary:
        """Deserialize from a dictionary."""
        return cls(
            min=float(data["min"]),
            max=float(data["max"]),
            avg=float(data["avg"]),
            count=int(data["count"]),
            timeline=tuple(
                (TimestampMS(int(ts)), float(value)) for ts, value in data.get("timeline", ())
            ),
        )


@dataclass(frozen=True)
class Report:  # pylint: disable=too-many-instance-attributes
    """The root report document.

    Environment indices referenced by attempts are positions in
    ``environments``. Attachment ids referenced by attempts are the ids of
    the attachment blobs handed to the sink alongside the report.
    """

    category: str
    commit_id: CommitId
    environments: tuple[Environment, ...]
    suites: tuple[Suite, ...]
    duration: DurationMS
    start_timestamp: TimestampMS
    related_commit_ids: tuple[CommitId, ...] = ()
    config_path: str | None = None
    url: str | None = None
    unattributed_errors: tuple[TestError, ...] = ()
    sources: tuple[SourceFile, ...] = ()
    cpu_count: int | None = None
    cpu: UtilizationSummary | None = None
    ram_bytes: int | None = None
    ram: UtilizationSummary | None = None
    version: int = REPORT_VERSION

    def iter_tests(self) -> list[Test]:
        """Return every test in the forest, depth first, in document order."""
        tests: list[Test] = []

        def _visit(suite: Suite) -> None:
            tests.extend(suite.tests)
            for child in suite.suites:
                _visit(child)

        for suite in self.suites:
            _visit(suite)
        return tests

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary, omitting unset fields."""
        return _compact(
            {
                "version": self.version,
                "category": self.category,
                "commit_id": self.commit_id,
                "related_commit_ids": list(self.related_commit_ids),
                "config_path": self.config_path,
                "url": self.url,
                "environments": [e.to_dict() for e in self.environments],
                "suites": [s.to_dict() for s in self.suites],
                "unattributed_errors": [e.to_dict() for e in self.unattributed_errors],
                "duration": self.duration,
                "start_timestamp": self.start_timestamp,
                "sources": [s.to_dict() for s in self.sources],
                "cpu_count": self.cpu_count,
                "cpu": self.cpu.to_dict() if self.cpu else None,
                "ram_bytes": self.ram_bytes,
                "ram": self.ram.to_dict() if self.ram else None,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Report:
        """Deserialize from a dictionary."""
        cpu = data.get("cpu")
        ram = data.get("ram")
        return cls(
            version=int(data.get("version", REPORT_VERSION)),
            category=data["category"],
            commit_id=CommitId(data["commit_id"]),
            related_commit_ids=tuple(CommitId(c) for c in data.get("related_commit_ids", ())),
            config_path=data.get("config_path"),
            url=data.get("url"),
            environments=tuple(Environment.from_dict(e) for e in data.get("environments", ())),
            suites=tuple(Suite.from_dict(s) for s in data.get("suites", ())),
            unattributed_errors=tuple(
                TestError.from_dict(e) for e in data.get("unattributed_errors", ())
            ),
            duration=DurationMS(int(data["duration"])),
            start_timestamp=TimestampMS(int(data["start_timestamp"])),
            sources=tuple(SourceFile.from_dict(s) for s in data.get("sources", ())),
            cpu_count=data.get("cpu_count"),
            cpu=UtilizationSummary.from_dict(cpu) if cpu is not None else None,
            ram_bytes=data.get("ram_bytes"),
            ram=UtilizationSummary.from_dict(ram) if ram is not None else None,
        )
