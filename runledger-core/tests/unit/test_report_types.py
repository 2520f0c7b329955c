"""Tests for report document types."""

import pytest

from runledger_core.types.common import AttachmentId, CommitId, DurationMS, TimestampMS
from runledger_core.types.report import (
    REPORT_VERSION,
    AttachmentRef,
    Environment,
    Location,
    Report,
    RunAttempt,
    STDIOEntry,
    Suite,
    SuiteType,
    Test,
    TestError,
    TestStatus,
    TestStep,
    UtilizationSummary,
)


def make_attempt(**kwargs: object) -> RunAttempt:
    """Create an attempt with sensible defaults."""
    defaults: dict[str, object] = {
        "environment_idx": 0,
        "status": TestStatus.PASSED,
        "expected_status": TestStatus.PASSED,
        "start_timestamp": TimestampMS(1000),
        "duration": DurationMS(20),
    }
    defaults.update(kwargs)
    return RunAttempt(**defaults)  # type: ignore[arg-type]


class TestSTDIOEntry:
    """Tests for STDIOEntry."""

    def test_text_output(self) -> None:
        """Verify text output is kept as text."""
        entry = STDIOEntry.from_output("hello\n")
        assert entry.text == "hello\n"
        assert entry.buffer is None
        assert entry.to_dict() == {"text": "hello\n"}

    def test_binary_output(self) -> None:
        """Verify binary output is base64 encoded."""
        entry = STDIOEntry.from_output(b"\x00\x01")
        assert entry.text is None
        assert entry.buffer == "AAE="


class TestTestError:
    """Tests for TestError."""

    def test_unset_fields_omitted(self) -> None:
        """Verify only set fields are serialized."""
        error = TestError(message="boom", location=Location("a.py", 3, 1))
        assert error.to_dict() == {
            "message": "boom",
            "location": {"file": "a.py", "line": 3, "column": 1},
        }


class TestTestStep:
    """Tests for TestStep."""

    def test_leaf_step_omits_children_and_error(self) -> None:
        """Verify a step without children has no steps or error keys."""
        data = TestStep(title="click", duration=DurationMS(5)).to_dict()
        assert data == {"title": "click", "duration": 5}

    def test_nested_steps_roundtrip(self) -> None:
        """Verify a step tree survives serialization."""
        step = TestStep(
            title="outer",
            duration=DurationMS(10),
            steps=(TestStep(title="inner", duration=DurationMS(4)),),
        )
        assert TestStep.from_dict(step.to_dict()) == step


class TestRunAttempt:
    """Tests for RunAttempt."""

    def test_empty_optional_lists_omitted(self) -> None:
        """Verify errors, output and steps are absent when unset."""
        data = make_attempt().to_dict()
        assert "errors" not in data
        assert "stdout" not in data
        assert "stderr" not in data
        assert "steps" not in data
        assert data["status"] == "passed"

    def test_roundtrip(self) -> None:
        """Verify a fully populated attempt survives serialization."""
        attempt = make_attempt(
            status=TestStatus.TIMED_OUT,
            errors=(TestError(message="timeout"),),
            stdout=(STDIOEntry(text="log"),),
            attachments=(AttachmentRef(AttachmentId("abc"), "trace", "application/zip"),),
        )
        assert RunAttempt.from_dict(attempt.to_dict()) == attempt


class TestReport:
    """Tests for Report."""

    @pytest.fixture
    def report(self) -> Report:
        """Create a small report."""
        test = Test(
            title="adds",
            location=Location("tests/test_math.py", 4, 1),
            tags=("smoke",),
            attempts=(make_attempt(status=TestStatus.FAILED), make_attempt()),
        )
        inner = Suite(type=SuiteType.SUITE, title="math", tests=(test,))
        return Report(
            category="pytest",
            commit_id=CommitId("0" * 40),
            environments=(Environment(name="default"),),
            suites=(
                Suite(
                    type=SuiteType.FILE,
                    title="tests/test_math.py",
                    location=Location("tests/test_math.py", 1, 1),
                    suites=(inner,),
                ),
            ),
            duration=DurationMS(100),
            start_timestamp=TimestampMS(1000),
            cpu=UtilizationSummary(min=1.0, max=5.0, avg=3.0, count=2, timeline=((1000, 1.0),)),
        )

    def test_iter_tests(self, report: Report) -> None:
        """Verify tests are found in nested suites."""
        assert [t.title for t in report.iter_tests()] == ["adds"]

    def test_version_written(self, report: Report) -> None:
        """Verify the schema version is serialized."""
        assert report.to_dict()["version"] == REPORT_VERSION

    def test_unset_fields_omitted(self, report: Report) -> None:
        """Verify optional run-level fields are absent when unset."""
        data = report.to_dict()
        assert "url" not in data
        assert "config_path" not in data
        assert "ram" not in data

    def test_roundtrip(self, report: Report) -> None:
        """Verify the report survives serialization."""
        assert Report.from_dict(report.to_dict()) == report
