"""Event-intake reporter.

The Reporter receives the test engine's lifecycle notifications and turns
the finished run into a written report. Callbacks arrive in this order:

    on_begin(config, suite)
    on_test_begin(test) / on_test_end(test, result) / on_error(error), any
        interleaving across tests, zero or more results per test
    on_end(result)
    on_exit()

Telemetry sampling runs in the background between ``on_begin`` and
``on_end``. ``on_end`` builds and writes the report; ``on_exit`` uploads it
and applies the viewer open policy.

Example:
    reporter = Reporter(load_reporter_options("runledger.yaml"))
    await reporter.on_begin(config, root_suite)
    ...
    await reporter.on_end(run_result)
    await reporter.on_exit()
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Mapping, Sequence

from runledger_core.errors import UploadError, WorktreeError
from runledger_core.interfaces.sink import ReportSink, ReportUploader
from runledger_core.types.attachment import Attachment
from runledger_core.types.live import LiveConfig, LiveError, LiveResult, LiveSuite, LiveTest, RunResult
from runledger_core.types.report import Report
from runledger_telemetry import SamplingHandle, SystemSampler

from runledger_report import ci
from runledger_report.assembler import DEFAULT_CATEGORY, build_report
from runledger_report.browsers import VersionProbe, probe_browser_version
from runledger_report.config import ReporterOptions
from runledger_report.uploader import HttpReportUploader
from runledger_report.viewer import open_report, should_open, show_command
from runledger_report.writer import ReportWriter

logger = logging.getLogger(__name__)


class Reporter:  # pylint: disable=too-many-instance-attributes
    """Collects a run's events and produces its report.

    Args:
        options: Reporter options (defaults apply when omitted).
        category: Report category.
        sampler: Telemetry sampler (created at run begin if not given).
        sink: Where the report is written (local folder by default).
        uploader: Upload client (created from the options when both an
            endpoint and a token are configured).
        browser_probe: Browser version probe.
        related_commit_ids: Commits related to the run, recorded in the
            report as given.
        env: Environment variables (defaults to ``os.environ``).
        cwd: Directory the output folder is resolved against.
        interactive: Whether the viewer may be opened (defaults to stdin
            being a terminal).
    """

    def __init__(
        self,
        options: ReporterOptions | None = None,
        *,
        category: str = DEFAULT_CATEGORY,
        sampler: SystemSampler | None = None,
        sink: ReportSink | None = None,
        uploader: ReportUploader | None = None,
        browser_probe: VersionProbe = probe_browser_version,
        related_commit_ids: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
        interactive: bool | None = None,
    ) -> None:
        self._options = options or ReporterOptions()
        self._category = category
        self._sampler = sampler
        self._sink: ReportSink = sink or ReportWriter()
        if uploader is None and self._options.endpoint and self._options.token:
            uploader = HttpReportUploader(self._options.endpoint, self._options.token)
        self._uploader = uploader
        self._browser_probe = browser_probe
        self._related_commit_ids = tuple(related_commit_ids)
        self._env: Mapping[str, str] = os.environ if env is None else env
        self._cwd = cwd or Path.cwd()
        self._interactive = interactive

        self._config: LiveConfig | None = None
        self._root_suite: LiveSuite | None = None
        self._results: dict[LiveTest, list[LiveResult]] = {}
        self._errors: list[LiveError] = []
        self._handle: SamplingHandle | None = None
        self._run_status: str | None = None
        self._report: Report | None = None
        self._attachments: list[Attachment] = []

    @property
    def options(self) -> ReporterOptions:
        """Reporter options."""
        return self._options

    @property
    def output_folder(self) -> Path:
        """Folder the report is written to."""
        return self._options.output_path(self._cwd)

    @property
    def report(self) -> Report | None:
        """The written report, once ``on_end`` has succeeded."""
        return self._report

    def prints_to_stdio(self) -> bool:
        """Return False: this reporter only logs."""
        return False

    async def on_begin(self, config: LiveConfig, suite: LiveSuite) -> None:
        """Record the run's configuration and start telemetry sampling."""
        self._config = config
        self._root_suite = suite
        if self._sampler is None:
            self._sampler = SystemSampler()
        self._handle = self._sampler.start()

    def on_test_begin(self, test: LiveTest) -> None:
        """Accept a test-begin notification; nothing is recorded."""

    def on_test_end(self, test: LiveTest, result: LiveResult) -> None:
        """Record one attempt's result, in arrival order."""
        results = self._results.setdefault(test, [])
        if any(existing is result for existing in results):
            logger.debug("Duplicate result for %r ignored", test.title)
            return
        results.append(result)

    def on_error(self, error: LiveError) -> None:
        """Record a run-level error not tied to a test."""
        self._errors.append(error)

    async def on_end(self, result: RunResult) -> Report | None:
        """Build and write the report for the finished run.

        Args:
            result: Final run status and timing.

        Returns:
            The written report, or None if no git repository was found.

        Raises:
            RuntimeError: If called before ``on_begin``.
        """
        if self._config is None or self._root_suite is None:
            raise RuntimeError("on_end called before on_begin")

        if self._handle is not None:
            await self._handle.stop()
            self._handle = None
        if self._sampler is not None:
            self._sampler.sample()
        self._run_status = result.status

        try:
            built = await build_report(
                self._config,
                self._root_suite,
                self._results,
                result,
                self._errors,
                sampler=self._sampler,
                collect_browsers=self._options.collect_browser_versions,
                related_commit_ids=self._related_commit_ids,
                probe=self._browser_probe,
                category=self._category,
                env=self._env,
            )
        except WorktreeError as exc:
            logger.warning("%s", exc)
            logger.error("Report is NOT generated.")
            return None

        for path in dict.fromkeys(built.inaccessible_attachment_paths):
            logger.warning("Cannot access attachment, skipping: %s", path)

        self._attachments = await self._sink.write(
            built.report, built.attachments, self.output_folder
        )
        self._report = built.report
        return built.report

    async def on_exit(self) -> None:
        """Upload the written report and apply the viewer open policy."""
        if self._report is None:
            return

        if self._uploader is not None:
            try:
                await self._uploader.upload(self._report.to_dict(), self._attachments)
            except UploadError as exc:
                logger.warning("Report upload failed, local copy kept: %s", exc)

        interactive = self._interactive
        if interactive is None:
            interactive = sys.stdin is not None and sys.stdin.isatty()
        if should_open(
            self._options.open,
            self._run_status or "passed",
            interactive=interactive,
            ci=ci.is_ci(self._env),
        ):
            open_report(self.output_folder)
        else:
            logger.info(
                "To open the report, run: %s", show_command(self.output_folder, self._cwd)
            )
