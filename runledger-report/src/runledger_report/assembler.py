"""Report assembly.

``build_report`` runs the whole normalization pass for one finished run:

1. Resolve the git worktree and the run's commit identity. This is the only
   step whose failure aborts the pass (``WorktreeError``).
2. Create one uniquely named environment per project and, when enabled,
   probe browser versions into them.
3. Fix each project's environment index, then normalize the live tree while
   the attachment store deduplicates every attachment.
4. Assemble the Report, collect sources and fold in telemetry.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Sequence

from runledger_core.types.attachment import Attachment
from runledger_core.types.common import CommitId, to_duration_ms, to_timestamp_ms
from runledger_core.types.live import (
    LiveConfig,
    LiveError,
    LiveProject,
    LiveResult,
    LiveSuite,
    LiveTest,
    RunResult,
)
from runledger_core.types.report import Environment, Report, Suite, TestError
from runledger_telemetry import SystemSampler

from runledger_report import ci
from runledger_report.attachments import AttachmentStore
from runledger_report.browsers import VersionProbe, collect_browser_versions, probe_browser_version
from runledger_report.environments import create_environments
from runledger_report.normalizer import NormalizationContext, TreeNormalizer
from runledger_report.sources import collect_sources
from runledger_report.worktree import GitWorktree

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "pytest"


@dataclass(frozen=True)
class BuildResult:
    """Outcome of one normalization pass.

    Attributes:
        report: The assembled report.
        attachments: Every distinct attachment the report references.
        inaccessible_attachment_paths: Attachment paths that could not be
            read, in the order they were found.
    """

    report: Report
    attachments: list[Attachment]
    inaccessible_attachment_paths: list[str]


async def build_report(
    config: LiveConfig,
    root_suite: LiveSuite,
    results: Mapping[LiveTest, Sequence[LiveResult]],
    run_result: RunResult,
    unattributed_errors: Sequence[LiveError] = (),
    *,
    sampler: SystemSampler | None = None,
    collect_browsers: bool = False,
    related_commit_ids: Sequence[str] = (),
    probe: VersionProbe = probe_browser_version,
    category: str = DEFAULT_CATEGORY,
    env: Mapping[str, str] | None = None,
) -> BuildResult:
    """Normalize a finished run into a report.

    Args:
        config: Engine configuration from run begin.
        root_suite: Root of the live suite tree.
        results: Recorded results per test, in arrival order.
        run_result: Final run status and timing.
        unattributed_errors: Run-level errors not tied to a test.
        sampler: Telemetry sampler whose readings are folded in.
        collect_browsers: Probe browser versions into environments.
        related_commit_ids: Commits related to the run, supplied by the
            caller (for example the base of a pull request).
        probe: Browser version probe.
        category: Report category.
        env: Environment variables (defaults to ``os.environ``).

    Returns:
        The report, its attachments and the inaccessible paths.

    Raises:
        WorktreeError: If no git repository encloses the run's root
            directory.
    """
    if env is None:
        env = os.environ

    with GitWorktree.create(config.root_dir) as worktree:
        commit_id = worktree.head_commit_id()
        config_path = worktree.git_path(config.config_file) if config.config_file else None

        projects = list(config.projects) or [LiveProject(name="")]
        environments = create_environments(projects, env)
        if collect_browsers:
            try:
                environments = await collect_browser_versions(environments, probe)
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("Failed to resolve browser versions: %s", exc)

        context = NormalizationContext(
            worktree=worktree,
            attachments=AttachmentStore(),
            environment_indices={project: idx for idx, project in enumerate(environments)},
        )
        normalizer = TreeNormalizer(context, results)
        suites = await normalizer.suites(root_suite)
        errors = [normalizer.error(error) for error in unattributed_errors]

        report = assemble_report(
            worktree,
            commit_id=commit_id,
            environments=list(environments.values()),
            suites=suites,
            run_result=run_result,
            unattributed_errors=errors,
            related_commit_ids=related_commit_ids,
            config_path=config_path,
            category=category,
            sampler=sampler,
            env=env,
        )
    return BuildResult(
        report=report,
        attachments=context.attachments.attachments,
        inaccessible_attachment_paths=context.attachments.inaccessible_paths,
    )


def assemble_report(
    worktree: GitWorktree,
    *,
    commit_id: CommitId,
    environments: Sequence[Environment],
    suites: Sequence[Suite],
    run_result: RunResult,
    unattributed_errors: Sequence[TestError] = (),
    related_commit_ids: Sequence[str] = (),
    config_path: str | None = None,
    category: str = DEFAULT_CATEGORY,
    sampler: SystemSampler | None = None,
    env: Mapping[str, str] | None = None,
) -> Report:
    """Combine normalized parts into one immutable report.

    Args:
        worktree: Worktree used for source collection.
        commit_id: The run's commit.
        environments: Environments, indexed by attempts.
        suites: The normalized suite forest.
        run_result: Final run status and timing.
        unattributed_errors: Normalized run-level errors.
        related_commit_ids: Commits related to the run.
        config_path: Worktree-relative engine config path.
        category: Report category.
        sampler: Telemetry sampler whose readings are folded in.
        env: Environment variables used for CI detection.

    Returns:
        The finished report.
    """
    report = Report(
        category=category,
        commit_id=commit_id,
        environments=tuple(environments),
        suites=tuple(suites),
        duration=to_duration_ms(run_result.duration),
        start_timestamp=to_timestamp_ms(run_result.start_time),
        related_commit_ids=tuple(CommitId(c) for c in related_commit_ids),
        config_path=config_path,
        url=ci.run_url(env),
        unattributed_errors=tuple(unattributed_errors),
    )
    report = collect_sources(worktree, report)
    if sampler is not None:
        report = sampler.enrich(report)
    return report
