"""Continuous integration environment detection."""

from __future__ import annotations

import os
from typing import Mapping


def is_ci(env: Mapping[str, str] | None = None) -> bool:
    """Return True when running under a CI service."""
    if env is None:
        env = os.environ
    return env.get("CI", "").strip().lower() not in ("", "0", "false", "no")


def run_url(env: Mapping[str, str] | None = None) -> str | None:
    """Return the URL of the current CI run, if one can be derived.

    Supports GitHub Actions, GitLab CI, Jenkins, Azure Pipelines, CircleCI
    and Buildkite.

    Args:
        env: Environment variables (defaults to ``os.environ``).

    Returns:
        The run URL, or None outside a recognized CI service.
    """
    if env is None:
        env = os.environ

    if env.get("GITHUB_ACTIONS") and env.get("GITHUB_REPOSITORY") and env.get("GITHUB_RUN_ID"):
        server = env.get("GITHUB_SERVER_URL", "https://github.com").rstrip("/")
        url = f"{server}/{env['GITHUB_REPOSITORY']}/actions/runs/{env['GITHUB_RUN_ID']}"
        attempt = env.get("GITHUB_RUN_ATTEMPT")
        if attempt:
            url += f"/attempts/{attempt}"
        return url

    if env.get("GITLAB_CI") and env.get("CI_JOB_URL"):
        return env["CI_JOB_URL"]

    if env.get("TF_BUILD") and env.get("SYSTEM_TEAMFOUNDATIONCOLLECTIONURI"):
        collection = env["SYSTEM_TEAMFOUNDATIONCOLLECTIONURI"].rstrip("/")
        project = env.get("SYSTEM_TEAMPROJECT", "")
        build_id = env.get("BUILD_BUILDID", "")
        return f"{collection}/{project}/_build/results?buildId={build_id}"

    for key in ("CIRCLE_BUILD_URL", "BUILDKITE_BUILD_URL", "BUILD_URL"):
        if env.get(key):
            return env[key]

    return None
