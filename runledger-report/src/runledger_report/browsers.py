"""Optional browser version probing.

When enabled, each environment's browser is asked for its version and the
answer is recorded as ``user_supplied_data["browser"]``. Probing is
best-effort: every environment is probed concurrently, and a failure for one
environment only omits that environment's field.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import re
import shutil
from typing import Awaitable, Callable, Mapping

from runledger_core.types.live import LiveProject
from runledger_core.types.report import Environment

logger = logging.getLogger(__name__)

DEFAULT_BROWSER = "chromium"

# Executable names tried for each browser or channel, in order
BROWSER_EXECUTABLES: dict[str, tuple[str, ...]] = {
    "chromium": ("chromium", "chromium-browser"),
    "chrome": ("google-chrome", "google-chrome-stable", "chrome"),
    "msedge": ("microsoft-edge", "microsoft-edge-stable", "msedge"),
    "firefox": ("firefox",),
    "webkit": ("webkit", "MiniBrowser"),
}

_VERSION_RE = re.compile(r"\d+(?:\.\d+)+")

VersionProbe = Callable[[LiveProject], Awaitable[str | None]]


def resolve_executable(project: LiveProject) -> str | None:
    """Find the browser executable a project runs.

    Raises:
        ValueError: If the project names an unsupported browser.
    """
    explicit = project.use.get("executable_path")
    if explicit:
        return str(explicit)

    browser = project.use.get("browser_name", DEFAULT_BROWSER)
    channel = project.use.get("channel")
    if browser not in ("chromium", "firefox", "webkit"):
        raise ValueError(f"Unsupported browser: {browser}")

    for candidate in BROWSER_EXECUTABLES.get(channel or browser, (channel or browser,)):
        found = shutil.which(candidate)
        if found:
            return found
    return None


async def probe_browser_version(project: LiveProject, timeout: float = 10.0) -> str | None:
    """Ask a project's browser for its version.

    Args:
        project: The project to probe.
        timeout: Seconds to wait for the browser to answer.

    Returns:
        ``"<channel or browser> <version>"``, or None if the browser could
        not be found or did not report a version.

    Raises:
        ValueError: If the project names an unsupported browser.
        OSError: If the executable cannot be launched.
        asyncio.TimeoutError: If the browser does not answer in time.
    """
    executable = resolve_executable(project)
    if executable is None:
        return None

    proc = await asyncio.create_subprocess_exec(
        executable,
        "--version",
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
    )
    try:
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise
    if proc.returncode != 0:
        return None

    match = _VERSION_RE.search(stdout.decode("utf-8", errors="replace"))
    if match is None:
        return None
    name = str(project.use.get("channel") or project.use.get("browser_name", DEFAULT_BROWSER))
    return f"{name.lower().strip()} {match.group(0)}"


async def collect_browser_versions(
    environments: Mapping[LiveProject, Environment],
    probe: VersionProbe = probe_browser_version,
) -> dict[LiveProject, Environment]:
    """Probe every project's browser and record the versions.

    Args:
        environments: Environments keyed by project.
        probe: Version probe, called once per project.

    Returns:
        Environments in the same order, with ``browser`` added to the
        user-supplied data where probing succeeded.
    """
    projects = list(environments)
    versions = await asyncio.gather(
        *(probe(project) for project in projects), return_exceptions=True
    )

    result: dict[LiveProject, Environment] = {}
    for project, version in zip(projects, versions):
        environment = environments[project]
        if isinstance(version, BaseException):
            logger.warning(
                "Failed to resolve browser version for %s: %s", environment.name, version
            )
        elif version is not None:
            environment = dataclasses.replace(
                environment,
                user_supplied_data={**environment.user_supplied_data, "browser": version},
            )
        result[project] = environment
    return result
