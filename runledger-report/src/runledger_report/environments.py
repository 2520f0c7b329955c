"""Environment creation and naming.

One Environment is created per engine project. Names must be unique within
a report: a project whose default name was already taken gets ``-2``,
``-3``, ... appended in order of appearance.
"""

from __future__ import annotations

import os
import platform
from typing import Any, Mapping, Sequence

from runledger_core.types.live import LiveProject
from runledger_core.types.report import Environment

ANONYMOUS_ENVIRONMENT = "anonymous"
"""Name used for projects whose name is blank."""

ENV_OVERLAY_PREFIX = "RUNLEDGER_ENV_"
"""Environment variables with this prefix are folded into user-supplied data."""

STRIPPED_METADATA_KEYS = ("git_diff", "gitDiff")
"""Metadata keys holding raw source diffs; never copied into a report."""


def environment_overlay(env: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect the user-supplied environment overlay.

    Args:
        env: Environment variables (defaults to ``os.environ``).

    Returns:
        Prefixed variables with the prefix stripped and keys lowercased.
    """
    if env is None:
        env = os.environ
    return {
        key[len(ENV_OVERLAY_PREFIX):].lower(): value
        for key, value in env.items()
        if key.startswith(ENV_OVERLAY_PREFIX) and len(key) > len(ENV_OVERLAY_PREFIX)
    }


def system_data() -> dict[str, str]:
    """Describe the host operating system."""
    return {
        "os_name": platform.system(),
        "os_version": platform.release(),
        "os_arch": platform.machine(),
    }


def json_value(value: Any) -> Any:
    """Convert a metadata value into a fresh JSON-like value.

    Mappings become dicts with string keys, sequences and sets become lists
    (sets sorted by ``repr`` for a stable order), JSON scalars are kept and
    anything else is replaced by its ``str()``.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Mapping):
        return {str(key): json_value(item) for key, item in value.items()}
    if isinstance(value, (set, frozenset)):
        return [json_value(item) for item in sorted(value, key=repr)]
    if isinstance(value, (list, tuple)):
        return [json_value(item) for item in value]
    return str(value)


def strip_metadata(metadata: Mapping[str, Any]) -> dict[str, Any]:
    """Copy project metadata as JSON-like values and drop raw diff fields.

    Args:
        metadata: Project metadata owned by the caller.

    Returns:
        An independent copy safe to embed in a report.
    """
    copied = {str(key): json_value(value) for key, value in metadata.items()}
    for key in STRIPPED_METADATA_KEYS:
        copied.pop(key, None)
    return copied


def create_environments(
    projects: Sequence[LiveProject],
    env: Mapping[str, str] | None = None,
) -> dict[LiveProject, Environment]:
    """Create one uniquely named Environment per project.

    Args:
        projects: Projects in configuration order.
        env: Environment variables for the overlay (defaults to ``os.environ``).

    Returns:
        Environments keyed by project, in project order.
    """
    overlay = environment_overlay(env)
    host = system_data()
    taken: set[str] = set()
    result: dict[LiveProject, Environment] = {}

    for project in projects:
        default_name = project.name if project.name.strip() else ANONYMOUS_ENVIRONMENT

        name = default_name
        suffix = 2
        while name in taken:
            name = f"{default_name}-{suffix}"
            suffix += 1
        taken.add(default_name)
        taken.add(name)

        result[project] = Environment(
            name=name,
            metadata=strip_metadata(project.metadata),
            system_data=dict(host),
            user_supplied_data=dict(overlay),
        )
    return result
