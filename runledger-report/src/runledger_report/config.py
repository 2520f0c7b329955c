"""Reporter configuration loading.

Options come from three layers, highest precedence first: environment
variables, an optional YAML file, and built-in defaults.

Example YAML:
    reporter:
      endpoint: "https://reports.example.com"
      output_folder: "runledger-report"
      open: "on-failure"
      collect_browser_versions: false

Environment variables:
    RUNLEDGER_ENDPOINT, RUNLEDGER_ACCESS_TOKEN, RUNLEDGER_OUTPUT_DIR,
    RUNLEDGER_OPEN, RUNLEDGER_COLLECT_BROWSER_VERSIONS
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml

DEFAULT_OUTPUT_FOLDER = "runledger-report"

ENV_ENDPOINT = "RUNLEDGER_ENDPOINT"
ENV_ACCESS_TOKEN = "RUNLEDGER_ACCESS_TOKEN"
ENV_OUTPUT_DIR = "RUNLEDGER_OUTPUT_DIR"
ENV_OPEN = "RUNLEDGER_OPEN"
ENV_COLLECT_BROWSER_VERSIONS = "RUNLEDGER_COLLECT_BROWSER_VERSIONS"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


class OpenMode(str, Enum):
    """When to open the local report viewer after a run.

    Attributes:
        ALWAYS: Open after every run.
        NEVER: Never open.
        ON_FAILURE: Open only when the run failed.
    """

    ALWAYS = "always"
    NEVER = "never"
    ON_FAILURE = "on-failure"


@dataclass(frozen=True)
class ReporterOptions:
    """Reporter options.

    Attributes:
        endpoint: Base URL of the upload service.
        token: Upload access token.
        output_folder: Folder the report is written to.
        open: Viewer open policy.
        collect_browser_versions: Probe browser versions into environments.
    """

    endpoint: str | None = None
    token: str | None = None
    output_folder: str = DEFAULT_OUTPUT_FOLDER
    open: OpenMode = OpenMode.ON_FAILURE
    collect_browser_versions: bool = False

    def __post_init__(self) -> None:
        """Validate options."""
        if not str(self.output_folder).strip():
            raise ValueError("output_folder must not be empty")

    @property
    def upload_enabled(self) -> bool:
        """Return True when both an endpoint and a token are configured."""
        return bool(self.endpoint and self.token)

    def output_path(self, cwd: Path | None = None) -> Path:
        """Return the output folder resolved against ``cwd``."""
        return (cwd or Path.cwd()) / self.output_folder


def parse_bool(value: Any) -> bool:
    """Parse a boolean option from YAML or an environment variable.

    Raises:
        ValueError: If the value is not a recognized boolean.
    """
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def parse_open_mode(value: Any) -> OpenMode:
    """Parse an open policy.

    Raises:
        ValueError: If the value is not a known policy.
    """
    try:
        return OpenMode(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(m.value for m in OpenMode)
        raise ValueError(f"Invalid open mode {value!r}, expected one of: {choices}") from exc


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Reporter config not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Reporter config must be a YAML mapping")

    section = data.get("reporter", {})
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError("reporter section must be a mapping")
    return section


def load_reporter_options(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ReporterOptions:
    """Load reporter options from a YAML file and environment variables.

    Args:
        path: Optional YAML config file.
        env: Environment variables (defaults to ``os.environ``).

    Returns:
        The merged options.

    Raises:
        FileNotFoundError: If ``path`` is given and doesn't exist.
        ValueError: If a value is invalid or the file has unknown keys.
    """
    if env is None:
        env = os.environ

    values: dict[str, Any] = {}
    if path is not None:
        values = _load_yaml(Path(path))

    known = {"endpoint", "token", "output_folder", "open", "collect_browser_versions"}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown reporter options: {', '.join(unknown)}")

    # Environment overrides file
    if ENV_ENDPOINT in env:
        values["endpoint"] = env[ENV_ENDPOINT]
    if ENV_ACCESS_TOKEN in env:
        values["token"] = env[ENV_ACCESS_TOKEN]
    if ENV_OUTPUT_DIR in env:
        values["output_folder"] = env[ENV_OUTPUT_DIR]
    if ENV_OPEN in env:
        values["open"] = env[ENV_OPEN]
    if ENV_COLLECT_BROWSER_VERSIONS in env:
        values["collect_browser_versions"] = env[ENV_COLLECT_BROWSER_VERSIONS]

    return ReporterOptions(
        endpoint=values.get("endpoint") or None,
        token=values.get("token") or None,
        output_folder=str(values.get("output_folder", DEFAULT_OUTPUT_FOLDER)),
        open=parse_open_mode(values.get("open", OpenMode.ON_FAILURE.value)),
        collect_browser_versions=parse_bool(values.get("collect_browser_versions", False)),
    )
