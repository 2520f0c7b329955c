"""Root conftest.py for the runledger monorepo.

This provides shared pytest configuration across all packages. Tests in
modules that import ``unittest.mock`` are marked ``uses_mock`` so mocked and
real-collaborator tests can be selected separately.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.nodes import Item


# Add all package src directories to path for imports
PROJECT_ROOT = Path(__file__).parent
for pkg_dir in PROJECT_ROOT.glob("runledger-*/src"):
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))


def pytest_configure(config: Config) -> None:
    """Register custom markers.

    Args:
        config: pytest configuration object.
    """
    config.addinivalue_line(
        "markers",
        "uses_mock: Test uses mocking (auto-detected or manually marked)",
    )
    config.addinivalue_line(
        "markers",
        "slow: Slow-running test",
    )


def _module_uses_mock(item: Item) -> bool:
    module = getattr(item, "module", None)
    if module is None:
        return False
    return any(
        getattr(value, "__module__", "") == "unittest.mock" for value in vars(module).values()
    )


def pytest_collection_modifyitems(config: Config, items: list[Item]) -> None:
    """Mark tests whose module uses unittest.mock.

    Args:
        config: pytest configuration object.
        items: List of collected test items.
    """
    for item in items:
        if not item.get_closest_marker("uses_mock") and _module_uses_mock(item):
            item.add_marker(pytest.mark.uses_mock)


def pytest_report_header(config: Config) -> list[str]:
    """Add the suite name to the pytest header.

    Args:
        config: pytest configuration object.

    Returns:
        List of header lines.
    """
    return ["runledger monorepo test suite"]
