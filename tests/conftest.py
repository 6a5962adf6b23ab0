"""
Pytest configuration and fixtures.

Integration tests run against the real GitHub API and must not log any
WARNING from the migration code: a warning there means the migrator had to
repair or skip something it should have handled cleanly. Unit tests may log
warnings freely.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from typing_extensions import override

import pytest

if TYPE_CHECKING:
    from collections.abc import Generator

_captured_warnings: dict[str, list[logging.LogRecord]] = {}


class WarningCollector(logging.Handler):
    """Collects WARNING and above records for one test."""

    def __init__(self, records: list[logging.LogRecord]) -> None:
        super().__init__(level=logging.WARNING)
        self.records: list[logging.LogRecord] = records

    @override
    def emit(self, record: logging.LogRecord) -> None:
        if record.name.startswith("motherforker"):
            self.records.append(record)


@pytest.fixture(autouse=True)
def collect_warnings_for_integration_tests(request: pytest.FixtureRequest) -> Generator[None]:
    if request.node.get_closest_marker("integration") is None:
        yield
        return

    records = _captured_warnings.setdefault(request.node.nodeid, [])
    handler = WarningCollector(records)
    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    try:
        yield
    finally:
        root_logger.removeHandler(handler)


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo[None]) -> Generator[None]:  # type: ignore[misc]
    """Turn a passing integration test into a failure if the migrator logged warnings."""
    outcome = yield
    report = outcome.get_result()

    if call.when != "call":
        return
    records = _captured_warnings.pop(item.nodeid, [])
    if report.outcome == "passed" and records:
        report.outcome = "failed"
        report.longrepr = f"Integration test failed: {len(records)} warning(s) logged:\n" + "\n".join(
            f"  - {record.levelname}: {record.getMessage()} (in {record.name}:{record.lineno})" for record in records
        )
