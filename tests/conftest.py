"""
pytest configuration and fixtures for Safe Plex Reboot tests.

This module provides shared fixtures and test doubles: a configuration factory,
a scripted session checker, a recording rebooter and a fake clock.
"""

import logging
import dataclasses
from pathlib import Path
from typing import Any, List, Optional, Union

import pytest

from safe_plex_reboot.config import GuardConfig
from safe_plex_reboot.rebooter import Rebooter
from safe_plex_reboot.services.base import ServiceChecker, ServiceConnectionError

PLEX_URL = "http://plex.test:32400"
PLEX_TOKEN = "test-plex-token"

SESSIONS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<MediaContainer size="{size}">
{entries}
</MediaContainer>
"""

VIDEO_ENTRY = (
    '<Video ratingKey="{n}" title="Movie {n}" type="movie">'
    '<User id="1" title="viewer{n}"/>'
    '<Player state="playing" title="TV"/>'
    '</Video>'
)


def sessions_xml(videos: int = 0, tracks: int = 0) -> str:
    """Build a /status/sessions payload with the given entries."""
    entries = [VIDEO_ENTRY.format(n=n) for n in range(videos)]
    entries += [f'<Track ratingKey="t{n}" title="Song {n}"/>' for n in range(tracks)]
    return SESSIONS_XML.format(size=videos + tracks, entries="\n".join(entries))


class ScriptedChecker(ServiceChecker):
    """Session checker that replays a list of counts and failures."""

    def __init__(self, config: GuardConfig, results: List[Union[int, Exception]]):
        super().__init__(config)
        self.results = list(results)
        self.connection_error: Optional[Exception] = None
        self.calls = 0

    def test_connection(self) -> None:
        if self.connection_error:
            raise self.connection_error

    def check_activity(self) -> int:
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class RecordingRebooter(Rebooter):
    """Rebooter that records calls instead of rebooting."""

    def __init__(self, result: bool = True):
        self.result = result
        self.calls = 0

    def reboot(self) -> bool:
        self.calls += 1
        return self.result


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.start = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    @property
    def elapsed(self) -> float:
        return self.now - self.start


def connection_failure() -> ServiceConnectionError:
    return ServiceConnectionError("Plex API request failed: connection refused")


@pytest.fixture
def make_config(tmp_path: Path):
    """Fixture providing a GuardConfig factory."""
    def factory(**overrides: Any) -> GuardConfig:
        config = GuardConfig(
            token=PLEX_TOKEN,
            plex_url=PLEX_URL,
            check_interval=5,
            max_wait_time=10,
            log_file=str(tmp_path / "logs" / "update.log"),
        )
        return dataclasses.replace(config, **overrides)
    return factory


@pytest.fixture
def config(make_config) -> GuardConfig:
    """Fixture providing the default test configuration."""
    return make_config()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rebooter() -> RecordingRebooter:
    return RecordingRebooter()


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "scenario: end-to-end decision loop scenario"
    )


@pytest.fixture(autouse=True)
def _setup_testing_environment(monkeypatch):
    """Automatically set up testing environment for all tests."""
    monkeypatch.setenv("TESTING", "true")
    monkeypatch.setenv("TZ", "UTC")

    # Undo handlers installed by setup_logging so caplog keeps working
    app_logger = logging.getLogger("safe_plex_reboot")
    saved = (list(app_logger.handlers), app_logger.propagate, app_logger.level)

    yield

    handlers, propagate, level = saved
    app_logger.handlers = handlers
    app_logger.propagate = propagate
    app_logger.setLevel(level)
