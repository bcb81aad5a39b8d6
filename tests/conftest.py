"""
Pytest configuration for coverage-lens tests.
"""

import shutil
from pathlib import Path

import pytest

from coverage_lens.core.config import LensConfig, get_default_config


@pytest.fixture(scope="session")
def test_fixtures_dir() -> Path:
    """Provide path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def sample_report_text(test_fixtures_dir: Path) -> str:
    return (test_fixtures_dir / "clover.xml").read_text(encoding="utf-8")


@pytest.fixture
def project_dir(tmp_path: Path, test_fixtures_dir: Path) -> Path:
    """A working directory with a report at the default location."""
    coverage_dir = tmp_path / "coverage"
    coverage_dir.mkdir()
    shutil.copy(test_fixtures_dir / "clover.xml", coverage_dir / "clover.xml")
    return tmp_path


@pytest.fixture
def report_path(project_dir: Path) -> Path:
    return project_dir / "coverage" / "clover.xml"


@pytest.fixture
def lens_config() -> LensConfig:
    return get_default_config()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep a developer's report override out of the tests."""
    monkeypatch.delenv("COVERAGE_REPORT_FILE_PATH", raising=False)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "mcp: marks tests as MCP-specific tests"
    )
