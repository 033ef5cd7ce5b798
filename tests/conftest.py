from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.repo_builder import RepoBuilder
from tests._fixtures.sample_project import SAMPLE_FILES


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def sample_project(repo_builder: RepoBuilder) -> Path:
    """Write the Express + React sample project and return its root."""
    repo_builder.write(SAMPLE_FILES)
    return repo_builder.path()
