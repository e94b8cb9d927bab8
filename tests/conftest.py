import os
import shutil
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'prove' and tests/ helpers importable as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from prove.core.config import clear_all_caches
from prove.core.utils.log_config import reset_logging
from prove.core.utils.paths import PROJECT_ROOT_ENV
from helpers.git_helpers import git_commit, git_init

GIT_AVAILABLE = shutil.which("git") is not None

# Variables that change mode resolution, CI detection or config loading. A
# developer shell or CI runner exporting any of them must not leak into tests.
_AMBIENT_ENV_KEYS = (
    "CI",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "JENKINS_URL",
    "BUILDKITE",
    "CIRCLECI",
    "GITHUB_PR_LABELS",
    "PR_LABELS",
    "GITHUB_PR_TITLE",
    "PR_TITLE",
)


def pytest_configure(config):  # type: ignore[no-untyped-def]
    config.addinivalue_line("markers", "requires_git: test needs a git executable on PATH")


def pytest_collection_modifyitems(config, items):  # type: ignore[no-untyped-def]
    if GIT_AVAILABLE:
        return
    skip_git = pytest.mark.skip(reason="git executable not available")
    for item in items:
        if "requires_git" in item.keywords:
            item.add_marker(skip_git)


@pytest.fixture(autouse=True)
def _isolate_prove_state(monkeypatch):
    """Fresh caches, clean PROVE_* / CI environment and default logging for every test."""
    for key in list(os.environ):
        if key.startswith("PROVE_") or key in _AMBIENT_ENV_KEYS:
            monkeypatch.delenv(key, raising=False)
    clear_all_caches()
    yield
    clear_all_caches()
    reset_logging()


@pytest.fixture
def isolated_project_env(tmp_path, monkeypatch):
    """
    Isolated project environment: a real git repository on ``main`` with one commit.

    PROVE_PROJECT_ROOT points at it and the working directory is changed into
    it, so CLI commands and path resolution never touch the developer's repo.
    """
    if not GIT_AVAILABLE:
        pytest.skip("git executable not available")

    git_init(tmp_path, "main")
    (tmp_path / "README.md").write_text("# Test Project\n", encoding="utf-8")
    git_commit(tmp_path, "chore: initial commit [T-2024-01-01-1] [MODE:F]")

    (tmp_path / ".prove" / "config").mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv(PROJECT_ROOT_ENV, str(tmp_path))
    monkeypatch.chdir(tmp_path)
    clear_all_caches()
    return tmp_path
