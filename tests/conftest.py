"""
Shared fixtures for dep-mole tests.
"""

import json
from pathlib import Path
from typing import Dict, Optional, Tuple

import pytest

from dep_mole.analyzer import AnalysisResult, UsageAnalyzer
from dep_mole.cli_config import reset_config

SAMPLE_MANIFEST = {
    "name": "sample-app",
    "version": "0.1.0",
    "dependencies": {
        "react": "^18.2.0",
        "lodash": "^4.17.21",
        "left-pad": "1.3.0",
        "chalk": "^5.3.0",
    },
    "devDependencies": {
        "jest": "^29.0.0",
        "eslint": "^8.50.0",
        "@types/node": "^20.0.0",
    },
    "peerDependencies": {
        "react-dom": "^18.2.0",
        "react": "^18.2.0",
    },
}

SAMPLE_INSTALLED = ["react", "lodash", "left-pad", "jest", "@types/node", "react-dom"]


class FakeAnalyzer(UsageAnalyzer):
    """Usage analyzer returning a canned result."""

    def __init__(
        self,
        unused_prod: Tuple[str, ...] = (),
        unused_dev: Tuple[str, ...] = (),
        missing: Optional[Dict[str, list]] = None,
        error: Optional[Exception] = None,
    ):
        self.result = AnalysisResult(
            unused_prod=unused_prod, unused_dev=unused_dev, missing=missing or {}
        )
        self.error = error
        self.calls = []

    async def analyze(self, project_root: Path) -> AnalysisResult:
        self.calls.append(project_root)
        if self.error is not None:
            raise self.error
        return self.result


def make_project(root: Path, manifest: Optional[dict], installed=()) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    if manifest is not None:
        (root / "package.json").write_text(json.dumps(manifest, indent=2))
    for name in installed:
        (root / "node_modules" / name).mkdir(parents=True, exist_ok=True)
    return root


@pytest.fixture(autouse=True)
def fresh_config():
    """Every test starts from default configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    return tmp_path


@pytest.fixture
def sample_project(temp_dir):
    """Project with prod, dev and peer deps, partly installed."""
    return make_project(temp_dir / "project", SAMPLE_MANIFEST, SAMPLE_INSTALLED)


@pytest.fixture
def sample_analyzer():
    return FakeAnalyzer(
        unused_prod=("left-pad",),
        unused_dev=("eslint",),
        missing={"axios": ["src/api.js"]},
    )


@pytest.fixture
def empty_project(temp_dir):
    return make_project(temp_dir / "empty", {"name": "empty", "version": "1.0.0"})
