from __future__ import annotations

from pathlib import Path

import pytest

SAMPLE_FILES: dict[str, str] = {
    "README.md": "# Sample\n",
    ".env": "SECRET=1\n",
    "src/main.py": "print('hi')\n",
    "src/util/helpers.py": "def helper():\n    return 1\n",
    "docs/guide.md": "Guide\n",
    "logs/run.log": "log line\n",
    "node_modules/pkg/index.js": "module.exports = 1;\n",
}


def write_sample_tree(root: Path) -> Path:
    """Populate `root` with the sample repository layout.

    Returns:
        Path: `root`, for chaining.
    """
    for rel, content in SAMPLE_FILES.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def sample_repo(tmp_path: Path) -> Path:
    return write_sample_tree(tmp_path / "sample")


@pytest.fixture
def sample_files() -> dict[str, str]:
    return dict(SAMPLE_FILES)
