"""Pytest configuration.

Adds the repo's `src/` directory to `sys.path` so tests can import `capture`,
`config` and `main` without installing the project.
"""

from __future__ import annotations

import sys
from pathlib import Path


def pytest_configure() -> None:
    """Configure pytest before collecting/running tests."""
    src_dir = str(Path(__file__).resolve().parents[1] / "src")
    if src_dir not in sys.path:
        sys.path.insert(0, src_dir)
