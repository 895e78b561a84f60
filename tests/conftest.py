"""
Pytest configuration.

Ensure the repository root is importable so `import extpoints` works reliably
across platforms and import modes, and give every test a fresh default
registry.
"""

from __future__ import annotations

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# pylint: disable=wrong-import-position
from extpoints.registry import reset_default_registry


@pytest.fixture(autouse=True)
def _reset_default_registry() -> None:
    """Ensure each test runs with an empty default registry."""

    reset_default_registry()
