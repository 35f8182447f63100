"""Global test configuration and shared fixtures."""

from __future__ import annotations

pytest_plugins = ("call_mox.pytest_plugin", "pytester")
