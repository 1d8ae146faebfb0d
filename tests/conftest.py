"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any import that builds settings.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_NOTIFIER", "memory")
os.environ.setdefault(
    "GATE_POLICIES",
    '{"status": {"max_requests": 2, "window_seconds": 60},'
    ' "news": {"max_requests": 1, "window_seconds": 86400},'
    ' "marketing": {"max_requests": 3, "window_seconds": 3600},'
    ' "muted": {"max_requests": 0, "window_seconds": 60}}',
)
os.environ.setdefault("GATE_SWEEP_EVERY", "0")
os.environ.setdefault("LOG_FORMAT", "plain")
