# tests/conftest.py
"""Shared test setup. Runs before any app module reads its settings."""

import os

# Console logging only; importing app.main must not create logs/ in the repo
os.environ.setdefault("LOG_TO_FILE", "false")
