"""Global pytest configuration for all tests."""

import os
import sys
from pathlib import Path

# Lets the suite run from a checkout without `pip install -e .`, and makes
# the shared mocks importable as `mocks`
TESTS_DIR = Path(__file__).parent
for path in (TESTS_DIR.parent / "lib", TESTS_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))


def pytest_configure(config):
    """Set environment variables before any test collection or execution."""
    os.environ.setdefault("AWS_REGION", "us-east-1")
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
