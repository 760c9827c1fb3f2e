"""Unit tests conftest for Lambda function test isolation.

Lambda handlers all live in a file named index.py. Tests load them with
importlib.util.spec_from_file_location under a unique module name; any stray
'index' module from an interactive session is dropped first.
"""

import sys


def pytest_sessionstart(session):
    """Initialize the test session.

    Cleans any cached modules from a previous test run or interactive session.
    """
    if "index" in sys.modules:
        del sys.modules["index"]
