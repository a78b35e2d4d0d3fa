import sys
from pathlib import Path

import pytest

# Add src/ to sys.path so tests can import modules as top-level packages like `openreports`.
ROOT = Path(__file__).resolve().parents[1]
SRC = str(ROOT / "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)
# Shared record builders live next to the tests.
TESTS = str(Path(__file__).resolve().parent)
if TESTS not in sys.path:
    sys.path.insert(0, TESTS)


@pytest.fixture(autouse=True)
def clear_processor_env(monkeypatch):
    """Keep developer environment variables out of config tests."""
    for name in ("ENVIRONMENT", "OPENREPORTS_ENABLED", "OPENREPORTS_STATUS_FILTER", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
