import os
import sys

import pytest

# Ensure project root is on sys.path so the flat modules import correctly
_TESTS_DIR = os.path.dirname(__file__)
_ROOT_DIR = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _ROOT_DIR not in sys.path:
    sys.path.insert(0, _ROOT_DIR)

from PyQt6.QtCore import QCoreApplication  # noqa: E402

from tests.support import fakes  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def qt_core_application():
    """One QCoreApplication for the whole run; QObject signals and QTimer need it."""
    application = QCoreApplication.instance() or QCoreApplication(["tuneguess-tests"])
    yield application


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep developer TUNEGUESS_* variables out of the tests."""
    for name in list(os.environ):
        if name.startswith("TUNEGUESS_"):
            monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def fake_clock():
    return fakes.FakeClock()


@pytest.fixture
def fake_player():
    return fakes.FakePlayer()
