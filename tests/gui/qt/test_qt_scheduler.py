import os

import pytest

pytest.importorskip("PySide6", reason="PySide6 is required for timer tests", exc_type=ImportError)
pytest.importorskip("PySide6.QtTest", reason="Qt test helpers not available", exc_type=ImportError)

from PySide6.QtTest import QTest
from PySide6.QtWidgets import QApplication

from reach.gui.qt.qt_scheduler import QtScheduler
from reach.gui.viewmodels.debounce import Debouncer


@pytest.fixture(scope="module")
def qapp() -> QApplication:
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


def test_callback_runs_once_after_delay(qapp: QApplication) -> None:
    scheduler = QtScheduler()
    calls = []

    scheduler.call_later(10, lambda: calls.append("fired"))
    assert scheduler.pending == 1
    QTest.qWait(100)

    assert calls == ["fired"]
    assert scheduler.pending == 0


def test_cancelled_callback_never_runs(qapp: QApplication) -> None:
    scheduler = QtScheduler()
    calls = []

    handle = scheduler.call_later(10, lambda: calls.append("fired"))
    handle.cancel()
    QTest.qWait(100)

    assert calls == []
    assert scheduler.pending == 0


def test_debouncer_on_qt_timers(qapp: QApplication) -> None:
    seen = []
    debouncer = Debouncer(20, seen.append, QtScheduler())

    for text in ("a", "ab", "abc"):
        debouncer.trigger(text)
    QTest.qWait(150)

    assert seen == ["abc"]
    assert debouncer.pending is False
