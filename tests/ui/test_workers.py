import sys
import pytest
from PyQt6.QtWidgets import QApplication
from midi.errors import TransactFailure
from model.program import check_slot
from ui.workers import SessionWorker

@pytest.fixture(scope="module")
def app():
    return QApplication.instance() or QApplication(sys.argv)

def _run(qtbot, fn):
    worker = SessionWorker(fn)
    results, errors = [], []
    worker.succeeded.connect(results.append)
    worker.failed.connect(errors.append)
    with qtbot.waitSignal(worker.finished, timeout=3000):
        worker.start()
    qtbot.waitUntil(lambda: bool(results or errors), timeout=3000)
    return results, errors

def test_worker_reports_result(app, qtbot):
    assert _run(qtbot, lambda: 3) == ([3], [])

def test_worker_reports_session_failure(app, qtbot):
    def fail():
        raise TransactFailure("Could not fetch program 1: timed out", 1)

    assert _run(qtbot, fail) == ([], ["Could not fetch program 1: timed out"])

def test_worker_reports_caller_errors(app, qtbot):
    results, errors = _run(qtbot, lambda: check_slot(5))
    assert results == []
    assert len(errors) == 1
