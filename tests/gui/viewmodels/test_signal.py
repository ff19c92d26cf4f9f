"""Tests for the pure Python Signal and ObservableProperty classes."""

import pytest

from reach.gui.viewmodels.signal import ObservableProperty, Signal


class TestSignal:
    def test_connect_and_emit(self):
        sig = Signal()
        received = []
        sig.connect(lambda v: received.append(v))

        sig.emit(42)

        assert received == [42]

    def test_disconnect(self):
        sig = Signal()
        received = []
        handler = sig.connect(lambda v: received.append(v))
        sig.emit(1)
        sig.disconnect(handler)
        sig.emit(2)

        assert received == [1]

    def test_disconnect_missing_raises(self):
        sig = Signal()
        with pytest.raises(ValueError):
            sig.disconnect(lambda: None)

    def test_connect_twice_registers_once(self):
        sig = Signal()
        handler = lambda: None
        sig.connect(handler)
        sig.connect(handler)
        assert sig.handler_count == 1

    def test_failing_handler_does_not_stop_others(self, caplog):
        sig = Signal()
        received = []

        def broken(_value):
            raise RuntimeError("boom")

        sig.connect(broken)
        sig.connect(received.append)

        sig.emit("x")

        assert received == ["x"]
        assert "boom" in caplog.text

    def test_disconnect_all(self):
        sig = Signal()
        sig.connect(lambda: None)
        sig.connect(lambda: None)
        sig.disconnect_all()
        assert sig.handler_count == 0


class TestObservableProperty:
    def test_emits_new_and_old(self):
        prop = ObservableProperty(1)
        changes = []
        prop.changed.connect(lambda new, old: changes.append((new, old)))

        prop.value = 2

        assert changes == [(2, 1)]
        assert prop.value == 2

    def test_equal_value_does_not_emit(self):
        prop = ObservableProperty("a")
        changes = []
        prop.changed.connect(lambda new, old: changes.append(new))

        prop.value = "a"

        assert changes == []
