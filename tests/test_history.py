"""Tests for undo/redo history."""

import pytest

from rigsim.rig.history import History, Snapshot
from rigsim.rig.template import build_training_rig


def _rig():
    rig = build_training_rig()
    rig.source.set_value(True)
    return rig


class TestSnapshot:
    def test_capture_restore(self):
        rig = _rig()
        rig.state.graph.add_connection("dcP_wire_p", "pRr_wire_p", "wire")
        snap = Snapshot.capture(rig.state)
        rig.state.graph.clear()
        rig.load.set_value(400.0)
        snap.restore(rig.state)
        assert len(rig.state.graph.connections) == 1
        assert rig.load.get_value() == pytest.approx(250.0)

    def test_restore_twice_same_state(self):
        rig = _rig()
        rig.state.graph.add_connection("pTr_wire_n", "aGa_wire_p", "wire")
        snap = Snapshot.capture(rig.state)
        snap.restore(rig.state)
        first = (rig.state.graph.to_list(), rig.load.get_value(), rig.source.is_on)
        snap.restore(rig.state)
        assert (rig.state.graph.to_list(), rig.load.get_value(), rig.source.is_on) == first


class TestHistory:
    def test_build_records_initial(self):
        rig = _rig()
        assert len(rig.history) == 1
        assert not rig.history.can_undo
        assert not rig.history.can_redo

    def test_undo_redo_connection(self):
        rig = _rig()
        rig.connect("dcP_wire_p", "pRr_wire_p")
        rig.connect("pRr_wire_n", "pTr_wire_p")
        assert len(rig.state.graph.connections) == 2

        assert rig.history.undo()
        assert len(rig.state.graph.connections) == 1
        assert rig.history.undo()
        assert rig.state.graph.connections == []
        assert not rig.history.undo()

        assert rig.history.redo()
        assert rig.state.graph.find("dcP_wire_p", "pRr_wire_p") is not None
        assert rig.history.redo()
        assert not rig.history.redo()
        assert len(rig.state.graph.connections) == 2

    def test_record_after_undo_drops_redo(self):
        rig = _rig()
        rig.connect("dcP_wire_p", "pRr_wire_p")
        rig.connect("pRr_wire_n", "pTr_wire_p")
        rig.history.undo()
        rig.connect("pTr_wire_n", "aGa_wire_p")
        assert not rig.history.can_redo
        assert len(rig.history) == 3
        assert rig.state.graph.find("pRr_wire_n", "pTr_wire_p") is None

    def test_max_len_drops_oldest(self):
        rig = _rig()
        history = History(rig.state, max_len=3)
        for _ in range(5):
            history.record()
        assert len(history) == 3
        assert history.cursor == 2

    def test_invalid_max_len(self):
        with pytest.raises(ValueError):
            History(_rig().state, max_len=0)

    def test_undo_runs_cycle(self):
        rig = _rig()
        calls = []
        rig.cycle.add_listener(lambda r: calls.append(r.reason))
        rig.connect("dcP_wire_p", "pRr_wire_p")
        rig.history.undo()
        assert calls == ["connect", "history"]

    def test_disconnect_recorded(self):
        rig = _rig()
        rig.connect("dcP_wire_p", "pRr_wire_p")
        assert rig.disconnect("dcP_wire_p", "pRr_wire_p")
        assert not rig.disconnect("dcP_wire_p", "pRr_wire_p")
        rig.history.undo()
        assert rig.state.graph.find("dcP_wire_p", "pRr_wire_p") is not None

    def test_clear(self):
        rig = _rig()
        rig.history.clear()
        assert len(rig.history) == 0
        assert rig.history.cursor == -1
        assert not rig.history.undo()
