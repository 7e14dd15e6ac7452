"""Tests for op filter module."""

from pollwatcher.models import Event, Op
from pollwatcher.op_filter import OpFilter

from conftest import make_record


def make_events(*ops):
    events = []
    for index, op in enumerate(ops):
        record = make_record(f"/d/file{index}.txt")
        events.append(Event(op, record.path, record))
    return events


class TestOpFilter:
    """Tests for OpFilter class."""

    def test_default_allows_everything(self):
        events = make_events(Op.CREATE, Op.WRITE, Op.REMOVE)

        assert OpFilter().apply(events) == events

    def test_filter_ops(self):
        events = make_events(Op.CREATE, Op.WRITE, Op.REMOVE, Op.WRITE)
        op_filter = OpFilter(ops=[Op.WRITE])

        result = op_filter.apply(events)

        assert [event.op for event in result] == [Op.WRITE, Op.WRITE]

    def test_max_events_caps_tick(self):
        events = make_events(Op.CREATE, Op.CREATE, Op.CREATE)

        result = OpFilter(max_events=2).apply(events)

        assert result == events[:2]

    def test_filtered_events_do_not_count_against_cap(self):
        events = make_events(Op.CREATE, Op.REMOVE, Op.REMOVE, Op.WRITE)
        op_filter = OpFilter(ops=[Op.CREATE, Op.WRITE], max_events=2)

        result = op_filter.apply(events)

        assert [event.op for event in result] == [Op.CREATE, Op.WRITE]

    def test_allows(self):
        op_filter = OpFilter(ops=[Op.RENAME])

        assert op_filter.allows(Op.RENAME) is True
        assert op_filter.allows(Op.MOVE) is False
