import pytest

from lingze.palette import EMERALD
from lingze.profiler import ProfilerTask


def test_length():
    task = ProfilerTask(1.5, 4.0, "frame", EMERALD)
    assert task.length() == pytest.approx(2.5)


def test_zero_length():
    task = ProfilerTask(3.0, 3.0, "idle", EMERALD)
    assert task.length() == 0.0


@pytest.mark.parametrize("start,end", [(0.0, 1.0), (10.0, 12.25), (-2.0, 5.0)])
def test_length_adds_back_to_end(start, end):
    task = ProfilerTask(start, end, "task", EMERALD)
    assert task.start_time + task.length() == pytest.approx(end)


def test_fields_kept():
    task = ProfilerTask(0.0, 1.0, "shadow pass", EMERALD)
    assert task.name == "shadow pass"
    assert task.color == EMERALD