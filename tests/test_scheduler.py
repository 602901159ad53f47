from cathedral.scheduler import ResponseScheduler


def test_pop_due_in_due_order() -> None:
    sched = ResponseScheduler()
    sched.schedule_in(0.2, 50, 20, now=0.0)
    sched.schedule_in(0.07, 70, 127, now=0.05)
    sched.schedule_in(0.5, 60, 1, now=0.0)
    assert sched.pop_due(0.1) == []
    due = sched.pop_due(0.3)
    assert [e.pitch for e in due] == [70, 50]
    assert len(sched) == 1
    assert sched.next_due() == 0.5


def test_equal_due_times_keep_scheduling_order() -> None:
    sched = ResponseScheduler()
    for pitch in (60, 61, 62):
        sched.schedule_at(1.0, pitch, 100, now=0.0)
    assert [e.pitch for e in sched.pop_due(1.0)] == [60, 61, 62]


def test_negative_delay_is_immediate() -> None:
    sched = ResponseScheduler()
    entry = sched.schedule_in(-1.0, 60, 100, now=3.0)
    assert entry.due == 3.0
    assert sched.next_due() == 3.0
    assert ResponseScheduler().next_due() == float("inf")
