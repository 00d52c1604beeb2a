"""Tests for tattva.sequencer — paced stage reveal."""

import pytest

from tattva.sequencer import DEFAULT_TYPING_DELAY, Sequencer, Stage
from tattva.timers import TimerQueue


def make_stages(dwells):
    return [
        Stage(f"s{i}", f"Stage {i}", lambda report, i=i: {"stage": i, "summary": report.get("summary")}, dwell)
        for i, dwell in enumerate(dwells)
    ]


@pytest.fixture
def report():
    return {}


def make_sequencer(timers, report, dwells=(2.0, 2.0, 0.0), typing_delay=0.5, **kw):
    return Sequencer(make_stages(dwells), timers, lambda: report, typing_delay=typing_delay, **kw)


def test_typing_phase_comes_before_reveal(timers, report):
    seq = make_sequencer(timers, report)
    seq.start()

    snap = seq.snapshot()
    assert snap.current_index == 0
    assert snap.typing
    assert snap.revealed == ()

    timers.advance(0.5)
    snap = seq.snapshot()
    assert not snap.typing
    assert snap.revealed == ("s0",)


def test_three_stages_reach_the_last_and_halt(timers, report):
    seq = make_sequencer(timers, report)
    seq.start()

    seen = []
    for _ in range(60):
        timers.advance(0.1)
        seen.append(seq.current_index)

    assert seq.current_index == 2
    assert seq.halted
    assert seen == sorted(seen)
    assert seq.snapshot().revealed == ("s0", "s1", "s2")

    timers.advance(60)
    assert seq.current_index == 2
    assert timers.pending() == 0


def test_half_second_typing_reaches_last_stage_and_halts_by_six_seconds(timers, report):
    # Dwells 2s, 2s, 0s: three typing phases plus 4s of dwell must fit in
    # 6s, which holds for any typing delay up to 2/3 s.
    seq = make_sequencer(timers, report, typing_delay=0.5)
    seq.start()

    timers.advance(6.0)
    assert seq.current_index == 2
    assert seq.halted

    timers.advance(10.0)
    assert seq.current_index == 2
    assert timers.pending() == 0


def test_one_second_typing_is_on_the_last_stage_at_six_seconds_and_halts_at_seven(timers, report):
    seq = make_sequencer(timers, report, typing_delay=1.0)
    seq.start()

    timers.advance(6.0)
    assert seq.current_index == 2
    assert not seq.halted

    timers.advance(1.0)
    assert seq.halted


def test_default_typing_is_on_the_second_stage_at_six_seconds(timers, report):
    seq = Sequencer(make_stages((2.0, 2.0, 0.0)), timers, lambda: report)
    assert seq.typing_delay == DEFAULT_TYPING_DELAY
    seq.start()

    timers.advance(6.0)
    assert seq.current_index == 1

    timers.advance(2.0)
    assert seq.current_index == 2
    assert seq.halted


def test_render_uses_whatever_the_report_holds_at_reveal(timers, report):
    seq = make_sequencer(timers, report)
    seq.start()

    timers.advance(0.5)
    assert seq.rendered["s0"] == {"stage": 0, "summary": None}

    report["summary"] = "arrived late"
    timers.advance(2.5)
    assert seq.rendered["s0"] == {"stage": 0, "summary": None}
    assert seq.rendered["s1"] == {"stage": 1, "summary": "arrived late"}


def test_render_revealed_refreshes_earlier_stages(timers, report):
    seq = make_sequencer(timers, report)
    seq.start()
    assert seq.render_revealed() == []

    timers.advance(0.5)
    report["summary"] = "filled in"
    rendered = seq.render_revealed()

    assert [stage.id for stage, _ in rendered] == ["s0"]
    assert rendered[0][1] == {"stage": 0, "summary": "filled in"}
    assert seq.rendered["s0"]["summary"] == "filled in"


def test_revealed_stages_are_always_a_prefix(timers, report):
    seq = make_sequencer(timers, report, dwells=(0.3, 0.7, 0.2, 1.1))
    ids = [s.id for s in seq.stages]
    seq.start()
    for _ in range(100):
        timers.advance(0.05)
        revealed = seq.snapshot().revealed
        assert list(revealed) == ids[:len(revealed)]


def test_cancel_stops_the_run(timers, report):
    seq = make_sequencer(timers, report)
    seq.start()
    timers.advance(0.5)

    seq.cancel()
    timers.advance(30)

    assert seq.snapshot().revealed == ("s0",)
    assert seq.current_index == 0
    assert not seq.typing
    assert timers.pending() == 0


def test_stale_timer_from_a_previous_run_is_a_no_op(timers, report):
    seq = make_sequencer(timers, report)
    seq.start()
    stale = seq._pending
    seq.start()

    # Fire the old run's timer directly, as if cancellation lost the race.
    stale.callback()
    assert seq.snapshot().revealed == ()
    assert seq.typing

    timers.advance(0.5)
    assert seq.snapshot().revealed == ("s0",)


def test_restart_begins_from_the_first_stage(timers, report):
    seq = make_sequencer(timers, report)
    seq.start()
    timers.advance(5)
    assert seq.current_index == 2

    seq.start()
    assert seq.current_index == 0
    assert seq.snapshot().revealed == ()
    assert not seq.halted


def test_single_stage_halts_after_its_dwell(timers, report):
    seq = make_sequencer(timers, report, dwells=(1.0,))
    seq.start()
    timers.advance(1.4)
    assert not seq.halted
    timers.advance(0.2)
    assert seq.halted


def test_stage_list_is_validated(timers, report):
    with pytest.raises(ValueError):
        Sequencer([], timers, lambda: report)
    stages = make_stages([1, 1])
    with pytest.raises(ValueError):
        Sequencer([stages[0], stages[0]], timers, lambda: report)
