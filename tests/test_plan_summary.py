from pathlib import Path

from core.points import ConstructKind, Noise, NoiseKind, Point
from utils.plan_summary import InstrumentationPlan


def _point(line, kind=ConstructKind.SEMAPHORE, noise=None):
    return Point(line, 0, kind, '.acquire(', noise)


def test_totals():
    plan = InstrumentationPlan()
    plan.add_file(Path('A.java'), 3, [_point(1), _point(2)])
    plan.add_file(Path('B.java'), 1, [])
    plan.add_skip(Path('C.java'), 'unreadable')

    assert plan.total_points == 2
    assert plan.total_call_sites == 4
    assert plan.skipped == [(Path('C.java'), 'unreadable')]


def test_describe_sleep_and_yield():
    sleep = _point(4, noise=Noise(NoiseKind.SLEEP, 30, 10, 20))
    assert InstrumentationPlan.describe(sleep) == \
        "line 4 #0 .acquire( [semaphore] sleep 10-20ms @ 30%"

    yielding = _point(5, noise=Noise(NoiseKind.YIELD, 70))
    assert InstrumentationPlan.describe(yielding).endswith("yield @ 70%")


def test_describe_interest_point():
    assert "interest point" in InstrumentationPlan.describe(_point(1))


def test_print_summary(capsys):
    plan = InstrumentationPlan(automatic=False)
    plan.add_file(Path('A.java'), 2, [_point(1, noise=Noise(NoiseKind.YIELD, 50))])
    plan.add_skip(Path('B.java'), 'still instrumented')
    plan.print_summary()

    out = capsys.readouterr().out
    assert "INSTRUMENTATION PLAN (MANUAL MODE)" in out
    assert "Points: 1 of 2 call sites" in out
    assert "By construct: 1 semaphore" in out
    assert "Skip: B.java - still instrumented" in out
