import logging
from datetime import datetime, timedelta

import pytest

from testosim.dosing import administration_plans, every_n_days, schedule_dates, single_dose
from testosim.types import AdvancedRegimen, CompoundTarget, Stage, StageDose, days_between

START = datetime(2024, 1, 1)
CYP = CompoundTarget("testosterone-cypionate")


def _days(dates):
    return [days_between(START, d) for d in dates]


def test_weekly_schedule_over_four_weeks():
    """Weekly dosing over [0, 28] days gives days {0, 7, 14, 21, 28}."""
    sched = schedule_dates(START, 7, START, START + timedelta(days=28))
    assert _days(sched) == [0, 7, 14, 21, 28]
    assert not sched.truncated


def test_late_window_starts_at_first_on_schedule_date():
    sched = schedule_dates(START, 7, START + timedelta(days=10), START + timedelta(days=30))
    assert _days(sched) == [14, 21, 28]


def test_no_dates_before_regimen_start():
    sched = schedule_dates(START, 7, START - timedelta(days=20), START + timedelta(days=8))
    assert _days(sched) == [0, 7]


def test_fractional_frequency():
    sched = schedule_dates(START, 3.5, START, START + timedelta(days=7))
    assert _days(sched) == [0, 3.5, 7]
    assert all(a < b for a, b in zip(sched.dates, sched.dates[1:]))


def test_single_administration_when_frequency_not_positive():
    assert _days(schedule_dates(START, 0, START, START + timedelta(days=5))) == [0]
    assert _days(schedule_dates(START, -1, START - timedelta(days=1), START)) == [0]
    assert len(schedule_dates(START, 0, START + timedelta(days=1), START + timedelta(days=5))) == 0


def test_reversed_window_is_empty():
    assert len(schedule_dates(START, 7, START + timedelta(days=5), START)) == 0


def test_step_cap_truncates_and_flags():
    """Hitting the step cap with dates left over returns a flagged partial schedule."""
    sched = schedule_dates(START, 7, START, START + timedelta(days=28), max_steps=3)
    assert _days(sched) == [0, 7, 14]
    assert sched.truncated

    exact = schedule_dates(START, 7, START, START + timedelta(days=28), max_steps=5)
    assert len(exact) == 5 and not exact.truncated


def test_stage_doses_stop_at_stage_end():
    """
    Two back-to-back weekly stages: the first stage never doses on the day the
    second one starts.
    """
    regimen = AdvancedRegimen(
        name="cycle", start=START, total_weeks=16,
        stages=(
            Stage("Cruise", 0, 4, (StageDose(CYP, 10, 7),)),
            Stage("Blast", 4, 12, (StageDose(CYP, 20, 7),)),
        ),
    )
    cruise, blast = administration_plans(regimen, regimen.end_date)
    assert cruise.stage == "Cruise" and blast.stage == "Blast"
    assert _days(cruise.schedule) == [0, 7, 14, 21]
    assert _days(blast.schedule) == [28 + 7 * i for i in range(12)]


def test_stage_clipped_by_regimen_end():
    regimen = AdvancedRegimen(
        name="short", start=START, total_weeks=4,
        stages=(Stage("Late", 2, 6, (StageDose(CYP, 50, 7),)),),
    )
    (plan,) = administration_plans(regimen, START + timedelta(days=365))
    assert _days(plan.schedule) == [14, 21]


def test_simple_plan_runs_to_window_end():
    regimen = every_n_days("trt", START, 100, 3.5, CYP)
    (plan,) = administration_plans(regimen, START + timedelta(days=14))
    assert _days(plan.schedule) == [0, 3.5, 7, 10.5, 14]
    assert plan.stage is None and plan.route == "intramuscular"


def test_builders_validate_inputs():
    with pytest.raises(ValueError):
        every_n_days("bad", START, 0, 7, CYP)
    with pytest.raises(ValueError):
        every_n_days("bad", START, 100, 0, CYP)
    with pytest.raises(ValueError):
        single_dose("bad", START, -5, CYP)
    reg = single_dose("once", START, 250, CYP, route="subcutaneous")
    assert reg.frequency_days == 0 and reg.kind == "simple"


def test_truncation_is_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="testosim.dosing"):
        sched = schedule_dates(START, 7, START, START + timedelta(days=28), max_steps=3)
    assert sched.truncated
    assert "stopped after 3 steps" in caplog.text


def test_plans_carry_truncation():
    regimen = every_n_days("flood", START, 1, 0.001, CYP)
    (plan,) = administration_plans(regimen, START + timedelta(days=30))
    assert plan.schedule.truncated
    assert len(plan.schedule) == 10_000


def test_long_running_regimen_starts_near_the_window(caplog):
    """
    A twice-daily regimen running since 2010 needs more than the step cap to
    reach 2024 from its start; starting from `since` keeps the recent doses.
    """
    old_start = datetime(2010, 1, 1)
    regimen = every_n_days("long", old_start, 10, 0.5, CYP)
    since = datetime(2024, 5, 1)
    window_end = datetime(2024, 6, 15)

    with caplog.at_level(logging.WARNING, logger="testosim.dosing"):
        (full,) = administration_plans(regimen, window_end)
    assert full.schedule.truncated
    assert full.schedule[-1] < since
    assert "stopped after" in caplog.text

    (recent,) = administration_plans(regimen, window_end, since=since)
    assert not recent.schedule.truncated
    assert recent.schedule[0] == since
    assert recent.schedule[-1] == window_end
    assert len(recent.schedule) == 2 * 45 + 1
    assert all((d - old_start) % timedelta(hours=12) == timedelta(0) for d in recent.schedule)


def test_since_clips_stage_doses():
    regimen = AdvancedRegimen(
        name="cycle", start=START, total_weeks=8,
        stages=(Stage("Base", 0, 8, (StageDose(CYP, 100, 7),)),),
    )
    (plan,) = administration_plans(regimen, regimen.end_date, since=START + timedelta(days=30))
    assert _days(plan.schedule) == [35, 42, 49]


def test_schedule_indexing_and_slicing():
    sched = schedule_dates(START, 7, START, START + timedelta(days=28))
    assert sched[0] == START
    assert sched[-1] == START + timedelta(days=28)
    assert _days(sched[1:3]) == [7, 14]
