from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from settings_review.assembly import (
    STATUS_ACTIVE_AFTER_END,
    STATUS_ACTIVE_BEFORE_END,
    STATUS_ACTIVE_BEFORE_START,
    STATUS_COMPLETED,
    STATUS_FIELD_MISSING,
    STATUS_TRIMMED,
    AssemblyResult,
    IntervalSequence,
    assemble_intervals,
)
from settings_review.effects import SeriesBundle
from settings_review.model import (
    CarbAbsorptionRecord,
    EffectSample,
    GlucoseSample,
    IntervalType,
)

T0 = datetime(2026, 1, 31, 8, 0)
F = IntervalType.FASTING
C = IntervalType.CARB_ABSORPTION


def _at(minutes: float) -> datetime:
    return T0 + timedelta(minutes=minutes)


def _series() -> SeriesBundle:
    minutes = range(-60, 305, 5)
    return SeriesBundle(
        glucose=[GlucoseSample(_at(m), _at(m), 100.0 + m / 10) for m in minutes],
        insulin_effect=[EffectSample(_at(m), _at(m), -m / 20) for m in minutes],
        basal_effect=[EffectSample(_at(m), _at(m), m / 40) for m in minutes],
    )


def _record(
    start: float,
    end: float,
    entered: float = 40.0,
    observed: float = 32.0,
    remaining: float = 0.0,
) -> CarbAbsorptionRecord:
    return CarbAbsorptionRecord(
        observed_start=_at(start),
        observed_end=_at(end),
        entered_carbs=entered,
        observed_carbs=observed,
        estimated_time_remaining=remaining,
    )


def _assemble(
    records: list[CarbAbsorptionRecord], start: float = 0, end: float = 180
) -> AssemblyResult:
    series = _series()
    return assemble_intervals(
        _at(start),
        _at(end),
        series.glucose,
        series.insulin_effect,
        series.basal_effect,
        records,
    )


def _layout(result: AssemblyResult) -> list[tuple[IntervalType, float, float]]:
    return [
        (
            i.interval_type,
            (i.start - T0).total_seconds() / 60,
            (i.end - T0).total_seconds() / 60,
        )
        for i in result.intervals
    ]


def _assert_tiles(result: AssemblyResult) -> None:
    cursor = result.start
    for interval in result.intervals:
        assert interval.start == cursor
        assert interval.end >= interval.start
        cursor = interval.end
    assert cursor == result.end or (not result.intervals and result.is_collapsed)
    for prev, nxt in zip(result.intervals, result.intervals[1:]):
        assert not (prev.is_carb_absorption and nxt.is_carb_absorption)


def test_fasting_only_session() -> None:
    result = _assemble([])
    assert _layout(result) == [(F, 0, 180)]
    assert result.status == STATUS_COMPLETED
    _assert_tiles(result)


def test_single_meal_splits_window() -> None:
    result = _assemble([_record(30, 90)])
    assert _layout(result) == [(F, 0, 30), (C, 30, 90), (F, 90, 180)]
    carbs = result.intervals[1]
    assert carbs.entered_carbs == 40.0
    assert carbs.observed_carbs == 32.0
    assert len(carbs.glucose) == 13
    assert result.intervals[0].entered_carbs is None
    _assert_tiles(result)


def test_overlapping_meals_merge_and_add_carbs() -> None:
    result = _assemble([_record(30, 90, 40, 32), _record(60, 120, 20, 15)])
    assert _layout(result) == [(F, 0, 30), (C, 30, 120), (F, 120, 180)]
    merged = result.intervals[1]
    assert merged.entered_carbs == 60.0
    assert merged.observed_carbs == 47.0
    assert merged.glucose[-1].start == _at(120)
    _assert_tiles(result)


def test_merge_is_order_independent() -> None:
    a = _record(30, 90, 40, 32)
    b = _record(30, 120, 20, 15)
    first = _assemble([a, b])
    second = _assemble([b, a])
    assert _layout(first) == _layout(second)
    for result in (first, second):
        assert result.intervals[1].entered_carbs == 60.0
        assert result.intervals[1].observed_carbs == 47.0


def test_adjacent_meals_merge() -> None:
    result = _assemble([_record(30, 60), _record(60, 90)])
    assert _layout(result) == [(F, 0, 30), (C, 30, 90), (F, 90, 180)]
    assert result.intervals[1].entered_carbs == 80.0


def test_separate_meals_get_fasting_between() -> None:
    result = _assemble([_record(30, 60), _record(90, 120)])
    assert _layout(result) == [
        (F, 0, 30),
        (C, 30, 60),
        (F, 60, 90),
        (C, 90, 120),
        (F, 120, 180),
    ]
    _assert_tiles(result)


def test_meal_at_session_start_has_no_leading_fasting() -> None:
    result = _assemble([_record(0, 30)])
    assert _layout(result) == [(C, 0, 30), (F, 30, 180)]
    _assert_tiles(result)


def test_record_with_missing_field_is_skipped() -> None:
    incomplete = CarbAbsorptionRecord(observed_start=_at(10), entered_carbs=20.0)
    result = _assemble([incomplete, _record(30, 90)])
    assert _layout(result) == [(F, 0, 30), (C, 30, 90), (F, 90, 180)]
    assert STATUS_FIELD_MISSING in result.status
    assert result.status.endswith(STATUS_COMPLETED)


def test_record_before_window_moves_start() -> None:
    result = _assemble([_record(-30, 20), _record(50, 80)])
    assert result.start == _at(20)
    assert _layout(result) == [(F, 20, 50), (C, 50, 80), (F, 80, 180)]
    _assert_tiles(result)


def test_record_past_window_is_ignored() -> None:
    result = _assemble([_record(200, 230)])
    assert _layout(result) == [(F, 0, 180)]


def test_meal_ending_after_window_extends_end() -> None:
    result = _assemble([_record(150, 200)])
    assert result.end == _at(200)
    assert _layout(result) == [(F, 0, 150), (C, 150, 200)]
    _assert_tiles(result)


def test_active_absorption_before_start_collapses_window() -> None:
    result = _assemble([_record(-10, 40, remaining=600)])
    assert result.intervals == []
    assert result.end == result.start == _at(0)
    assert result.is_collapsed
    assert result.status == STATUS_ACTIVE_BEFORE_START


def test_active_absorption_after_end_adds_trailing_fasting() -> None:
    result = _assemble([_record(30, 90), _record(200, 260, remaining=600)])
    assert _layout(result) == [(F, 0, 30), (C, 30, 90), (F, 90, 180)]
    assert result.end == _at(180)
    assert result.status == STATUS_ACTIVE_AFTER_END
    _assert_tiles(result)


def test_active_absorption_before_end_truncates_window() -> None:
    result = _assemble([_record(30, 90), _record(120, 150, remaining=600)])
    assert result.end == _at(120)
    assert _layout(result) == [(F, 0, 30), (C, 30, 90), (F, 90, 120)]
    assert result.status == STATUS_ACTIVE_BEFORE_END
    _assert_tiles(result)


def test_active_absorption_only_record() -> None:
    result = _assemble([_record(60, 120, remaining=600)])
    assert result.end == _at(60)
    assert _layout(result) == [(F, 0, 60)]
    _assert_tiles(result)


def test_active_absorption_overlapping_meal_trims_it() -> None:
    result = _assemble([_record(30, 90), _record(60, 150, remaining=600)])
    assert result.end == _at(30)
    assert _layout(result) == [(F, 0, 30)]
    assert result.status == STATUS_TRIMMED
    _assert_tiles(result)


def test_active_absorption_after_later_meal_keeps_earlier_ones() -> None:
    records = [_record(30, 60), _record(90, 120), _record(100, 170, remaining=60)]
    result = _assemble(records)
    assert result.end == _at(90)
    assert _layout(result) == [(F, 0, 30), (C, 30, 60), (F, 60, 90)]
    _assert_tiles(result)


def test_active_absorption_at_start_collapses_to_empty() -> None:
    result = _assemble([_record(0, 60, remaining=600)])
    assert result.intervals == []
    assert result.is_collapsed


def test_only_first_active_record_is_processed() -> None:
    records = [_record(120, 150, remaining=600), _record(160, 170, remaining=600)]
    result = _assemble(records)
    assert result.end == _at(120)
    assert _layout(result) == [(F, 0, 120)]


def test_sequence_truncate_clips_and_drops() -> None:
    seq = IntervalSequence(_series())
    seq.append(_at(0), _at(30), F)
    seq.append(_at(30), _at(90), C, 40.0, 32.0)
    seq.truncate(_at(20))
    assert len(seq) == 1
    assert seq[0].end == _at(20)
    assert seq[0].glucose[-1].start == _at(20)


def test_sequence_remove_carb_absorption_after() -> None:
    seq = IntervalSequence(_series())
    seq.append(_at(0), _at(30), F)
    seq.append(_at(30), _at(90), C, 40.0, 32.0)
    assert seq.remove_carb_absorption_after(_at(60)) == _at(30)
    assert [i.interval_type for i in seq] == [F]


def test_sequence_close_last_drops_empty_interval() -> None:
    seq = IntervalSequence(_series())
    seq.append(_at(10), _at(40), F)
    seq.close_last(_at(10))
    assert len(seq) == 0


def test_sequence_merge_requires_carb_interval() -> None:
    seq = IntervalSequence(_series())
    seq.append(_at(0), _at(30), F)
    with pytest.raises(ValueError):
        seq.merge_into_last(_at(10), _at(20), 10.0, 10.0)
