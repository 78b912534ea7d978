"""Armado de intervalos de ayuno y absorción de carbohidratos.

Walks the carb absorption records (ordered by observed start) over the
session window and produces an ordered list of intervals that tiles the
final window: no gaps, no overlaps, and never two carb absorption
intervals next to each other. An absorption still in progress ends the
pass and may narrow the window.

Assembly mutates its own state only and must not run concurrently on the
same session.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime

from settings_review.effects import SeriesBundle
from settings_review.model import (
    CarbAbsorptionRecord,
    EffectSample,
    EstimationInterval,
    GlucoseSample,
    IntervalType,
)

logger = logging.getLogger(__name__)

STATUS_FIELD_MISSING = "Err: a carb status field not available"
STATUS_ACTIVE_BEFORE_START = (
    "Err: active carb absorption started before start of estimation"
)
STATUS_ACTIVE_AFTER_END = (
    "Estimation interval assembly completed with a fasting interval after "
    "active absorption detected after estimation end"
)
STATUS_ACTIVE_BEFORE_END = (
    "Estimation interval assembly completed with a fasting interval after "
    "active absorption detected before estimation end"
)
STATUS_TRIMMED = (
    "Completed assembly of estimation intervals after trimming out active "
    "absorptions"
)
STATUS_COMPLETED = "Estimation interval assembly completed with a fasting interval"


class IntervalSequence:
    """Ordered, position-addressed list of intervals under construction.

    Every bounds change re-slices the affected interval from ``series``.
    """

    def __init__(self, series: SeriesBundle) -> None:
        self._series = series
        self._items: list[EstimationInterval] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[EstimationInterval]:
        return iter(self._items)

    def __getitem__(self, index: int) -> EstimationInterval:
        return self._items[index]

    @property
    def last(self) -> EstimationInterval | None:
        return self._items[-1] if self._items else None

    def to_list(self) -> list[EstimationInterval]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def append(
        self,
        start: datetime,
        end: datetime,
        interval_type: IntervalType,
        entered_carbs: float | None = None,
        observed_carbs: float | None = None,
    ) -> EstimationInterval:
        """Append a new interval with its data slices."""
        glucose, insulin, basal = self._series.slice(start, end)
        interval = EstimationInterval(
            start=start,
            end=end,
            interval_type=interval_type,
            glucose=glucose,
            insulin_effect=insulin,
            basal_effect=basal,
            entered_carbs=entered_carbs,
            observed_carbs=observed_carbs,
        )
        self._items.append(interval)
        logger.debug("Added %s interval %s - %s", interval_type.value, start, end)
        return interval

    def set_bounds(self, index: int, start: datetime, end: datetime) -> None:
        """Move the bounds of the interval at ``index`` and re-slice it."""
        interval = self._items[index]
        interval.start = start
        interval.end = end
        interval.glucose, interval.insulin_effect, interval.basal_effect = (
            self._series.slice(start, end)
        )

    def close_last(self, end: datetime) -> None:
        """End the last interval at ``end``; drop it if it becomes empty."""
        last = self.last
        if last is None:
            return
        if end <= last.start:
            self._items.pop()
            logger.debug("Dropped empty %s interval", last.interval_type.value)
            return
        self.set_bounds(len(self._items) - 1, last.start, end)

    def merge_into_last(
        self,
        start: datetime,
        end: datetime,
        entered_carbs: float,
        observed_carbs: float,
    ) -> None:
        """Merge an overlapping absorption into the last carb interval."""
        last = self.last
        if last is None or not last.is_carb_absorption:
            raise ValueError("merge requires a trailing carb absorption interval")
        last.entered_carbs = (last.entered_carbs or 0.0) + entered_carbs
        last.observed_carbs = (last.observed_carbs or 0.0) + observed_carbs
        self.set_bounds(
            len(self._items) - 1, min(last.start, start), max(last.end, end)
        )
        logger.debug("Merged carb entry into interval ending %s", last.end)

    def remove_carb_absorption_after(self, cutoff: datetime) -> datetime:
        """Remove carb intervals ending after ``cutoff``.

        Returns:
            The earliest of ``cutoff`` and the starts of removed intervals.
        """
        new_end = cutoff
        kept: list[EstimationInterval] = []
        for index, interval in enumerate(self._items):
            if interval.is_carb_absorption and interval.end > cutoff:
                logger.debug("Removed carb absorption interval %d", index)
                new_end = min(new_end, interval.start)
            else:
                kept.append(interval)
        self._items = kept
        return new_end

    def truncate(self, end: datetime) -> None:
        """Clip every interval to end no later than ``end``."""
        kept: list[EstimationInterval] = []
        for interval in self._items:
            if interval.start >= end:
                continue
            kept.append(interval)
        self._items = kept
        for index, interval in enumerate(self._items):
            if interval.end > end:
                self.set_bounds(index, interval.start, end)


@dataclass(frozen=True)
class AssemblyResult:
    """Outcome of one assembly pass."""

    intervals: list[EstimationInterval]
    start: datetime
    end: datetime
    status: str

    @property
    def is_collapsed(self) -> bool:
        """True when no usable window is left."""
        return self.start >= self.end


class IntervalAssembler:
    """Single-pass segmentation of a session window."""

    def __init__(
        self,
        start: datetime,
        end: datetime,
        series: SeriesBundle,
    ) -> None:
        self.start = start
        self.end = end
        self.intervals = IntervalSequence(series)
        self._notes: list[str] = []
        self._status = ""

    @property
    def running_end(self) -> datetime:
        """End of the territory assembled so far."""
        last = self.intervals.last
        return last.end if last is not None else self.start

    def run(self, carb_records: Sequence[CarbAbsorptionRecord]) -> AssemblyResult:
        """Consume the records and return the assembled intervals."""
        for record in carb_records:
            fields = record.absorption_fields()
            if fields is None:
                logger.warning("Skipping carb record with missing fields: %s", record)
                if STATUS_FIELD_MISSING not in self._notes:
                    self._notes.append(STATUS_FIELD_MISSING)
                continue
            entry_start, entry_end, entered, observed, remaining = fields

            if remaining > 0:
                logger.info("Active carb absorption starting at %s", entry_start)
                self._finish_on_active(entry_start)
                return self._result()

            if entry_start < self.start:
                # La absorción empezó antes de la ventana: se corre el inicio.
                self.start = min(max(entry_end, self.start), self.end)
                logger.debug("Entry prior to start, moved start to %s", self.start)
                continue

            if entry_start >= self.end:
                logger.debug("Entry at %s is past the window, stopping", entry_start)
                break

            self._add_completed(entry_start, entry_end, entered, observed)

        self._fill_to_end()
        self._status = STATUS_COMPLETED
        return self._result()

    def _add_completed(
        self,
        entry_start: datetime,
        entry_end: datetime,
        entered: float,
        observed: float,
    ) -> None:
        last = self.intervals.last
        if last is None:
            if entry_start > self.start:
                self.intervals.append(self.start, entry_start, IntervalType.FASTING)
            self._append_carbs(entry_start, entry_end, entered, observed)
        elif last.is_fasting:
            self.intervals.close_last(entry_start)
            self._append_carbs(entry_start, entry_end, entered, observed)
        elif entry_start > last.end:
            self.intervals.append(last.end, entry_start, IntervalType.FASTING)
            self._append_carbs(entry_start, entry_end, entered, observed)
        else:
            self.intervals.merge_into_last(entry_start, entry_end, entered, observed)

        if self.running_end > self.end:
            self.end = self.running_end
            logger.debug("Absorption extends past window, moved end to %s", self.end)

    def _append_carbs(
        self,
        start: datetime,
        end: datetime,
        entered: float,
        observed: float,
    ) -> None:
        self.intervals.append(
            start,
            end,
            IntervalType.CARB_ABSORPTION,
            entered_carbs=entered,
            observed_carbs=observed,
        )

    def _finish_on_active(self, entry_start: datetime) -> None:
        if entry_start < self.start:
            self.end = self.start
            self.intervals.clear()
            self._status = STATUS_ACTIVE_BEFORE_START
            logger.warning("Active absorption started before %s", self.start)
            return

        if entry_start > self.end:
            self._fill_to_end()
            self._status = STATUS_ACTIVE_AFTER_END
            return

        running_end = self.running_end
        if entry_start > running_end:
            self.end = entry_start
            self.intervals.append(running_end, self.end, IntervalType.FASTING)
            self._status = STATUS_ACTIVE_BEFORE_END
            return

        new_end = self.intervals.remove_carb_absorption_after(entry_start)
        self.intervals.truncate(new_end)
        self.end = new_end
        self._fill_to_end()
        self._status = STATUS_TRIMMED

    def _fill_to_end(self) -> None:
        running_end = self.running_end
        if running_end < self.end:
            self.intervals.append(running_end, self.end, IntervalType.FASTING)

    def _result(self) -> AssemblyResult:
        status = "; ".join([*self._notes, self._status])
        logger.info(
            "Assembled %d intervals, start %s end %s",
            len(self.intervals),
            self.start,
            self.end,
        )
        return AssemblyResult(
            intervals=self.intervals.to_list(),
            start=self.start,
            end=self.end,
            status=status,
        )


def assemble_intervals(
    start: datetime,
    end: datetime,
    glucose: Sequence[GlucoseSample],
    insulin_effect: Sequence[EffectSample],
    basal_effect: Sequence[EffectSample],
    carb_records: Sequence[CarbAbsorptionRecord],
) -> AssemblyResult:
    """Partition ``[start, end)`` into fasting and carb absorption intervals.

    Args:
        start: Session start.
        end: Session end.
        glucose: Glucose samples ordered by time.
        insulin_effect: Insulin effect curve ordered by time.
        basal_effect: Basal effect curve ordered by time.
        carb_records: Absorption records ordered by observed start.

    Returns:
        Intervals, final (possibly narrowed) window and a status message.
    """
    series = SeriesBundle(
        glucose=glucose, insulin_effect=insulin_effect, basal_effect=basal_effect
    )
    return IntervalAssembler(start, end, series).run(carb_records)
