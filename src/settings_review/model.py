"""Modelos tipados para series de glucosa, efectos e intervalos de estimación."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class GlucoseSample:
    """One glucose value (mg/dL) spanning ``[start, end]``."""

    start: datetime
    end: datetime
    value: float


@dataclass(frozen=True)
class EffectSample(GlucoseSample):
    """One point of a modeled glucose effect curve (mg/dL)."""


@dataclass(frozen=True)
class CarbAbsorptionRecord:
    """Absorption status of one logged meal.

    Every field may be missing; an incomplete record is skipped during
    interval assembly. ``estimated_time_remaining`` is in seconds and a
    positive value means the absorption is still in progress.
    """

    observed_start: datetime | None = None
    observed_end: datetime | None = None
    entered_carbs: float | None = None
    observed_carbs: float | None = None
    estimated_time_remaining: float | None = None

    def __post_init__(self) -> None:
        if (
            self.observed_start is not None
            and self.observed_end is not None
            and self.observed_end < self.observed_start
        ):
            raise ValueError(
                f"observed_end {self.observed_end} before "
                f"observed_start {self.observed_start}"
            )

    def absorption_fields(
        self,
    ) -> tuple[datetime, datetime, float, float, float] | None:
        """Return (start, end, entered, observed, remaining) or None if incomplete."""
        if (
            self.observed_start is None
            or self.observed_end is None
            or self.entered_carbs is None
            or self.observed_carbs is None
            or self.estimated_time_remaining is None
        ):
            return None
        return (
            self.observed_start,
            self.observed_end,
            float(self.entered_carbs),
            float(self.observed_carbs),
            float(self.estimated_time_remaining),
        )


class IntervalType(Enum):
    """Kind of estimation interval."""

    FASTING = "fasting"
    CARB_ABSORPTION = "carbAbsorption"


@dataclass(frozen=True)
class EstimatedMultipliers:
    """Correction factors for one interval (1.0 = no change)."""

    start: datetime
    end: datetime
    basal_multiplier: float
    insulin_sensitivity_multiplier: float
    carb_sensitivity_multiplier: float
    carb_ratio_multiplier: float


@dataclass
class EstimationInterval:
    """Contiguous sub-window of a session, with its data slices and results.

    Bounds and carb totals change while intervals are being assembled and
    stay fixed afterwards. Deltas and multipliers are filled in by the
    estimator.
    """

    start: datetime
    end: datetime
    interval_type: IntervalType
    glucose: list[GlucoseSample] = field(default_factory=list)
    insulin_effect: list[EffectSample] = field(default_factory=list)
    basal_effect: list[EffectSample] = field(default_factory=list)
    entered_carbs: float | None = None
    observed_carbs: float | None = None
    delta_glucose: float | None = None
    delta_glucose_insulin: float | None = None
    delta_glucose_basal: float | None = None
    estimated_multipliers: EstimatedMultipliers | None = None

    @property
    def is_fasting(self) -> bool:
        return self.interval_type is IntervalType.FASTING

    @property
    def is_carb_absorption(self) -> bool:
        return self.interval_type is IntervalType.CARB_ABSORPTION
