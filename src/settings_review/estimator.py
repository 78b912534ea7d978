"""Estimación de multiplicadores por intervalo."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from settings_review.config import EstimationConfig, EstimationStrategy
from settings_review.effects import filter_date_range, first_value, last_value
from settings_review.model import EstimatedMultipliers, EstimationInterval
from settings_review.projection import project_to_line, project_to_plane

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlucoseDeltas:
    """Change over an interval of observed glucose and modeled effects."""

    glucose: float
    insulin: float
    basal: float


def compute_deltas(
    interval: EstimationInterval, min_glucose_samples: int = 6
) -> GlucoseDeltas | None:
    """Compute glucose deltas and record them on the interval.

    Returns None when the interval has fewer than ``min_glucose_samples``
    glucose samples or any of the three series is empty.
    """
    start, end = interval.start, interval.end
    glucose = filter_date_range(interval.glucose, start, end)
    insulin = filter_date_range(interval.insulin_effect, start, end)
    basal = filter_date_range(interval.basal_effect, start, end)
    if len(glucose) < min_glucose_samples:
        logger.debug(
            "Skipping interval %s - %s: %d glucose samples", start, end, len(glucose)
        )
        return None

    start_glucose = first_value(glucose)
    end_glucose = last_value(glucose)
    start_insulin = first_value(insulin)
    end_insulin = last_value(insulin)
    start_basal = first_value(basal)
    end_basal = last_value(basal)
    if (
        start_glucose is None
        or end_glucose is None
        or start_insulin is None
        or end_insulin is None
        or start_basal is None
        or end_basal is None
    ):
        logger.debug("Skipping interval %s - %s: missing effect values", start, end)
        return None

    # Insulin effect is negative as it lowers glucose.
    deltas = GlucoseDeltas(
        glucose=end_glucose - start_glucose,
        insulin=start_insulin - end_insulin,
        basal=end_basal - start_basal,
    )
    interval.delta_glucose = deltas.glucose
    interval.delta_glucose_insulin = deltas.insulin
    interval.delta_glucose_basal = deltas.basal
    return deltas


def actual_over_observed_ratio(
    entered_carbs: float | None, observed_carbs: float | None
) -> float | None:
    """Return sqrt(entered / observed), or None without usable carb totals.

    The square root splits the observed/entered mismatch equally between a
    carb counting error and a parameter mismatch.
    """
    if entered_carbs is None or observed_carbs is None:
        return None
    if entered_carbs <= 0 or observed_carbs <= 0:
        return None
    observed_over_entered = observed_carbs / entered_carbs
    return math.sqrt(1.0 / observed_over_entered)


def estimate_general(
    interval: EstimationInterval, min_glucose_samples: int = 6
) -> EstimatedMultipliers | None:
    """Estimate basal, ISF, CSF and CR multipliers from one plane projection.

    Unknowns are (1/ISF multiplier, 1/CR multiplier, basal multiplier),
    constrained by
    ``-dBG * p1 + alpha * (dBG + dBGinsulin) * p2 + dBGbasal * p3
    = dBGinsulin + dBGbasal``.
    """
    deltas = compute_deltas(interval, min_glucose_samples)
    if deltas is None:
        return None

    ratio = actual_over_observed_ratio(interval.entered_carbs, interval.observed_carbs)
    alpha = ratio if ratio is not None else 0.0

    insulin_weight = -deltas.glucose
    carb_weight = alpha * (deltas.glucose + deltas.insulin)
    basal_weight = deltas.basal
    insulin_basal_weight = deltas.insulin + deltas.basal

    isf_inverse, cr_inverse, basal_multiplier = project_to_plane(
        insulin_weight, carb_weight, basal_weight, insulin_basal_weight
    )
    if isf_inverse == 0.0 or cr_inverse == 0.0:
        logger.debug("No finite multipliers for %s - %s", interval.start, interval.end)
        return None

    isf_multiplier = 1.0 / isf_inverse
    return EstimatedMultipliers(
        start=interval.start,
        end=interval.end,
        basal_multiplier=basal_multiplier,
        insulin_sensitivity_multiplier=isf_multiplier,
        carb_sensitivity_multiplier=isf_multiplier,
        carb_ratio_multiplier=1.0 / cr_inverse,
    )


def estimate_fasting(
    interval: EstimationInterval, min_glucose_samples: int = 6
) -> EstimatedMultipliers | None:
    """Estimate basal and ISF multipliers assuming no carbs are absorbed."""
    deltas = compute_deltas(interval, min_glucose_samples)
    if deltas is None:
        return None

    basal_multiplier, isf_inverse = project_to_line(
        deltas.basal, -deltas.glucose, deltas.basal + deltas.insulin
    )
    if isf_inverse == 0.0:
        return None

    isf_multiplier = 1.0 / isf_inverse
    return EstimatedMultipliers(
        start=interval.start,
        end=interval.end,
        basal_multiplier=basal_multiplier,
        insulin_sensitivity_multiplier=isf_multiplier,
        carb_sensitivity_multiplier=isf_multiplier,
        carb_ratio_multiplier=1.0,
    )


def estimate_carb_absorption(
    interval: EstimationInterval, min_glucose_samples: int = 6
) -> EstimatedMultipliers | None:
    """Estimate CSF, CR and ISF multipliers for a completed meal absorption.

    Basal is assumed correct. Requires positive entered and observed carbs
    and a non-zero counteraction (dBG + dBGinsulin).
    """
    deltas = compute_deltas(interval, min_glucose_samples)
    if deltas is None:
        return None

    actual_over_observed = actual_over_observed_ratio(
        interval.entered_carbs, interval.observed_carbs
    )
    counteraction = deltas.glucose + deltas.insulin
    if actual_over_observed is None or counteraction == 0.0:
        return None

    csf_weight = deltas.glucose / counteraction
    cr_weight = 1.0 - csf_weight
    csf_inverse, cr_multiplier = project_to_line(
        csf_weight, cr_weight, actual_over_observed
    )
    if csf_inverse == 0.0:
        return None

    return EstimatedMultipliers(
        start=interval.start,
        end=interval.end,
        basal_multiplier=1.0,
        insulin_sensitivity_multiplier=cr_multiplier / csf_inverse,
        carb_sensitivity_multiplier=1.0 / csf_inverse,
        carb_ratio_multiplier=cr_multiplier,
    )


def estimate(
    interval: EstimationInterval, config: EstimationConfig | None = None
) -> EstimatedMultipliers | None:
    """Estimate multipliers for one interval and store them on it.

    Args:
        interval: Assembled interval; updated in place.
        config: Strategy and sample threshold (defaults when None).

    Returns:
        The multipliers, or None when the interval lacks data.
    """
    cfg = config or EstimationConfig()
    strategy = cfg.strategy
    if strategy is EstimationStrategy.BY_INTERVAL_TYPE:
        strategy = (
            EstimationStrategy.FASTING
            if interval.is_fasting
            else EstimationStrategy.CARB_ABSORPTION
        )

    if strategy is EstimationStrategy.FASTING:
        result = estimate_fasting(interval, cfg.min_glucose_samples)
    elif strategy is EstimationStrategy.CARB_ABSORPTION:
        result = estimate_carb_absorption(interval, cfg.min_glucose_samples)
    else:
        result = estimate_general(interval, cfg.min_glucose_samples)

    interval.estimated_multipliers = result
    return result
