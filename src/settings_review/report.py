"""Reporte de diagnóstico de intervalos y multiplicadores."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, tzinfo

import pandas as pd
from dateutil import tz

from settings_review.config import ReportLayout
from settings_review.model import EstimationInterval
from settings_review.session import Session

UNAVAILABLE = "unavailable"
SEPARATOR = "----------"

_COLUMNS = [
    "start",
    "end",
    "type",
    "entered_carbs_g",
    "observed_carbs_g",
    "delta_glucose",
    "delta_glucose_insulin",
    "delta_glucose_basal",
    "isf_multiplier",
    "cr_multiplier",
    "csf_multiplier",
    "basal_multiplier",
]


def _zone(layout: ReportLayout) -> tzinfo | None:
    if layout.timezone:
        return tz.gettz(layout.timezone)
    return tz.tzlocal()


def _format_date(value: datetime, layout: ReportLayout) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(_zone(layout))
    return value.strftime(layout.date_format)


def _format_number(value: float | None, layout: ReportLayout, unit: str = "") -> str:
    if value is None:
        return UNAVAILABLE
    return f"{value:.{layout.precision}f}{unit}"


def _interval_block(interval: EstimationInterval, layout: ReportLayout) -> list[str]:
    multipliers = interval.estimated_multipliers
    lines = [
        SEPARATOR,
        (
            f"{_format_date(interval.start, layout)} - "
            f"{_format_date(interval.end, layout)}, {interval.interval_type.value}"
        ),
    ]
    if interval.entered_carbs is None and interval.observed_carbs is None:
        lines.append("carbs: none")
    else:
        lines.append(
            f"entered carbs: {_format_number(interval.entered_carbs, layout, ' g')}, "
            f"observed carbs: {_format_number(interval.observed_carbs, layout, ' g')}"
        )
    lines.extend(
        [
            f"deltaBG: {_format_number(interval.delta_glucose, layout)}",
            f"deltaBG insulin: {_format_number(interval.delta_glucose_insulin, layout)}",
            f"deltaBG basal: {_format_number(interval.delta_glucose_basal, layout)}",
        ]
    )
    if multipliers is None:
        lines.append(f"multipliers: {UNAVAILABLE}")
        return lines
    lines.extend(
        [
            "ISF multiplier: "
            + _format_number(multipliers.insulin_sensitivity_multiplier, layout),
            "CR multiplier: "
            + _format_number(multipliers.carb_ratio_multiplier, layout),
            "CSF multiplier: "
            + _format_number(multipliers.carb_sensitivity_multiplier, layout),
            "Basal multiplier: "
            + _format_number(multipliers.basal_multiplier, layout),
        ]
    )
    return lines


def render(session: Session, layout: ReportLayout | None = None) -> str:
    """Render the session status and one block per interval.

    Args:
        session: Assembled (and usually estimated) session.
        layout: Formatting options (defaults when None).

    Returns:
        Report text.
    """
    layout = layout or ReportLayout()
    lines = ["## Settings Review", session.status]
    for interval in session.intervals:
        lines.extend(_interval_block(interval, layout))
    lines.append("")
    return "\n".join(lines)


def intervals_to_frame(intervals: Sequence[EstimationInterval]) -> pd.DataFrame:
    """One row per interval with bounds, carbs, deltas and multipliers."""
    rows: list[dict[str, object]] = []
    for interval in intervals:
        m = interval.estimated_multipliers
        rows.append(
            {
                "start": interval.start,
                "end": interval.end,
                "type": interval.interval_type.value,
                "entered_carbs_g": interval.entered_carbs,
                "observed_carbs_g": interval.observed_carbs,
                "delta_glucose": interval.delta_glucose,
                "delta_glucose_insulin": interval.delta_glucose_insulin,
                "delta_glucose_basal": interval.delta_glucose_basal,
                "isf_multiplier": m.insulin_sensitivity_multiplier if m else None,
                "cr_multiplier": m.carb_ratio_multiplier if m else None,
                "csf_multiplier": m.carb_sensitivity_multiplier if m else None,
                "basal_multiplier": m.basal_multiplier if m else None,
            }
        )
    if not rows:
        return pd.DataFrame(columns=_COLUMNS)
    return pd.DataFrame(rows, columns=_COLUMNS)
