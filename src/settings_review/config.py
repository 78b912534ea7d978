"""Configuración de estimación y de reporte."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EstimationStrategy(Enum):
    """Which estimator runs on each interval."""

    GENERAL = "general"
    FASTING = "fasting"
    CARB_ABSORPTION = "carb-absorption"
    BY_INTERVAL_TYPE = "by-interval-type"


@dataclass(frozen=True)
class EstimationConfig:
    """Configuration for multiplier estimation."""

    min_glucose_samples: int = 6
    strategy: EstimationStrategy = EstimationStrategy.GENERAL


@dataclass(frozen=True)
class ReportLayout:
    """Formatting options for the diagnostic report.

    ``timezone`` is an IANA name; None renders in the local zone.
    """

    timezone: str | None = None
    date_format: str = "%b %d, %Y %H:%M:%S"
    precision: int = 3
