"""Sesión de revisión de parámetros: armado de intervalos y estimación."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from settings_review.assembly import assemble_intervals
from settings_review.config import EstimationConfig
from settings_review.estimator import estimate
from settings_review.model import (
    CarbAbsorptionRecord,
    EffectSample,
    EstimationInterval,
    GlucoseSample,
)

logger = logging.getLogger(__name__)


class Session:
    """Owns a window, its input series and the intervals built from them.

    ``assemble()`` and ``estimate()`` mutate the session and need exclusive
    access to it while they run. Input series are treated as read-only.
    """

    def __init__(
        self,
        start: datetime,
        end: datetime,
        *,
        glucose: Sequence[GlucoseSample] = (),
        insulin_effect: Sequence[EffectSample] = (),
        basal_effect: Sequence[EffectSample] = (),
        carb_records: Sequence[CarbAbsorptionRecord] = (),
        config: EstimationConfig | None = None,
    ) -> None:
        self.start = start
        self.end = end
        self.glucose = list(glucose)
        self.insulin_effect = list(insulin_effect)
        self.basal_effect = list(basal_effect)
        self.carb_records = list(carb_records)
        self.config = config or EstimationConfig()
        self.intervals: list[EstimationInterval] = []
        self.status = ""

    @property
    def is_collapsed(self) -> bool:
        """True when the window has no usable span."""
        return self.start >= self.end

    def assemble(self) -> list[EstimationInterval]:
        """Build the interval list, possibly narrowing the window."""
        result = assemble_intervals(
            self.start,
            self.end,
            self.glucose,
            self.insulin_effect,
            self.basal_effect,
            self.carb_records,
        )
        self.intervals = result.intervals
        self.start = result.start
        self.end = result.end
        self.status = result.status
        return self.intervals

    def estimate(self) -> int:
        """Estimate every interval in place.

        Returns:
            Number of intervals that received multipliers.
        """
        estimated = 0
        for interval in self.intervals:
            if estimate(interval, self.config) is not None:
                estimated += 1
        logger.info("Estimated %d of %d intervals", estimated, len(self.intervals))
        return estimated

    def update_parameter_estimates(self) -> list[EstimationInterval]:
        """Assemble the intervals and estimate each of them."""
        self.assemble()
        logger.info("Number of estimation intervals: %d", len(self.intervals))
        self.estimate()
        return self.intervals
