"""Utilidades sobre series ordenadas de glucosa y efectos."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

from settings_review.model import EffectSample, GlucoseSample

S = TypeVar("S", bound=GlucoseSample)


def filter_date_range(
    samples: Sequence[S], start: datetime | None, end: datetime | None
) -> list[S]:
    """Keep samples whose own span touches ``[start, end]``.

    A sample is dropped only if it ends before ``start`` or begins after
    ``end``; either bound may be None (open).
    """
    out: list[S] = []
    for sample in samples:
        if start is not None and sample.end < start:
            continue
        if end is not None and sample.start > end:
            continue
        out.append(sample)
    return out


def first_value(samples: Sequence[GlucoseSample]) -> float | None:
    """Value of the first sample, None for an empty series."""
    return samples[0].value if samples else None


def last_value(samples: Sequence[GlucoseSample]) -> float | None:
    """Value of the last sample, None for an empty series."""
    return samples[-1].value if samples else None


@dataclass(frozen=True)
class SeriesBundle:
    """The three read-only input series of a session."""

    glucose: Sequence[GlucoseSample]
    insulin_effect: Sequence[EffectSample]
    basal_effect: Sequence[EffectSample]

    def slice(
        self, start: datetime, end: datetime
    ) -> tuple[list[GlucoseSample], list[EffectSample], list[EffectSample]]:
        """Return (glucose, insulin_effect, basal_effect) restricted to the range."""
        return (
            filter_date_range(self.glucose, start, end),
            filter_date_range(self.insulin_effect, start, end),
            filter_date_range(self.basal_effect, start, end),
        )
