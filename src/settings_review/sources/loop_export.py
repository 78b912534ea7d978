"""Lectura de exportaciones JSON (glucosa, efectos y estado de carbohidratos)."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, TypeVar

from dateutil import parser, tz

from settings_review.model import CarbAbsorptionRecord, EffectSample, GlucoseSample
from settings_review.sources.base import DataSource, SessionInput, SourcePaths

S = TypeVar("S", bound=GlucoseSample)


@dataclass(frozen=True)
class LoopExportPaths(SourcePaths):
    """Paths for JSON session exports.

    ``timezone`` applies to timestamps written without an offset; None
    means the local zone.
    """

    # root: a settings_review_*.json file or the folder containing them
    timezone: str | None = None


class LoopExportSource(DataSource):
    """JSON export reader."""

    pattern = "settings_review_*.json"

    def load(self, path: Path) -> SessionInput:
        """Parse a JSON export into typed series and carb records.

        Args:
            path: Path to JSON file.

        Returns:
            Session input with series sorted by time and carb records in
            file order.

        Raises:
            ValueError: If JSON shape or a timestamp is invalid.
        """
        text = path.read_text(encoding="utf-8")
        raw = _extract_json_object(text)
        if not isinstance(raw, dict):
            raise ValueError("Session export must be a JSON object")

        zone = _zone(self._paths)
        return SessionInput(
            glucose=_load_samples(raw, "glucose", GlucoseSample, zone),
            insulin_effect=_load_samples(raw, "insulin_effect", EffectSample, zone),
            basal_effect=_load_samples(raw, "basal_effect", EffectSample, zone),
            carb_records=[
                _item_to_carb_record(item, zone)
                for item in _as_list(raw.get("carb_statuses"), "carb_statuses")
            ],
            start=_parse_optional(raw.get("start"), zone),
            end=_parse_optional(raw.get("end"), zone),
        )


def _zone(paths: SourcePaths) -> tzinfo | None:
    name = getattr(paths, "timezone", None)
    if name:
        return tz.gettz(name)
    return tz.tzlocal()


def _extract_json_object(text: str) -> Any:
    """Extract JSON object from text, tolerating leading non-JSON (e.g. log lines)."""
    start = text.find("{")
    if start >= 0:
        return json.loads(text[start:])
    return json.loads(text)


def _as_list(value: Any, name: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{name}' must be a list")
    return value


def _parse_timestamp(value: Any, zone: tzinfo | None) -> datetime:
    """Parse an ISO-8601 string or epoch seconds; naive values get ``zone``."""
    if isinstance(value, str) and value.strip():
        try:
            dt = parser.isoparse(value.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid timestamp: {value!r}") from exc
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=zone)
        return dt

    if isinstance(value, int | float) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=zone)

    raise ValueError(f"Missing or invalid timestamp: {value!r}")


def _parse_optional(value: Any, zone: tzinfo | None) -> datetime | None:
    if value is None:
        return None
    return _parse_timestamp(value, zone)


def _optional_float(item: dict[str, Any], key: str) -> float | None:
    value = item.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{key}' must be numeric, got {value!r}") from exc


def _load_samples(
    raw: dict[str, Any], key: str, kind: type[S], zone: tzinfo | None
) -> list[S]:
    out: list[S] = []
    for item in _as_list(raw.get(key), key):
        if not isinstance(item, dict):
            raise ValueError(f"{key} entries must be objects")
        value = _optional_float(item, "value")
        if value is None:
            continue
        start = _parse_timestamp(item.get("start"), zone)
        end = _parse_optional(item.get("end"), zone) or start
        out.append(kind(start=start, end=end, value=value))
    out.sort(key=lambda s: s.start)
    return out


def _item_to_carb_record(item: Any, zone: tzinfo | None) -> CarbAbsorptionRecord:
    """Convierte un ítem dict en CarbAbsorptionRecord; los campos ausentes quedan None."""
    if not isinstance(item, dict):
        raise ValueError("carb_statuses entries must be objects")
    return CarbAbsorptionRecord(
        observed_start=_parse_optional(item.get("observed_start"), zone),
        observed_end=_parse_optional(item.get("observed_end"), zone),
        entered_carbs=_optional_float(item, "entered_carbs"),
        observed_carbs=_optional_float(item, "observed_carbs"),
        estimated_time_remaining=_optional_float(item, "time_remaining"),
    )
