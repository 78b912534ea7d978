"""CLI para revisar multiplicadores de basal, ISF, CSF y CR a partir de una exportación."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path

from dateutil import tz
from dateutil.parser import isoparse

from settings_review.config import EstimationConfig, EstimationStrategy, ReportLayout
from settings_review.excel_writer import ExcelLayout, write_intervals_xlsx
from settings_review.report import intervals_to_frame, render
from settings_review.session import Session
from settings_review.sources.loop_export import LoopExportPaths, LoopExportSource


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Settings review: estimate dosing parameter multipliers."
    )
    parser.add_argument(
        "--input",
        required=True,
        help="Export JSON file, or folder with settings_review_*.json files.",
    )
    parser.add_argument("--start", default=None, help="Window start (ISO-8601).")
    parser.add_argument("--end", default=None, help="Window end (ISO-8601).")
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in EstimationStrategy],
        default=EstimationStrategy.GENERAL.value,
        help="Estimator applied to each interval (default: general).",
    )
    parser.add_argument(
        "--timezone",
        default=None,
        help="IANA zone for naive timestamps and the report (default: local).",
    )
    parser.add_argument(
        "--export-dir",
        default=None,
        help="Also write an XLSX interval table into this folder.",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging.")
    return parser.parse_args()


def _parse_window_bound(value: str | None, zone_name: str | None) -> datetime | None:
    if value is None:
        return None
    dt = isoparse(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz.gettz(zone_name) if zone_name else tz.tzlocal())
    return dt


def main() -> int:
    """Run the settings review CLI.

    Returns:
        Exit code (0 on success, 1 without a usable window).
    """
    ns = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    source = LoopExportSource(
        LoopExportPaths(root=Path(ns.input).expanduser(), timezone=ns.timezone)
    )
    source.validate()
    export_file = source.resolve()
    data = source.load(export_file)

    start = _parse_window_bound(ns.start, ns.timezone) or data.start
    end = _parse_window_bound(ns.end, ns.timezone) or data.end
    if start is None and data.glucose:
        start = data.glucose[0].start
    if end is None and data.glucose:
        end = data.glucose[-1].end
    if start is None or end is None:
        print(f"ERR: no window and no glucose samples in {export_file}")
        return 1

    session = Session(
        start,
        end,
        glucose=data.glucose,
        insulin_effect=data.insulin_effect,
        basal_effect=data.basal_effect,
        carb_records=data.carb_records,
        config=EstimationConfig(strategy=EstimationStrategy(ns.strategy)),
    )
    session.update_parameter_estimates()

    print(render(session, ReportLayout(timezone=ns.timezone)))
    print(f"OK: Export file: {export_file}")
    print(f"OK: Intervals: {len(session.intervals)}")

    if ns.export_dir:
        ts = datetime.now(tz=tz.tzlocal()).strftime("%Y-%m-%d_%H-%M-%S")
        out_path = Path(ns.export_dir).expanduser() / f"settings_review_{ts}.xlsx"
        frame = intervals_to_frame(session.intervals)
        write_intervals_xlsx(frame, out_path, ExcelLayout())
        print(f"OK: Output: {out_path}")
    return 0
