"""Generación de Excel formateado con la tabla de intervalos."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

_HEADER_MAP: dict[str, str] = {
    "start": "Start",
    "end": "End",
    "type": "Type",
    "entered_carbs_g": "Entered\ncarbs (g)",
    "observed_carbs_g": "Observed\ncarbs (g)",
    "delta_glucose": "ΔBG\n(mg/dL)",
    "delta_glucose_insulin": "ΔBG insulin\n(mg/dL)",
    "delta_glucose_basal": "ΔBG basal\n(mg/dL)",
    "isf_multiplier": "ISF\nmultiplier",
    "cr_multiplier": "CR\nmultiplier",
    "csf_multiplier": "CSF\nmultiplier",
    "basal_multiplier": "Basal\nmultiplier",
}

_MULTIPLIER_HEADERS = (
    "ISF\nmultiplier",
    "CR\nmultiplier",
    "CSF\nmultiplier",
    "Basal\nmultiplier",
)


@dataclass(frozen=True)
class ExcelLayout:
    """Layout/formatting configuration for the intervals sheet."""

    sheet_name: str = "Settings review"


def _naive(value: object) -> object:
    if getattr(value, "tzinfo", None) is not None:
        return value.replace(tzinfo=None)  # type: ignore[attr-defined]
    return value


def _strip_timezones(export_df: pd.DataFrame) -> pd.DataFrame:
    """Quita timezone de start/end conservando la hora local (Excel no los soporta)."""
    export_df = export_df.copy()
    for col in ("start", "end"):
        if col in export_df.columns:
            export_df[col] = export_df[col].map(_naive)
    return export_df


def write_intervals_xlsx(
    df: pd.DataFrame, out_path: Path, layout: ExcelLayout
) -> None:
    """Write a formatted Excel file with one row per interval.

    Args:
        df: Frame from ``intervals_to_frame``.
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    export_df = _strip_timezones(df)
    export_df = export_df.rename(columns=_HEADER_MAP)

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        export_df.to_excel(writer, index=False, sheet_name=layout.sheet_name)
        ws = writer.book[layout.sheet_name]
        _format_sheet(ws)


def _style_header_row(ws: Any) -> None:
    """Aplica fuente negrita, alineación y borde a la fila de cabecera."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center")
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    widths = {"Start": 18, "End": 18, "Type": 16}
    for header, idx in col_index.items():
        letter = ws.cell(row=1, column=idx).column_letter
        ws.column_dimensions[letter].width = widths.get(header, 12)


def _apply_number_formats(ws: Any, col_index: dict[str, int]) -> None:
    """Aplica formatos numéricos por cabecera."""
    fmt_map: dict[str, str] = {
        "Start": "dd/mm/yyyy hh:mm",
        "End": "dd/mm/yyyy hh:mm",
        "Entered\ncarbs (g)": "0.0",
        "Observed\ncarbs (g)": "0.0",
        "ΔBG\n(mg/dL)": "0.0",
        "ΔBG insulin\n(mg/dL)": "0.0",
        "ΔBG basal\n(mg/dL)": "0.0",
    }
    fmt_map.update({header: "0.000" for header in _MULTIPLIER_HEADERS})
    for row in ws.iter_rows(min_row=2):
        for header, fmt in fmt_map.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _format_sheet(ws: Any) -> None:
    """Apply borders, widths and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index)
