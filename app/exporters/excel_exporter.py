"""
Excel export helper wrapping xlsxwriter.

``ExcelExporter`` builds a single-sheet workbook in memory: a title block
with the applied filters, an optional summary row, and a styled table. The
contract history export is its only caller today.

Usage example::

    exporter = ExcelExporter(title="Historial de contratos", filters={"Contrato": "12"})
    exporter.add_header()
    exporter.add_summary_row({"Total acciones": 8})
    exporter.add_data_table(headers, rows, money_cols={5})
    file_bytes = exporter.finalize()

Design notes
------------
- ``in_memory`` mode over a ``BytesIO``; nothing touches disk.
- ``datetime`` cells get a date-time format, money columns ``#,##0.00``.
- Column widths follow the longest value, capped at 60 characters.
"""

from __future__ import annotations

import io
from datetime import date, datetime
from typing import Any, Sequence

import xlsxwriter

_COLOR_PRIMARY = "#1E3A5F"
_COLOR_ACCENT = "#2563EB"
_COLOR_WHITE = "#FFFFFF"
_COLOR_ROW_ALT = "#F3F4F6"
_COLOR_BORDER = "#E5E7EB"

_MAX_COL_WIDTH = 60
_MIN_COL_WIDTH = 8
_HEADER_MIN_COLS = 6


class ExcelExporter:
    """Single-worksheet workbook builder.

    Args:
        title: Title shown in the merged header row.
        filters: ``{label: value}`` pairs listed under the title.
        sheet_name: Worksheet tab name (max 31 chars in Excel).
    """

    def __init__(
        self,
        title: str,
        filters: dict[str, str] | None = None,
        sheet_name: str = "Datos",
    ) -> None:
        self._title = title
        self._filters = filters or {}

        self._buffer = io.BytesIO()
        self._workbook = xlsxwriter.Workbook(self._buffer, {"in_memory": True})
        self._worksheet = self._workbook.add_worksheet(sheet_name[:31])

        self._current_row: int = 0
        self._formats: dict[str, Any] = self._build_formats()

    def _build_formats(self) -> dict[str, Any]:
        wb = self._workbook
        cell = {"font_size": 9, "valign": "vcenter", "border": 1, "border_color": _COLOR_BORDER}
        formats: dict[str, Any] = {
            "title": wb.add_format({
                "bold": True, "font_size": 14, "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_PRIMARY, "align": "center", "valign": "vcenter",
            }),
            "subtitle": wb.add_format({
                "font_size": 9, "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_ACCENT, "align": "center", "valign": "vcenter",
            }),
            "filter_key": wb.add_format({
                "bold": True, "font_size": 9, "bg_color": "#E5E7EB", "align": "right",
            }),
            "filter_value": wb.add_format({"font_size": 9, "align": "left"}),
            "summary_label": wb.add_format({
                "bold": True, "font_size": 9, "bg_color": "#EFF6FF",
                "align": "center", "border": 1, "border_color": "#BFDBFE",
            }),
            "summary_value": wb.add_format({
                "bold": True, "font_size": 11, "font_color": _COLOR_ACCENT,
                "bg_color": "#EFF6FF", "align": "center", "border": 1,
                "border_color": "#BFDBFE",
            }),
            "col_header": wb.add_format({
                "bold": True, "font_size": 10, "font_color": _COLOR_WHITE,
                "bg_color": _COLOR_PRIMARY, "align": "center", "valign": "vcenter",
                "border": 1, "text_wrap": True,
            }),
        }
        # Data cells come in plain/alternate pairs per kind
        kinds = {
            "text": {"align": "left"},
            "money": {"align": "right", "num_format": "#,##0.00"},
            "datetime": {"align": "center", "num_format": "dd/mm/yyyy hh:mm:ss"},
            "date": {"align": "center", "num_format": "dd/mm/yyyy"},
        }
        for kind, props in kinds.items():
            formats[kind] = wb.add_format({**cell, **props, "bg_color": _COLOR_WHITE})
            formats[f"{kind}_alt"] = wb.add_format({**cell, **props, "bg_color": _COLOR_ROW_ALT})
        return formats

    def add_header(self, num_cols: int = _HEADER_MIN_COLS) -> "ExcelExporter":
        """Title row, generation timestamp, then one row per filter."""
        ws = self._worksheet
        last_col = max(num_cols, _HEADER_MIN_COLS) - 1

        ws.set_row(self._current_row, 28)
        ws.merge_range(self._current_row, 0, self._current_row, last_col,
                       self._title, self._formats["title"])
        self._current_row += 1

        generado = datetime.now().strftime("%d/%m/%Y %H:%M")
        ws.merge_range(self._current_row, 0, self._current_row, last_col,
                       f"Generado: {generado}", self._formats["subtitle"])
        self._current_row += 1

        for key, value in self._filters.items():
            ws.write(self._current_row, 0, key, self._formats["filter_key"])
            ws.merge_range(self._current_row, 1, self._current_row, last_col,
                           value, self._formats["filter_value"])
            self._current_row += 1

        self._current_row += 1
        return self

    def add_summary_row(self, values: dict[str, Any]) -> "ExcelExporter":
        """Labels on one row, their values right below."""
        ws = self._worksheet
        for col, (label, value) in enumerate(values.items()):
            ws.write(self._current_row, col, label, self._formats["summary_label"])
            ws.write(self._current_row + 1, col, value, self._formats["summary_value"])
        self._current_row += 3
        return self

    def _cell_format(self, value: Any, is_money: bool, alt: bool) -> Any:
        if isinstance(value, datetime):
            kind = "datetime"
        elif isinstance(value, date):
            kind = "date"
        elif is_money:
            kind = "money"
        else:
            kind = "text"
        return self._formats[f"{kind}_alt" if alt else kind]

    def add_data_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        money_cols: set[int] | None = None,
    ) -> "ExcelExporter":
        """Header row plus data rows with alternating shading.

        Args:
            headers: Column titles.
            rows: Data rows, each as long as ``headers``.
            money_cols: Zero-based indices written with the money format.
        """
        ws = self._worksheet
        money_cols = money_cols or set()
        widths = [len(h) for h in headers]

        ws.set_row(self._current_row, 20)
        for ci, header in enumerate(headers):
            ws.write(self._current_row, ci, header, self._formats["col_header"])
        self._current_row += 1

        for ri, data_row in enumerate(rows):
            alt = ri % 2 == 1
            for ci, value in enumerate(data_row):
                fmt = self._cell_format(value, ci in money_cols, alt)
                if isinstance(value, datetime):
                    ws.write_datetime(self._current_row, ci, value, fmt)
                    shown = 19
                elif value is None:
                    ws.write_blank(self._current_row, ci, None, fmt)
                    shown = 0
                else:
                    ws.write(self._current_row, ci, value, fmt)
                    shown = len(str(value))
                widths[ci] = min(_MAX_COL_WIDTH, max(widths[ci], shown))
            self._current_row += 1

        for ci, width in enumerate(widths):
            ws.set_column(ci, ci, max(width + 2, _MIN_COL_WIDTH))
        return self

    def finalize(self) -> bytes:
        """Close the workbook and return the ``.xlsx`` bytes; do not reuse afterwards."""
        self._workbook.close()
        self._buffer.seek(0)
        return self._buffer.read()
