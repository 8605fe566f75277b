"""
Spreadsheet export for feature logs (openpyxl).

Rows are flat ``{header: value}`` dicts in log order. Headers come from the
first row's keys, so every row of one export must share the same columns.
"""

from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

# Excel rejects longer sheet titles
MAX_SHEET_TITLE = 31


class SpreadsheetExporter:
    def __init__(self, output_dir: str = "exports"):
        self.output_dir = output_dir

    def build_workbook(self, rows: Sequence[Dict[str, Any]], sheet_name: str) -> Workbook:
        headers = list(rows[0].keys())
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_name[:MAX_SHEET_TITLE]
        ws.append(headers)
        for row in rows:
            ws.append([row.get(h) for h in headers])

        # Auto-size columns based on content and header length
        widths: List[int] = [len(str(h)) for h in headers]
        for row in rows:
            for i, h in enumerate(headers):
                value = row.get(h)
                widths[i] = max(widths[i], len(str(value)) if value not in (None, "") else 0)
        for i, width in enumerate(widths, start=1):
            ws.column_dimensions[get_column_letter(i)].width = width + 2
        return wb

    def render(self, rows: Sequence[Dict[str, Any]], sheet_name: str) -> Optional[bytes]:
        """Return the .xlsx file as bytes, or None if there is nothing to export."""
        if not rows:
            logging.warning(f"No data to export for sheet '{sheet_name}'")
            return None
        buf = io.BytesIO()
        self.build_workbook(rows, sheet_name).save(buf)
        return buf.getvalue()

    def export(self, rows: Sequence[Dict[str, Any]], sheet_name: str, file_base_name: str) -> Optional[Path]:
        """
        Write ``<output_dir>/<file_base_name>.xlsx`` containing a single sheet.

        Each call replaces the file; sheets never accumulate across calls.
        Returns the written path, or None when rows is empty or the write fails.
        """
        if not rows:
            logging.warning(f"No data to export for sheet '{sheet_name}'")
            return None
        path = Path(self.output_dir) / f"{file_base_name}.xlsx"
        try:
            os.makedirs(self.output_dir, exist_ok=True)
            self.build_workbook(rows, sheet_name).save(path)
        except OSError as e:
            logging.error(f"Error exporting to Excel ({path}): {e}")
            return None
        logging.info(f"Exported {len(rows)} rows to {path}")
        return path
