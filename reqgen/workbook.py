# reqgen/workbook.py
"""
Excel workbook as test data source and report sink (openpyxl).

Input sheets:
    Input     one row per case: ID column first, then field columns (incl. TestCase)
    Baseline  one row per case: ID column first, then at least a Response column

Report sheets (recreated on every run):
    Output      ID | TestCase | Detail     raw response body or status line
    Comparison  ID | TestCase | Detail     diff / error text, non-passing cases only
    Result      summary (Total | Failed | Started | Ended) on rows 1-2,
                then ID | TestCase | Outcome per case
"""

from __future__ import annotations

import logging
import zipfile
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import openpyxl
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from reqgen.errors import DataSourceError
from reqgen.record import IndexedList, NamedFields, Record
from reqgen.types import Outcome

logger = logging.getLogger(__name__)

OUTPUT_SHEET = "Output"
COMPARISON_SHEET = "Comparison"
RESULT_SHEET = "Result"

DETAIL_HEADER = ("ID", "TestCase", "Detail")
RESULT_HEADER = ("ID", "TestCase", "Outcome")
SUMMARY_HEADER = ("Total", "Failed", "Started", "Ended")
SUMMARY_ROW = 2

# Excel refuses cells longer than this.
MAX_CELL_CHARS = 32767


# ==================== Reading ====================

def cell_text(value: Any) -> str:
    """Cell value as the string a user sees in the sheet."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def _blank(row: Sequence[Any]) -> bool:
    return all(cell_text(v).strip() == "" for v in row)


def read_sheet(
    sheet: Worksheet,
    has_headers: bool = True,
    key_column: Optional[int] = 0,
) -> Dict[str, Record]:
    """
    Load a sheet as {key: record}.

    With headers every row becomes a NamedFields keyed by header name (short
    rows are padded with ""). Without headers every row becomes an
    IndexedList. Rows are keyed by `key_column`, or by 1-based row number
    when key_column is None. Fully blank rows are skipped.
    """
    rows = list(sheet.iter_rows(values_only=True))
    records: Dict[str, Record] = {}
    if not rows:
        return records

    headers = [cell_text(v).strip() for v in rows[0]] if has_headers else []
    first_data_row = 2 if has_headers else 1

    for row_no, row in enumerate(rows[first_data_row - 1:], start=first_data_row):
        if _blank(row):
            continue

        if has_headers:
            fields = {
                name: cell_text(row[col]) if col < len(row) else ""
                for col, name in enumerate(headers)
                if name
            }
            record: Record = NamedFields(fields)
        else:
            record = IndexedList(cell_text(v) for v in row)

        if key_column is None:
            key = str(row_no)
        else:
            key = cell_text(row[key_column]).strip() if key_column < len(row) else ""

        if key in records:
            logger.warning(f"Sheet {sheet.title!r}: duplicate key {key!r} on row {row_no} replaces earlier row")
        records[key] = record

    logger.debug(f"Sheet {sheet.title!r}: loaded {len(records)} record(s)")
    return records


# ==================== Workbook ====================

class DataWorkbook:
    """Input/Baseline reader and Output/Comparison/Result writer for one .xlsx file."""

    def __init__(
        self,
        path: Union[str, Path],
        input_sheet: str = "Input",
        baseline_sheet: str = "Baseline",
    ):
        self.path = Path(path)
        self.input_sheet = input_sheet
        self.baseline_sheet = baseline_sheet

        if not self.path.is_file():
            raise DataSourceError(f"Workbook not found: {self.path}")
        try:
            self.wb = openpyxl.load_workbook(self.path)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
            raise DataSourceError(f"Cannot read workbook {self.path}: {e}") from e

        missing = [s for s in (input_sheet, baseline_sheet) if s not in self.wb.sheetnames]
        if missing:
            raise DataSourceError(f"Workbook {self.path} is missing sheet(s): {', '.join(missing)}")

        self._output: Optional[Worksheet] = None
        self._comparison: Optional[Worksheet] = None
        self._result: Optional[Worksheet] = None

    # ---------- data source ----------

    def inputs(self) -> Dict[str, NamedFields]:
        return self._named(self.input_sheet)

    def baselines(self) -> Dict[str, NamedFields]:
        return self._named(self.baseline_sheet)

    def _named(self, name: str) -> Dict[str, NamedFields]:
        records = read_sheet(self.wb[name], has_headers=True, key_column=0)
        return {k: r for k, r in records.items() if isinstance(r, NamedFields)}

    # ---------- report sink ----------

    def reset_report_sheets(self) -> None:
        """Drop report sheets left by a previous run and create empty ones."""
        for name in (OUTPUT_SHEET, COMPARISON_SHEET, RESULT_SHEET):
            if name in self.wb.sheetnames:
                self.wb.remove(self.wb[name])

        self._output = self.wb.create_sheet(OUTPUT_SHEET)
        self._output.append(DETAIL_HEADER)
        self._comparison = self.wb.create_sheet(COMPARISON_SHEET)
        self._comparison.append(DETAIL_HEADER)
        self._result = self.wb.create_sheet(RESULT_SHEET)
        self._result.append(SUMMARY_HEADER)
        self._result.append(("", "", "", ""))
        self._result.append(RESULT_HEADER)

    def write_output(self, case_id: str, label: str, text: str) -> None:
        self._sheet(OUTPUT_SHEET).append((case_id, label, _clip(text)))

    def write_comparison(self, case_id: str, label: str, text: str) -> None:
        self._sheet(COMPARISON_SHEET).append((case_id, label, _clip(text)))

    def write_result(self, case_id: str, label: str, outcome: Outcome) -> None:
        self._sheet(RESULT_SHEET).append((case_id, label, outcome.value))

    def write_summary(self, total: int, failed: int, started_at: str, ended_at: str) -> None:
        ws = self._sheet(RESULT_SHEET)
        for col, value in enumerate((total, failed, started_at, ended_at), start=1):
            ws.cell(row=SUMMARY_ROW, column=col, value=value)

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        target = Path(path) if path else self.path
        try:
            self.wb.save(target)
        except OSError as e:
            raise DataSourceError(f"Cannot save workbook {target}: {e}") from e
        logger.info(f"✅ Results workbook → {target}")
        return target

    def _sheet(self, name: str) -> Worksheet:
        ws = {OUTPUT_SHEET: self._output, COMPARISON_SHEET: self._comparison, RESULT_SHEET: self._result}[name]
        if ws is None:
            raise RuntimeError("reset_report_sheets() must be called before writing results")
        return ws


def _clip(text: Optional[str]) -> str:
    # Control characters openpyxl refuses to store are dropped.
    text = ILLEGAL_CHARACTERS_RE.sub("", text or "")
    if len(text) > MAX_CELL_CHARS:
        return text[:MAX_CELL_CHARS - 3] + "..."
    return text
