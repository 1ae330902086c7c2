"""
decoder.py
Reads the first sheet of an uploaded spreadsheet into RawRow mappings.
"""

import os
from typing import Any, List

import pandas as pd

from excel_import.models.ingestion import RawRow
from excel_import.services.errors import DecodeError
from excel_import.utils.logging_config import logger

EXCEL_ENGINES = {
    ".xlsx": "openpyxl",
    ".xlsm": "openpyxl",
}
UNSUPPORTED_EXTENSIONS = (".xls",)

def _native(value: Any) -> Any:
    # numpy scalars -> plain Python values
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        try:
            return value.item()
        except (ValueError, AttributeError):
            return value
    return value

def _is_blank(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False

def _read_frame(path: str) -> pd.DataFrame:
    ext = os.path.splitext(path)[1].lower()
    if ext == ".csv":
        return pd.read_csv(path, header=0, dtype=object, skip_blank_lines=False)
    return pd.read_excel(path, sheet_name=0, header=0, dtype=object, engine=EXCEL_ENGINES.get(ext, "openpyxl"))

def read_rows(path: str) -> List[RawRow]:
    """Decode the first sheet of the file at ``path``.

    The first row is the header. Cells keep the type the container stored
    (numbers stay numbers, text stays text); empty cells are omitted and fully
    blank rows are skipped, while positions keep counting them so they match
    the sheet. Legacy .xls workbooks are refused. Raises DecodeError for missing, empty or
    unreadable files and for sheets without a header row.
    """
    if not os.path.isfile(path):
        raise DecodeError(f"File not found: {os.path.basename(path)}")
    ext = os.path.splitext(path)[1].lower()
    if ext in UNSUPPORTED_EXTENSIONS:
        raise DecodeError(f"Unsupported file type '{ext}'; save the workbook as .xlsx.")
    if os.path.getsize(path) == 0:
        raise DecodeError("The uploaded file is empty.")

    try:
        df = _read_frame(path)
    except pd.errors.EmptyDataError as e:
        raise DecodeError("The spreadsheet has no header row.") from e
    except Exception as e:  # zipfile, xml, engine and format errors all land here
        logger.warning(f"Could not decode {os.path.basename(path)}: {e}")
        raise DecodeError(f"Unable to read spreadsheet: {e}") from e

    columns = {}
    for col in df.columns:
        label = str(col).strip()
        if not label or label.startswith("Unnamed:"):
            continue
        columns[col] = label
    if not columns:
        raise DecodeError("The spreadsheet has no header row.")

    rows: List[RawRow] = []
    for offset, values in enumerate(df.itertuples(index=False, name=None)):
        if all(_is_blank(value) for value in values):
            continue
        # Values under blank headers still count; such a row reaches the validator empty
        cells = {}
        for col, value in zip(df.columns, values):
            if col not in columns or _is_blank(value):
                continue
            cells[columns[col]] = _native(value)
        rows.append(RawRow(position=offset + 1, cells=cells))

    logger.info(f"Decoded {len(rows)} rows with columns {list(columns.values())} from {os.path.basename(path)}")
    return rows
