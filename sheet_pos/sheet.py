from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any

import pandas as pd

from .errors import InvalidSource

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = (".xlsx", ".xls")


def check_excel_filename(name: str) -> None:
    if Path(str(name)).suffix.lower() not in EXCEL_SUFFIXES:
        raise InvalidSource("Please select a valid Excel file (.xlsx or .xls)")


def _blank_to_empty(frame: pd.DataFrame) -> pd.DataFrame:
    frame = frame.astype(object)
    return frame.where(frame.notna(), "")


def read_rows(data: bytes) -> list[dict[str, Any]]:
    """Read the first sheet of a workbook into header-keyed rows.

    Empty cells become "". When the header-keyed read yields no rows, the
    sheet is read positionally and its first row is used as the headers.
    """
    if not data:
        raise InvalidSource("Excel file is empty")

    try:
        with pd.ExcelFile(io.BytesIO(data)) as book:
            if not book.sheet_names:
                raise InvalidSource("Excel file contains no sheets")
            sheet = book.sheet_names[0]
            logger.info("Using sheet: %s", sheet)

            frame = _blank_to_empty(book.parse(sheet, dtype=object))
            headers = [str(c) for c in frame.columns]
            rows = [dict(zip(headers, values)) for values in frame.itertuples(index=False, name=None)]

            if not rows:
                logger.info("No data with header detection, trying raw data")
                raw = _blank_to_empty(book.parse(sheet, header=None, dtype=object))
                rows = _positional_rows(raw.values.tolist())
    except InvalidSource:
        raise
    except Exception as e:
        raise InvalidSource(f"Failed to read Excel file: {e}") from e

    logger.info("Parsed %d data rows", len(rows))
    return rows


def _positional_rows(table: list[list[Any]]) -> list[dict[str, Any]]:
    if len(table) < 2:
        return []
    headers = [str(h).strip() for h in table[0]]
    out: list[dict[str, Any]] = []
    for values in table[1:]:
        out.append({h: (values[i] if i < len(values) else "") for i, h in enumerate(headers)})
    return out
