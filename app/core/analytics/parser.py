"""
Dataset Parser
===============
Turns uploaded file bytes into a Dataset.

  .csv / .txt   — header row, dynamic typing, blank lines skipped (pandas)
  .json         — top-level array; else the first array-valued key of an
                  object; else the single object wrapped in a list
  .xlsx / .xls  — first sheet (pandas + openpyxl)

Cells come out as plain Python values: NaN holes become None, numpy scalars
become int/float/bool, Timestamps become datetime.
"""

import io
import json
import logging
import math
import zipfile
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .models import Dataset
from .type_inference import build_dataset

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = {"csv", "txt"}
JSON_EXTENSIONS = {"json"}
EXCEL_EXTENSIONS = {"xlsx", "xls"}
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | JSON_EXTENSIONS | EXCEL_EXTENSIONS


class DatasetError(Exception):
    """Base class for upload failures shown inline to the user."""


class UnsupportedFileTypeError(DatasetError):
    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file format: {extension or '(none)'}")


class DatasetParseError(DatasetError):
    pass


def file_extension(filename: str) -> str:
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def _plain_value(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    return value


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    df = df.dropna(how="all")
    columns = [str(c) for c in df.columns]
    return [
        {col: _plain_value(v) for col, v in zip(columns, record)}
        for record in df.itertuples(index=False, name=None)
    ]


def _parse_csv(content: bytes) -> List[Dict[str, Any]]:
    try:
        df = pd.read_csv(io.BytesIO(content), skip_blank_lines=True)
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise DatasetParseError(f"Could not parse CSV: {e}") from e
    return frame_to_rows(df)


def _parse_json(content: bytes) -> List[Dict[str, Any]]:
    try:
        data = json.loads(content.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DatasetParseError(f"Could not parse JSON: {e}") from e

    if isinstance(data, list):
        records = data
    elif isinstance(data, dict):
        array_key = next((k for k, v in data.items() if isinstance(v, list)), None)
        records = data[array_key] if array_key is not None else [data]
    else:
        raise DatasetParseError("Invalid JSON structure")

    rows = [r for r in records if isinstance(r, dict)]
    if len(rows) != len(records):
        raise DatasetParseError("Invalid JSON structure: every record must be an object")
    return rows


def _parse_excel(content: bytes) -> List[Dict[str, Any]]:
    try:
        df = pd.read_excel(io.BytesIO(content), sheet_name=0)
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        raise DatasetParseError(f"Could not read spreadsheet: {e}") from e
    return frame_to_rows(df)


def parse_file(filename: str, content: bytes, uploaded_at: Optional[datetime] = None) -> Dataset:
    """Parse an uploaded file. Raises UnsupportedFileTypeError / DatasetParseError."""
    extension = file_extension(filename)
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileTypeError(extension)

    if extension in TEXT_EXTENSIONS:
        rows = _parse_csv(content)
    elif extension in JSON_EXTENSIONS:
        rows = _parse_json(content)
    else:
        rows = _parse_excel(content)

    if not rows:
        raise DatasetParseError(f"No data rows found in {filename}")

    logger.info(f"Parsed {filename}: {len(rows)} rows")
    return build_dataset(filename, rows, uploaded_at=uploaded_at)
