"""
Column Type Inferencer
=======================
Classifies each column as number | string | date | boolean from its raw
values and derives the ColumnDescriptor set for a parsed Dataset.

Check order matters:
  1. boolean  — every non-null value is a bool or one of true/false/0/1/yes/no
  2. number   — every non-null value parses as a finite number
  3. date     — MORE than 80% of non-null values parse as a calendar date
  4. string   — fallback (also used for an all-null column)

A column holding only 0/1 is therefore boolean, not numeric.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .models import ColumnDescriptor, ColumnType, Dataset
from .values import canonical_key, is_boolean_like, is_null, to_date, to_number

logger = logging.getLogger(__name__)

DATE_SHARE_THRESHOLD = 0.8
SAMPLE_SIZE = 5


def infer_column_type(values: Sequence[Any]) -> ColumnType:
    non_null = [v for v in values if not is_null(v)]
    if not non_null:
        return ColumnType.STRING

    if all(is_boolean_like(v) for v in non_null):
        return ColumnType.BOOLEAN

    if all(to_number(v) is not None for v in non_null):
        return ColumnType.NUMBER

    date_count = sum(1 for v in non_null if to_date(v) is not None)
    if date_count > len(non_null) * DATE_SHARE_THRESHOLD:
        return ColumnType.DATE

    return ColumnType.STRING


def utc_now() -> datetime:
    """Naive UTC timestamp; the session table stores naive datetimes."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def collect_column_names(rows: Iterable[Dict[str, Any]]) -> List[str]:
    """Union of row keys in first-seen order (ragged rows contribute late keys)."""
    names: Dict[str, None] = {}
    for row in rows:
        for key in row.keys():
            names.setdefault(str(key), None)
    return list(names)


def describe_column(name: str, values: Sequence[Any]) -> ColumnDescriptor:
    null_count = sum(1 for v in values if is_null(v))
    # Nulls count as one distinct entry, as in the upload preview
    unique_count = len({canonical_key(v) for v in values})
    return ColumnDescriptor(
        name=name,
        type=infer_column_type(values),
        sample=tuple(values[:SAMPLE_SIZE]),
        null_count=null_count,
        unique_count=unique_count,
    )


def describe_columns(rows: Sequence[Dict[str, Any]]) -> List[ColumnDescriptor]:
    if not rows:
        return []
    return [
        describe_column(name, [row.get(name) for row in rows])
        for name in collect_column_names(rows)
    ]


def build_dataset(
    name: str,
    rows: Sequence[Dict[str, Any]],
    uploaded_at: Optional[datetime] = None,
) -> Dataset:
    """Freeze parsed rows into a Dataset with inferred column descriptors."""
    frozen_rows = tuple(dict(r) for r in rows)
    columns = describe_columns(frozen_rows)
    logger.debug(
        f"Built dataset '{name}': {len(frozen_rows)} rows, "
        f"types={[c.type.value for c in columns]}"
    )
    return Dataset(
        name=name,
        rows=frozen_rows,
        columns=tuple(columns),
        row_count=len(frozen_rows),
        uploaded_at=uploaded_at or utc_now(),
    )
