"""
Dataset Session — API Endpoints
=================================
Upload, fetch and discard the dataset owned by a browser session.

Endpoints:
  POST   /sessions/{session_id}/dataset   — multipart upload (csv/txt/json/xlsx/xls)
  GET    /sessions/{session_id}/dataset   — current dataset summary
  DELETE /sessions/{session_id}/dataset   — discard the dataset

A failed upload (unsupported type 415, unparseable 422, too large 413)
leaves the previously uploaded dataset in place.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from app.config import settings
from app.core.analytics.models import Dataset
from app.core.analytics.parser import DatasetParseError, UnsupportedFileTypeError, parse_file
from app.core.database import get_db
from app.models.session import delete_dataset, load_dataset, save_dataset

logger = logging.getLogger(__name__)
router = APIRouter()

PREVIEW_ROWS = 5


# ═══════════════════════════════════════════════════════════════
# RESPONSE SCHEMAS
# ═══════════════════════════════════════════════════════════════

class ColumnItem(BaseModel):
    name: str
    type: str
    sample: List[Any] = []
    null_count: int = 0
    unique_count: int = 0


class DatasetResponse(BaseModel):
    session_id: str
    name: str
    row_count: int
    columns: List[ColumnItem]
    uploaded_at: datetime
    preview: List[Dict[str, Any]] = []


def _dataset_response(session_id: str, dataset: Dataset) -> DatasetResponse:
    summary = dataset.summary_dict(preview_rows=PREVIEW_ROWS)
    return DatasetResponse(
        session_id=session_id,
        name=summary["name"],
        row_count=summary["row_count"],
        columns=[ColumnItem(**c) for c in summary["columns"]],
        uploaded_at=dataset.uploaded_at,
        preview=summary["preview"],
    )


def get_session_dataset(session_id: str, db=Depends(get_db)) -> Dataset:
    """Dependency: the session's dataset, or 404 when nothing was uploaded."""
    dataset = load_dataset(db, session_id)
    if dataset is None:
        raise HTTPException(status_code=404, detail=f"No dataset uploaded for session '{session_id}'")
    return dataset


# ═══════════════════════════════════════════════════════════════
# ENDPOINTS
# ═══════════════════════════════════════════════════════════════

@router.post("/sessions/{session_id}/dataset", response_model=DatasetResponse)
async def upload_dataset(session_id: str, file: UploadFile = File(...), db=Depends(get_db)):
    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large ({len(content)} bytes, limit {settings.MAX_UPLOAD_BYTES})",
        )

    filename = file.filename or "upload"
    try:
        dataset = parse_file(filename, content)
    except UnsupportedFileTypeError as e:
        logger.warning(f"Rejected upload '{filename}' for session {session_id}: {e}")
        raise HTTPException(status_code=415, detail=str(e))
    except DatasetParseError as e:
        logger.warning(f"Failed to parse '{filename}' for session {session_id}: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    save_dataset(db, session_id, dataset)
    logger.info(
        f"Session {session_id}: uploaded '{dataset.name}' "
        f"({dataset.row_count} rows, {len(dataset.columns)} columns)"
    )
    return _dataset_response(session_id, dataset)


@router.get("/sessions/{session_id}/dataset", response_model=DatasetResponse)
async def get_dataset(session_id: str, dataset: Dataset = Depends(get_session_dataset)):
    return _dataset_response(session_id, dataset)


@router.delete("/sessions/{session_id}/dataset")
async def discard_dataset(session_id: str, db=Depends(get_db)):
    if not delete_dataset(db, session_id):
        raise HTTPException(status_code=404, detail=f"No dataset uploaded for session '{session_id}'")
    logger.info(f"Session {session_id}: dataset discarded")
    return {"session_id": session_id, "deleted": True}
