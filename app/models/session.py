"""
Analysis Session — Database Model
===================================
One row per browser session id, holding the uploaded dataset: raw rows and
column descriptors as JSON text. Uploading again replaces the row wholesale.

Derived results (statistics, charts, insights, reports) are never stored;
they are recomputed from the Dataset on every request.

Table auto-created by Base.metadata.create_all(engine).
"""

import json
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import Session

from app.core.analytics.models import ColumnDescriptor, ColumnType, Dataset
from app.core.analytics.type_inference import utc_now
from app.core.database import Base


class AnalysisSessionRecord(Base):
    __tablename__ = "analysis_sessions"

    id = Column(String(100), primary_key=True)
    name = Column(String(500), nullable=False)
    rows = Column(Text, nullable=False)          # JSON list of row objects
    columns = Column(Text, nullable=False)       # JSON list of ColumnDescriptor dicts
    row_count = Column(Integer, nullable=False, default=0)
    uploaded_at = Column(DateTime, nullable=False, default=utc_now)

    def __repr__(self):
        return f"<AnalysisSessionRecord {self.id} '{self.name}' rows={self.row_count}>"

    @classmethod
    def from_dataset(cls, session_id: str, dataset: Dataset) -> "AnalysisSessionRecord":
        return cls(
            id=session_id,
            name=dataset.name,
            rows=json.dumps(list(dataset.rows), default=str),
            columns=json.dumps([c.to_dict() for c in dataset.columns], default=str),
            row_count=dataset.row_count,
            uploaded_at=dataset.uploaded_at,
        )

    def to_dataset(self) -> Dataset:
        """Rebuild the Dataset; column types come from the stored descriptors, not re-inference."""
        columns = tuple(
            ColumnDescriptor(
                name=c["name"],
                type=ColumnType(c["type"]),
                sample=tuple(c.get("sample", [])),
                null_count=c.get("null_count", 0),
                unique_count=c.get("unique_count", 0),
            )
            for c in json.loads(self.columns)
        )
        rows = tuple(json.loads(self.rows))
        return Dataset(
            name=self.name,
            rows=rows,
            columns=columns,
            row_count=self.row_count,
            uploaded_at=self.uploaded_at,
        )


# ═══════════════════════════════════════════════════════════════
# SESSION STORE
# ═══════════════════════════════════════════════════════════════

def load_dataset(db: Session, session_id: str) -> Optional[Dataset]:
    record = db.get(AnalysisSessionRecord, session_id)
    return record.to_dataset() if record else None


def save_dataset(db: Session, session_id: str, dataset: Dataset) -> AnalysisSessionRecord:
    """Insert or replace the session's dataset."""
    existing = db.get(AnalysisSessionRecord, session_id)
    if existing is not None:
        db.delete(existing)
        db.flush()
    record = AnalysisSessionRecord.from_dataset(session_id, dataset)
    db.add(record)
    db.commit()
    return record


def delete_dataset(db: Session, session_id: str) -> bool:
    record = db.get(AnalysisSessionRecord, session_id)
    if record is None:
        return False
    db.delete(record)
    db.commit()
    return True
