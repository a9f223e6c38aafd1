from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one student's status for one calendar day."""

    record_id: str
    student_id: str
    day: date
    status: AttendanceStatus
    created_by: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    @property
    def last_modified(self) -> datetime:
        return self.updated_at or self.created_at

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "student_id": self.student_id,
            "date": self.day.isoformat(),
            "status": self.status.value,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class MarkResult:
    record_id: str
    student_id: str
    day: date
    status: AttendanceStatus
    created: bool
