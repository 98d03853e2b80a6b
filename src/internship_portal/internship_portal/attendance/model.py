from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import hours_between
from ..core.enums import ReviewStatus


@dataclass(frozen=True)
class AttendanceEntry:
    """Domain entity: one punch-in/punch-out session of a student."""

    attendance_id: str
    internship_id: str
    applicant_id: str
    company_id: str
    punch_in_at: datetime
    status: ReviewStatus
    created_at: datetime
    punch_out_at: Optional[datetime] = None
    application_id: Optional[str] = None
    applicant_name: str = ""
    internship_title: str = ""
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    rejection_reason: Optional[str] = None

    @property
    def duration_hours(self) -> Optional[float]:
        return hours_between(self.punch_in_at, self.punch_out_at)
