from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ReviewStatus


@dataclass(frozen=True)
class TaskUpdate:
    """Domain entity: a progress report against an approved placement."""

    task_update_id: str
    internship_id: str
    applicant_id: str
    company_id: str
    title: str
    work_date: date
    status: ReviewStatus
    created_at: datetime
    application_id: Optional[str] = None
    applicant_name: str = ""
    internship_title: str = ""
    details: str = ""
    links: str = ""
    hours: Optional[float] = None
    notes: str = ""
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    rejection_reason: Optional[str] = None
