from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ReviewStatus


@dataclass(frozen=True)
class Application:
    """Domain entity: a student's application to one internship.

    Applicant and internship names are copied in at creation so review
    screens need no joins.
    """

    application_id: str
    internship_id: str
    company_id: str
    applicant_id: str
    status: ReviewStatus
    applied_at: datetime
    internship_title: str = ""
    company_name: str = ""
    applicant_name: str = ""
    applicant_email: str = ""
    cover_letter: str = ""
    experience: str = ""
    skills: str = ""
    availability: str = ""
    portfolio: str = ""
    resume_url: Optional[str] = None
    status_updated_at: Optional[datetime] = None
    status_updated_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    start_date: Optional[date] = None
    start_date_confirmed: bool = False
