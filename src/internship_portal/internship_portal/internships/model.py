from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import InternshipStatus


@dataclass(frozen=True)
class Internship:
    """Domain entity: an internship posted by a company admin."""

    internship_id: str
    title: str
    company: str
    status: InternshipStatus
    created_by: str
    created_at: datetime
    updated_at: datetime
    location: str = ""
    type: str = ""
    duration: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    salary: str = ""
    description: str = ""
    requirements: str = ""
    responsibilities: str = ""
    benefits: str = ""
    application_deadline: Optional[date] = None
    skills_required: str = ""
    department: str = ""
    contact_email: str = ""
    applications_count: int = 0
