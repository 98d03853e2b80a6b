from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import ReviewStatus
from .model import AttendanceEntry


class AttendanceRepository(Protocol):
    def get(self, attendance_id: str) -> Optional[AttendanceEntry]:
        raise NotImplementedError

    def create(self, entry: AttendanceEntry) -> None:
        raise NotImplementedError

    def get_active(self, applicant_id: str, internship_id: Optional[str] = None) -> Optional[AttendanceEntry]:
        """Latest ``in-progress`` entry of the student, optionally for one internship."""

        raise NotImplementedError

    def list_for_applicant(
        self,
        applicant_id: str,
        *,
        internship_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[AttendanceEntry]:
        raise NotImplementedError

    def list_for_company(
        self,
        company_id: str,
        *,
        status: Optional[ReviewStatus] = None,
        search: str = "",
        limit: int = 500,
    ) -> Sequence[AttendanceEntry]:
        raise NotImplementedError

    def compare_and_set_status(
        self,
        *,
        record_id: str,
        expected: ReviewStatus,
        new: ReviewStatus,
        fields: Mapping[str, Any],
    ) -> bool:
        raise NotImplementedError
