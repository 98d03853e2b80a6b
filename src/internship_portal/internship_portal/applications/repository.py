from __future__ import annotations

from datetime import date
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

from ..core.enums import ReviewStatus
from .model import Application


class ApplicationRepository(Protocol):
    def get(self, application_id: str) -> Optional[Application]:
        raise NotImplementedError

    def create(self, application: Application) -> None:
        raise NotImplementedError

    def list_for_applicant(
        self,
        applicant_id: str,
        *,
        statuses: Optional[Sequence[ReviewStatus]] = None,
        internship_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Application]:
        raise NotImplementedError

    def list_for_company(
        self,
        company_id: str,
        *,
        status: Optional[ReviewStatus] = None,
        search: str = "",
        limit: int = 500,
    ) -> Sequence[Application]:
        raise NotImplementedError

    def count_by_status(self, company_id: str) -> Dict[str, int]:
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

    def confirm_start_date(self, application_id: str, start_date: date) -> bool:
        """Set the start date once, only on an approved, not yet confirmed application."""

        raise NotImplementedError
