from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import ReviewStatus
from .model import TaskUpdate


class TaskUpdateRepository(Protocol):
    def get(self, task_update_id: str) -> Optional[TaskUpdate]:
        raise NotImplementedError

    def create(self, task_update: TaskUpdate) -> None:
        raise NotImplementedError

    def list_for_applicant(self, applicant_id: str, *, limit: int = 200) -> Sequence[TaskUpdate]:
        raise NotImplementedError

    def list_for_company(
        self,
        company_id: str,
        *,
        status: Optional[ReviewStatus] = None,
        search: str = "",
        limit: int = 500,
    ) -> Sequence[TaskUpdate]:
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
