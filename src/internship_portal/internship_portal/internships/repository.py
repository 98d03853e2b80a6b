from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import InternshipStatus
from .model import Internship


class InternshipRepository(Protocol):
    def get(self, internship_id: str) -> Optional[Internship]:
        raise NotImplementedError

    def create(self, internship: Internship) -> None:
        raise NotImplementedError

    def update(self, internship_id: str, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete(self, internship_id: str) -> bool:
        raise NotImplementedError

    def increment_applications(self, internship_id: str) -> None:
        raise NotImplementedError

    def list_by_creator(self, created_by: str, *, limit: int = 200) -> Sequence[Internship]:
        raise NotImplementedError

    def search(
        self,
        *,
        status: InternshipStatus,
        text: str = "",
        location: str = "",
        type: str = "",
        limit: int = 200,
    ) -> Sequence[Internship]:
        """Filtering happens in the store query, not in memory."""

        raise NotImplementedError
