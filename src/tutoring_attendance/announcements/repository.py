from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AnnouncementPriority
from .model import Announcement


class AnnouncementRepository(Protocol):
    def get_by_id(self, announcement_id: int) -> Optional[Announcement]:
        raise NotImplementedError

    def list_all(self, *, active_only: bool = False) -> Sequence[Announcement]:
        """Highest priority first, then newest first."""

        raise NotImplementedError

    def create_announcement(
        self,
        *,
        title: str,
        content: str,
        priority: AnnouncementPriority,
        is_active: bool,
        created_by: int,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def update_announcement(
        self,
        *,
        announcement_id: int,
        title: str,
        content: str,
        priority: AnnouncementPriority,
        is_active: bool,
        updated_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def delete_by_id(self, announcement_id: int) -> bool:
        raise NotImplementedError
