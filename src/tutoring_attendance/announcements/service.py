from __future__ import annotations

from datetime import datetime
from typing import Sequence

from ..common.validators import require_non_empty
from ..core.constants import ANNOUNCEMENT_TITLE_MAX_LENGTH
from ..core.enums import AnnouncementPriority, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Announcement
from .repository import AnnouncementRepository


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("You do not have permission")


def _clean_title(title: str) -> str:
    title = require_non_empty(title, "Title")
    if len(title) > ANNOUNCEMENT_TITLE_MAX_LENGTH:
        raise ValidationError(f"Title cannot be longer than {ANNOUNCEMENT_TITLE_MAX_LENGTH} characters")
    return title


def _clean_priority(value) -> AnnouncementPriority:
    if value is None or value == "":
        return AnnouncementPriority.NORMAL
    try:
        return AnnouncementPriority(int(value))
    except (TypeError, ValueError):
        raise ValidationError("Priority must be between 1 and 3")


class AnnouncementService:
    """Admin-managed notices, listed by priority then recency."""

    def __init__(self, announcements: AnnouncementRepository):
        self._announcements = announcements

    def list_announcements(self, *, current_role: Role, active_only: bool = False) -> Sequence[Announcement]:
        _require_admin(current_role)
        return self._announcements.list_all(active_only=active_only)

    def get_announcement(self, *, current_role: Role, announcement_id: int) -> Announcement:
        _require_admin(current_role)
        announcement = self._announcements.get_by_id(int(announcement_id))
        if not announcement:
            raise NotFoundError("Announcement not found")
        return announcement

    def create_announcement(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        title: str,
        content: str,
        priority=None,
        is_active: bool = True,
        now: datetime | None = None,
    ) -> int:
        _require_admin(current_role)
        return self._announcements.create_announcement(
            title=_clean_title(title),
            content=require_non_empty(content, "Content"),
            priority=_clean_priority(priority),
            is_active=bool(is_active),
            created_by=int(current_user_id),
            created_at=(now or datetime.now()).replace(microsecond=0),
        )

    def update_announcement(
        self,
        *,
        current_role: Role,
        announcement_id: int,
        title: str,
        content: str,
        priority=None,
        is_active: bool = True,
        now: datetime | None = None,
    ) -> None:
        _require_admin(current_role)
        ok = self._announcements.update_announcement(
            announcement_id=int(announcement_id),
            title=_clean_title(title),
            content=require_non_empty(content, "Content"),
            priority=_clean_priority(priority),
            is_active=bool(is_active),
            updated_at=(now or datetime.now()).replace(microsecond=0),
        )
        if not ok:
            raise NotFoundError("Announcement not found")

    def delete_announcement(self, *, current_role: Role, announcement_id: int) -> None:
        _require_admin(current_role)
        if not self._announcements.delete_by_id(int(announcement_id)):
            raise NotFoundError("Announcement not found")
