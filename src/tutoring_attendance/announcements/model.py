from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AnnouncementPriority


@dataclass(frozen=True)
class Announcement:
    """A notice posted by an admin; ``author_name`` is filled by joined reads."""

    announcement_id: int
    title: str
    content: str
    priority: AnnouncementPriority
    is_active: bool
    created_by: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    author_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "announcement_id": self.announcement_id,
            "title": self.title,
            "content": self.content,
            "priority": int(self.priority),
            "priority_label": self.priority.name.title(),
            "is_active": self.is_active,
            "created_by": self.created_by,
            "author_name": self.author_name,
            "created_at": self.created_at.isoformat(timespec="minutes"),
            "updated_at": self.updated_at.isoformat(timespec="minutes") if self.updated_at else None,
        }
