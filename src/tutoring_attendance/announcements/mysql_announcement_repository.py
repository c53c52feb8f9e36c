from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AnnouncementPriority
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Announcement
from .repository import AnnouncementRepository

_SELECT = """
    SELECT a.announcement_id, a.title, a.content, a.priority, a.is_active,
           a.created_by, a.created_at, a.updated_at, u.full_name AS author_name
    FROM announcements a
    LEFT JOIN users u ON u.user_id = a.created_by
"""


def _to_announcement(r: dict) -> Announcement:
    return Announcement(
        announcement_id=int(r["announcement_id"]),
        title=r["title"],
        content=r["content"],
        priority=AnnouncementPriority(int(r["priority"])),
        is_active=bool(r["is_active"]),
        created_by=int(r["created_by"]),
        created_at=r["created_at"],
        updated_at=r.get("updated_at"),
        author_name=r.get("author_name"),
    )


class MySQLAnnouncementRepository(AnnouncementRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, announcement_id: int) -> Optional[Announcement]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.announcement_id=%s", (int(announcement_id),))
            r = fetchone(cur)
            return _to_announcement(r) if r else None

    def list_all(self, *, active_only: bool = False) -> Sequence[Announcement]:
        where = " WHERE a.is_active=1" if active_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + where + " ORDER BY a.priority DESC, a.created_at DESC, a.announcement_id DESC")
            return [_to_announcement(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO announcements(title, content, priority, is_active, created_by, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (title, content, int(priority), 1 if is_active else 0, int(created_by), created_at),
            )
            return int(cur.lastrowid)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE announcements
                SET title=%s, content=%s, priority=%s, is_active=%s, updated_at=%s
                WHERE announcement_id=%s
                """,
                (title, content, int(priority), 1 if is_active else 0, updated_at, int(announcement_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, announcement_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM announcements WHERE announcement_id=%s", (int(announcement_id),))
            return cur.rowcount > 0
