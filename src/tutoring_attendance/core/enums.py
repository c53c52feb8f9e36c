from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    TEACHER = "teacher"


class AttendanceStatus(str, Enum):
    """Per-student outcome stored on an attendance record."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class SessionStatus(str, Enum):
    """Lifecycle of one attendance session.

    Only OPEN -> FINALIZED is reachable. CLOSED is kept for stored data and
    behaves like OPEN.
    """

    OPEN = "OPEN"
    CLOSED = "CLOSED"
    FINALIZED = "FINALIZED"


class ConflictType(str, Enum):
    TEACHER = "Teacher"
    GROUP = "Group"


class AnnouncementPriority(int, Enum):
    NORMAL = 1
    IMPORTANT = 2
    CRITICAL = 3
