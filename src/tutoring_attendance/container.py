from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .absences.service import AbsenceService
from .announcements.mysql_announcement_repository import MySQLAnnouncementRepository
from .announcements.repository import AnnouncementRepository
from .announcements.service import AnnouncementService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .database.connection import DBConfig, DatabaseConnection
from .groups.mysql_group_repository import MySQLGroupRepository, MySQLStudentRepository
from .groups.repository import GroupRepository, StudentRepository
from .groups.service import GroupService
from .lessons.conflicts import LessonConflictChecker
from .lessons.mysql_lesson_repository import MySQLLessonRepository
from .lessons.repository import LessonRepository
from .lessons.service import LessonService
from .notifications.sms import NetGsmConfig, NetGsmSmsSender, SmsSender
from .reports.service import ReportService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    groups_repo: GroupRepository
    students_repo: StudentRepository
    lessons_repo: LessonRepository
    attendance_repo: AttendanceRepository
    announcements_repo: AnnouncementRepository
    sms_sender: SmsSender

    auth_service: AuthService
    user_service: UserService
    group_service: GroupService
    lesson_service: LessonService
    attendance_service: AttendanceService
    report_service: ReportService
    absence_service: AbsenceService
    announcement_service: AnnouncementService


def wire_services(
    *,
    users_repo: UserRepository,
    groups_repo: GroupRepository,
    students_repo: StudentRepository,
    lessons_repo: LessonRepository,
    attendance_repo: AttendanceRepository,
    announcements_repo: AnnouncementRepository,
    sms_sender: SmsSender,
) -> Container:
    """Build every service on top of the given repositories."""
    return Container(
        users_repo=users_repo,
        groups_repo=groups_repo,
        students_repo=students_repo,
        lessons_repo=lessons_repo,
        attendance_repo=attendance_repo,
        announcements_repo=announcements_repo,
        sms_sender=sms_sender,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        group_service=GroupService(groups_repo, students_repo, lessons_repo, users_repo),
        lesson_service=LessonService(lessons_repo, groups_repo, users_repo, LessonConflictChecker(lessons_repo)),
        attendance_service=AttendanceService(attendance_repo, lessons_repo, students_repo),
        report_service=ReportService(attendance_repo, groups_repo, students_repo),
        absence_service=AbsenceService(attendance_repo, sms_sender),
        announcement_service=AnnouncementService(announcements_repo),
    )


def build_container(*, db_config: dict, sms_config: Optional[dict] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_services(
        users_repo=MySQLUserRepository(conn),
        groups_repo=MySQLGroupRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        lessons_repo=MySQLLessonRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        announcements_repo=MySQLAnnouncementRepository(conn),
        sms_sender=NetGsmSmsSender(NetGsmConfig.from_dict(sms_config)),
    )
