from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import EmployeeType, InboxItem, OutgoingMail, ReadStatus, SentMail
from .repository import MailRepository


def _inbox_item(row) -> InboxItem:
    return InboxItem(
        mail_id=int(row["mail_id"]),
        subject=row["subject"],
        body=row["body"],
        sender_user_name=row.get("sender_user_name"),
        sender_department_name=row.get("sender_department_name"),
        is_urgent=bool(row["is_urgent"]),
        created_at=row["created_at"],
        is_read=bool(row["is_read"]),
        read_at=row.get("read_at"),
    )


class MySQLMailRepository(MailRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_employee_type(self, user_id: str) -> Optional[EmployeeType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT et.type_name, et.display_name
                FROM users u
                JOIN employee_types et ON et.id = u.employee_type_id
                WHERE u.id=%s
                """,
                (user_id,),
            )
            row = fetchone(cur)
            return EmployeeType(type_name=row["type_name"], display_name=row["display_name"]) if row else None

    def create_mail(self, mail: OutgoingMail) -> SentMail:
        # Mail and recipient fan-out commit together.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO department_mails(
                    subject, body, sender_user_id, sender_department_id,
                    recipient_department_id, is_urgent, created_at
                ) VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    mail.subject,
                    mail.body,
                    mail.sender_user_id,
                    mail.sender_department_id,
                    mail.recipient_department_id,
                    int(mail.is_urgent),
                    mail.created_at,
                ),
            )
            mail_id = int(cur.lastrowid)
            cur.execute(
                """
                INSERT INTO mail_recipients(mail_id, user_id, is_read)
                SELECT %s, u.id, 0 FROM users u
                WHERE u.department_id=%s AND u.id<>%s
                """,
                (mail_id, mail.recipient_department_id, mail.sender_user_id),
            )
            return SentMail(mail_id=mail_id, recipient_count=max(int(cur.rowcount), 0))

    def inbox(self, user_id: str) -> Sequence[InboxItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT m.id AS mail_id, m.subject, m.body, m.is_urgent, m.created_at,
                       r.is_read, r.read_at,
                       s.name AS sender_user_name, sd.name AS sender_department_name
                FROM mail_recipients r
                JOIN department_mails m ON m.id = r.mail_id
                LEFT JOIN users s ON s.id = m.sender_user_id
                LEFT JOIN departments sd ON sd.id = m.sender_department_id
                WHERE r.user_id=%s
                ORDER BY m.created_at DESC, m.id DESC
                """,
                (user_id,),
            )
            return [_inbox_item(r) for r in fetchall(cur)]

    def mark_read(self, mail_id: int, user_id: str, read_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # rowcount reports changed rows only, so an already-read mail would look missing.
            cur.execute(
                "SELECT COUNT(*) AS n FROM mail_recipients WHERE mail_id=%s AND user_id=%s",
                (mail_id, user_id),
            )
            matched = fetchone(cur)
            if not matched or not int(matched["n"]):
                return False
            cur.execute(
                """
                UPDATE mail_recipients SET is_read=1, read_at=COALESCE(read_at, %s)
                WHERE mail_id=%s AND user_id=%s
                """,
                (read_at, mail_id, user_id),
            )
            return True

    def read_status(self, mail_id: int, department_id: int) -> Sequence[ReadStatus]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.id AS user_id, u.name, u.email, r.is_read, r.read_at
                FROM mail_recipients r
                JOIN users u ON u.id = r.user_id
                WHERE r.mail_id=%s AND u.department_id=%s
                ORDER BY u.name
                """,
                (mail_id, department_id),
            )
            return [
                ReadStatus(
                    user_id=r["user_id"],
                    name=r["name"],
                    email=r["email"],
                    is_read=bool(r["is_read"]),
                    read_at=r.get("read_at"),
                )
                for r in fetchall(cur)
            ]
