from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class EmployeeType:
    type_name: str
    display_name: str


@dataclass(frozen=True)
class OutgoingMail:
    subject: str
    body: str
    sender_user_id: str
    sender_department_id: Optional[int]
    recipient_department_id: int
    is_urgent: bool
    created_at: datetime


@dataclass(frozen=True)
class SentMail:
    mail_id: int
    recipient_count: int


@dataclass(frozen=True)
class InboxItem:
    """One mail as seen by one recipient."""

    mail_id: int
    subject: str
    body: str
    sender_user_name: Optional[str]
    sender_department_name: Optional[str]
    is_urgent: bool
    created_at: datetime
    is_read: bool = False
    read_at: Optional[datetime] = None


@dataclass(frozen=True)
class ReadStatus:
    user_id: str
    name: str
    email: str
    is_read: bool
    read_at: Optional[datetime] = None
