from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.validators import is_blank
from ..core.constants import DEPARTMENT_HEAD_TYPE
from ..core.exceptions import AuthorizationError, InvalidReferenceError, StoreError, ValidationError
from ..profiles.model import Department
from ..profiles.repository import ProfileRepository, ReferenceRepository
from .model import EmployeeType, InboxItem, OutgoingMail, ReadStatus, SentMail
from .repository import MailRepository

logger = logging.getLogger(__name__)


class MailService:
    """Internal department mail: department heads write to a whole department.

    Nothing leaves the system; a "sent" mail is a row plus one recipient row
    per member of the target department.
    """

    def __init__(
        self,
        mail: MailRepository,
        profiles: ProfileRepository,
        references: ReferenceRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._mail = mail
        self._profiles = profiles
        self._references = references
        self._clock = clock

    def employee_type(self, user_id: str) -> Optional[EmployeeType]:
        return self._mail.get_employee_type(user_id)

    def is_department_head(self, user_id: str) -> bool:
        try:
            employee_type = self._mail.get_employee_type(user_id)
        except StoreError as e:
            # Fails closed: head-only actions stay hidden.
            logger.warning("Employee type lookup for %s failed: %s", user_id, e)
            return False
        return bool(employee_type and employee_type.type_name == DEPARTMENT_HEAD_TYPE)

    def inbox(self, user_id: str) -> Sequence[InboxItem]:
        return self._mail.inbox(user_id)

    def departments(self) -> Sequence[Department]:
        return sorted(self._references.list_departments(), key=lambda d: d.name)

    def send_department_mail(
        self,
        sender_id: str,
        subject: str,
        body: str,
        recipient_department_id: Optional[int],
        *,
        is_urgent: bool = False,
    ) -> SentMail:
        errors = []
        if is_blank(subject):
            errors.append("Please enter a subject")
        if is_blank(body):
            errors.append("Please enter a message")
        if recipient_department_id in (None, ""):
            errors.append("Please select a recipient department")
        if errors:
            raise ValidationError(", ".join(errors), errors)

        self._require_head(sender_id)

        if not self._references.get_department(recipient_department_id):
            raise InvalidReferenceError(
                "department", recipient_department_id, "Selected department is not valid or has been removed"
            )

        sender = self._profiles.get_by_id(sender_id) or {}
        sent = self._mail.create_mail(
            OutgoingMail(
                subject=subject.strip(),
                body=body.strip(),
                sender_user_id=sender_id,
                sender_department_id=sender.get("department_id"),
                recipient_department_id=recipient_department_id,
                is_urgent=bool(is_urgent),
                created_at=self._clock(),
            )
        )
        logger.info(
            "Mail %s from %s to department %s (%d recipients)",
            sent.mail_id,
            sender_id,
            recipient_department_id,
            sent.recipient_count,
        )
        return sent

    def mark_as_read(self, mail_id: int, user_id: str) -> None:
        if not self._mail.mark_read(mail_id, user_id, self._clock()):
            raise ValidationError("Mail not found")

    def mail_analytics(self, user_id: str, mail_id: int) -> Sequence[ReadStatus]:
        """Read status of ``mail_id`` among the staff of the caller's own department."""
        self._require_head(user_id)
        profile = self._profiles.get_by_id(user_id)
        if not profile or profile.get("department_id") is None:
            raise ValidationError("You are not assigned to a department")
        return self._mail.read_status(mail_id, profile["department_id"])

    def _require_head(self, user_id: str) -> None:
        if not self.is_department_head(user_id):
            raise AuthorizationError("Only department heads can do this")
