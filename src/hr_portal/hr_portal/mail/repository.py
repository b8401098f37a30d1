from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import EmployeeType, InboxItem, OutgoingMail, ReadStatus, SentMail


class MailRepository(Protocol):
    """Department mail and its per-recipient read state."""

    def get_employee_type(self, user_id: str) -> Optional[EmployeeType]:
        raise NotImplementedError

    def create_mail(self, mail: OutgoingMail) -> SentMail:
        """Store the mail and one unread recipient row per member of the recipient department (sender excluded)."""
        raise NotImplementedError

    def inbox(self, user_id: str) -> Sequence[InboxItem]:
        """Newest first."""
        raise NotImplementedError

    def mark_read(self, mail_id: int, user_id: str, read_at: datetime) -> bool:
        """False when ``user_id`` is not a recipient of ``mail_id``. Keeps the first ``read_at``."""
        raise NotImplementedError

    def read_status(self, mail_id: int, department_id: int) -> Sequence[ReadStatus]:
        """Read state of the mail's recipients who belong to ``department_id``."""
        raise NotImplementedError
