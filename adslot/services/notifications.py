"""Fire-and-forget user notifications.

Notifications are written on their own short-lived session, after the
caller's transaction has committed. A failure here is logged and dropped:
it must never undo the booking that triggered it.
"""
from __future__ import annotations

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adslot.models.db.enums import NotificationSeverity, UserRole
from adslot.models.db.notifications import Notification
from adslot.models.db.users import User
from adslot.utils import get_logger

logger = get_logger(__name__)


def notify(
    session: Session,
    *,
    user_id: int,
    title: str,
    message: str,
    severity: NotificationSeverity = NotificationSeverity.INFO,
    related_advert_id: Optional[int] = None,
) -> Optional[int]:
    """Store a notification for ``user_id``; returns its id, or None on failure.

    ``session`` only supplies the engine; it is neither flushed nor committed.
    """
    try:
        with Session(bind=session.get_bind()) as own:
            note = Notification(
                user_id=user_id,
                title=title,
                message=message,
                severity=severity,
                related_advert_id=related_advert_id,
            )
            own.add(note)
            own.commit()
            return note.id
    except SQLAlchemyError as e:
        logger.warning(
            "Notification dropped",
            user_id=user_id,
            title=title,
            related_advert_id=related_advert_id,
            error=str(e),
        )
        return None


def notify_admins(
    session: Session,
    *,
    title: str,
    message: str,
    severity: NotificationSeverity = NotificationSeverity.INFO,
    related_advert_id: Optional[int] = None,
) -> List[int]:
    admin_ids = [
        row.id
        for row in session.query(User.id).filter(User.role == UserRole.ADMIN, User.is_active.is_(True)).all()
    ]
    sent: List[int] = []
    for admin_id in admin_ids:
        note_id = notify(
            session,
            user_id=admin_id,
            title=title,
            message=message,
            severity=severity,
            related_advert_id=related_advert_id,
        )
        if note_id is not None:
            sent.append(note_id)
    return sent


__all__ = ["notify", "notify_admins"]
