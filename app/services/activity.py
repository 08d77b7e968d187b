import logging

from sqlalchemy.orm import Session

from app.config import ACTIVITY_LOG_RETENTION
from app.models import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(db: Session, action: str, details: str = None, commit: bool = True) -> ActivityLog:
    """Append an admin activity entry and drop everything beyond the retention window.

    The insert and the trim share one transaction.
    """
    entry = ActivityLog(action=action, details=details)
    db.add(entry)
    db.flush()

    stale_ids = [
        row.id
        for row in db.query(ActivityLog.id)
        .order_by(ActivityLog.created_at.desc())
        .offset(ACTIVITY_LOG_RETENTION)
        .all()
    ]
    if stale_ids:
        db.query(ActivityLog).filter(ActivityLog.id.in_(stale_ids)).delete(synchronize_session=False)

    if commit:
        db.commit()
    logger.info(f"Activity logged: {action}")
    return entry


def recent_activity(db: Session):
    return (
        db.query(ActivityLog)
        .order_by(ActivityLog.created_at.desc())
        .limit(ACTIVITY_LOG_RETENTION)
        .all()
    )
