from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from .extensions import db
from .models.notification import Notification
from .models.team import Team
from .modules.matches.errors import ConflictError, StoreUnavailable, TeamNotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_NOTIFICATION_LIMIT = 100


@dataclass(frozen=True)
class TeamOwner:
    user_id: int | None
    team_name: str
    logo_url: str | None


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, OperationalError):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


def run_in_transaction(work: Callable[[], T], attempts: int = 3, delay: float = 0.5) -> T:
    """Run ``work`` and commit, reconnecting and retrying on connectivity errors.

    ``work`` must be safe to re-run from scratch: the session is rolled back
    before every retry, so anything it loaded or added is discarded.
    """
    attempts = max(1, int(attempts))
    last_exc: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            result = work()
            db.session.commit()
            return result
        except StaleDataError as e:
            db.session.rollback()
            raise ConflictError() from e
        except DBAPIError as e:
            db.session.rollback()
            if not _is_transient(e):
                raise
            last_exc = e
            logger.warning("Database unavailable (attempt %s/%s): %s", attempt, attempts, e)
            if attempt < attempts and delay > 0:
                time.sleep(delay)
        except Exception:
            db.session.rollback()
            raise
    raise StoreUnavailable() from last_exc


def lookup_team_owner(team_id: int) -> TeamOwner:
    team = db.session.get(Team, team_id)
    if team is None:
        raise TeamNotFound()
    return TeamOwner(user_id=team.owner_id, team_name=team.name, logo_url=team.logo_url)


def list_notifications(user_id: int, limit: int = 20) -> list[Notification]:
    limit = max(1, min(MAX_NOTIFICATION_LIMIT, int(limit)))
    return (
        Notification.query
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def mark_notification_read(notification: Notification, now: datetime | None = None) -> bool:
    """Flag a notification as read. Returns False when it already was."""
    if notification.read_at:
        return False
    notification.read_at = now or datetime.now(timezone.utc)
    notification.status = "read"
    db.session.add(notification)
    return True
