from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable

from ...extensions import db
from ...models.notification import Notification
from .bus import publish

logger = logging.getLogger(__name__)


def notification_to_dict(n: Notification) -> dict:
    return {
        "id": n.id,
        "userId": n.user_id,
        "type": n.type.value if n.type else None,
        "channel": n.channel,
        "title": n.title,
        "message": n.body,
        "relatedId": n.related_id,
        "relatedImage": n.related_image,
        "actionData": n.payload,
        "status": n.status,
        "read": bool(n.read_at),
        "timestamp": n.created_at.isoformat() if n.created_at else None,
        "sentAt": n.sent_at.isoformat() if n.sent_at else None,
        "readAt": n.read_at.isoformat() if n.read_at else None,
    }


def drain_outbox(ids: Iterable[int] | None = None, limit: int = 200) -> int:
    """Push queued notifications to connected clients and mark them sent.

    Rows stay ``queued`` when publishing or committing fails so that the
    next drain (inline after a write, or the periodic Celery task) picks
    them up again. Returns the number of notifications marked sent.
    """
    q = Notification.query.filter(Notification.status == "queued")
    if ids is not None:
        ids = list(ids)
        if not ids:
            return 0
        q = q.filter(Notification.id.in_(ids))
    rows = q.order_by(Notification.id.asc()).limit(limit).all()
    if not rows:
        return 0

    now = datetime.now(timezone.utc)
    for n in rows:
        publish(int(n.user_id), {"type": "notification", "notification": notification_to_dict(n)})
        n.status = "sent"
        n.sent_at = now
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Could not mark %s notification(s) as sent", len(rows))
        return 0
    logger.debug("Delivered %s queued notification(s)", len(rows))
    return len(rows)
