import logging

from futdom import create_app
from futdom.modules.notifications.delivery import drain_outbox
from futdom.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task
def deliver_queued_notifications(limit: int = 200) -> dict:
    """Sweep notifications left queued when inline delivery after a write failed."""
    app = create_app()
    with app.app_context():
        delivered = drain_outbox(limit=limit)
    if delivered:
        logger.info("Delivered %s queued notification(s)", delivered)
    return {"delivered": delivered}
