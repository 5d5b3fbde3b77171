import os
from celery import Celery


def make_celery() -> Celery:
    broker = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    backend = os.getenv("CELERY_RESULT_BACKEND", broker)
    app = Celery("futdom", broker=broker, backend=backend, include=[
        "futdom.tasks.jobs.notifications",
    ])
    interval = float(os.getenv("NOTIFICATION_DRAIN_INTERVAL", "30"))
    app.conf.update(
        task_track_started=True,
        beat_schedule={
            "deliver-queued-notifications": {
                "task": "futdom.tasks.jobs.notifications.deliver_queued_notifications",
                "schedule": interval,
            },
        },
    )
    return app

celery_app = make_celery()
