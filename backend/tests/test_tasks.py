from futdom.models.enums import NotificationType
from futdom.models.notification import Notification
from futdom.tasks.jobs import notifications as jobs


def test_sweep_delivers_leftover_notifications(app, db, teams, monkeypatch):
    db.session.add(Notification(user_id=teams.u1, type=NotificationType.MATCH_INVITE, title="Desafio Recebido", status="queued"))
    db.session.commit()
    monkeypatch.setattr(jobs, "create_app", lambda: app)

    assert jobs.deliver_queued_notifications(limit=10) == {"delivered": 1}

    db.session.expire_all()
    assert Notification.query.filter_by(status="sent").count() == 1
