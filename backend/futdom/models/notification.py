from sqlalchemy import Index, func
from ..extensions import db, BigIntPK, JSONType
from .enums import notification_channel_enum, notification_status_enum, notification_type_enum


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(BigIntPK, primary_key=True)
    user_id = db.Column(db.BigInteger, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = db.Column(notification_type_enum, nullable=False)
    channel = db.Column(notification_channel_enum, nullable=False, server_default="inapp")
    title = db.Column(db.String(200))
    body = db.Column(db.Text)
    related_id = db.Column(db.BigInteger)
    related_image = db.Column(db.String(512))
    match_id = db.Column(db.BigInteger, db.ForeignKey("matches.id", ondelete="CASCADE"))
    # actionData: {matchId, teamId?, proposedDate?}
    payload = db.Column(JSONType)
    status = db.Column(notification_status_enum, nullable=False, default="queued")
    sent_at = db.Column(db.DateTime(timezone=True))
    read_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    user = db.relationship("User", back_populates="notifications")
    match = db.relationship("Match", back_populates="notifications")

    __table_args__ = (
        Index("idx_notifications_user_status", "user_id", "status"),
        Index("idx_notifications_match", "match_id"),
    )
