from sqlalchemy import func
from ..extensions import db, BigIntPK
from .enums import role_enum, UserRole


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(BigIntPK, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(120), nullable=False)
    role = db.Column(role_enum, nullable=False, default=UserRole.FAN)
    # Team the user plays for (players); owners are linked through Team.owner_id
    team_id = db.Column(db.BigInteger, db.ForeignKey("teams.id", ondelete="SET NULL", use_alter=True, name="fk_users_team_id"))
    avatar_url = db.Column(db.String(512))
    location = db.Column(db.String(200))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    team = db.relationship("Team", foreign_keys=[team_id], back_populates="players")
    owned_teams = db.relationship(
        "Team",
        back_populates="owner",
        foreign_keys="Team.owner_id",
        lazy=True,
    )
    notifications = db.relationship(
        "Notification",
        back_populates="user",
        lazy=True,
        cascade="all, delete-orphan",
    )
    audit_logs = db.relationship(
        "AuditLog",
        back_populates="actor",
        foreign_keys="AuditLog.actor_user_id",
        lazy=True,
    )
