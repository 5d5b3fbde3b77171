from sqlalchemy import func, Index
from ..extensions import db, BigIntPK, JSONType
from .enums import match_status_enum, MatchStatus


class Match(db.Model):
    __tablename__ = "matches"

    id = db.Column(BigIntPK, primary_key=True)
    date = db.Column(db.DateTime(timezone=True), nullable=False)
    location_name = db.Column(db.String(200), nullable=False)
    court_id = db.Column(db.BigInteger)
    home_team_id = db.Column(db.BigInteger, db.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    # Absent for informal opponents that are not on the platform
    away_team_id = db.Column(db.BigInteger, db.ForeignKey("teams.id", ondelete="SET NULL"))
    away_team_name = db.Column(db.String(120), nullable=False)
    home_score = db.Column(db.Integer)
    away_score = db.Column(db.Integer)
    status = db.Column(match_status_enum, nullable=False, default=MatchStatus.PENDING)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    goals = db.Column(JSONType, nullable=False, default=list)
    # Side that wrote the current date/status; the other side owes the response
    last_proposed_by_team_id = db.Column(db.BigInteger, db.ForeignKey("teams.id", ondelete="SET NULL"))
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    home_team = db.relationship("Team", foreign_keys=[home_team_id], back_populates="home_matches")
    away_team = db.relationship("Team", foreign_keys=[away_team_id], back_populates="away_matches")
    notifications = db.relationship("Notification", back_populates="match", lazy=True)

    # UPDATEs are issued as "... WHERE version = :old" and bump the counter
    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_matches_home", "home_team_id"),
        Index("idx_matches_away", "away_team_id"),
        Index("idx_matches_status", "status"),
        Index("idx_matches_date", "date"),
    )
