from sqlalchemy import func, Index
from ..extensions import db, BigIntPK
from .enums import team_category_enum


class Team(db.Model):
    __tablename__ = "teams"

    id = db.Column(BigIntPK, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    logo_url = db.Column(db.String(512))
    owner_id = db.Column(db.BigInteger, db.ForeignKey("users.id", ondelete="SET NULL"))
    category = db.Column(team_category_enum, nullable=False, server_default="Adulto/Livre")
    home_turf = db.Column(db.String(200))
    territory_color = db.Column(db.String(16), nullable=False, server_default="#39ff14")
    wins = db.Column(db.Integer, nullable=False, server_default="0")
    losses = db.Column(db.Integer, nullable=False, server_default="0")
    draws = db.Column(db.Integer, nullable=False, server_default="0")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    owner = db.relationship("User", back_populates="owned_teams", foreign_keys=[owner_id])
    players = db.relationship("User", back_populates="team", foreign_keys="User.team_id", lazy=True)
    home_matches = db.relationship("Match", back_populates="home_team", foreign_keys="Match.home_team_id", lazy=True)
    away_matches = db.relationship("Match", back_populates="away_team", foreign_keys="Match.away_team_id", lazy=True)

    __table_args__ = (
        Index("idx_teams_owner", "owner_id"),
    )
