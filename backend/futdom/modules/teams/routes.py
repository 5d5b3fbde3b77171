from flask import Blueprint, jsonify, request
from marshmallow import ValidationError

from ...extensions import db
from ...models.enums import UserRole
from ...models.team import Team
from ...models.user import User
from ...schemas.team import TeamCreateSchema

bp = Blueprint("teams", __name__, url_prefix="/teams")


def _json_error(message, status: int = 400):
    return jsonify({"error": message}), status


def _team_to_dict(t: Team) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "logoUrl": t.logo_url,
        "ownerId": t.owner_id,
        "category": t.category,
        "homeTurf": t.home_turf,
        "territoryColor": t.territory_color,
        "wins": t.wins,
        "losses": t.losses,
        "draws": t.draws,
    }


@bp.post("")
def create_team():
    try:
        data = TeamCreateSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return _json_error(e.messages, 400)
    owner = db.session.get(User, data["owner_id"])
    if not owner:
        return _json_error("Usuário não encontrado", 404)
    team = Team(
        name=data["name"].strip(),
        owner_id=owner.id,
        logo_url=data["logo_url"],
        category=data["category"],
        home_turf=data["home_turf"],
    )
    # Creating a team promotes a fan to owner
    if owner.role == UserRole.FAN:
        owner.role = UserRole.OWNER
    db.session.add(team)
    db.session.commit()
    return jsonify({"team": _team_to_dict(team)}), 201


@bp.get("/<int:team_id>")
def get_team(team_id: int):
    t = db.session.get(Team, team_id)
    if not t:
        return _json_error("Time não encontrado", 404)
    return jsonify({"team": _team_to_dict(t)})
