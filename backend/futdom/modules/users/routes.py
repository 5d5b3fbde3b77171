from flask import Blueprint, jsonify, request
from marshmallow import ValidationError

from ...extensions import db
from ...models.notification import Notification
from ...models.user import User
from ...schemas.team import UserCreateSchema
from ...security import issue_token


bp = Blueprint("users", __name__, url_prefix="/users")


def _json_error(message, status: int = 400):
    return jsonify({"error": message}), status


def _user_to_dict(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "name": u.name,
        "role": u.role.value,
        "teamId": u.team_id,
        "ownedTeamIds": [t.id for t in u.owned_teams],
        "avatarUrl": u.avatar_url,
        "location": u.location,
        "createdAt": u.created_at.isoformat() if u.created_at else None,
    }


@bp.post("")
def create_user():
    """Register a user and hand back a signed token for the SPA."""
    try:
        data = UserCreateSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return _json_error(e.messages, 400)
    email = data["email"].strip().lower()
    if User.query.filter_by(email=email).first():
        return _json_error("Email já cadastrado", 409)
    user = User(
        email=email,
        name=data["name"].strip(),
        role=data["role"],
        avatar_url=data["avatar_url"],
        location=data["location"],
    )
    db.session.add(user)
    db.session.commit()
    return jsonify({"user": _user_to_dict(user), "token": issue_token(user.id, user.role.value)}), 201


@bp.get("/<int:user_id>")
def get_user(user_id: int):
    u = db.session.get(User, user_id)
    if not u:
        return _json_error("Usuário não encontrado", 404)
    unread = (
        Notification.query
        .filter(Notification.user_id == u.id, Notification.read_at.is_(None))
        .count()
    )
    d = _user_to_dict(u)
    d["unreadNotifications"] = int(unread)
    return jsonify({"user": d})
