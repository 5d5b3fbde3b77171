from flask import Blueprint, Flask, g, request, current_app

from ...extensions import db
from ...modules.matches.routes import bp as matches_bp
from ...modules.notifications.routes import bp as notifications_bp
from ...modules.teams.routes import bp as teams_bp
from ...modules.users.routes import bp as users_bp


def register_api(app: Flask) -> None:
    api_v1 = Blueprint("api_v1", __name__, url_prefix="/api/v1")

    # Identity loader. In production only a signed bearer token is accepted;
    # with DEBUG=True an `X-User-Id` header also works for local testing.
    @api_v1.before_request  # type: ignore
    def _load_current_user():
        from ...models.user import User  # local import to avoid circulars
        from ...security import verify_token
        uid: int | None = None
        debug_mode = bool(current_app.config.get("DEBUG"))

        # Bearer token takes precedence
        auth = request.headers.get("Authorization") or ""
        if auth.lower().startswith("bearer "):
            uid, _role = verify_token(auth[7:].strip())
        elif debug_mode:
            raw = (request.headers.get("X-User-Id") or "").strip()
            if raw.isdigit() and int(raw) > 0:
                uid = int(raw)
        user_obj = db.session.get(User, uid) if uid is not None else None
        g.current_user = user_obj  # type: ignore[attr-defined]
        g.current_user_id = user_obj.id if user_obj else None  # type: ignore[attr-defined]

    # Mount feature blueprints
    api_v1.register_blueprint(users_bp)
    api_v1.register_blueprint(teams_bp)
    api_v1.register_blueprint(matches_bp)
    api_v1.register_blueprint(notifications_bp)

    app.register_blueprint(api_v1)
