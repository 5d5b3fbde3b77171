from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request
from marshmallow import ValidationError
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...models.enums import MatchStatus
from ...models.match import Match
from ...models.team import Team
from ...schemas.match import CounterProposalSchema, MatchActionSchema, MatchCreateSchema
from .errors import NegotiationError
from .negotiation import MatchNegotiation, as_utc, awaiting_response_from

bp = Blueprint("matches", __name__, url_prefix="/matches")


def _json_error(message, status: int = 400):
    return jsonify({"error": message}), status


def _current_user_id() -> int | None:
    uid = getattr(g, "current_user_id", None)
    return int(uid) if uid is not None else None


def _iso(value):
    value = as_utc(value)
    return value.isoformat() if value else None


def _match_to_dict(m: Match) -> dict:
    awaiting = None
    if m.away_team_id is not None and m.status in (MatchStatus.PENDING, MatchStatus.SCHEDULED) and not m.is_verified:
        awaiting = awaiting_response_from(m)
    return {
        "id": m.id,
        "date": _iso(m.date),
        "locationName": m.location_name,
        "courtId": m.court_id,
        "homeTeamId": m.home_team_id,
        "awayTeamId": m.away_team_id,
        "awayTeamName": m.away_team_name,
        "homeScore": m.home_score,
        "awayScore": m.away_score,
        "status": m.status.value,
        "isVerified": bool(m.is_verified),
        "goals": m.goals or [],
        "lastProposedByTeamId": m.last_proposed_by_team_id,
        "awaitingTeamId": awaiting,
        "version": m.version,
        "createdAt": _iso(m.created_at),
        "updatedAt": _iso(m.updated_at),
    }


def _engine() -> MatchNegotiation:
    return MatchNegotiation.from_config(current_app.config)


def _run(operation):
    """Call an engine operation and translate its failures into JSON errors."""
    try:
        match = operation()
    except NegotiationError as e:
        current_app.logger.info("Match operation rejected: %s", e.message)
        return _json_error(e.message, e.status_code)
    except SQLAlchemyError:
        current_app.logger.exception("Unexpected database error")
        return _json_error("Erro ao salvar jogo", 500)
    return jsonify({"match": _match_to_dict(match)})


@bp.get("")
def list_matches():
    # Optional filters: teamId (home or away), status
    q = Match.query
    team_id = request.args.get("teamId")
    status = request.args.get("status")
    try:
        limit = int(request.args.get("limit", 200))
    except (TypeError, ValueError):
        limit = 200
    if team_id:
        try:
            tid = int(team_id)
        except (TypeError, ValueError):
            return _json_error("Invalid teamId", 400)
        q = q.filter(or_(Match.home_team_id == tid, Match.away_team_id == tid))
    if status:
        try:
            q = q.filter(Match.status == MatchStatus(status.upper()))
        except ValueError:
            return _json_error("Invalid status", 400)
    rows = q.order_by(Match.date.asc(), Match.id.asc()).limit(max(1, min(500, limit))).all()
    return jsonify({"matches": [_match_to_dict(m) for m in rows]})


@bp.get("/<int:match_id>")
def get_match(match_id: int):
    m = db.session.get(Match, match_id)
    if not m:
        return _json_error("Jogo não encontrado", 404)
    return jsonify({"match": _match_to_dict(m)})


@bp.post("")
def create_match():
    current_uid = _current_user_id()
    if not current_uid:
        return _json_error("Autenticação necessária", 401)
    data = request.get_json(silent=True) or {}
    try:
        fields = MatchCreateSchema().load(data)
    except ValidationError as e:
        return _json_error(e.messages, 400)
    home = db.session.get(Team, fields["home_team_id"])
    if not home:
        return _json_error("Time não encontrado", 404)
    if home.owner_id != current_uid:
        return _json_error("Apenas o dono do time pode marcar jogos", 403)
    resp = _run(lambda: _engine().create_match(actor_user_id=current_uid, **fields))
    if isinstance(resp, tuple):
        return resp
    return resp, 201


def _load_action(match_id: int, schema):
    """Validate an accept / decline / counter request and resolve the acting team.

    Returns ``(body, None)`` on success or ``(None, error_response)``.
    The caller must own the team it answers for; without ``teamId`` it
    answers for its own team on the match.
    """
    current_uid = _current_user_id()
    if not current_uid:
        return None, _json_error("Autenticação necessária", 401)
    try:
        body = schema.load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return None, _json_error(e.messages, 400)
    m = db.session.get(Match, match_id)
    if not m:
        return None, _json_error("Jogo não encontrado", 404)

    if body["team_id"] is not None:
        team = db.session.get(Team, body["team_id"])
        if not team:
            return None, _json_error("Time não encontrado", 404)
        if team.owner_id != current_uid:
            return None, _json_error("Você não é o dono deste time", 403)
        return body, None

    owned = {
        t.id for t in Team.query.filter(
            Team.owner_id == current_uid,
            Team.id.in_([tid for tid in (m.home_team_id, m.away_team_id) if tid is not None]),
        )
    }
    if not owned:
        return None, _json_error("Você não participa deste jogo", 403)
    if len(owned) > 1:
        # one owner on both sides answers for whoever is being waited on
        body["team_id"] = awaiting_response_from(m)
    else:
        body["team_id"] = owned.pop()
    return body, None


@bp.post("/<int:match_id>/accept")
def accept_match(match_id: int):
    body, err = _load_action(match_id, MatchActionSchema())
    if err:
        return err
    return _run(lambda: _engine().accept_match(
        match_id,
        acting_team_id=body["team_id"],
        notification_id=body["notification_id"],
        expected_version=body["expected_version"],
        actor_user_id=_current_user_id(),
    ))


@bp.post("/<int:match_id>/decline")
def decline_match(match_id: int):
    body, err = _load_action(match_id, MatchActionSchema())
    if err:
        return err
    return _run(lambda: _engine().decline_match(
        match_id,
        acting_team_id=body["team_id"],
        notification_id=body["notification_id"],
        expected_version=body["expected_version"],
        actor_user_id=_current_user_id(),
    ))


@bp.post("/<int:match_id>/counter")
def propose_counter(match_id: int):
    """Counter-propose a new date.

    Body JSON: { date: ISO datetime, teamId?: int, notificationId?: int, expectedVersion?: int }
    """
    body, err = _load_action(match_id, CounterProposalSchema())
    if err:
        return err
    return _run(lambda: _engine().propose_counter(
        match_id,
        body["date"],
        body["team_id"],
        notification_id=body["notification_id"],
        expected_version=body["expected_version"],
        actor_user_id=_current_user_id(),
    ))
