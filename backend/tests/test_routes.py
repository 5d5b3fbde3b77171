from futdom.models.audit_log import AuditLog
from futdom.security import issue_token, verify_token


def _as(user_id):
    return {"X-User-Id": str(user_id)}


def _create_match(client, teams, **overrides):
    body = {
        "homeTeamId": teams.a,
        "awayTeamId": teams.b,
        "date": "2030-03-01T18:00",
        "locationName": "Quadra do Parque",
        "status": "SCHEDULED",
    }
    body.update(overrides)
    return client.post("/api/v1/matches", json=body, headers=_as(teams.u1))


def _inbox(client, user_id):
    resp = client.get(f"/api/v1/notifications?userId={user_id}")
    assert resp.status_code == 200
    return resp.get_json()["notifications"]


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}
    assert client.get("/db-check").get_json() == {"db": "ok"}


def test_create_user_and_team(client):
    resp = client.post("/api/v1/users", json={"email": "Caio@Futdom.test", "name": "Caio"})
    assert resp.status_code == 201
    data = resp.get_json()
    user = data["user"]
    assert user["email"] == "caio@futdom.test"
    assert user["role"] == "FAN"
    assert verify_token(data["token"])[0] == user["id"]

    resp = client.post("/api/v1/teams", json={"name": "Galáticos FC", "ownerId": user["id"], "category": "Society"})
    assert resp.status_code == 201
    team = resp.get_json()["team"]
    assert team["ownerId"] == user["id"]

    owner = client.get(f"/api/v1/users/{user['id']}").get_json()["user"]
    assert owner["role"] == "OWNER"
    assert owner["ownedTeamIds"] == [team["id"]]


def test_duplicate_email_is_rejected(client):
    client.post("/api/v1/users", json={"email": "dup@futdom.test", "name": "Um"})
    resp = client.post("/api/v1/users", json={"email": "dup@futdom.test", "name": "Dois"})
    assert resp.status_code == 409


def test_create_match_and_invite(client, teams):
    resp = _create_match(client, teams)
    assert resp.status_code == 201
    match = resp.get_json()["match"]
    assert match["status"] == "SCHEDULED"
    assert match["isVerified"] is False
    assert match["awayTeamName"] == "Real Várzea"
    assert match["awaitingTeamId"] == teams.b
    assert match["date"].startswith("2030-03-01T18:00:00")

    inbox = _inbox(client, teams.u2)
    assert len(inbox) == 1
    assert inbox[0]["type"] == "MATCH_INVITE"
    assert inbox[0]["actionData"]["matchId"] == match["id"]
    assert inbox[0]["read"] is False


def test_create_match_validation(client, teams):
    resp = _create_match(client, teams, date="amanhã")
    assert resp.status_code == 400
    assert "date" in resp.get_json()["error"]

    resp = _create_match(client, teams, awayTeamId=999)
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Time não encontrado"


def test_accept_flow(client, teams):
    match = _create_match(client, teams).get_json()["match"]
    invite = _inbox(client, teams.u2)[0]

    resp = client.post(f"/api/v1/matches/{match['id']}/accept", json={"teamId": teams.b, "notificationId": invite["id"]}, headers=_as(teams.u2))
    assert resp.status_code == 200
    accepted = resp.get_json()["match"]
    assert accepted["status"] == "SCHEDULED"
    assert accepted["isVerified"] is True
    assert accepted["awaitingTeamId"] is None
    assert _inbox(client, teams.u2)[0]["read"] is True


def test_proposer_accepting_is_rejected(client, teams):
    match = _create_match(client, teams).get_json()["match"]
    resp = client.post(f"/api/v1/matches/{match['id']}/accept", json={"teamId": teams.a}, headers=_as(teams.u1))
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "Aguardando resposta do outro time"


def test_counter_then_decline(client, teams):
    match = _create_match(client, teams).get_json()["match"]

    resp = client.post(f"/api/v1/matches/{match['id']}/counter", json={"teamId": teams.b, "date": "2030-03-02T20:00"}, headers=_as(teams.u2))
    assert resp.status_code == 200
    countered = resp.get_json()["match"]
    assert countered["status"] == "PENDING"
    assert countered["date"].startswith("2030-03-02T20:00:00")
    assert countered["awaitingTeamId"] == teams.a

    update = _inbox(client, teams.u1)[0]
    assert update["type"] == "MATCH_UPDATE"
    assert update["actionData"]["proposedDate"].startswith("2030-03-02T20:00:00")

    resp = client.post(f"/api/v1/matches/{match['id']}/decline", json={"teamId": teams.a}, headers=_as(teams.u1))
    assert resp.status_code == 200
    assert resp.get_json()["match"]["status"] == "CANCELLED"

    resp = client.post(f"/api/v1/matches/{match['id']}/accept", json={}, headers=_as(teams.u1))
    assert resp.status_code == 409


def test_counter_requires_date(client, teams):
    match = _create_match(client, teams).get_json()["match"]
    resp = client.post(f"/api/v1/matches/{match['id']}/counter", json={"teamId": teams.b}, headers=_as(teams.u2))
    assert resp.status_code == 400
    assert "date" in resp.get_json()["error"]


def test_counter_without_team_acts_for_callers_side(client, teams):
    match = _create_match(client, teams).get_json()["match"]
    resp = client.post(f"/api/v1/matches/{match['id']}/counter", json={"date": "2030-03-02T20:00"}, headers=_as(teams.u2))
    assert resp.status_code == 200
    countered = resp.get_json()["match"]
    assert countered["lastProposedByTeamId"] == teams.b
    assert countered["awaitingTeamId"] == teams.a


def test_anonymous_writes_are_rejected(app, client, teams):
    match = _create_match(client, teams).get_json()["match"]
    app.config["DEBUG"] = False

    # without a token the debug header is ignored too
    assert client.post("/api/v1/matches", json={}, headers=_as(teams.u1)).status_code == 401
    for action in ("accept", "decline", "counter"):
        resp = client.post(f"/api/v1/matches/{match['id']}/{action}", json={"date": "2030-03-02T20:00"})
        assert resp.status_code == 401
    assert client.get(f"/api/v1/matches/{match['id']}").get_json()["match"]["isVerified"] is False


def test_acting_for_someone_elses_team_is_forbidden(client, teams):
    match = _create_match(client, teams).get_json()["match"]

    resp = client.post(
        f"/api/v1/matches/{match['id']}/counter",
        json={"teamId": teams.b, "date": "2030-03-02T20:00"},
        headers=_as(teams.u1),
    )
    assert resp.status_code == 403
    resp = client.post(f"/api/v1/matches/{match['id']}/accept", json={"teamId": teams.b}, headers=_as(teams.u1))
    assert resp.status_code == 403

    stored = client.get(f"/api/v1/matches/{match['id']}").get_json()["match"]
    assert stored["lastProposedByTeamId"] == teams.a
    assert stored["isVerified"] is False


def test_caller_outside_the_match_is_forbidden(client, teams):
    match = _create_match(client, teams).get_json()["match"]
    stranger = client.post("/api/v1/users", json={"email": "zeca@futdom.test", "name": "Zeca"}).get_json()["user"]

    resp = client.post(f"/api/v1/matches/{match['id']}/accept", json={}, headers=_as(stranger["id"]))
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Você não participa deste jogo"


def test_only_the_home_owner_can_create(client, teams):
    resp = _create_match(client, teams, homeTeamId=teams.b)
    assert resp.status_code == 403
    assert client.get("/api/v1/matches").get_json()["matches"] == []


def test_omitted_team_answers_for_callers_side(client, teams):
    match = _create_match(client, teams).get_json()["match"]

    # home owner tries to accept its own challenge without naming a team
    resp = client.post(f"/api/v1/matches/{match['id']}/accept", json={}, headers=_as(teams.u1))
    assert resp.status_code == 409
    resp = client.post(f"/api/v1/matches/{match['id']}/accept", json={}, headers=_as(teams.u2))
    assert resp.status_code == 200
    assert resp.get_json()["match"]["isVerified"] is True


def test_stale_version_is_reported(client, teams):
    match = _create_match(client, teams).get_json()["match"]
    resp = client.post(
        f"/api/v1/matches/{match['id']}/accept",
        json={"expectedVersion": match["version"] + 1},
        headers=_as(teams.u2),
    )
    assert resp.status_code == 409
    assert "recarregue" in resp.get_json()["error"]


def test_unknown_match(client, teams):
    assert client.get("/api/v1/matches/999").status_code == 404
    resp = client.post("/api/v1/matches/999/decline", json={}, headers=_as(teams.u1))
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Jogo não encontrado"


def test_list_matches_filters(client, teams):
    _create_match(client, teams)
    _create_match(client, teams, awayTeamId=None, awayTeamName="Amigos do Bairro", status="PENDING")

    all_for_a = client.get(f"/api/v1/matches?teamId={teams.a}").get_json()["matches"]
    assert len(all_for_a) == 2
    for_b = client.get(f"/api/v1/matches?teamId={teams.b}").get_json()["matches"]
    assert len(for_b) == 1
    pending = client.get("/api/v1/matches?status=pending").get_json()["matches"]
    assert [m["awayTeamName"] for m in pending] == ["Amigos do Bairro"]
    assert client.get("/api/v1/matches?status=nope").status_code == 400


def test_mark_notification_read(client, teams):
    _create_match(client, teams)
    invite = _inbox(client, teams.u2)[0]

    assert client.patch(f"/api/v1/notifications/{invite['id']}/read?userId={teams.u1}").status_code == 403
    resp = client.patch(f"/api/v1/notifications/{invite['id']}/read?userId={teams.u2}")
    assert resp.status_code == 200
    assert resp.get_json()["notification"]["read"] is True
    assert client.patch("/api/v1/notifications/999/read").status_code == 404


def test_notifications_require_user(client):
    assert client.get("/api/v1/notifications").status_code == 400
    assert client.get("/api/v1/notifications?userId=abc").status_code == 400


def test_bearer_token_identifies_actor(app, client, teams):
    token = issue_token(teams.u2, "OWNER")
    match = _create_match(client, teams).get_json()["match"]

    resp = client.post(
        f"/api/v1/matches/{match['id']}/decline",
        json={},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert resp.status_code == 200
    log = AuditLog.query.filter_by(action="match_declined").one()
    assert log.actor_user_id == teams.u2


def test_debug_header_identifies_actor(client, teams):
    resp = _create_match(client, teams, status="PENDING")
    assert resp.status_code == 201
    match = resp.get_json()["match"]
    client.post(f"/api/v1/matches/{match['id']}/accept", json={}, headers={"X-User-Id": str(teams.u2)})
    log = AuditLog.query.filter_by(action="match_accepted").one()
    assert log.actor_user_id == teams.u2
