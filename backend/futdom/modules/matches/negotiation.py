"""Match negotiation between two teams.

A match is proposed by its home team and then bounces between the two
owners until one of them accepts (``SCHEDULED`` and verified) or declines
(``CANCELLED``). Each answer may instead be a counter-proposal with a new
date, which hands the turn back to the other side.

Every write that needs the other side's attention queues exactly one
notification for that team's owner in the same transaction as the match
update; queued notifications are pushed to clients after the commit.
"""
from __future__ import annotations

import enum
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable

from flask import current_app

from ...extensions import db
from ...models.audit_log import AuditLog
from ...models.enums import MatchStatus, NotificationType
from ...models.match import Match
from ...models.notification import Notification
from ...store import TeamOwner, lookup_team_owner, mark_notification_read, run_in_transaction
from ..notifications.delivery import drain_outbox
from .errors import ConflictError, InvalidProposal, InvalidTransition, MatchNotFound, NotYourTurn

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    COUNTER = "counter"


OPEN_STATUSES = (MatchStatus.PENDING, MatchStatus.SCHEDULED)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes as UTC (SQLite drops the offset on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def other_party(match: Match, acting_team_id: int | None) -> int | None:
    """Return the team on ``match`` that is not ``acting_team_id``.

    ``None`` means the home team acted on a match against an informal
    opponent, so there is nobody on the platform to hand the turn to.
    """
    if acting_team_id is not None and acting_team_id == match.home_team_id:
        return match.away_team_id
    if acting_team_id is not None and match.away_team_id is not None and acting_team_id == match.away_team_id:
        return match.home_team_id
    raise InvalidProposal("Este time não participa do jogo")


def awaiting_response_from(match: Match) -> int | None:
    return other_party(match, match.last_proposed_by_team_id or match.home_team_id)


def next_status(action: Action, match: Match) -> MatchStatus:
    """Status ``match`` moves to under ``action``.

    Raises InvalidTransition when the current status does not allow it.
    Returning the current status means the action is already in effect.
    """
    status = MatchStatus(match.status)
    if status is MatchStatus.PENDING:
        return {
            Action.ACCEPT: MatchStatus.SCHEDULED,
            Action.DECLINE: MatchStatus.CANCELLED,
            Action.COUNTER: MatchStatus.PENDING,
        }[action]
    if status is MatchStatus.SCHEDULED:
        if match.is_verified:
            # confirmed: only a repeated accept is tolerated
            if action is Action.ACCEPT:
                return MatchStatus.SCHEDULED
            raise InvalidTransition()
        return {
            Action.ACCEPT: MatchStatus.SCHEDULED,
            Action.DECLINE: MatchStatus.CANCELLED,
            Action.COUNTER: MatchStatus.PENDING,
        }[action]
    if status is MatchStatus.CANCELLED:
        if action is Action.DECLINE:
            return MatchStatus.CANCELLED
        raise InvalidTransition()
    if status is MatchStatus.FINISHED:
        raise InvalidTransition()
    raise AssertionError(f"unhandled match status: {status!r}")


def is_noop(action: Action, match: Match) -> bool:
    if action is Action.ACCEPT:
        return match.status == MatchStatus.SCHEDULED and bool(match.is_verified)
    if action is Action.DECLINE:
        return match.status == MatchStatus.CANCELLED
    return False


class MatchNegotiation:
    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        retry_attempts: int = 3,
        retry_delay: float = 0.5,
        require_future_dates: bool = True,
    ):
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.require_future_dates = require_future_dates

    @classmethod
    def from_config(cls, config=None, clock: Callable[[], datetime] | None = None) -> "MatchNegotiation":
        config = config if config is not None else current_app.config
        return cls(
            clock=clock,
            retry_attempts=config.get("STORE_RETRY_ATTEMPTS", 3),
            retry_delay=config.get("STORE_RETRY_DELAY", 0.5),
            require_future_dates=config.get("REQUIRE_FUTURE_COUNTER_DATE", True),
        )

    # -- operations ---------------------------------------------------------

    def create_match(
        self,
        *,
        home_team_id: int,
        date: datetime,
        location_name: str,
        away_team_id: int | None = None,
        away_team_name: str | None = None,
        court_id: int | None = None,
        status: MatchStatus = MatchStatus.PENDING,
        actor_user_id: int | None = None,
    ) -> Match:
        status = MatchStatus(status)
        if status not in OPEN_STATUSES:
            raise InvalidProposal("Um jogo novo deve começar como PENDING ou SCHEDULED")
        if not date:
            raise InvalidProposal("Informe a data do jogo")
        if not (location_name or "").strip():
            raise InvalidProposal("Informe o local do jogo")
        if away_team_id is not None and away_team_id == home_team_id:
            raise InvalidProposal("Um time não pode desafiar a si mesmo")
        outbox: list[Notification] = []

        def work() -> Match:
            outbox.clear()
            home = lookup_team_owner(home_team_id)
            away = lookup_team_owner(away_team_id) if away_team_id is not None else None
            name = (away_team_name or "").strip() or (away.team_name if away else "")
            if not name:
                raise InvalidProposal("Informe o adversário")
            match = Match(
                date=as_utc(date),
                location_name=location_name.strip(),
                court_id=court_id,
                home_team_id=home_team_id,
                away_team_id=away_team_id,
                away_team_name=name,
                status=status,
                is_verified=False,
                goals=[],
                last_proposed_by_team_id=home_team_id,
            )
            db.session.add(match)
            db.session.flush()
            if away is not None:
                if away.user_id is None:
                    logger.warning("Team %s has no owner, invite for match %s not sent", away_team_id, match.id)
                else:
                    outbox.append(self._queue(
                        recipient=away,
                        sender_team_id=home_team_id,
                        sender=home,
                        match=match,
                        kind=NotificationType.MATCH_INVITE,
                        title="Desafio Recebido",
                        body=f"{home.team_name} marcou um jogo contra você em {match.location_name}.",
                        proposed_date=match.date,
                    ))
            self._audit(actor_user_id, "match_created", match, None, status, home_team_id)
            return match

        match = run_in_transaction(work, self.retry_attempts, self.retry_delay)
        logger.info("Match %s created by team %s (%s)", match.id, home_team_id, status.value)
        self._deliver(outbox)
        return match

    def accept_match(
        self,
        match_id: int,
        acting_team_id: int | None = None,
        notification_id: int | None = None,
        expected_version: int | None = None,
        actor_user_id: int | None = None,
    ) -> Match:
        return self._respond(Action.ACCEPT, match_id, acting_team_id, notification_id, expected_version, actor_user_id)

    def decline_match(
        self,
        match_id: int,
        acting_team_id: int | None = None,
        notification_id: int | None = None,
        expected_version: int | None = None,
        actor_user_id: int | None = None,
    ) -> Match:
        return self._respond(Action.DECLINE, match_id, acting_team_id, notification_id, expected_version, actor_user_id)

    def propose_counter(
        self,
        match_id: int,
        new_date: datetime | None,
        proposing_team_id: int,
        notification_id: int | None = None,
        expected_version: int | None = None,
        actor_user_id: int | None = None,
    ) -> Match:
        if not new_date:
            raise InvalidProposal("Informe a nova data")
        if proposing_team_id is None:
            raise InvalidProposal("Informe o time que está propondo")
        return self._respond(
            Action.COUNTER, match_id, proposing_team_id, notification_id, expected_version, actor_user_id,
            new_date=as_utc(new_date),
        )

    # -- internals ----------------------------------------------------------

    def _respond(
        self,
        action: Action,
        match_id: int,
        acting_team_id: int | None,
        notification_id: int | None,
        expected_version: int | None,
        actor_user_id: int | None,
        new_date: datetime | None = None,
    ) -> Match:
        outbox: list[Notification] = []

        def work() -> tuple[Match, int]:
            outbox.clear()
            match = db.session.get(Match, match_id)
            if match is None:
                raise MatchNotFound()
            if expected_version is not None and match.version != expected_version:
                raise ConflictError()
            if match.away_team_id is None:
                # informal opponent: no one on the platform can answer
                raise InvalidTransition()
            target = next_status(action, match)
            responder = awaiting_response_from(match)
            actor_team = acting_team_id if acting_team_id is not None else responder
            now = self.clock()
            counterpart = other_party(match, actor_team)

            if is_noop(action, match):
                self._close_triggers(match, actor_team, notification_id, now)
                return match, actor_team

            if action is Action.ACCEPT and actor_team != responder:
                raise NotYourTurn()
            if action is Action.COUNTER:
                self._check_new_date(match, new_date, now)

            previous = MatchStatus(match.status)
            match.status = target
            match.is_verified = action is Action.ACCEPT
            if action is Action.COUNTER:
                match.date = new_date
                match.last_proposed_by_team_id = actor_team

            self._close_triggers(match, actor_team, notification_id, now)
            outbox.extend(self._notify_counterpart(action, match, actor_team, counterpart))
            self._audit(actor_user_id, f"match_{_AUDIT_VERBS[action]}", match, previous, target, actor_team)
            return match, actor_team

        match, actor_team = run_in_transaction(work, self.retry_attempts, self.retry_delay)
        logger.info("Match %s %s by team %s -> %s", match.id, _AUDIT_VERBS[action], actor_team, match.status.value)
        self._deliver(outbox)
        return match

    def _check_new_date(self, match: Match, new_date: datetime | None, now: datetime) -> None:
        if new_date is None:
            raise InvalidProposal("Informe a nova data")
        if as_utc(match.date) == new_date:
            raise InvalidProposal("A nova data deve ser diferente da atual")
        if self.require_future_dates and new_date <= as_utc(now):
            raise InvalidProposal("A nova data deve estar no futuro")

    def _notify_counterpart(self, action: Action, match: Match, actor_team: int, counterpart: int | None) -> list[Notification]:
        if counterpart is None:
            return []
        sender = lookup_team_owner(actor_team)
        recipient = lookup_team_owner(counterpart)
        if recipient.user_id is None:
            logger.warning("Team %s has no owner, update for match %s not sent", counterpart, match.id)
            return []
        if action is Action.COUNTER:
            title = "Contra-proposta"
            body = f"{sender.team_name} sugeriu uma nova data para o jogo: {as_utc(match.date):%d/%m %H:%M}."
            proposed = match.date
        elif action is Action.ACCEPT:
            title = "Jogo Confirmado"
            body = f"{sender.team_name} confirmou o jogo em {match.location_name}."
            proposed = None
        else:
            title = "Jogo Cancelado"
            body = f"{sender.team_name} recusou o jogo em {match.location_name}."
            proposed = None
        return [self._queue(
            recipient=recipient,
            sender_team_id=actor_team,
            sender=sender,
            match=match,
            kind=NotificationType.MATCH_UPDATE,
            title=title,
            body=body,
            proposed_date=proposed,
        )]

    def _queue(
        self,
        *,
        recipient: TeamOwner,
        sender_team_id: int,
        sender: TeamOwner,
        match: Match,
        kind: NotificationType,
        title: str,
        body: str,
        proposed_date: datetime | None = None,
    ) -> Notification:
        action_data = {"matchId": int(match.id), "teamId": int(sender_team_id)}
        if proposed_date is not None:
            action_data["proposedDate"] = as_utc(proposed_date).isoformat()
        n = Notification(
            user_id=recipient.user_id,
            type=kind,
            channel="inapp",
            title=title,
            body=body,
            related_id=sender_team_id,
            related_image=sender.logo_url,
            match_id=match.id,
            payload=action_data,
            status="queued",
        )
        db.session.add(n)
        return n

    def _close_triggers(self, match: Match, actor_team: int | None, notification_id: int | None, now: datetime) -> None:
        """Mark the notification(s) the acting owner is answering as read."""
        if actor_team is None:
            return
        owner = lookup_team_owner(actor_team)
        if owner.user_id is None:
            return
        if notification_id is not None:
            n = db.session.get(Notification, notification_id)
            # only the acting owner's own inbox entry for this match
            if n is not None and n.match_id == match.id and n.user_id == owner.user_id:
                mark_notification_read(n, now)
            return
        pending = (
            Notification.query
            .filter(
                Notification.match_id == match.id,
                Notification.user_id == owner.user_id,
                Notification.read_at.is_(None),
            )
            .all()
        )
        for n in pending:
            mark_notification_read(n, now)

    def _audit(self, actor_user_id, action: str, match: Match, previous, target: MatchStatus, team_id: int | None) -> None:
        db.session.add(
            AuditLog(
                actor_user_id=actor_user_id,
                action=action,
                entity_type="match",
                entity_id=int(match.id),
                details={
                    "fromStatus": previous.value if previous else None,
                    "toStatus": target.value,
                    "teamId": team_id,
                    "date": as_utc(match.date).isoformat() if match.date else None,
                },
            )
        )

    def _deliver(self, outbox: Iterable[Notification]) -> None:
        ids = [n.id for n in outbox]
        if not ids:
            return
        try:
            drain_outbox(ids)
        except Exception:
            # rows stay queued for the periodic drain
            db.session.rollback()
            logger.exception("Notification delivery failed for %s", ids)


_AUDIT_VERBS = {
    Action.ACCEPT: "accepted",
    Action.DECLINE: "declined",
    Action.COUNTER: "counter_proposed",
}
