from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from futdom import create_app
from futdom.extensions import db as _db
from futdom.models.enums import UserRole
from futdom.models.team import Team
from futdom.models.user import User
from futdom.modules.matches.negotiation import MatchNegotiation

# Frozen "now" for the engine; scenario dates below lie after it.
NOW = datetime(2025, 2, 1, 12, 0, tzinfo=timezone.utc)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def teams(app):
    """Team A (owner u1) and team B (owner u2)."""
    u1 = User(email="ana@futdom.test", name="Ana", role=UserRole.OWNER)
    u2 = User(email="bruno@futdom.test", name="Bruno", role=UserRole.OWNER)
    _db.session.add_all([u1, u2])
    _db.session.flush()
    a = Team(name="Unidos da Vila", owner_id=u1.id, logo_url="https://cdn.futdom.test/a.png")
    b = Team(name="Real Várzea", owner_id=u2.id, logo_url="https://cdn.futdom.test/b.png")
    _db.session.add_all([a, b])
    _db.session.commit()
    return SimpleNamespace(u1=u1.id, u2=u2.id, a=a.id, b=b.id)


@pytest.fixture
def engine(app):
    return MatchNegotiation.from_config(app.config, clock=lambda: NOW)


@pytest.fixture
def propose(engine, teams):
    """Team A challenges team B at the scenario date."""
    def _propose(**overrides):
        fields = dict(
            home_team_id=teams.a,
            away_team_id=teams.b,
            date=utc(2025, 3, 1, 18, 0),
            location_name="Quadra do Parque",
        )
        fields.update(overrides)
        return engine.create_match(**fields)
    return _propose
