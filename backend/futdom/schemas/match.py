from datetime import timezone

from marshmallow import Schema, fields, validate, EXCLUDE

from ..models.enums import MatchStatus


class MatchCreateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    home_team_id = fields.Int(required=True, data_key="homeTeamId")
    away_team_id = fields.Int(allow_none=True, load_default=None, data_key="awayTeamId")
    away_team_name = fields.Str(allow_none=True, load_default=None, data_key="awayTeamName")
    date = fields.AwareDateTime(required=True, default_timezone=timezone.utc)
    location_name = fields.Str(required=True, validate=validate.Length(min=1, max=200), data_key="locationName")
    court_id = fields.Int(allow_none=True, load_default=None, data_key="courtId")
    status = fields.Enum(MatchStatus, load_default=MatchStatus.PENDING)


class MatchActionSchema(Schema):
    """Body of accept / decline."""

    class Meta:
        unknown = EXCLUDE

    team_id = fields.Int(allow_none=True, load_default=None, data_key="teamId")
    notification_id = fields.Int(allow_none=True, load_default=None, data_key="notificationId")
    expected_version = fields.Int(allow_none=True, load_default=None, data_key="expectedVersion")


class CounterProposalSchema(MatchActionSchema):
    """Body of counter; ``teamId`` defaults to the caller's team on the match."""

    date = fields.AwareDateTime(required=True, default_timezone=timezone.utc)
