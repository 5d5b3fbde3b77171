from marshmallow import Schema, fields, validate, EXCLUDE

from ..models.enums import TEAM_CATEGORIES, UserRole


class UserCreateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True)
    name = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    role = fields.Enum(UserRole, load_default=UserRole.FAN)
    avatar_url = fields.Str(allow_none=True, load_default=None, data_key="avatarUrl")
    location = fields.Str(allow_none=True, load_default=None)


class TeamCreateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    owner_id = fields.Int(required=True, data_key="ownerId")
    logo_url = fields.Str(allow_none=True, load_default=None, data_key="logoUrl")
    category = fields.Str(load_default="Adulto/Livre", validate=validate.OneOf(TEAM_CATEGORIES))
    home_turf = fields.Str(allow_none=True, load_default=None, data_key="homeTurf")
