import enum

from sqlalchemy import Enum


class UserRole(str, enum.Enum):
    OWNER = "OWNER"
    PLAYER = "PLAYER"
    FAN = "FAN"


class MatchStatus(str, enum.Enum):
    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    CANCELLED = "CANCELLED"
    FINISHED = "FINISHED"


class NotificationType(str, enum.Enum):
    MATCH_INVITE = "MATCH_INVITE"
    MATCH_UPDATE = "MATCH_UPDATE"
    TRIAL_REQUEST = "TRIAL_REQUEST"
    TEAM_INVITE = "TEAM_INVITE"
    NEW_FOLLOWER = "NEW_FOLLOWER"
    SYSTEM = "SYSTEM"


TEAM_CATEGORIES = ("Sub-15", "Sub-17", "Sub-20", "Adulto/Livre", "Veterano", "Society", "Futsal")

# Column types. Python enums are stored by name; on Postgres these become native ENUM types.
role_enum = Enum(UserRole, name="role_enum")
match_status_enum = Enum(MatchStatus, name="match_status_enum")
notification_type_enum = Enum(NotificationType, name="notification_type_enum")
team_category_enum = Enum(*TEAM_CATEGORIES, name="team_category_enum")
notification_channel_enum = Enum("email", "push", "inapp", name="notification_channel_enum")
notification_status_enum = Enum("queued", "sent", "failed", "read", name="notification_status_enum")
