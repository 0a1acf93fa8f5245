from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional
import enum


class Role(str, enum.Enum):
    ADMIN = "Admin"
    MANAGER = "Manager"
    MEMBER = "Member"


class NotificationPreferences(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    weekly_reports: bool = True
    new_lead_alerts: bool = True


class Profile(BaseModel):
    """
    Application-level user record.

    Attributes are snake_case (matching the `profiles` columns); dumping with
    ``by_alias=True`` produces the camelCase keys the dashboard consumes.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    email: str = ""
    role: Role = Role.MEMBER
    avatar_url: str
    is_active: bool = False
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    job_title: Optional[str] = None
    bio: Optional[str] = None
    timezone: Optional[str] = None
    last_login: str = "N/A"
