"""Raw `profiles` record -> Profile, with defaults for anything missing."""
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union
from nexuscrm.config.constants import (
    AVATAR_PLACEHOLDER_URL,
    DEFAULT_LAST_LOGIN,
    DEFAULT_PROFILE_NAME,
)
from nexuscrm.schemas.profile import NotificationPreferences, Profile, Role

logger = logging.getLogger(__name__)


def placeholder_avatar(seed: Any) -> str:
    return AVATAR_PLACEHOLDER_URL.format(seed=seed)


def _format_last_login(value: Union[str, datetime, None]) -> str:
    if not value:
        return DEFAULT_LAST_LOGIN
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value.strftime("%Y-%m-%d %H:%M:%S")


def _map_notifications(raw: Any, profile_id: str) -> NotificationPreferences:
    if not isinstance(raw, dict):
        logger.warning(f"Profile {profile_id}: notifications missing, defaulting both to enabled")
        return NotificationPreferences()

    prefs = {}
    # Stored as camelCase JSON by the dashboard; accept snake_case too
    for field, alias in (("weekly_reports", "weeklyReports"), ("new_lead_alerts", "newLeadAlerts")):
        value = raw.get(alias, raw.get(field))
        if value is None:
            logger.warning(f"Profile {profile_id}: notifications.{alias} missing, defaulting to enabled")
            value = True
        prefs[field] = bool(value)
    return NotificationPreferences(**prefs)


def map_profile(record: Dict[str, Any], last_sign_in_at: Optional[Union[str, datetime]] = None) -> Profile:
    """
    Convert a raw backend record into a Profile.

    Never raises on a partially populated record: every missing field is
    replaced by its default and a warning is logged for it.

    Args:
        record: Row from the `profiles` table.
        last_sign_in_at: Last sign-in timestamp from the auth session, if known.

    Returns:
        Profile: The mapped application user.
    """
    record = record or {}
    profile_id = str(record.get("id") or "")

    name = record.get("name")
    if not name:
        logger.warning(f"Profile {profile_id}: name missing, using placeholder")
        name = DEFAULT_PROFILE_NAME

    email = record.get("email")
    if not email:
        logger.warning(f"Profile {profile_id}: email missing")
        email = ""

    avatar_url = record.get("avatar_url")
    if not avatar_url:
        logger.warning(f"Profile {profile_id}: avatar_url missing, using seeded placeholder")
        avatar_url = placeholder_avatar(profile_id or "default")

    raw_role = record.get("role")
    try:
        role = Role(raw_role) if raw_role else None
    except ValueError:
        role = None
    if role is None:
        logger.warning(f"Profile {profile_id}: role {raw_role!r} missing or unknown, defaulting to Member")
        role = Role.MEMBER

    is_active = record.get("is_active")
    if is_active is None:
        logger.warning(f"Profile {profile_id}: is_active missing, defaulting to inactive")
        is_active = False

    return Profile(
        id=profile_id,
        name=name,
        email=email,
        role=role,
        avatar_url=avatar_url,
        is_active=bool(is_active),
        notifications=_map_notifications(record.get("notifications"), profile_id),
        job_title=record.get("job_title"),
        bio=record.get("bio"),
        timezone=record.get("timezone"),
        last_login=_format_last_login(last_sign_in_at),
    )
