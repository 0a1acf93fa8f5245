import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from supabase import AsyncClient
from nexuscrm.config.constants import PROFILES_TABLE
from nexuscrm.core.config import settings
from nexuscrm.core.exceptions import RepositoryError
from nexuscrm.infrastructure.clients.supabase import BACKEND_ERRORS, backend_error_message
from nexuscrm.schemas.profile import NotificationPreferences, Profile, Role
from nexuscrm.services.profile_mapper import map_profile

logger = logging.getLogger(__name__)


@dataclass
class AvatarUpload:
    filename: str
    content: bytes
    content_type: str = "image/png"

    @property
    def extension(self) -> str:
        ext = os.path.splitext(self.filename)[1].lstrip(".").lower()
        return ext or "png"


class ProfileService:
    """
    Service for reading and writing rows of the `profiles` table.
    Handles avatar uploads to storage and maps every row through the profile mapper.
    """
    def __init__(self, client: AsyncClient, avatar_bucket: str = None):
        """
        Args:
            client: Supabase client scoped to the signed-in user.
            avatar_bucket: Storage bucket for avatars (defaults to settings.AVATAR_BUCKET).
        """
        self.client = client
        self.avatar_bucket = avatar_bucket or settings.AVATAR_BUCKET

    async def get_profile_record(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the raw profile row for a user.

        Returns:
            The row, or None when no row exists for the user.
        """
        try:
            response = await (
                self.client.table(PROFILES_TABLE)
                .select("*")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
        except BACKEND_ERRORS as e:
            logger.error(f"Error fetching profile {user_id}: {backend_error_message(e)}")
            raise RepositoryError(backend_error_message(e)) from e
        rows = response.data or []
        return rows[0] if rows else None

    async def get_profile(self, user_id: str, last_sign_in_at=None) -> Optional[Profile]:
        record = await self.get_profile_record(user_id)
        if record is None:
            return None
        return map_profile(record, last_sign_in_at)

    async def list_profiles(self) -> List[Profile]:
        """All profiles visible to the current user, ordered by name."""
        try:
            response = await (
                self.client.table(PROFILES_TABLE)
                .select("*")
                .order("name")
                .execute()
            )
        except BACKEND_ERRORS as e:
            logger.error(f"Error fetching users: {backend_error_message(e)}")
            raise RepositoryError(backend_error_message(e)) from e
        return [map_profile(row) for row in response.data or []]

    async def _update(self, user_id: str, changes: Dict[str, Any]) -> None:
        try:
            await (
                self.client.table(PROFILES_TABLE)
                .update(changes)
                .eq("id", user_id)
                .execute()
            )
        except BACKEND_ERRORS as e:
            logger.error(f"Error updating profile {user_id} ({', '.join(changes)}): {backend_error_message(e)}")
            raise RepositoryError(backend_error_message(e)) from e

    async def upload_avatar(self, user_id: str, avatar: AvatarUpload) -> str:
        """
        Upload (or replace) a user's avatar and return its public URL.

        Args:
            user_id: Owner of the avatar; the file is stored as avatars/<user_id>.<ext>.
            avatar: File name, bytes and content type.

        Returns:
            str: Public URL of the stored file.
        """
        file_path = f"avatars/{user_id}.{avatar.extension}"
        bucket = self.client.storage.from_(self.avatar_bucket)
        try:
            await bucket.upload(
                file_path,
                avatar.content,
                {"content-type": avatar.content_type, "upsert": "true"},
            )
            public_url = await bucket.get_public_url(file_path)
        except BACKEND_ERRORS as e:
            logger.error(f"Error uploading avatar for {user_id}: {backend_error_message(e)}")
            raise RepositoryError(f"Error uploading avatar: {backend_error_message(e)}") from e
        logger.info(f"Uploaded avatar for {user_id} to {file_path}")
        return public_url

    async def update_profile(self, user_id: str, name: str, avatar: AvatarUpload = None,
                             current_avatar_url: str = None) -> Dict[str, Any]:
        """
        Update the editable profile fields of the signed-in user.

        The avatar is uploaded first; a failed upload aborts before the row is touched.

        Returns:
            dict: The changes written to the profile row.
        """
        avatar_url = current_avatar_url
        if avatar is not None:
            avatar_url = await self.upload_avatar(user_id, avatar)

        changes = {"name": name}
        if avatar_url:
            changes["avatar_url"] = avatar_url
        await self._update(user_id, changes)
        return changes

    async def update_notifications(self, user_id: str, prefs: NotificationPreferences) -> None:
        await self._update(user_id, {"notifications": prefs.model_dump(by_alias=True)})

    async def update_role(self, user_id: str, role: Role) -> None:
        await self._update(user_id, {"role": Role(role).value})

    async def set_active(self, user_id: str, is_active: bool) -> None:
        await self._update(user_id, {"is_active": is_active})
