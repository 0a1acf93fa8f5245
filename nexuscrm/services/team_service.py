import logging
from typing import List, Optional
from supabase import AsyncClient, AuthError as SupabaseAuthError
from nexuscrm.core.exceptions import PermissionDeniedError, RepositoryError
from nexuscrm.core.permissions import can_manage_users
from nexuscrm.schemas.profile import Profile, Role
from nexuscrm.services.profile_service import ProfileService
from nexuscrm.utils.optimistic import optimistic_update

logger = logging.getLogger(__name__)


class TeamDirectory:
    """
    User administration: the team list, role changes, activation and invitations.

    Role and status changes are applied locally first and rolled back when the
    backend rejects them.
    """

    def __init__(self, profile_service: ProfileService, current_user: Profile,
                 admin_client: Optional[AsyncClient] = None):
        self.profile_service = profile_service
        self.current_user = current_user
        self.admin_client = admin_client
        self.users: List[Profile] = []
        self.is_loading = False

    @property
    def can_manage(self) -> bool:
        return can_manage_users(self.current_user.role)

    def _require_manager(self) -> None:
        if not self.can_manage:
            logger.warning(f"User {self.current_user.id} ({self.current_user.role.value}) denied user management")
            raise PermissionDeniedError()

    def _get_users(self) -> List[Profile]:
        return list(self.users)

    def _set_users(self, users: List[Profile]) -> None:
        self.users = users

    def _find(self, user_id: str) -> Profile:
        for user in self.users:
            if user.id == user_id:
                return user
        raise RepositoryError(f"User {user_id} not found")

    async def load(self) -> List[Profile]:
        self.is_loading = True
        try:
            self.users = await self.profile_service.list_profiles()
        finally:
            self.is_loading = False
        return self.users

    async def change_role(self, user_id: str, role: Role) -> List[Profile]:
        self._require_manager()
        role = Role(role)
        self._find(user_id)
        updated = [user.model_copy(update={"role": role}) if user.id == user_id else user for user in self.users]
        return await optimistic_update(
            self._get_users,
            self._set_users,
            updated,
            lambda: self.profile_service.update_role(user_id, role),
            "Failed to update user role.",
        )

    async def toggle_active(self, user_id: str) -> List[Profile]:
        self._require_manager()
        target = self._find(user_id)
        new_status = not target.is_active
        updated = [user.model_copy(update={"is_active": new_status}) if user.id == user_id else user for user in self.users]
        return await optimistic_update(
            self._get_users,
            self._set_users,
            updated,
            lambda: self.profile_service.set_active(user_id, new_status),
            "Failed to update user status.",
        )

    async def invite_user(self, email: str) -> None:
        """
        Send an invitation email. The invited account's profile is created by
        the signup trigger once the invitation is accepted.
        """
        self._require_manager()
        if self.admin_client is None:
            raise RepositoryError("User invitations are not configured.")
        try:
            await self.admin_client.auth.admin.invite_user_by_email(email)
        except SupabaseAuthError as e:
            logger.error(f"Error inviting {email}: {e.message}")
            raise RepositoryError(f"Could not invite user: {e.message}") from e
        logger.info(f"Invitation sent to {email} by {self.current_user.id}")
