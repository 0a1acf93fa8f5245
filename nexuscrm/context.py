"""
Application context: the explicitly scoped wiring for one process lifetime.

Components that need the signed-in user get it from here when they are
opened instead of reading a global.
"""
import logging
from typing import Optional
from supabase import AsyncClient
from nexuscrm.core.config import Settings, settings as default_settings
from nexuscrm.core.exceptions import AuthError
from nexuscrm.infrastructure.clients.supabase import create_admin_client, create_supabase_client
from nexuscrm.schemas.profile import Profile
from nexuscrm.services.assistant_service import AssistantOrchestrator
from nexuscrm.services.contact_list import ContactList
from nexuscrm.services.contact_service import ContactRepository
from nexuscrm.services.profile_service import ProfileService
from nexuscrm.services.session_store import SessionStore
from nexuscrm.services.team_service import TeamDirectory
from nexuscrm.ui.router import AuthRouter, ViewRouter

logger = logging.getLogger(__name__)


class AppContext:
    def __init__(self, client: AsyncClient, settings: Settings = None,
                 admin_client: Optional[AsyncClient] = None):
        self.settings = settings or default_settings
        self.client = client
        self.admin_client = admin_client

        self.profiles = ProfileService(client, self.settings.AVATAR_BUCKET)
        self.contacts = ContactRepository(client)
        self.session = SessionStore(
            client,
            profile_service=self.profiles,
            logout_transition_seconds=self.settings.LOGOUT_TRANSITION_SECONDS,
        )
        self.view_router = ViewRouter()
        self.auth_router = AuthRouter()
        self.auth_router.bind(self.session)

    @classmethod
    async def create(cls, settings: Settings = None) -> "AppContext":
        settings = settings or default_settings
        client = await create_supabase_client(settings)
        admin_client = await create_admin_client(settings)
        return cls(client, settings, admin_client)

    async def start(self) -> None:
        await self.session.initialize()

    async def close(self) -> None:
        await self.session.close()

    async def __aenter__(self) -> "AppContext":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def current_user(self) -> Profile:
        if self.session.user is None:
            raise AuthError("Not signed in")
        return self.session.user

    def open_contact_list(self) -> ContactList:
        return ContactList(self.contacts, self.current_user.id, self.settings.SEARCH_DEBOUNCE_SECONDS)

    def open_team_directory(self) -> TeamDirectory:
        return TeamDirectory(self.profiles, self.current_user, self.admin_client)

    async def open_assistant(self, client=None) -> AssistantOrchestrator:
        assistant = AssistantOrchestrator(
            self.contacts,
            self.current_user,
            client=client,
            settings=self.settings,
        )
        await assistant.initialize()
        return assistant
