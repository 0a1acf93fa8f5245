import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from nexuscrm.context import AppContext
from nexuscrm.core.config import Settings
from nexuscrm.core.exceptions import AuthError
from nexuscrm.ui.router import AuthView, View, resolve_screen


@pytest.fixture
def app_settings():
    return Settings(
        SUPABASE_URL="http://localhost:54321",
        SUPABASE_ANON_KEY="anon",
        SEARCH_DEBOUNCE_SECONDS=0.01,
        LOGOUT_TRANSITION_SECONDS=0,
    )


def test_database_url(app_settings):
    assert str(app_settings.DATABASE_URL).startswith("postgresql+asyncpg://postgres")
    assert str(app_settings.DATABASE_URL).endswith("@localhost:54322/postgres")


@pytest.mark.asyncio
async def test_signed_out_context(mock_client, app_settings):
    async with AppContext(mock_client, app_settings) as context:
        assert resolve_screen(context.session, context.view_router, context.auth_router) is AuthView.WELCOME
        with pytest.raises(AuthError):
            context.current_user
        with pytest.raises(AuthError):
            context.open_contact_list()


@pytest.mark.asyncio
async def test_signed_in_context_opens_user_scoped_components(mock_client, fake_query, app_settings, make_session):
    mock_client.auth.get_session.return_value = make_session("user-1")
    fake_query.response.data = [{"id": "user-1", "name": "Alex Admin", "role": "Admin", "is_active": True}]

    async with AppContext(mock_client, app_settings) as context:
        assert context.current_user.name == "Alex Admin"
        assert resolve_screen(context.session, context.view_router, context.auth_router) is View.DASHBOARD

        contact_list = context.open_contact_list()
        assert contact_list.user_id == "user-1"

        directory = context.open_team_directory()
        assert directory.can_manage is True

        context.auth_router.show(AuthView.LOGIN)
        await context.session.logout()
        assert context.session.user is None
        assert context.auth_router.view is AuthView.WELCOME


@pytest.mark.asyncio
async def test_open_assistant_initializes_session(mock_client, fake_query, app_settings, make_session):
    mock_client.auth.get_session.return_value = make_session("user-1")
    fake_query.response.data = [{"id": "user-1", "name": "Alex Admin"}]
    fake_query.response.count = 0
    genai_client = MagicMock()

    async with AppContext(mock_client, app_settings) as context:
        assistant = await context.open_assistant(client=genai_client)

    assert assistant.input_enabled is True
    genai_client.aio.chats.create.assert_called_once()


@pytest.mark.asyncio
async def test_create_builds_clients(app_settings):
    client = MagicMock()
    with patch("nexuscrm.context.create_supabase_client", AsyncMock(return_value=client)) as create_client, \
         patch("nexuscrm.context.create_admin_client", AsyncMock(return_value=None)):
        context = await AppContext.create(app_settings)

    create_client.assert_awaited_once_with(app_settings)
    assert context.client is client
    assert context.admin_client is None


@pytest.mark.asyncio
async def test_open_assistant_uses_context_settings(mock_client, fake_query, make_session):
    context_settings = Settings(
        SUPABASE_URL="http://localhost:54321",
        SUPABASE_ANON_KEY="anon",
        GEMINI_API_KEY="context-key",
        GEMINI_MODEL="gemini-context",
        LOGOUT_TRANSITION_SECONDS=0,
    )
    mock_client.auth.get_session.return_value = make_session("user-1")
    fake_query.response.data = [{"id": "user-1", "name": "Alex Admin"}]
    fake_query.response.count = 0

    with patch("nexuscrm.services.assistant_service.genai.Client") as client_cls:
        async with AppContext(mock_client, context_settings) as context:
            assistant = await context.open_assistant()

    client_cls.assert_called_once_with(api_key="context-key")
    _, kwargs = client_cls.return_value.aio.chats.create.call_args
    assert kwargs["model"] == "gemini-context"
    assert assistant.settings is context_settings
