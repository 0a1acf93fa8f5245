import asyncio
import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock
from supabase import AuthError as SupabaseAuthError
from nexuscrm.config.constants import REGISTRATION_SUCCESS_MESSAGE
from nexuscrm.core.exceptions import AuthError, RepositoryError
from nexuscrm.services.session_store import SessionStore


@pytest.fixture
def profiles(make_profile):
    return {
        "user-a": make_profile("user-a", name="Account A"),
        "user-b": make_profile("user-b", name="Account B"),
    }


@pytest.fixture
def profile_service(profiles):
    service = MagicMock()

    async def get_profile(user_id, last_sign_in_at=None):
        if user_id == "user-a":
            # First account resolves slowly to expose any out-of-order apply
            await asyncio.sleep(0.05)
        return profiles.get(user_id)

    service.get_profile = AsyncMock(side_effect=get_profile)
    return service


def make_store(client, profile_service, transition=0.0):
    return SessionStore(client, profile_service=profile_service, logout_transition_seconds=transition)


def emit(client):
    """The callback the store registered for session changes."""
    return client.auth.on_auth_state_change.call_args[0][0]


@pytest.mark.asyncio
async def test_initialize_without_session(mock_client, profile_service):
    store = make_store(mock_client, profile_service)
    assert store.is_loading is True

    await store.initialize()

    assert store.is_loading is False
    assert store.user is None
    assert store.is_signed_in is False
    await store.close()


@pytest.mark.asyncio
async def test_initialize_restores_existing_session(mock_client, profile_service, make_session):
    mock_client.auth.get_session.return_value = make_session("user-b", "2024-05-01T10:20:30Z")
    store = make_store(mock_client, profile_service)

    await store.initialize()

    assert store.user.name == "Account B"
    profile_service.get_profile.assert_awaited_with("user-b", "2024-05-01T10:20:30Z")
    await store.close()


@pytest.mark.asyncio
async def test_missing_profile_forces_sign_out(mock_client, profile_service, make_session):
    mock_client.auth.get_session.return_value = make_session("ghost")
    store = make_store(mock_client, profile_service)

    await store.initialize()

    assert store.user is None
    assert store.is_loading is False
    mock_client.auth.sign_out.assert_awaited_once()
    await store.close()


@pytest.mark.asyncio
async def test_unreadable_profile_forces_sign_out(mock_client, profile_service, make_session):
    mock_client.auth.get_session.return_value = make_session("user-a")
    profile_service.get_profile.side_effect = RepositoryError("permission denied")
    store = make_store(mock_client, profile_service)

    await store.initialize()

    assert store.user is None
    mock_client.auth.sign_out.assert_awaited_once()
    await store.close()


@pytest.mark.asyncio
async def test_events_are_applied_in_delivery_order(mock_client, profile_service, profiles, make_session):
    store = make_store(mock_client, profile_service)
    seen = []
    store.add_listener(seen.append)
    await store.initialize()

    callback = emit(mock_client)
    callback("SIGNED_IN", make_session("user-a"))
    callback("SIGNED_OUT", None)
    callback("SIGNED_IN", make_session("user-b"))
    await store.drain()

    assert store.user == profiles["user-b"]
    assert seen == [profiles["user-a"], None, profiles["user-b"]]
    await store.close()


@pytest.mark.asyncio
async def test_failing_event_does_not_stop_the_worker(mock_client, profile_service, profiles, make_session):
    store = make_store(mock_client, profile_service)
    await store.initialize()
    profile_service.get_profile.side_effect = [RuntimeError("boom"), profiles["user-b"]]

    callback = emit(mock_client)
    callback("SIGNED_IN", make_session("user-a"))
    callback("SIGNED_IN", make_session("user-b"))
    await store.drain()

    assert store.user == profiles["user-b"]
    await store.close()


@pytest.mark.asyncio
async def test_refresh_profile_re_resolves_current_session(mock_client, profile_service, make_profile, make_session):
    mock_client.auth.get_session.return_value = make_session("user-b")
    store = make_store(mock_client, profile_service)
    await store.initialize()
    renamed = make_profile("user-b", name="Account B Renamed")
    profile_service.get_profile.side_effect = None
    profile_service.get_profile.return_value = renamed

    await store.refresh_profile()

    assert store.user == renamed
    assert profile_service.get_profile.await_count == 2
    await store.close()


@pytest.mark.asyncio
async def test_refresh_profile_does_not_undo_a_later_sign_out(mock_client, profile_service, make_session):
    mock_client.auth.get_session.return_value = make_session("user-a")
    store = make_store(mock_client, profile_service)
    await store.initialize()

    refresh = asyncio.create_task(store.refresh_profile())
    await asyncio.sleep(0)
    emit(mock_client)("SIGNED_OUT", None)
    await refresh

    assert store.user is None
    await store.close()


@pytest.mark.asyncio
async def test_refresh_profile_before_initialize_is_ignored(mock_client, profile_service):
    store = make_store(mock_client, profile_service)

    await store.refresh_profile()

    mock_client.auth.get_session.assert_not_awaited()
    assert store.user is None


@pytest.mark.asyncio
async def test_close_unsubscribes(mock_client, profile_service):
    store = make_store(mock_client, profile_service)
    await store.initialize()
    subscription = mock_client.auth.on_auth_state_change.return_value

    await store.close()

    subscription.unsubscribe.assert_called_once()


@pytest.mark.asyncio
async def test_login_rejected(mock_client, profile_service):
    mock_client.auth.sign_in_with_password.side_effect = SupabaseAuthError("Invalid login credentials", None)
    store = make_store(mock_client, profile_service)

    with pytest.raises(AuthError, match="Invalid login credentials"):
        await store.login("jane@example.com", "wrong-password")
    assert store.user is None


@pytest.mark.asyncio
async def test_login_sends_credentials(mock_client, profile_service):
    store = make_store(mock_client, profile_service)

    await store.login("jane@example.com", "secret123")

    mock_client.auth.sign_in_with_password.assert_awaited_once_with(
        {"email": "jane@example.com", "password": "secret123"}
    )


@pytest.mark.asyncio
async def test_register_rejects_short_password(mock_client, profile_service):
    store = make_store(mock_client, profile_service)

    with pytest.raises(AuthError, match="at least 6 characters"):
        await store.register("Jane", "jane@example.com", "12345")
    mock_client.auth.sign_up.assert_not_awaited()


@pytest.mark.asyncio
async def test_register_passes_name_as_metadata(mock_client, profile_service):
    store = make_store(mock_client, profile_service)

    message = await store.register("Jane Smith", "jane@example.com", "secret123")

    assert message == REGISTRATION_SUCCESS_MESSAGE
    mock_client.auth.sign_up.assert_awaited_once_with({
        "email": "jane@example.com",
        "password": "secret123",
        "options": {"data": {"name": "Jane Smith"}},
    })


@pytest.mark.asyncio
async def test_logout_clears_user_even_when_sign_out_fails(mock_client, profile_service, profiles):
    mock_client.auth.sign_out.side_effect = httpx.ConnectError("offline")
    store = make_store(mock_client, profile_service, transition=0.05)
    store.user = profiles["user-a"]
    loop = asyncio.get_running_loop()

    started = loop.time()
    task = asyncio.create_task(store.logout())
    await asyncio.sleep(0)
    assert store.is_logging_out is True
    await task

    assert loop.time() - started >= 0.049
    assert store.user is None
    assert store.is_logging_out is False


@pytest.mark.asyncio
async def test_logout_keeps_account_signed_in_during_transition(mock_client, profile_service, profiles, make_session):
    store = make_store(mock_client, profile_service, transition=0.05)
    await store.initialize()
    store.user = profiles["user-a"]

    task = asyncio.create_task(store.logout())
    await asyncio.sleep(0)
    emit(mock_client)("SIGNED_IN", make_session("user-b"))
    await store.drain()
    await task

    assert store.user == profiles["user-b"]
    assert store.is_logging_out is False
    await store.close()


@pytest.mark.asyncio
async def test_update_password_validation(mock_client, profile_service):
    store = make_store(mock_client, profile_service)

    with pytest.raises(AuthError, match="do not match"):
        await store.update_password("secret123", "secret124")
    with pytest.raises(AuthError, match="at least 6"):
        await store.update_password("abc", "abc")
    mock_client.auth.update_user.assert_not_awaited()

    await store.update_password("secret123", "secret123")
    mock_client.auth.update_user.assert_awaited_once_with({"password": "secret123"})
