import os

# Settings requires the Supabase connection values at import time
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from nexuscrm.schemas.contact import Contact
from nexuscrm.schemas.profile import Profile, Role


class FakeQuery:
    """
    Stand-in for a postgrest request builder.

    Every chained call (select, eq, order, ilike, or_, insert, ...) is recorded
    and returns the builder itself; `execute` resolves to the configured response.
    """

    def __init__(self, data=None, count=None, error=None):
        self.calls = []
        self.response = SimpleNamespace(data=data if data is not None else [], count=count)
        self.execute = AsyncMock(return_value=self.response, side_effect=error)

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return method

    def called(self, name):
        return [(args, kwargs) for call_name, args, kwargs in self.calls if call_name == name]


@pytest.fixture
def fake_query():
    return FakeQuery()


@pytest.fixture
def mock_client(fake_query):
    client = MagicMock()
    client.table = MagicMock(return_value=fake_query)

    subscription = MagicMock()
    client.auth.on_auth_state_change = MagicMock(return_value=subscription)
    client.auth.get_session = AsyncMock(return_value=None)
    client.auth.sign_in_with_password = AsyncMock()
    client.auth.sign_up = AsyncMock()
    client.auth.sign_out = AsyncMock()
    client.auth.update_user = AsyncMock()

    bucket = MagicMock()
    bucket.upload = AsyncMock()
    bucket.get_public_url = AsyncMock(return_value="https://cdn.example.com/avatars/user-1.png")
    client.storage.from_ = MagicMock(return_value=bucket)
    return client


def _make_profile(user_id="user-1", name="Alex Admin", role=Role.ADMIN, is_active=True, **extra):
    return Profile(
        id=user_id,
        name=name,
        email=f"{user_id}@example.com",
        role=role,
        avatar_url=f"https://picsum.photos/seed/{user_id}/40/40",
        is_active=is_active,
        **extra,
    )


def _make_contact(contact_id, name, **fields):
    return Contact(id=contact_id, user_id="user-1", name=name, **fields)


def _make_session(user_id, last_sign_in_at=None):
    return SimpleNamespace(user=SimpleNamespace(id=user_id, last_sign_in_at=last_sign_in_at))


@pytest.fixture
def make_profile():
    return _make_profile


@pytest.fixture
def make_contact():
    return _make_contact


@pytest.fixture
def make_session():
    return _make_session


@pytest.fixture
def admin_profile():
    return _make_profile()
