import pytest
from datetime import datetime
import httpx
from supabase import PostgrestAPIError
from nexuscrm.config.constants import ASSISTANT_QUERY_FIELDS
from nexuscrm.core.exceptions import RepositoryError
from nexuscrm.schemas.contact import Contact, ContactCreate, ContactSearchQuery, ContactStatus
from nexuscrm.services.contact_service import ContactRepository

FULL_ROW = {
    "id": 42,
    "user_id": "user-1",
    "name": "Jane Smith",
    "email": "jane@techcorp.com",
    "company": "TechCorp",
    "phone": "+1 555 0100",
    "status": "Customer",
    "avatar_url": "https://picsum.photos/seed/42/40/40",
    "title": "CTO",
    "industry": "Software",
    "company_size": "51-200",
    "company_address": "1 Main St",
    "website": "https://techcorp.com",
    "employees_count": 120,
    "annual_revenue": 1500000.0,
    "total_funding": 2500000.0,
    "latest_funding_amount": 500000.0,
    "seniority": "c_suite",
    "departments": "engineering",
    "keywords": "saas, b2b",
    "technologies": "python, postgres",
    "email_status": "Verified",
    "stage": "Qualified",
    "city": "Austin",
    "state": "TX",
    "country": "USA",
    "postal_code": "73301",
    "company_city": "Austin",
    "company_state": "TX",
    "company_country": "USA",
    "company_phone": "+1 555 0199",
    "person_linkedin_url": "https://linkedin.com/in/jane",
    "company_linkedin_url": "https://linkedin.com/company/techcorp",
    "facebook_url": "https://facebook.com/techcorp",
    "twitter_url": "https://twitter.com/techcorp",
    "notes": "Met at the summit",
    "tags": "vip, enterprise",
    "is_active": True,
}


def test_contact_record_round_trip():
    contact = Contact.from_record(FULL_ROW)
    assert contact.to_record() == FULL_ROW


def test_contact_camel_case_shape():
    contact = Contact.from_record({**FULL_ROW, "created_at": "2024-03-01T12:00:00+00:00"})
    dumped = contact.model_dump(by_alias=True)
    assert dumped["avatarUrl"] == FULL_ROW["avatar_url"]
    assert dumped["personLinkedinUrl"] == FULL_ROW["person_linkedin_url"]
    assert isinstance(contact.created_at, datetime)
    assert contact.tag_list == ["vip", "enterprise"]
    assert contact.location == "Austin TX USA"


def test_contact_status_is_case_insensitive():
    assert ContactStatus("customer") is ContactStatus.CUSTOMER
    assert ContactSearchQuery(status="LEAD").status is ContactStatus.LEAD


@pytest.mark.parametrize("limit, expected", [
    (None, 5),
    (0, 5),
    (-3, 5),
    ("ten", 5),
    (12, 12),
    ("20", 20),
    (7.0, 7),
    (500, 100),
])
def test_search_limit_is_normalized(limit, expected):
    assert ContactSearchQuery(limit=limit).limit == expected


def test_search_limit_defaults_to_five():
    assert ContactSearchQuery().limit == 5


@pytest.mark.asyncio
async def test_list_contacts_orders_by_name_then_id(mock_client, fake_query):
    fake_query.response.data = [FULL_ROW]
    repository = ContactRepository(mock_client)

    contacts = await repository.list_contacts("user-1")

    assert [c.name for c in contacts] == ["Jane Smith"]
    mock_client.table.assert_called_with("contacts")
    assert fake_query.called("eq") == [(("user_id", "user-1"), {})]
    assert fake_query.called("order") == [(("name",), {}), (("id",), {})]


@pytest.mark.asyncio
async def test_backend_error_becomes_repository_error(mock_client, fake_query):
    fake_query.execute.side_effect = PostgrestAPIError(
        {"message": "permission denied for table contacts", "code": "42501", "hint": None, "details": None}
    )
    repository = ContactRepository(mock_client)

    with pytest.raises(RepositoryError, match="permission denied"):
        await repository.list_contacts("user-1")


@pytest.mark.asyncio
async def test_network_error_becomes_repository_error(mock_client, fake_query):
    fake_query.execute.side_effect = httpx.ConnectError("connection refused")
    repository = ContactRepository(mock_client)

    with pytest.raises(RepositoryError, match="connection refused"):
        await repository.count_contacts("user-1")


@pytest.mark.asyncio
async def test_malformed_row_becomes_repository_error(mock_client, fake_query):
    fake_query.response.data = [{"id": 1}]
    repository = ContactRepository(mock_client)

    with pytest.raises(RepositoryError, match="Malformed contact data"):
        await repository.list_contacts("user-1")


@pytest.mark.asyncio
async def test_count_contacts_uses_head_count(mock_client, fake_query):
    fake_query.response.count = 17
    repository = ContactRepository(mock_client)

    assert await repository.count_contacts("user-1") == 17
    assert fake_query.called("select") == [(("*",), {"count": "exact", "head": True})]


@pytest.mark.asyncio
async def test_create_contact_sets_owner_and_placeholder_avatar(mock_client, fake_query):
    fake_query.response.data = [{"id": 7, "user_id": "user-1", "name": "Jane Smith", "status": "Lead"}]
    repository = ContactRepository(mock_client)

    created = await repository.create_contact("user-1", ContactCreate(name="Jane Smith", company="TechCorp"))

    (row,), _ = fake_query.called("insert")[0]
    assert row["user_id"] == "user-1"
    assert row["company"] == "TechCorp"
    assert row["status"] == "Lead"
    assert row["avatar_url"].startswith("https://picsum.photos/seed/")
    assert "email" not in row
    assert created.id == 7


@pytest.mark.asyncio
async def test_create_contact_without_returned_row_fails(mock_client, fake_query):
    fake_query.response.data = []
    repository = ContactRepository(mock_client)

    with pytest.raises(RepositoryError):
        await repository.create_contact("user-1", ContactCreate(name="Jane Smith"))


@pytest.mark.asyncio
async def test_update_contact(mock_client, fake_query):
    fake_query.response.data = [{**FULL_ROW, "status": "Archived"}]
    repository = ContactRepository(mock_client)

    updated = await repository.update_contact(42, {"status": "Archived"})

    assert updated.status is ContactStatus.ARCHIVED
    assert fake_query.called("update") == [(({"status": "Archived"},), {})]
    assert fake_query.called("eq") == [(("id", 42), {})]


@pytest.mark.asyncio
async def test_search_applies_only_set_arguments(mock_client, fake_query):
    repository = ContactRepository(mock_client)

    await repository.search_contacts("user-1", ContactSearchQuery(industry="Software"))

    assert fake_query.called("eq") == [(("user_id", "user-1"), {})]
    assert fake_query.called("ilike") == [(("industry", "%Software%"), {})]
    assert fake_query.called("or_") == []
    assert fake_query.called("limit") == [((5,), {})]


@pytest.mark.asyncio
async def test_search_builds_full_query(mock_client, fake_query):
    repository = ContactRepository(mock_client)
    query = ContactSearchQuery(
        query="Acme, Inc",
        status="customer",
        city="San_Francisco",
        tags="vip, , enterprise",
        limit=10,
    )

    await repository.search_contacts("user-1", query)

    assert fake_query.called("eq") == [(("user_id", "user-1"), {}), (("status", "Customer"), {})]
    assert fake_query.called("ilike") == [
        (("city", "%San\\_Francisco%"), {}),
        (("tags", "%vip%"), {}),
        (("tags", "%enterprise%"), {}),
    ]
    expected = ",".join(f"{field}.ilike.%Acme  Inc%" for field in ASSISTANT_QUERY_FIELDS)
    assert fake_query.called("or_") == [((expected,), {})]
    assert fake_query.called("limit") == [((10,), {})]
