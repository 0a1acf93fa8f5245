from supabase import AsyncClient
from pydantic import ValidationError
from typing import Any, Dict, Iterable, List
from nexuscrm.config.constants import ASSISTANT_QUERY_FIELDS, CONTACTS_TABLE
from nexuscrm.core.exceptions import RepositoryError
from nexuscrm.infrastructure.clients.supabase import BACKEND_ERRORS, backend_error_message
from nexuscrm.schemas.contact import Contact, ContactCreate, ContactSearchQuery
from nexuscrm.services.profile_mapper import placeholder_avatar
import time
import logging

logger = logging.getLogger(__name__)

# Characters with meaning inside a PostgREST or=(...) filter
_OR_FILTER_RESERVED = str.maketrans({",": " ", "(": " ", ")": " "})


def _like_pattern(value: str) -> str:
    # Escape LIKE wildcards so user text matches literally
    sanitized = value.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{sanitized}%"


class ContactRepository:
    """
    Contact reads and writes against the `contacts` table.

    Every backend failure surfaces as RepositoryError carrying the backend
    message; display is left to the caller.
    """
    def __init__(self, client: AsyncClient):
        self.client = client

    def _table(self):
        return self.client.table(CONTACTS_TABLE)

    @staticmethod
    def _to_contacts(rows: Iterable[Dict[str, Any]]) -> List[Contact]:
        try:
            return [Contact.from_record(row) for row in rows or []]
        except ValidationError as e:
            logger.error(f"Malformed contact row: {e}")
            raise RepositoryError(f"Malformed contact data: {e.errors()[0]['msg']}") from e

    async def _execute(self, builder, action: str):
        try:
            return await builder.execute()
        except BACKEND_ERRORS as e:
            message = backend_error_message(e)
            logger.error(f"Error {action}: {message}")
            raise RepositoryError(message) from e

    async def list_contacts(self, user_id: str) -> List[Contact]:
        """All contacts owned by the user, ordered by name (then id)."""
        builder = (
            self._table()
            .select("*")
            .eq("user_id", user_id)
            .order("name")
            .order("id")
        )
        response = await self._execute(builder, "fetching contacts")
        contacts = self._to_contacts(response.data)
        logger.info(f"Fetched {len(contacts)} contacts for user {user_id}")
        return contacts

    async def count_contacts(self, user_id: str) -> int:
        builder = (
            self._table()
            .select("*", count="exact", head=True)
            .eq("user_id", user_id)
        )
        response = await self._execute(builder, "counting contacts")
        return response.count or 0

    async def create_contact(self, user_id: str, data: ContactCreate) -> Contact:
        """
        Insert a contact owned by the user.

        Returns:
            Contact: The stored row, including server-populated fields (id, timestamps).
        """
        row = data.model_dump(mode="json", exclude_none=True)
        row["user_id"] = user_id
        if not row.get("avatar_url"):
            row["avatar_url"] = placeholder_avatar(int(time.time() * 1000))

        response = await self._execute(self._table().insert(row), "creating contact")
        contacts = self._to_contacts(response.data)
        if not contacts:
            raise RepositoryError("Contact was not returned after insert")
        logger.info(f"Created contact {contacts[0].id} for user {user_id}")
        return contacts[0]

    async def update_contact(self, contact_id, changes: Dict[str, Any]) -> Contact:
        builder = self._table().update(changes).eq("id", contact_id)
        response = await self._execute(builder, f"updating contact {contact_id}")
        contacts = self._to_contacts(response.data)
        if not contacts:
            raise RepositoryError(f"Contact {contact_id} not found")
        return contacts[0]

    async def search_contacts(self, user_id: str, query: ContactSearchQuery) -> List[Contact]:
        """
        Server-side search used by the assistant.

        Only the arguments that are set restrict the query: exact status,
        substring match on industry/location, every comma-separated tag, and the
        free-text query against name, company, email and title.
        """
        builder = self._table().select("*").eq("user_id", user_id)

        if query.status:
            builder = builder.eq("status", query.status.value)
        for field in ("industry", "city", "state", "country"):
            value = getattr(query, field)
            if value and value.strip():
                builder = builder.ilike(field, _like_pattern(value))
        if query.tags:
            for tag in (t.strip() for t in query.tags.split(",")):
                if tag:
                    builder = builder.ilike("tags", _like_pattern(tag))
        if query.query and query.query.strip():
            term = _like_pattern(query.query.translate(_OR_FILTER_RESERVED))
            builder = builder.or_(",".join(f"{field}.ilike.{term}" for field in ASSISTANT_QUERY_FIELDS))

        builder = builder.limit(query.limit)
        response = await self._execute(builder, "searching contacts")
        return self._to_contacts(response.data)
