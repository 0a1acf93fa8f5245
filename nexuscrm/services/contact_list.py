import logging
from typing import Any, List, Optional
from nexuscrm.config.constants import DEFAULT_SORT_COLUMN, FILTER_ALL
from nexuscrm.core.config import settings
from nexuscrm.schemas.contact import Contact, ContactCreate
from nexuscrm.services.contact_filters import (
    SortDirection,
    filter_contacts,
    search_contacts,
    sort_contacts,
    unique_industries,
)
from nexuscrm.services.contact_service import ContactRepository
from nexuscrm.utils.debounce import Debouncer

logger = logging.getLogger(__name__)


class ContactList:
    """
    State behind the contacts screen: the fetched list plus the debounced
    search term, filters and sort order applied to it.
    """

    def __init__(self, repository: ContactRepository, user_id: str, debounce_seconds: float = None):
        self.repository = repository
        self.user_id = user_id
        self.contacts: List[Contact] = []
        self.is_loading = False

        self.status_filter: Any = FILTER_ALL
        self.email_status_filter: Any = FILTER_ALL
        self.industry_filter: str = FILTER_ALL
        self.sort_column: str = DEFAULT_SORT_COLUMN
        self.sort_direction: SortDirection = SortDirection.ASC

        if debounce_seconds is None:
            debounce_seconds = settings.SEARCH_DEBOUNCE_SECONDS
        self._search = Debouncer("", debounce_seconds)

    async def load(self) -> List[Contact]:
        """
        Fetch the user's contacts.

        Raises:
            RepositoryError: Propagated for the caller to display.
        """
        self.is_loading = True
        try:
            self.contacts = await self.repository.list_contacts(self.user_id)
        finally:
            self.is_loading = False
        return self.contacts

    async def add(self, data: ContactCreate) -> Contact:
        contact = await self.repository.create_contact(self.user_id, data)
        self.contacts.append(contact)
        return contact

    # Search ----------------------------------------------------------------

    @property
    def search_term(self) -> str:
        return self._search.raw

    @property
    def debounced_search_term(self) -> str:
        return self._search.value

    @property
    def is_searching(self) -> bool:
        return self._search.is_pending

    def set_search_term(self, term: str) -> None:
        """Record a keystroke; filtering picks it up after the quiet window."""
        self._search.push(term or "")

    async def wait_for_search(self) -> None:
        await self._search.wait()

    # Filters & sort ----------------------------------------------------------

    def set_filters(self, status: Any = None, email_status: Any = None, industry: Optional[str] = None) -> None:
        if status is not None:
            self.status_filter = status
        if email_status is not None:
            self.email_status_filter = email_status
        if industry is not None:
            self.industry_filter = industry

    def toggle_sort(self, column: str) -> None:
        """Flip the direction on the active column, or switch to `column` ascending."""
        if column == self.sort_column:
            self.sort_direction = SortDirection.DESC if self.sort_direction is SortDirection.ASC else SortDirection.ASC
        else:
            sort_contacts([], column)  # validates the column name
            self.sort_column = column
            self.sort_direction = SortDirection.ASC

    @property
    def industries(self) -> List[str]:
        return unique_industries(self.contacts)

    @property
    def visible_contacts(self) -> List[Contact]:
        matched = search_contacts(self.contacts, self.debounced_search_term)
        filtered = filter_contacts(
            matched,
            status=self.status_filter,
            email_status=self.email_status_filter,
            industry=self.industry_filter,
        )
        return sort_contacts(filtered, self.sort_column, self.sort_direction)

    def close(self) -> None:
        self._search.cancel()
