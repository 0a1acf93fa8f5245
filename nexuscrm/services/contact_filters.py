"""
In-memory search, filtering and sorting for a fetched contact list.

All functions are pure: they never mutate the input list and return a new one.
"""
import enum
import re
import unicodedata
from typing import Any, Iterable, List, Tuple
from nexuscrm.config.constants import FILTER_ALL, SEARCHABLE_FIELDS, SORTABLE_COLUMNS
from nexuscrm.schemas.contact import Contact


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


_DIGITS = re.compile(r"([0-9]+)")


def _plain(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        value = value.value
    return str(value)


def _fold(text: str) -> str:
    # Base sensitivity: ignore case and accents
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def natural_key(value: Any) -> Tuple:
    """
    Comparison key that orders digit runs numerically ("item 2" < "item 10")
    and letters case- and accent-insensitively. Missing values sort first.
    """
    parts = []
    # re.split with a capture group puts the digit runs at odd indices
    for index, chunk in enumerate(_DIGITS.split(_fold(_plain(value)))):
        if not chunk:
            continue
        if index % 2:
            parts.append((0, int(chunk), ""))
        else:
            parts.append((1, 0, chunk))
    return tuple(parts)


def search_contacts(contacts: Iterable[Contact], term: str) -> List[Contact]:
    """
    Contacts where at least one searchable field contains `term`, ignoring case.
    An empty term matches every contact.
    """
    contacts = list(contacts)
    needle = (term or "").casefold()
    if not needle:
        return contacts

    def matches(contact: Contact) -> bool:
        for field in SEARCHABLE_FIELDS:
            value = getattr(contact, field, None)
            if value and needle in str(value).casefold():
                return True
        return False

    return [contact for contact in contacts if matches(contact)]


def filter_contacts(
    contacts: Iterable[Contact],
    status: Any = FILTER_ALL,
    email_status: Any = FILTER_ALL,
    industry: str = FILTER_ALL,
) -> List[Contact]:
    """Exact-match filters, combined with AND. "All" disables a dimension."""
    criteria = [
        (name, _plain(wanted))
        for name, wanted in (("status", status), ("email_status", email_status), ("industry", industry))
        if wanted is not None and _plain(wanted) != FILTER_ALL
    ]
    return [
        contact for contact in contacts
        if all(_plain(getattr(contact, name)) == wanted for name, wanted in criteria)
    ]


def sort_contacts(
    contacts: Iterable[Contact],
    column: str = "name",
    direction: SortDirection = SortDirection.ASC,
) -> List[Contact]:
    """
    Order contacts by one column.

    Ties on the column fall back to the repository order (name, then id), so
    sorting twice gives the same result as sorting once and the descending
    order is exactly the ascending order reversed.
    """
    if column not in SORTABLE_COLUMNS:
        raise ValueError(f"Cannot sort contacts by {column!r}")
    direction = SortDirection(direction)

    def key(contact: Contact):
        return (natural_key(getattr(contact, column)), natural_key(contact.name), natural_key(contact.id))

    return sorted(contacts, key=key, reverse=direction is SortDirection.DESC)


def unique_industries(contacts: Iterable[Contact]) -> List[str]:
    """Industry filter options: "All" followed by every distinct industry, sorted."""
    industries = {contact.industry for contact in contacts if contact.industry}
    return [FILTER_ALL] + sorted(industries)
