from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional, Union
from datetime import datetime
import enum

from nexuscrm.config.constants import DEFAULT_SEARCH_RESULTS_LIMIT, MAX_SEARCH_RESULTS_LIMIT


class ContactStatus(str, enum.Enum):
    LEAD = "Lead"
    CUSTOMER = "Customer"
    ARCHIVED = "Archived"

    @classmethod
    def _missing_(cls, value):
        # Model output and hand-typed filters are not always capitalized
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


class EmailStatus(str, enum.Enum):
    VERIFIED = "Verified"
    UNVERIFIED = "Unverified"
    BOUNCED = "Bounced"


class Contact(BaseModel):
    """
    A contact owned by one user account.

    Attribute names equal the `contacts` column names, so a storage row
    validates directly. ``model_dump(by_alias=True)`` yields the camelCase
    shape used by the dashboard (``avatar_url`` -> ``avatarUrl``).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[Union[int, str]] = None
    user_id: Optional[str] = None
    name: str
    email: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    status: ContactStatus = ContactStatus.LEAD
    avatar_url: Optional[str] = None

    # Enrichment
    title: Optional[str] = None
    industry: Optional[str] = None
    company_size: Optional[str] = None
    company_address: Optional[str] = None
    website: Optional[str] = None
    employees_count: Optional[int] = None
    annual_revenue: Optional[float] = None
    total_funding: Optional[float] = None
    latest_funding_amount: Optional[float] = None
    seniority: Optional[str] = None
    departments: Optional[str] = None
    keywords: Optional[str] = None
    technologies: Optional[str] = None
    email_status: Optional[str] = None
    stage: Optional[str] = None

    # Location
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    company_city: Optional[str] = None
    company_state: Optional[str] = None
    company_country: Optional[str] = None
    company_phone: Optional[str] = None

    # Social
    person_linkedin_url: Optional[str] = None
    company_linkedin_url: Optional[str] = None
    facebook_url: Optional[str] = None
    twitter_url: Optional[str] = None

    notes: Optional[str] = None
    # Comma-separated free-text labels, uniqueness not enforced
    tags: Optional[str] = None
    is_active: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Contact":
        return cls.model_validate(record)

    def to_record(self) -> Dict[str, Any]:
        """Storage shape: snake_case keys, only the fields that were set."""
        return self.model_dump(mode="json", exclude_unset=True)

    @property
    def tag_list(self) -> List[str]:
        if not self.tags:
            return []
        return [tag.strip() for tag in self.tags.split(",") if tag.strip()]

    @property
    def location(self) -> str:
        return " ".join(part for part in (self.city, self.state, self.country) if part)


class ContactCreate(BaseModel):
    """Fields accepted when a contact is entered manually or by the assistant."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    title: Optional[str] = None
    status: ContactStatus = ContactStatus.LEAD
    tags: Optional[str] = None
    notes: Optional[str] = None
    avatar_url: Optional[str] = None


class ContactSearchQuery(BaseModel):
    """Server-side search arguments. Unset fields do not restrict the query."""
    model_config = ConfigDict(extra="ignore")

    query: Optional[str] = None
    status: Optional[ContactStatus] = None
    industry: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    tags: Optional[str] = None
    limit: int = Field(DEFAULT_SEARCH_RESULTS_LIMIT, ge=1, le=MAX_SEARCH_RESULTS_LIMIT)

    @field_validator("limit", mode="before")
    @classmethod
    def normalize_limit(cls, v):
        # Model output may omit the limit as 0, send a float or ask for too many rows
        if not v:
            return DEFAULT_SEARCH_RESULTS_LIMIT
        try:
            v = int(v)
        except (TypeError, ValueError):
            return DEFAULT_SEARCH_RESULTS_LIMIT
        if v < 1:
            return DEFAULT_SEARCH_RESULTS_LIMIT
        return min(v, MAX_SEARCH_RESULTS_LIMIT)
