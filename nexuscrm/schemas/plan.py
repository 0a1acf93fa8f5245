from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List


class Plan(BaseModel):
    """Static catalog entry. Read-only reference data."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    price: str
    features: List[str] = Field(default_factory=list)
    is_current: bool = False
