from pydantic import BaseModel, Field
from typing import List
import enum

from nexuscrm.schemas.contact import Contact


class Sender(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    sender: Sender
    text: str
    contacts: List[Contact] = Field(default_factory=list)
