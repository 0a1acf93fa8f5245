from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError
from nexuscrm.config.constants import (
    ASSISTANT_CONNECTION_ERROR,
    ASSISTANT_FALLBACK_MESSAGE,
    ASSISTANT_GREETING,
    ASSISTANT_SUGGESTION_PROMPTS,
    ASSISTANT_SYSTEM_INSTRUCTION,
)
from nexuscrm.core.config import Settings, settings as default_settings
from nexuscrm.core.exceptions import AssistantError, RepositoryError
from nexuscrm.schemas.chat import ChatMessage, Sender
from nexuscrm.schemas.contact import Contact, ContactCreate, ContactSearchQuery
from nexuscrm.schemas.profile import Profile
from nexuscrm.services.assistant_tools import ADD_CONTACT, CONTACT_TOOLS, SEARCH_CONTACTS
from nexuscrm.services.contact_service import ContactRepository
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import enum
import logging

logger = logging.getLogger(__name__)


class AssistantState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    TOOL_CALL_PENDING = "tool_call_pending"
    TOOL_EXECUTING = "tool_executing"


StateListener = Callable[[AssistantState], None]


class AssistantOrchestrator:
    """
    One chat session with the CRM assistant.

    Keeps the transcript, forwards user text to Gemini, executes the contact
    tools the model asks for and feeds their results back for a final answer.
    Only one round-trip may be outstanding at a time.
    """

    def __init__(
        self,
        repository: ContactRepository,
        user: Profile,
        client: Optional[genai.Client] = None,
        model: str = None,
        max_tool_rounds: int = None,
        settings: Settings = None,
    ):
        self.repository = repository
        self.user = user
        self.settings = settings or default_settings
        self.model = model or self.settings.GEMINI_MODEL
        self.max_tool_rounds = max_tool_rounds or self.settings.ASSISTANT_MAX_TOOL_ROUNDS

        self.client = client
        if self.client is None and self.settings.GEMINI_API_KEY:
            try:
                self.client = genai.Client(api_key=self.settings.GEMINI_API_KEY)
            except Exception as e:
                logger.error(f"Failed to configure Gemini: {e}")
                self.client = None

        self.chat = None
        self.state = AssistantState.IDLE
        self.messages: List[ChatMessage] = []
        self._state_listeners: List[StateListener] = []

    def add_state_listener(self, listener: StateListener) -> None:
        """Register a callback invoked with every state the assistant enters."""
        self._state_listeners.append(listener)

    def _set_state(self, state: AssistantState) -> None:
        if self.state is state:
            return
        self.state = state
        logger.debug(f"Assistant state: {state.value}")
        for listener in list(self._state_listeners):
            listener(state)

    @property
    def is_busy(self) -> bool:
        return self.state is not AssistantState.IDLE

    @property
    def input_enabled(self) -> bool:
        return self.chat is not None and not self.is_busy

    @property
    def suggestions(self) -> List[str]:
        """Example prompts, offered until the user has sent anything."""
        if len(self.messages) <= 1 and not self.is_busy:
            return list(ASSISTANT_SUGGESTION_PROMPTS)
        return []

    async def initialize(self) -> None:
        """
        Open the model session with the contact tools declared.

        On failure the transcript carries a connection error and input stays disabled.
        """
        try:
            if self.client is None:
                raise AssistantError("GEMINI_API_KEY not set")
            contact_count = await self.repository.count_contacts(self.user.id)
            self.chat = self.client.aio.chats.create(
                model=self.model,
                config=types.GenerateContentConfig(
                    system_instruction=ASSISTANT_SYSTEM_INSTRUCTION.format(contact_count=contact_count),
                    tools=[CONTACT_TOOLS],
                    automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
                ),
            )
            self.messages = [ChatMessage(sender=Sender.ASSISTANT, text=ASSISTANT_GREETING)]
            logger.info(f"Assistant session opened for {self.user.id} ({contact_count} contacts)")
        except (AssistantError, RepositoryError, genai_errors.APIError) as e:
            logger.error(f"Error initializing Gemini: {e}")
            self.chat = None
            self.messages = [ChatMessage(sender=Sender.ASSISTANT, text=ASSISTANT_CONNECTION_ERROR)]

    async def send_message(self, text: str) -> Optional[ChatMessage]:
        """
        Send one user message and append the assistant's reply.

        Returns:
            The appended assistant message, or None when the input was blank,
            the session is unavailable or a round-trip is already in flight.
        """
        text = (text or "").strip()
        if not text or not self.input_enabled:
            return None

        self.messages.append(ChatMessage(sender=Sender.USER, text=text))
        self._set_state(AssistantState.AWAITING_MODEL)
        try:
            reply = await self._round_trip(text)
        except Exception as e:
            logger.exception(f"Error communicating with Gemini: {e}")
            reply = ChatMessage(sender=Sender.ASSISTANT, text=ASSISTANT_FALLBACK_MESSAGE)
        finally:
            self._set_state(AssistantState.IDLE)

        self.messages.append(reply)
        return reply

    async def _send(self, message) -> Any:
        try:
            return await self.chat.send_message(message)
        except genai_errors.APIError as e:
            raise AssistantError(f"Model call failed: {e}") from e

    async def _round_trip(self, text: str) -> ChatMessage:
        response = await self._send(text)
        involved: List[Contact] = []
        rounds = 0

        # Every call in a response is executed, in order, and answered in one turn
        while response.function_calls:
            if rounds >= self.max_tool_rounds:
                raise AssistantError(f"Model requested tools for more than {self.max_tool_rounds} rounds")
            rounds += 1

            self._set_state(AssistantState.TOOL_CALL_PENDING)
            calls = list(response.function_calls)
            logger.info(f"Model requested {len(calls)} tool call(s): {[call.name for call in calls]}")
            # No call runs unless the arguments of all of them are valid
            prepared = [(call.name, self._prepare_call(call.name, dict(call.args or {}))) for call in calls]

            self._set_state(AssistantState.TOOL_EXECUTING)
            parts = []
            for name, payload in prepared:
                result, contacts = await self._execute_tool(name, payload)
                involved.extend(contacts)
                parts.append(types.Part.from_function_response(name=name, response=result))

            self._set_state(AssistantState.AWAITING_MODEL)
            response = await self._send(parts)

        return ChatMessage(sender=Sender.ASSISTANT, text=response.text or "", contacts=involved)

    def _prepare_call(self, name: str, args: Dict[str, Any]) -> Union[ContactSearchQuery, ContactCreate, None]:
        """Validate a call's arguments. Unknown tools yield None."""
        # Unset optional arguments must not become filters
        args = {key: value for key, value in args.items() if value not in (None, "")}
        try:
            if name == SEARCH_CONTACTS:
                return ContactSearchQuery(**args)
            if name == ADD_CONTACT:
                return ContactCreate(**args)
        except ValidationError as e:
            raise AssistantError(f"Invalid arguments for {name}: {e}") from e
        return None

    async def _execute_tool(
        self, name: str, payload: Union[ContactSearchQuery, ContactCreate, None]
    ) -> Tuple[Dict[str, Any], List[Contact]]:
        try:
            if name == SEARCH_CONTACTS:
                found = await self.repository.search_contacts(self.user.id, payload)
                logger.info(f"searchContacts returned {len(found)} contact(s)")
                return {"contacts": [contact.to_record() for contact in found]}, found

            if name == ADD_CONTACT:
                created = await self.repository.create_contact(self.user.id, payload)
                return {"contact": created.to_record()}, [created]
        except RepositoryError as e:
            raise AssistantError(f"{name} failed: {e.message}") from e

        logger.warning(f"Model requested unknown tool {name!r}")
        return {"error": f"Unknown function: {name}"}, []
