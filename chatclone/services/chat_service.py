"""
Chat orchestration for one inbound chat request:
resolve conversation -> save user message -> call provider -> save assistant message.

No rollback: a user message persisted before a downstream failure stays persisted,
so readers must tolerate a conversation ending in an unanswered user turn.
"""
import asyncio
import enum
import logging

from chatclone.errors import Forbidden, NotFound, ValidationError
from chatclone.models.conversation import Conversation
from chatclone.models.message import Message, MessageRole
from chatclone.repositories.chat_repository import ChatRepository
from chatclone.services.completion_client import CompletionClient

logger = logging.getLogger(__name__)

TITLE_MAX_CHARS = 30
TITLE_ELLIPSIS = "..."
NEW_CHAT_TITLE = "New Chat"


class ChatTurnState(str, enum.Enum):
    RECEIVED = "received"
    CONVERSATION_RESOLVED = "conversation_resolved"
    USER_MESSAGE_PERSISTED = "user_message_persisted"
    COMPLETION_REQUESTED = "completion_requested"
    COMPLETION_PERSISTED = "completion_persisted"
    RESPONDED = "responded"


def conversation_title_for(message: str) -> str:
    return message[:TITLE_MAX_CHARS] + TITLE_ELLIPSIS


class ChatService:
    """Orchestrates one chat turn. Repository and completion client are injected."""

    def __init__(self, repository: ChatRepository, completion_client: CompletionClient):
        self._repo = repository
        self._completion = completion_client

    async def _run(self, fn, *args, **kwargs):
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, lambda: fn(*args, **kwargs))

    def _transition(self, state: ChatTurnState, conversation_id: str | None) -> None:
        logger.debug("chat turn %s (conversation=%s)", state.value, conversation_id)

    async def get_owned_conversation(self, user_id: str, conversation_id: str) -> Conversation:
        conv = await self._run(self._repo.get_conversation, conversation_id)
        if conv is None:
            raise NotFound("Conversation not found")
        if conv.user_id != user_id:
            raise Forbidden("Conversation belongs to another user")
        return conv

    async def resolve_conversation(
        self,
        user_id: str,
        message: str,
        conversation_id: str | None,
    ) -> Conversation:
        """Load and ownership-check the given conversation, or create one titled from the message."""
        if conversation_id:
            return await self.get_owned_conversation(user_id, conversation_id)
        return await self._run(
            self._repo.create_conversation, user_id, conversation_title_for(message)
        )

    async def handle_chat(
        self,
        user_id: str,
        message: str,
        conversation_id: str | None = None,
        *,
        idempotency_key: str | None = None,
    ) -> Message:
        """Run one chat turn and return the persisted assistant message."""
        self._transition(ChatTurnState.RECEIVED, conversation_id)
        if not isinstance(message, str) or not message:
            raise ValidationError("Message must be a non-empty string")

        conv = await self.resolve_conversation(user_id, message, conversation_id)
        self._transition(ChatTurnState.CONVERSATION_RESOLVED, conv.id)

        assistant_key = f"{idempotency_key}:assistant" if idempotency_key else None
        if assistant_key:
            existing = await self._run(
                self._repo.find_message_by_idempotency_key,
                conv.id, MessageRole.ASSISTANT.value, assistant_key,
            )
            if existing is not None:
                logger.info("Chat turn %s already answered; returning stored reply", idempotency_key)
                self._transition(ChatTurnState.RESPONDED, conv.id)
                return existing

        await self._run(
            self._repo.create_message,
            conv.id, MessageRole.USER.value, message,
            idempotency_key=idempotency_key,
        )
        self._transition(ChatTurnState.USER_MESSAGE_PERSISTED, conv.id)

        self._transition(ChatTurnState.COMPLETION_REQUESTED, conv.id)
        reply = await self._completion.complete(message)

        stored = await self._run(
            self._repo.create_message,
            conv.id, MessageRole.ASSISTANT.value, reply,
            idempotency_key=assistant_key,
        )
        self._transition(ChatTurnState.COMPLETION_PERSISTED, conv.id)
        self._transition(ChatTurnState.RESPONDED, conv.id)
        return stored

    async def create_conversation(self, user_id: str, title: str = NEW_CHAT_TITLE) -> Conversation:
        return await self._run(self._repo.create_conversation, user_id, title)

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        return await self._run(self._repo.list_conversations, user_id)

    async def list_messages(self, user_id: str, conversation_id: str) -> list[Message]:
        """Messages oldest-first. Only the owner of the conversation may read it."""
        conv = await self.get_owned_conversation(user_id, conversation_id)
        return await self._run(self._repo.list_messages, conv.id)
