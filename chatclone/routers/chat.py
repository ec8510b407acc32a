import logging

from fastapi import APIRouter, Depends

from chatclone.auth import get_current_user_id
from chatclone.dependencies import get_chat_service
from chatclone.errors import ChatCloneError
from chatclone.schemas.chat import ChatRequest, MessageOut
from chatclone.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat", response_model=MessageOut)
async def chat(
    body: ChatRequest,
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Send one message and get the persisted assistant reply.
    Without conversationId a new conversation is created from the message.
    """
    try:
        reply = await chat_service.handle_chat(
            user_id,
            body.message,
            body.conversation_id,
            idempotency_key=body.idempotency_key,
        )
    except ChatCloneError:
        raise
    except Exception as e:
        logger.exception("Chat turn failed")
        raise ChatCloneError("Failed to process chat message") from e
    return MessageOut.model_validate(reply)
