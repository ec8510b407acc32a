"""
Conversation endpoints (all require a bearer session token):
- GET /api/conversations — current user's conversations, newest first
- POST /api/conversations — new empty conversation titled "New Chat"
- GET /api/messages/{conversation_id} — messages oldest-first (owner only)
"""
from fastapi import APIRouter, Depends

from chatclone.auth import get_current_user_id
from chatclone.dependencies import get_chat_service
from chatclone.schemas.chat import ConversationOut, MessageOut
from chatclone.services.chat_service import ChatService

router = APIRouter(prefix="/api", tags=["conversations"])


@router.get("/conversations", response_model=list[ConversationOut])
async def list_conversations(
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    conversations = await chat_service.list_conversations(user_id)
    return [ConversationOut.model_validate(c) for c in conversations]


@router.post("/conversations", response_model=ConversationOut)
async def create_conversation(
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    conversation = await chat_service.create_conversation(user_id)
    return ConversationOut.model_validate(conversation)


@router.get("/messages/{conversation_id}", response_model=list[MessageOut])
async def list_messages(
    conversation_id: str,
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    messages = await chat_service.list_messages(user_id, conversation_id)
    return [MessageOut.model_validate(m) for m in messages]
