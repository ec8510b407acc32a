from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from chatclone.models.message import MessageRole


class _CamelModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


# ---- Chat ----

class ChatRequest(_CamelModel):
    message: str = Field(..., min_length=1)
    conversation_id: str | None = None
    idempotency_key: str | None = Field(None, max_length=100)


# ---- Conversations / messages ----

class ConversationOut(_CamelModel):
    id: str
    user_id: str
    title: str
    created_at: datetime


class MessageOut(_CamelModel):
    id: str
    conversation_id: str
    role: MessageRole
    content: str
    timestamp: datetime
