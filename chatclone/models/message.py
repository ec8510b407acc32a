"""One turn in a conversation. Append-only: never updated or deleted."""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import relationship
from chatclone.database import Base


class MessageRole(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_conversation_timestamp", "conversation_id", "timestamp", "seq"),
        Index("ix_messages_idempotency", "conversation_id", "role", "idempotency_key"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    conversation_id = Column(String(36), ForeignKey("conversations.id"), nullable=False)
    role = Column(String(16), nullable=False)  # "user" | "assistant"
    content = Column(Text, nullable=False)
    idempotency_key = Column(String(128), nullable=True)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)
    # Position within the conversation; breaks timestamp ties on coarse clocks
    seq = Column(Integer, nullable=False, default=0)

    conversation = relationship("Conversation", back_populates="messages")
