"""A chat thread. Owned by exactly one user; messages belong to it."""
import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from chatclone.database import Base


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    user = relationship("User", back_populates="conversations")
    # Messages ordered by timestamp, then insertion position
    messages = relationship(
        "Message",
        back_populates="conversation",
        order_by="(Message.timestamp, Message.seq)",
        lazy="select",
    )
