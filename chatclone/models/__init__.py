from chatclone.models.user import User
from chatclone.models.conversation import Conversation
from chatclone.models.message import Message, MessageRole

__all__ = ["User", "Conversation", "Message", "MessageRole"]
