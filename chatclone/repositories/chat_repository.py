"""
Chat persistence: User, Conversation, Message. DB is the source of truth.
Each write is a single commit; there are no transactions spanning entities.
All operations are sync (called from run_in_executor by the async services).
"""
import logging
from functools import wraps

from sqlalchemy import desc, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from chatclone.errors import DuplicateKey, StorageError, ValidationError
from chatclone.models.conversation import Conversation
from chatclone.models.message import Message, MessageRole
from chatclone.models.user import User

logger = logging.getLogger(__name__)


def _save(db: Session, obj):
    """Add, commit and refresh one row. Rolls back and re-raises as a domain error on failure."""
    try:
        db.add(obj)
        db.commit()
        db.refresh(obj)
    except IntegrityError as e:
        db.rollback()
        raise DuplicateKey(f"{type(obj).__name__} already exists") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to save %s: %s", type(obj).__name__, e)
        raise StorageError(f"Failed to save {type(obj).__name__.lower()}") from e
    return obj


def _read(what: str):
    def decorator(fn):
        @wraps(fn)
        def wrapper(db: Session, *args, **kwargs):
            try:
                return fn(db, *args, **kwargs)
            except SQLAlchemyError as e:
                logger.error("Failed to read %s: %s", what, e)
                raise StorageError(f"Failed to fetch {what}") from e
        return wrapper
    return decorator


# ---- Users ----

def create_user(
    db: Session,
    email: str,
    name: str,
    google_id: str,
    picture: str | None = None,
) -> User:
    """Insert a user. Raises DuplicateKey if email or google_id is taken."""
    return _save(db, User(email=email, name=name, google_id=google_id, picture=picture))


@_read("user")
def get_user_by_provider_id(db: Session, google_id: str) -> User | None:
    return db.query(User).filter(User.google_id == google_id).first()


@_read("user")
def get_user_by_id(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


# ---- Conversations ----

@_read("conversations")
def list_conversations(db: Session, user_id: str) -> list[Conversation]:
    """User's conversations, newest first."""
    return (
        db.query(Conversation)
        .filter(Conversation.user_id == user_id)
        .order_by(desc(Conversation.created_at))
        .all()
    )


def create_conversation(db: Session, user_id: str, title: str) -> Conversation:
    return _save(db, Conversation(user_id=user_id, title=title))


@_read("conversation")
def get_conversation(db: Session, conversation_id: str) -> Conversation | None:
    return db.query(Conversation).filter(Conversation.id == conversation_id).first()


# ---- Messages ----

@_read("messages")
def list_messages(db: Session, conversation_id: str) -> list[Message]:
    """Messages in a conversation, ordered by timestamp asc, then insertion order."""
    return (
        db.query(Message)
        .filter(Message.conversation_id == conversation_id)
        .order_by(Message.timestamp, Message.seq)
        .all()
    )


@_read("message")
def find_message_by_idempotency_key(
    db: Session,
    conversation_id: str,
    role: str,
    idempotency_key: str,
) -> Message | None:
    return (
        db.query(Message)
        .filter(
            Message.conversation_id == conversation_id,
            Message.role == role,
            Message.idempotency_key == idempotency_key,
        )
        .first()
    )


@_read("message position")
def _next_seq(db: Session, conversation_id: str) -> int:
    last = (
        db.query(func.max(Message.seq))
        .filter(Message.conversation_id == conversation_id)
        .scalar()
    )
    return (last or 0) + 1


def create_message(
    db: Session,
    conversation_id: str,
    role: str,
    content: str,
    *,
    idempotency_key: str | None = None,
) -> Message:
    """
    Append one message. Without an idempotency key every call inserts a new row,
    so a retried call may double-write. With a key, an existing message for the
    same (conversation, role, key) is returned instead.
    """
    try:
        role = MessageRole(role).value
    except ValueError as e:
        raise ValidationError(f"Unknown message role: {role}") from e
    if idempotency_key:
        existing = find_message_by_idempotency_key(db, conversation_id, role, idempotency_key)
        if existing is not None:
            logger.info("Reusing message %s for idempotency key %s", existing.id, idempotency_key)
            return existing
    return _save(
        db,
        Message(
            conversation_id=conversation_id,
            role=role,
            content=content,
            idempotency_key=idempotency_key,
            seq=_next_seq(db, conversation_id),
        ),
    )


class ChatRepository:
    """Session-bound wrapper for dependency injection; delegates to module functions."""

    def __init__(self, db: Session):
        self.db = db

    def create_user(self, email: str, name: str, google_id: str, picture: str | None = None) -> User:
        return create_user(self.db, email, name, google_id, picture)

    def get_user_by_provider_id(self, google_id: str) -> User | None:
        return get_user_by_provider_id(self.db, google_id)

    def get_user_by_id(self, user_id: str) -> User | None:
        return get_user_by_id(self.db, user_id)

    def list_conversations(self, user_id: str) -> list[Conversation]:
        return list_conversations(self.db, user_id)

    def create_conversation(self, user_id: str, title: str) -> Conversation:
        return create_conversation(self.db, user_id, title)

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        return get_conversation(self.db, conversation_id)

    def list_messages(self, conversation_id: str) -> list[Message]:
        return list_messages(self.db, conversation_id)

    def find_message_by_idempotency_key(
        self, conversation_id: str, role: str, idempotency_key: str
    ) -> Message | None:
        return find_message_by_idempotency_key(self.db, conversation_id, role, idempotency_key)

    def create_message(
        self,
        conversation_id: str,
        role: str,
        content: str,
        *,
        idempotency_key: str | None = None,
    ) -> Message:
        return create_message(
            self.db, conversation_id, role, content,
            idempotency_key=idempotency_key,
        )
