"""Tests for chatclone.repositories.chat_repository."""

from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from chatclone.errors import DuplicateKey, StorageError, ValidationError
from chatclone.models.conversation import Conversation
from chatclone.models.message import Message
from chatclone.repositories import chat_repository
from chatclone.repositories.chat_repository import ChatRepository


# ── Users ──────────────────────────────────────────────────────────────────────


def test_create_user_assigns_id_and_timestamp(user):
    assert user.id
    assert user.created_at is not None
    assert user.email == "ada@example.com"
    assert user.google_id == "google-sub-ada"


def test_get_user_by_provider_id(repo, user):
    found = repo.get_user_by_provider_id("google-sub-ada")
    assert found is not None
    assert found.id == user.id


def test_get_user_by_provider_id_unknown(repo, user):
    assert repo.get_user_by_provider_id("nobody") is None


def test_get_user_by_id(repo, user):
    assert repo.get_user_by_id(user.id).email == "ada@example.com"
    assert repo.get_user_by_id("missing") is None


def test_create_user_duplicate_email(repo, user):
    with pytest.raises(DuplicateKey):
        repo.create_user(email="ada@example.com", name="Other", google_id="google-sub-other")


def test_create_user_duplicate_google_id(repo, user):
    with pytest.raises(DuplicateKey):
        repo.create_user(email="other@example.com", name="Other", google_id="google-sub-ada")


def test_session_usable_after_duplicate(repo, user):
    with pytest.raises(DuplicateKey):
        repo.create_user(email="ada@example.com", name="Other", google_id="x")
    other = repo.create_user(email="bob@example.com", name="Bob", google_id="google-sub-bob")
    assert other.id != user.id


# ── Conversations ──────────────────────────────────────────────────────────────


def test_create_and_get_conversation(repo, user):
    conv = repo.create_conversation(user.id, "Hello")
    assert conv.user_id == user.id
    assert conv.title == "Hello"
    assert repo.get_conversation(conv.id).id == conv.id
    assert repo.get_conversation("missing") is None


def test_list_conversations_newest_first(repo, db, user):
    base = datetime(2026, 1, 1, 12, 0, 0)
    for i, title in enumerate(["first", "second", "third"]):
        db.add(Conversation(user_id=user.id, title=title, created_at=base + timedelta(minutes=i)))
    db.commit()

    titles = [c.title for c in repo.list_conversations(user.id)]
    assert titles == ["third", "second", "first"]


def test_list_conversations_scoped_to_user(repo, user):
    other = repo.create_user(email="bob@example.com", name="Bob", google_id="google-sub-bob")
    repo.create_conversation(user.id, "mine")
    repo.create_conversation(other.id, "theirs")
    assert [c.title for c in repo.list_conversations(user.id)] == ["mine"]


# ── Messages ───────────────────────────────────────────────────────────────────


def test_list_messages_in_insertion_order(repo, user):
    conv = repo.create_conversation(user.id, "chat")
    contents = ["one", "two", "three", "four"]
    for i, content in enumerate(contents):
        repo.create_message(conv.id, "user" if i % 2 == 0 else "assistant", content)

    messages = repo.list_messages(conv.id)
    assert [m.content for m in messages] == contents
    stamps = [m.timestamp for m in messages]
    assert stamps == sorted(stamps)


def test_list_messages_with_equal_timestamps_keeps_insertion_order(repo, db, user):
    conv = repo.create_conversation(user.id, "chat")
    contents = ["one", "two", "three", "four"]
    for i, content in enumerate(contents):
        repo.create_message(conv.id, "user" if i % 2 == 0 else "assistant", content)
    same = datetime(2026, 1, 1, 12, 0, 0)
    db.query(Message).filter(Message.conversation_id == conv.id).update({Message.timestamp: same})
    db.commit()
    db.expire_all()

    messages = repo.list_messages(conv.id)
    assert [m.content for m in messages] == contents
    assert [m.seq for m in messages] == [1, 2, 3, 4]
    assert [m.content for m in repo.get_conversation(conv.id).messages] == contents


def test_message_position_is_per_conversation(repo, user):
    first = repo.create_conversation(user.id, "first")
    second = repo.create_conversation(user.id, "second")
    repo.create_message(first.id, "user", "a")
    repo.create_message(first.id, "assistant", "b")
    assert repo.create_message(second.id, "user", "c").seq == 1


def test_consecutive_user_messages_allowed(repo, user):
    conv = repo.create_conversation(user.id, "chat")
    repo.create_message(conv.id, "user", "hi")
    repo.create_message(conv.id, "user", "anyone there?")
    assert [m.role for m in repo.list_messages(conv.id)] == ["user", "user"]


def test_create_message_without_key_duplicates(repo, user):
    conv = repo.create_conversation(user.id, "chat")
    repo.create_message(conv.id, "user", "same")
    repo.create_message(conv.id, "user", "same")
    assert len(repo.list_messages(conv.id)) == 2


def test_create_message_with_idempotency_key_dedupes(repo, user):
    conv = repo.create_conversation(user.id, "chat")
    first = repo.create_message(conv.id, "user", "same", idempotency_key="k1")
    second = repo.create_message(conv.id, "user", "same", idempotency_key="k1")
    assert first.id == second.id
    assert len(repo.list_messages(conv.id)) == 1


def test_idempotency_key_is_per_role(repo, user):
    conv = repo.create_conversation(user.id, "chat")
    repo.create_message(conv.id, "user", "q", idempotency_key="k1")
    repo.create_message(conv.id, "assistant", "a", idempotency_key="k1")
    assert len(repo.list_messages(conv.id)) == 2


def test_create_message_rejects_unknown_role(repo, user):
    conv = repo.create_conversation(user.id, "chat")
    with pytest.raises(ValidationError):
        repo.create_message(conv.id, "system", "nope")


def test_list_messages_empty_conversation(repo, user):
    conv = repo.create_conversation(user.id, "chat")
    assert repo.list_messages(conv.id) == []


# ── Storage failures ───────────────────────────────────────────────────────────


def test_read_failure_becomes_storage_error():
    db = MagicMock()
    db.query.side_effect = OperationalError("SELECT", {}, Exception("db down"))
    with pytest.raises(StorageError):
        ChatRepository(db).list_messages("c1")


def test_write_failure_rolls_back():
    db = MagicMock()
    db.commit.side_effect = OperationalError("INSERT", {}, Exception("db down"))
    with pytest.raises(StorageError):
        chat_repository.create_conversation(db, "u1", "title")
    db.rollback.assert_called_once()
