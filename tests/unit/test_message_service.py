"""Tests for the persist-then-fan-out message pipeline."""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import func, select

from campusnet.core.exceptions import ForbiddenError, TransientStoreError, ValidationError
from campusnet.core.interfaces.message_notifier import ChatUpdatedEvent, MessageCreatedEvent
from campusnet.infrastructure.database.models.message_model import MessageModel
from campusnet.infrastructure.database.session import db_session
from campusnet.repositories.chat_repository import ChatRepository
from campusnet.repositories.message_repository import MessageRepository
from campusnet.repositories.user_repository import UserRepository
from campusnet.services.chat_service import ChatService
from campusnet.services.message_service import MAX_PAGE_SIZE, MessageService, clamp_limit


def _services(session, notifier):
    chat_repo = ChatRepository(session)
    chat_svc = ChatService(chat_repo=chat_repo, user_repo=UserRepository(session))
    msg_svc = MessageService(
        chat_service=chat_svc,
        chat_repo=chat_repo,
        msg_repo=MessageRepository(session),
        notifier=notifier,
    )
    return chat_svc, msg_svc


@pytest.fixture
def notifier():
    return MagicMock()


@pytest.fixture
def pair(make_user, notifier):
    alice = make_user("alice")
    bob = make_user("bob")
    with db_session() as session:
        chat_svc, _ = _services(session, notifier)
        chat, _ = chat_svc.ensure_chat(user_id=alice, with_user_id=bob)
        chat_id = chat.id
    return alice, bob, chat_id


def _send(notifier, chat_id, sender, receiver, text):
    with db_session() as session:
        _, svc = _services(session, notifier)
        return svc.send_message(chat_id=chat_id, sender_id=sender, receiver_id=receiver, text=text)


def test_clamp_limit():
    assert clamp_limit(None) == 50
    assert clamp_limit(0) == 50
    assert clamp_limit(10) == 10
    assert clamp_limit(1000) == MAX_PAGE_SIZE


def test_send_persists_trimmed_text_and_updates_chat(pair, notifier):
    alice, bob, chat_id = pair

    msg = _send(notifier, chat_id, alice, bob, "  hello  ")

    assert msg.text == "hello"
    assert msg.seen is False
    with db_session() as session:
        chats = _services(session, notifier)[0].list_chats(user_id=bob)
    assert chats[0]["lastMessage"] == "hello"
    assert chats[0]["unread"] == 1


def test_send_fans_out_after_commit(pair, notifier):
    alice, bob, chat_id = pair
    seen_states = []

    with db_session() as session:
        notifier.notify_message_created.side_effect = lambda event: seen_states.append(session.in_transaction())
        _, svc = _services(session, notifier)
        svc.send_message(chat_id=chat_id, sender_id=alice, receiver_id=bob, text="hi")

    assert seen_states == [False]

    created = notifier.notify_message_created.call_args.args[0]
    assert isinstance(created, MessageCreatedEvent)
    assert created.receiver_id == bob
    assert created.sender_id == alice
    assert created.message["text"] == "hi"
    assert created.message["chatId"] == chat_id

    updated = notifier.notify_chat_updated.call_args.args[0]
    assert isinstance(updated, ChatUpdatedEvent)
    assert set(updated.participant_ids) == {alice, bob}
    assert updated.last_message == "hi"
    assert updated.at_iso == created.message["createdAt"]


def test_failed_commit_emits_nothing(pair, notifier):
    alice, bob, chat_id = pair

    with patch.object(MessageRepository, "commit", side_effect=TransientStoreError()):
        with pytest.raises(TransientStoreError):
            _send(notifier, chat_id, alice, bob, "lost?")

    notifier.notify_message_created.assert_not_called()
    notifier.notify_chat_updated.assert_not_called()
    with db_session() as session:
        assert session.execute(select(func.count(MessageModel.id))).scalar_one() == 0


@pytest.mark.parametrize("text", ["", "   ", None])
def test_empty_text_is_rejected(pair, notifier, text):
    alice, bob, chat_id = pair

    with pytest.raises(ValidationError):
        _send(notifier, chat_id, alice, bob, text)
    notifier.notify_message_created.assert_not_called()


def test_wrong_receiver_is_rejected(pair, notifier, make_user):
    alice, _, chat_id = pair
    carol = make_user("carol")

    with pytest.raises(ValidationError):
        _send(notifier, chat_id, alice, carol, "hi")


def test_outsider_cannot_send(pair, notifier, make_user):
    alice, _, chat_id = pair
    carol = make_user("carol")

    with pytest.raises(ForbiddenError):
        _send(notifier, chat_id, carol, alice, "hi")


def test_created_at_strictly_increases(pair, notifier):
    alice, bob, chat_id = pair

    stamps = [_send(notifier, chat_id, alice, bob, f"m{i}").created_at for i in range(10)]

    assert all(a < b for a, b in zip(stamps, stamps[1:]))


def test_pagination_has_no_overlap_and_no_gap(pair, notifier):
    alice, bob, chat_id = pair
    for i in range(5):
        _send(notifier, chat_id, alice, bob, f"m{i}")

    pages = []
    before = None
    while True:
        with db_session() as session:
            _, svc = _services(session, notifier)
            page = svc.list_messages(chat_id=chat_id, user_id=bob, before=before, limit=2)
        if not page:
            break
        assert len(page) <= 2
        texts = [m.text for m in page]
        pages.append(texts)
        before = page[0].created_at

    assert pages == [["m3", "m4"], ["m1", "m2"], ["m0"]]


def test_list_messages_requires_participant(pair, notifier, make_user):
    _, _, chat_id = pair
    carol = make_user("carol")

    with db_session() as session:
        _, svc = _services(session, notifier)
        with pytest.raises(ForbiddenError):
            svc.list_messages(chat_id=chat_id, user_id=carol)


def test_mark_seen_is_idempotent_and_directional(pair, notifier):
    alice, bob, chat_id = pair
    _send(notifier, chat_id, alice, bob, "one")
    _send(notifier, chat_id, alice, bob, "two")
    _send(notifier, chat_id, bob, alice, "reply")

    with db_session() as session:
        _, svc = _services(session, notifier)
        assert svc.mark_seen(chat_id=chat_id, user_id=bob) == 2
    with db_session() as session:
        _, svc = _services(session, notifier)
        assert svc.mark_seen(chat_id=chat_id, user_id=bob) == 0

    with db_session() as session:
        chat_svc, _ = _services(session, notifier)
        assert chat_svc.list_chats(user_id=bob)[0]["unread"] == 0
        assert chat_svc.list_chats(user_id=alice)[0]["unread"] == 1


def test_list_chats_orders_by_latest_activity(make_user, notifier):
    alice = make_user("alice")
    bob = make_user("bob")
    carol = make_user("carol")
    with db_session() as session:
        chat_svc, _ = _services(session, notifier)
        with_bob, _ = chat_svc.ensure_chat(user_id=alice, with_user_id=bob)
        with_carol, _ = chat_svc.ensure_chat(user_id=alice, with_user_id=carol)
        bob_chat, carol_chat = with_bob.id, with_carol.id

    _send(notifier, carol_chat, carol, alice, "first")
    _send(notifier, bob_chat, bob, alice, "latest")

    with db_session() as session:
        chats = _services(session, notifier)[0].list_chats(user_id=alice)

    assert [c["chatId"] for c in chats] == [bob_chat, carol_chat]
    assert [c["lastMessage"] for c in chats] == ["latest", "first"]
