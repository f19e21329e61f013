"""Integration tests for aquahub.services.chat_service against an in-memory MongoDB."""
from __future__ import annotations

import pytest

from aquahub.schemas.chat import ImagePayload, ProductCardPayload, TextPayload
from aquahub.utils.errors import NotFoundError, NotParticipantError


async def _unread(conversation_repo, conversation_id):
    convo = await conversation_repo.get(conversation_id)
    return convo["unread_counts"]


class TestFindOrCreate:

    async def test_same_conversation_for_either_argument_order(self, chat_service, alice, bob):
        first, created = await chat_service.find_or_create(alice, "bob", "Bob Mendoza")
        again, created_again = await chat_service.find_or_create(alice, "bob")
        reverse, created_reverse = await chat_service.find_or_create(bob, "alice")

        assert created is True
        assert created_again is False and created_reverse is False
        assert first["_id"] == again["_id"] == reverse["_id"]

    async def test_new_conversation_shape(self, chat_service, alice):
        convo, _ = await chat_service.find_or_create(alice, "bob", "Bob Mendoza", "https://img/bob.png")

        assert convo["participant_ids"] == ["alice", "bob"]
        assert convo["last_message"] is None
        assert convo["unread_counts"] == {"alice": 0, "bob": 0}
        names = {p["user_id"]: p["name"] for p in convo["participants"]}
        assert names == {"alice": "Alice Gómez", "bob": "Bob Mendoza"}

    async def test_lost_insert_race_returns_existing(self, conversation_repo, monkeypatch):
        await conversation_repo.ensure_indexes()
        winner, _ = await conversation_repo.find_or_create(["alice", "bob"], [])

        # the loser's lookup ran before the winner's insert
        original = conversation_repo.find_by_participants
        calls = {"n": 0}

        async def stale_lookup(participant_ids):
            calls["n"] += 1
            if calls["n"] == 1:
                return None
            return await original(participant_ids)

        monkeypatch.setattr(conversation_repo, "find_by_participants", stale_lookup)
        loser, created = await conversation_repo.find_or_create(["alice", "bob"], [])

        assert created is False
        assert loser["_id"] == winner["_id"]


class TestSendMessage:

    async def test_unread_increments_for_recipient_only(self, chat_service, conversation_repo, alice):
        convo, _ = await chat_service.find_or_create(alice, "bob")

        await chat_service.send_message(alice, convo["_id"], TextPayload(text="hi"))

        assert await _unread(conversation_repo, convo["_id"]) == {"alice": 0, "bob": 1}

    async def test_last_message_summary(self, chat_service, conversation_repo, alice):
        convo, _ = await chat_service.find_or_create(alice, "bob")

        await chat_service.send_message(
            alice, convo["_id"], ProductCardPayload(title="Bomba de agua 1HP", price="Q1200.00", message="¿Disponible?")
        )

        stored = await conversation_repo.get(convo["_id"])
        assert stored["last_message"]["text"] == "Inquiry: Bomba de agua 1HP"
        assert stored["last_message"]["sender_id"] == "alice"

    async def test_messages_returned_in_send_order(self, chat_service, alice, bob):
        convo, _ = await chat_service.find_or_create(alice, "bob")
        await chat_service.send_message(alice, convo["_id"], TextPayload(text="one"))
        await chat_service.send_message(bob, convo["_id"], TextPayload(text="two"))
        await chat_service.send_message(alice, convo["_id"], ImagePayload(image_url="https://img/pond.jpg"))

        messages, _ = await chat_service.get_history(alice, convo["_id"])

        assert [m["payload"]["kind"] for m in messages] == ["text", "text", "image"]
        assert [m["sender_id"] for m in messages] == ["alice", "bob", "alice"]
        assert messages[2]["image_url"] == "https://img/pond.jpg"

    async def test_outsider_cannot_send(self, chat_service, alice, carol):
        convo, _ = await chat_service.find_or_create(alice, "bob")

        with pytest.raises(NotParticipantError):
            await chat_service.send_message(carol, convo["_id"], TextPayload(text="hello"))

    async def test_unknown_conversation(self, chat_service, alice):
        with pytest.raises(NotFoundError):
            await chat_service.send_message(alice, "not-an-id", TextPayload(text="hello"))


class TestMarkRead:

    async def test_resets_regardless_of_prior_value(self, chat_service, conversation_repo, alice, bob):
        convo, _ = await chat_service.find_or_create(alice, "bob")
        for text in ("a", "b", "c"):
            await chat_service.send_message(alice, convo["_id"], TextPayload(text=text))

        await chat_service.mark_read(bob, convo["_id"])
        assert (await _unread(conversation_repo, convo["_id"]))["bob"] == 0

        # idempotent
        await chat_service.mark_read(bob, convo["_id"])
        assert await _unread(conversation_repo, convo["_id"]) == {"alice": 0, "bob": 0}

    async def test_total_unread_across_conversations(self, chat_service, alice, bob, carol):
        with_alice, _ = await chat_service.find_or_create(bob, "alice")
        with_carol, _ = await chat_service.find_or_create(bob, "carol")
        await chat_service.send_message(alice, with_alice["_id"], TextPayload(text="hola"))
        await chat_service.send_message(carol, with_carol["_id"], TextPayload(text="buenas"))
        await chat_service.send_message(carol, with_carol["_id"], TextPayload(text="?"))

        assert await chat_service.total_unread(bob) == 3

    async def test_total_unread_sums_every_conversation(self, conversation_repo):
        await conversation_repo.collection.insert_many(
            [{"participant_ids": ["bob", f"user{i}"], "unread_counts": {"bob": 1}} for i in range(1003)]
            + [{"participant_ids": ["bob", "zed"], "unread_counts": {"zed": 4}}]
        )

        assert await conversation_repo.total_unread("bob") == 1003
        assert await conversation_repo.total_unread("nobody") == 0


class TestFirstContact:

    async def test_end_to_end_first_message(self, chat_service, conversation_repo, message_repo, notification_repo, alice):
        convo, message = await chat_service.send_first_contact(alice, "bob", TextPayload(text="Hola"), "Bob Mendoza")

        assert await conversation_repo.collection.count_documents({}) == 1
        assert await message_repo.count(convo["_id"]) == 1
        assert message["text"] == "Hola"
        assert await _unread(conversation_repo, convo["_id"]) == {"alice": 0, "bob": 1}

        notifications = await notification_repo.list_for_user("bob")
        assert len(notifications) == 1
        assert notifications[0]["type"] == "new_message"
        assert notifications[0]["sender_id"] == "alice"
        assert notifications[0]["body"] == "Hola"
        assert await notification_repo.list_for_user("alice") == []

    async def test_failed_notification_keeps_message(self, chat_service, conversation_repo, message_repo, notification_repo, alice, monkeypatch):
        async def broken_create(doc):
            raise RuntimeError("notifications unavailable")

        monkeypatch.setattr(notification_repo, "create", broken_create)
        convo, _ = await chat_service.send_first_contact(alice, "bob", TextPayload(text="Hola"))

        assert await message_repo.count(convo["_id"]) == 1
        assert (await _unread(conversation_repo, convo["_id"]))["bob"] == 1
