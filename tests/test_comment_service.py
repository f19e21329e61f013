"""Tests for comment threads and the notification routing of comments and replies."""
from __future__ import annotations

import pytest

from aquahub.repositories.comment_repository import CommentRepository
from aquahub.services.comment_service import build_tree
from aquahub.utils.errors import NotFoundError, ValidationError


@pytest.fixture()
async def publication(db):
    result = await db["publications"].insert_one(
        {"author_id": "zara", "author_name": "Zara Pérez", "title": "Resultados de la cosecha"}
    )
    return str(result.inserted_id)


async def _types_for(notification_repo, user_id):
    return [n["type"] for n in await notification_repo.list_for_user(user_id)]


class TestNotificationRouting:

    async def test_top_level_comment_notifies_thread_author(self, comment_service, notification_repo, publication, alice):
        await comment_service.post_comment(alice, "publication", publication, "¡Excelente!")

        assert await _types_for(notification_repo, "zara") == ["new_comment"]

    async def test_reply_notifies_parent_author_not_thread_author(self, comment_service, notification_repo, publication, alice, bob):
        parent = await comment_service.post_comment(bob, "publication", publication, "¿Qué densidad usaron?")
        await notification_repo.collection.delete_many({})

        await comment_service.post_comment(alice, "publication", publication, "Yo también pregunto", parent["_id"])

        assert await _types_for(notification_repo, "bob") == ["new_reply"]
        assert await _types_for(notification_repo, "zara") == []
        reply = (await notification_repo.list_for_user("bob"))[0]
        assert reply["link"] == f"/publications/{publication}"

    async def test_replying_to_yourself_notifies_nobody(self, comment_service, notification_repo, publication, bob):
        parent = await comment_service.post_comment(bob, "publication", publication, "Primero")
        await notification_repo.collection.delete_many({})

        await comment_service.post_comment(bob, "publication", publication, "Segundo", parent["_id"])

        assert await notification_repo.collection.count_documents({}) == 0

    async def test_commenting_own_post_not_notified(self, comment_service, poll_service, notification_repo, alice):
        post = await poll_service.create_post(alice, "Observación sobre el pH")

        await comment_service.post_comment(alice, "forum_post", post["_id"], "Actualización")

        assert await notification_repo.collection.count_documents({}) == 0

    async def test_publication_without_author_still_accepts_comments(self, db, comment_service, notification_repo, alice):
        result = await db["publications"].insert_one({"title": "Sin autor"})
        publication_id = str(result.inserted_id)

        comment = await comment_service.post_comment(alice, "publication", publication_id, "Hola")

        assert comment["text"] == "Hola"
        assert await notification_repo.collection.count_documents({}) == 0


class TestThreads:

    async def test_forum_comment_bumps_count(self, comment_service, poll_service, forum_repo, alice, bob):
        post = await poll_service.create_post(alice, "Observación sobre el pH")

        await comment_service.post_comment(bob, "forum_post", post["_id"], "Gracias")

        assert (await forum_repo.get(post["_id"]))["comments_count"] == 1

    async def test_thread_is_nested(self, comment_service, publication, alice, bob, carol):
        root = await comment_service.post_comment(alice, "publication", publication, "root")
        reply = await comment_service.post_comment(bob, "publication", publication, "reply", root["_id"])
        await comment_service.post_comment(carol, "publication", publication, "nested", reply["_id"])
        await comment_service.post_comment(carol, "publication", publication, "second root")

        tree = await comment_service.list_thread("publication", publication)

        assert [c["text"] for c in tree] == ["root", "second root"]
        assert [r["text"] for r in tree[0]["replies"]] == ["reply"]
        assert [r["text"] for r in tree[0]["replies"][0]["replies"]] == ["nested"]

    async def test_parent_from_other_thread_rejected(self, comment_service, poll_service, publication, alice, bob):
        post = await poll_service.create_post(alice, "Otro hilo")
        foreign = await comment_service.post_comment(bob, "forum_post", post["_id"], "aquí")

        with pytest.raises(NotFoundError):
            await comment_service.post_comment(bob, "publication", publication, "allá", foreign["_id"])

    async def test_blank_comment_rejected(self, comment_service, publication, alice):
        with pytest.raises(ValidationError):
            await comment_service.post_comment(alice, "publication", publication, "   ")

    async def test_list_thread_returns_every_comment(self, db, publication):
        repo = CommentRepository(db)
        await repo.collection.insert_many(
            [{"thread_type": "publication", "thread_id": publication, "text": str(i), "created_at": i} for i in range(1002)]
        )

        comments = await repo.list_thread("publication", publication)

        assert len(comments) == 1002
        assert comments[-1]["text"] == "1001"

    async def test_missing_thread(self, comment_service, alice):
        with pytest.raises(NotFoundError):
            await comment_service.post_comment(alice, "publication", "665f1c2e9b1e8a3d4c5b6a70", "hola")


def test_build_tree_ignores_orphans():
    comments = [
        {"_id": "1", "parent_id": None, "text": "a"},
        {"_id": "2", "parent_id": "missing", "text": "orphan"},
    ]
    assert [c["text"] for c in build_tree(comments)] == ["a"]
