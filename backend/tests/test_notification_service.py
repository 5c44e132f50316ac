"""
Flock Backend — Notification Service Tests
============================================

What we test:
    ✅ Fetch returns newest first with the actor populated
    ✅ Fetch marks everything read; the first response shows unread, the second read
    ✅ Notifications are private to their recipient
    ✅ Delete purges only the caller's notifications
"""

import pytest

from app.models.notification import NotificationType
from app.services.notification_service import NotificationService


class TestNotificationLedger:

    def setup_method(self):
        self.service = NotificationService()

    @pytest.mark.asyncio
    async def test_newest_first_with_actor(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")

        self.service.record(db_session, alice.id, bob.id, NotificationType.FOLLOW)
        await db_session.flush()
        self.service.record(db_session, carol.id, bob.id, NotificationType.LIKE)
        await db_session.flush()

        notifications = await self.service.get_notifications(db_session, bob.id)

        assert [n.type for n in notifications] == ["like", "follow"]
        assert [n.from_.username for n in notifications] == ["carol", "alice"]
        assert all(n.to == bob.id for n in notifications)

    @pytest.mark.asyncio
    async def test_fetch_marks_read(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        self.service.record(db_session, alice.id, bob.id, NotificationType.FOLLOW)
        await db_session.flush()

        first = await self.service.get_notifications(db_session, bob.id)
        second = await self.service.get_notifications(db_session, bob.id)

        assert [n.read for n in first] == [False]
        assert [n.read for n in second] == [True]

    @pytest.mark.asyncio
    async def test_recipient_only(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        self.service.record(db_session, alice.id, bob.id, NotificationType.FOLLOW)
        await db_session.flush()

        assert await self.service.get_notifications(db_session, alice.id) == []

    @pytest.mark.asyncio
    async def test_delete_only_own(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        self.service.record(db_session, alice.id, bob.id, NotificationType.FOLLOW)
        self.service.record(db_session, bob.id, alice.id, NotificationType.FOLLOW)
        await db_session.flush()

        result = await self.service.delete_notifications(db_session, bob.id)

        assert result.message == "Notifications deleted successfully"
        assert await self.service.get_notifications(db_session, bob.id) == []
        assert len(await self.service.get_notifications(db_session, alice.id)) == 1

    @pytest.mark.asyncio
    async def test_delete_when_empty(self, db_session, make_user):
        alice = await make_user("alice")
        result = await self.service.delete_notifications(db_session, alice.id)
        assert result.message == "Notifications deleted successfully"
