"""Tests for the notification sink."""

import asyncio

import pytest

from conftest import persisted_titles
from pos_terminal.errors import NotificationPersistenceError
from pos_terminal.models.notification import NotificationPriority, NotificationType
from pos_terminal.services.notifications import NotificationSink


class RecordingStore:
    """Durable store that records writes, optionally failing them."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.persisted = []

    async def persist(self, notification):
        await asyncio.sleep(0)
        if self.fail:
            raise NotificationPersistenceError("notification store unavailable", status_code=503)
        self.persisted.append(notification)


class RecordingCue:
    def __init__(self):
        self.cues = []

    def __call__(self, notification_type):
        self.cues.append(notification_type)


class TestLog:
    def test_newest_first(self):
        sink = NotificationSink()
        sink.emit(NotificationType.INFO, "First", "one")
        sink.emit(NotificationType.INFO, "Second", "two")

        assert [n.title for n in sink.notifications] == ["Second", "First"]

    def test_capped_at_twenty(self):
        sink = NotificationSink()
        for i in range(25):
            sink.emit(NotificationType.INFO, f"N{i}", "message")

        assert len(sink.notifications) == 20
        assert sink.notifications[0].title == "N24"
        assert sink.notifications[-1].title == "N5"

    def test_new_notifications_are_unread(self):
        sink = NotificationSink()
        notification = sink.emit(NotificationType.WARNING, "Low Stock Alert", "Sugar is low")

        assert notification.read is False
        assert sink.unread_count == 1

    def test_priority_follows_type(self):
        sink = NotificationSink()

        assert sink.emit(NotificationType.ERROR, "E", "m").priority == NotificationPriority.CRITICAL
        assert sink.emit(NotificationType.WARNING, "W", "m").priority == NotificationPriority.HIGH
        assert sink.emit(NotificationType.SUCCESS, "S", "m").priority == NotificationPriority.NORMAL

    def test_category_from_metadata_action(self):
        sink = NotificationSink(default_category="inventory")

        assert sink.emit(NotificationType.INFO, "A", "m").category == "inventory"
        assert sink.emit(NotificationType.INFO, "B", "m", metadata={"action": "sale"}).category == "sale"

    def test_ids_are_unique(self):
        sink = NotificationSink()
        ids = {sink.emit(NotificationType.INFO, "N", "m").id for _ in range(5)}

        assert len(ids) == 5


class TestCue:
    @pytest.mark.parametrize("type,cued", [
        (NotificationType.ERROR, True),
        (NotificationType.SUCCESS, True),
        (NotificationType.WARNING, False),
        (NotificationType.INFO, False),
    ])
    def test_cue_only_for_error_and_success(self, type, cued):
        cue = RecordingCue()
        NotificationSink(cue=cue).emit(type, "Title", "message")

        assert cue.cues == ([type] if cued else [])

    def test_failing_cue_does_not_block_emit(self):
        def broken_cue(notification_type):
            raise RuntimeError("no audio device")

        sink = NotificationSink(cue=broken_cue)
        sink.emit(NotificationType.ERROR, "Transaction Failed", "boom")

        assert len(sink.notifications) == 1


class TestReadState:
    def test_mark_read(self):
        sink = NotificationSink()
        first = sink.emit(NotificationType.INFO, "First", "m")
        sink.emit(NotificationType.INFO, "Second", "m")

        assert sink.mark_read(first.id) is True
        assert sink.unread_count == 1
        assert sink.notifications[1].read is True

    def test_mark_read_unknown_id(self):
        assert NotificationSink().mark_read(404) is False

    def test_mark_all_read(self):
        sink = NotificationSink()
        for i in range(3):
            sink.emit(NotificationType.INFO, f"N{i}", "m")
        sink.mark_all_read()

        assert sink.unread_count == 0
        assert all(n.read for n in sink.notifications)

    def test_clear(self):
        sink = NotificationSink()
        sink.emit(NotificationType.INFO, "N", "m")
        sink.clear()

        assert sink.notifications == []
        assert sink.unread_count == 0


class TestPersistence:
    async def test_notification_is_persisted(self):
        store = RecordingStore()
        sink = NotificationSink(store=store)
        notification = sink.emit(NotificationType.SUCCESS, "Sale Completed", "done")
        await sink.drain()

        assert store.persisted == [notification]

    async def test_persistence_failure_keeps_local_notification(self, caplog):
        sink = NotificationSink(store=RecordingStore(fail=True))
        sink.emit(NotificationType.ERROR, "Transaction Failed", "boom")
        await sink.drain()

        assert [n.title for n in sink.notifications] == ["Transaction Failed"]
        assert "persistence failed" in caplog.text

    def test_emit_without_running_loop_is_local_only(self):
        store = RecordingStore()
        sink = NotificationSink(store=store)
        sink.emit(NotificationType.INFO, "Offline", "m")

        assert len(sink.notifications) == 1
        assert store.persisted == []

    async def test_persist_body_sent_to_back_office(self, client, backoffice):
        sink = NotificationSink(store=client)
        sink.emit(
            NotificationType.WARNING,
            "Low Stock Alert",
            "Sugar 1kg stock is low",
            action="Restock Now",
            metadata={"product_id": 1, "action": "low_stock"},
        )
        await sink.drain()

        body = backoffice.body(backoffice.calls("POST", "/notifications")[0])
        assert body == {
            "type": "warning",
            "title": "Low Stock Alert",
            "message": "Sugar 1kg stock is low",
            "category": "low_stock",
            "is_persistent": True,
            "priority": "high",
            "action": "Restock Now",
            "metadata": {"product_id": 1, "action": "low_stock"},
        }

    async def test_back_office_error_is_swallowed(self, client, backoffice):
        backoffice.fail("/notifications", 500)
        sink = NotificationSink(store=client)
        sink.emit(NotificationType.INFO, "Mobile Device Disconnected", "Phone went offline")
        await sink.drain()

        assert persisted_titles(backoffice) == ["Mobile Device Disconnected"]
        assert sink.notifications[0].title == "Mobile Device Disconnected"
