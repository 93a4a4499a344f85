from civicdesk.models.notification import NotificationType
from civicdesk.services.notification_service import NotificationService, feed_key


def test_notify_prepends_newest_first(notifications, clock):
    notifications.notify("u1", NotificationType.NEW_TICKET, "First", "first message", "TKT1")
    clock.advance(seconds=1)
    notifications.notify("u1", NotificationType.TICKET_UPDATE, "Second", "second message", "TKT1")

    feed = notifications.list_notifications("u1")

    assert [n.title for n in feed] == ["Second", "First"]
    assert all(not n.read for n in feed)
    assert feed[0].ticket_id == "TKT1"
    assert feed[0].id.startswith("notif_")


def test_feed_is_capped_and_evicts_oldest(notifications, clock):
    for i in range(51):
        notifications.notify("u1", NotificationType.TICKET_UPVOTE, f"n{i}", "msg")
        clock.advance(seconds=1)

    feed = notifications.list_notifications("u1")

    assert len(feed) == 50
    titles = [n.title for n in feed]
    assert "n0" not in titles
    assert titles[0] == "n50"
    assert titles[-1] == "n1"


def test_list_resorts_stored_feed_by_created_at(notifications, store):
    store.set(feed_key("u1"), [
        {"id": "a", "type": "new_ticket", "title": "old", "message": "m", "read": False,
         "createdAt": "2024-01-01T00:00:00Z"},
        {"id": "b", "type": "new_ticket", "title": "new", "message": "m", "read": False,
         "createdAt": "2024-02-01T00:00:00Z"},
    ])

    assert [n.id for n in notifications.list_notifications("u1")] == ["b", "a"]


def test_naive_timestamps_sort_with_offset_ones(notifications, store, clock):
    store.set(feed_key("u1"), [
        {"id": "legacy", "type": "new_ticket", "title": "t", "message": "m", "createdAt": "2024-06-10T06:00:00"},
    ])
    notifications.notify("u1", NotificationType.NEW_TICKET, "t", "m")

    feed = notifications.list_notifications("u1")

    assert feed[-1].id == "legacy"
    assert feed[-1].created_at.tzinfo is not None


def test_unreadable_entries_are_skipped_when_listing(notifications, store):
    store.set(feed_key("u1"), [
        {"id": "a", "type": "not-a-type", "title": "t", "message": "m", "createdAt": "2024-01-01T00:00:00Z"},
        {"id": "b", "type": "resolution", "title": "t", "message": "m", "createdAt": "2024-01-01T00:00:00Z"},
    ])

    assert [n.id for n in notifications.list_notifications("u1")] == ["b"]


def test_unreadable_entries_survive_writes(notifications, store):
    unreadable = {"id": "a", "type": "not-a-type", "title": "t", "message": "m", "createdAt": "2024-01-01T00:00:00Z"}
    store.set(feed_key("u1"), [unreadable])

    created = notifications.notify("u1", NotificationType.NEW_TICKET, "t", "m")
    assert store.get(feed_key("u1"))[1] == unreadable

    assert notifications.mark_read("u1", created.id) is True
    notifications.notify("u1", NotificationType.NEW_TICKET, "t2", "m2")
    assert notifications.mark_all_read("u1") == 1

    stored = store.get(feed_key("u1"))
    assert len(stored) == 3
    assert stored[-1] == unreadable
    assert all(entry["read"] for entry in stored[:2])


def test_mark_read_is_idempotent(notifications):
    first = notifications.notify("u1", NotificationType.NEW_TICKET, "t", "m")
    notifications.notify("u1", NotificationType.NEW_TICKET, "t2", "m2")

    assert notifications.mark_read("u1", first.id) is True
    assert notifications.mark_read("u1", first.id) is False
    assert notifications.unread_count("u1") == 1

    feed = {n.id: n for n in notifications.list_notifications("u1")}
    assert feed[first.id].read is True


def test_mark_read_unknown_id_is_noop(notifications, store):
    notifications.notify("u1", NotificationType.NEW_TICKET, "t", "m")
    before = store.get(feed_key("u1"))

    assert notifications.mark_read("u1", "notif_missing") is False
    assert notifications.mark_read("nobody", "notif_missing") is False
    assert store.get(feed_key("u1")) == before
    assert store.get(feed_key("nobody")) is None


def test_mark_all_read(notifications):
    for i in range(3):
        notifications.notify("u1", NotificationType.NEW_TICKET, f"t{i}", "m")

    assert notifications.mark_all_read("u1") == 3
    assert notifications.mark_all_read("u1") == 0
    assert notifications.unread_count("u1") == 0


class FailingStore:
    def get(self, key):
        raise RuntimeError("store is down")

    def set(self, key, value):
        raise RuntimeError("store is down")


def test_notify_swallows_storage_failures(ids, clock):
    service = NotificationService(FailingStore(), id_generator=ids, clock=clock)

    assert service.notify("u1", NotificationType.NEW_TICKET, "t", "m") is None
