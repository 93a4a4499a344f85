import pytest

from civicdesk.core.errors import StorageError
from civicdesk.storage.firestore_store import FirestoreKeyValueStore


class FakeSnapshot:
    def __init__(self, data):
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, docs, doc_id):
        self.docs = docs
        self.doc_id = doc_id

    def get(self):
        return FakeSnapshot(self.docs.get(self.doc_id))

    def set(self, data):
        self.docs[self.doc_id] = data

    def delete(self):
        self.docs.pop(self.doc_id, None)


class FakeQuery:
    def __init__(self, docs, filters=(), order=None, limit=None):
        self.docs = docs
        self.filters = list(filters)
        self.order = order
        self.max_results = limit

    def where(self, field, op, value):
        return FakeQuery(self.docs, self.filters + [(field, op, value)], self.order, self.max_results)

    def order_by(self, field):
        return FakeQuery(self.docs, self.filters, field, self.max_results)

    def limit(self, n):
        return FakeQuery(self.docs, self.filters, self.order, n)

    def stream(self):
        ops = {">=": lambda a, b: a >= b, "<": lambda a, b: a < b}
        rows = [
            data for data in self.docs.values()
            if all(ops[op](data[field], value) for field, op, value in self.filters)
        ]
        if self.order:
            rows.sort(key=lambda data: data[self.order])
        if self.max_results is not None:
            rows = rows[:self.max_results]
        return [FakeSnapshot(data) for data in rows]


class FakeCollection(FakeQuery):
    def document(self, doc_id):
        return FakeDocument(self.docs, doc_id)


class FakeClient:
    def __init__(self):
        self.collections = {}

    def collection(self, name):
        return FakeCollection(self.collections.setdefault(name, {}))


class BrokenClient:
    def collection(self, name):
        return BrokenCollection()


class BrokenCollection:
    def document(self, doc_id):
        raise RuntimeError("deadline exceeded")

    def limit(self, n):
        raise RuntimeError("deadline exceeded")


@pytest.fixture
def client():
    return FakeClient()


def test_round_trip_and_delete(client):
    store = FirestoreKeyValueStore(client, "kv")

    store.set("user_profile_u1", {"name": "Asha"})
    assert store.get("user_profile_u1") == {"name": "Asha"}

    store.delete("user_profile_u1")
    assert store.get("user_profile_u1") is None


def test_document_ids_are_quoted(client):
    store = FirestoreKeyValueStore(client, "kv")

    store.set("upvote_a/b_u1", True)

    assert list(client.collections["kv"]) == ["upvote_a%2Fb_u1"]
    assert store.get("upvote_a/b_u1") is True


def test_prefix_scan(client):
    store = FirestoreKeyValueStore(client, "kv")
    store.set("ticket_TKT2", {"id": "TKT2"})
    store.set("ticket_TKT1", {"id": "TKT1"})
    store.set("tickets_other", {"id": "x"})
    store.set("user_tickets_u1", ["TKT1"])

    assert store.get_by_prefix("ticket_") == [{"id": "TKT1"}, {"id": "TKT2"}]


def test_ping(client):
    assert FirestoreKeyValueStore(client).ping() is True


def test_backend_failures_become_storage_errors():
    store = FirestoreKeyValueStore(BrokenClient())

    with pytest.raises(StorageError):
        store.get("k")
    with pytest.raises(StorageError):
        store.set("k", 1)
    with pytest.raises(StorageError):
        store.ping()
