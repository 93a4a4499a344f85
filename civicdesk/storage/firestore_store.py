"""
Firestore-backed key-value store.

Every key lives as one document in a single collection:
    {KV_COLLECTION}/{quoted key} -> {"key": key, "value": <json value>}

Prefix scans are a range query on the "key" field, so the collection needs
the default single-field index on "key" (Firestore creates it automatically).
"""

from typing import Any, List, Optional
from urllib.parse import quote
import logging

from civicdesk.core.errors import StorageError
from civicdesk.utils.firestore_helpers import where_filter
from .base import KeyValueStore

logger = logging.getLogger(__name__)

# Highest code point in the BMP private use area, the usual Firestore prefix-scan upper bound
PREFIX_SENTINEL = "\uf8ff"


class FirestoreKeyValueStore(KeyValueStore):

    def __init__(self, client, collection: str = "kv_store"):
        self.client = client
        self.collection_name = collection
        self.collection = client.collection(collection)

    def _doc(self, key: str):
        # Document ids may not contain "/"
        return self.collection.document(quote(key, safe=""))

    def get(self, key: str) -> Optional[Any]:
        try:
            snapshot = self._doc(key).get()
        except Exception as e:
            logger.error(f"Firestore get failed for {key}: {e}", exc_info=True)
            raise StorageError(f"Failed to read {key}") from e
        if not snapshot.exists:
            return None
        return (snapshot.to_dict() or {}).get("value")

    def set(self, key: str, value: Any) -> None:
        try:
            self._doc(key).set({"key": key, "value": value})
        except Exception as e:
            logger.error(f"Firestore set failed for {key}: {e}", exc_info=True)
            raise StorageError(f"Failed to write {key}") from e

    def delete(self, key: str) -> None:
        try:
            self._doc(key).delete()
        except Exception as e:
            logger.error(f"Firestore delete failed for {key}: {e}", exc_info=True)
            raise StorageError(f"Failed to delete {key}") from e

    def get_by_prefix(self, prefix: str) -> List[Any]:
        try:
            query = where_filter(self.collection, "key", ">=", prefix)
            query = where_filter(query, "key", "<", prefix + PREFIX_SENTINEL)
            docs = list(query.order_by("key").stream())
        except Exception as e:
            logger.error(f"Firestore prefix scan failed for {prefix!r}: {e}", exc_info=True)
            raise StorageError(f"Failed to scan {prefix}") from e
        return [(doc.to_dict() or {}).get("value") for doc in docs]

    def ping(self) -> bool:
        try:
            list(self.collection.limit(1).stream())
        except Exception as e:
            raise StorageError(f"Firestore unreachable: {e}") from e
        return True
