from abc import ABC, abstractmethod
from typing import Any, List, Optional
import logging

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """
    Durable mapping from string key to a JSON-compatible value.

    Contract:
    - Values are plain JSON data (dict, list, str, int, float, bool, None).
    - get() returns None for absent keys.
    - get_by_prefix() returns the values of every key starting with prefix,
      in ascending key order.
    - Each call is atomic for its own key; nothing spans keys.
    - Backend failures are raised as StorageError.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_by_prefix(self, prefix: str) -> List[Any]:
        raise NotImplementedError

    def ping(self) -> bool:
        """Cheap connectivity check used by the health endpoint."""
        self.get("__ping__")
        return True
