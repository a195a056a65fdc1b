"""Key-value stores backing practice history and remembered settings."""
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lexilearn.exceptions import StorageError
from lexilearn.models.models import StoredValue


logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """String key to string value storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value for ``key`` or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Create or overwrite ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    @abstractmethod
    def list_keys(self, prefix: str = "") -> List[str]:
        """Keys starting with ``prefix`` in sorted order."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every key."""


class InMemoryStore(KeyValueStore):
    """Store that lives as long as the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def list_keys(self, prefix: str = "") -> List[str]:
        return sorted(key for key in self._data if key.startswith(prefix))

    def clear(self) -> None:
        self._data.clear()


class SqlKeyValueStore(KeyValueStore):
    """Store persisted in the ``stored_values`` table."""

    def __init__(self, db: Session):
        """Initialize the store with a database session."""
        self.db = db

    def _row(self, key: str) -> Optional[StoredValue]:
        return self.db.query(StoredValue).filter(StoredValue.key == key).first()

    def get(self, key: str) -> Optional[str]:
        try:
            row = self._row(key)
        except SQLAlchemyError as e:
            raise StorageError(f"Could not read '{key}': {e}") from e
        return row.value if row else None

    def set(self, key: str, value: str) -> None:
        try:
            row = self._row(key)
            if row:
                row.value = value
            else:
                self.db.add(StoredValue(key=key, value=value))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Could not write '{key}': {e}") from e
        logger.debug(f"Stored '{key}' ({len(value)} bytes)")

    def delete(self, key: str) -> None:
        try:
            self.db.query(StoredValue).filter(StoredValue.key == key).delete()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Could not delete '{key}': {e}") from e

    def list_keys(self, prefix: str = "") -> List[str]:
        try:
            query = self.db.query(StoredValue.key)
            if prefix:
                query = query.filter(StoredValue.key.startswith(prefix, autoescape=True))
            return [key for (key,) in query.order_by(StoredValue.key).all()]
        except SQLAlchemyError as e:
            raise StorageError(f"Could not list keys: {e}") from e

    def clear(self) -> None:
        try:
            self.db.query(StoredValue).delete()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Could not clear store: {e}") from e
