from typing import Dict, Iterable, Optional
import json
import logging

from sqlalchemy.orm import Session

from ..core.database import create_storage_engine, init_db, make_session_factory
from ..models.storage_entry import StorageEntry

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"

class ClientStorage:
    """Durable key/value storage for the client session.

    Mirrors what a browser keeps in localStorage: the bearer token under
    ``token`` and the last known profile, serialized as JSON, under ``user``.
    Multi-key writes and removals happen in a single transaction.
    """

    def __init__(self, url: str):
        self.url = url
        self.engine = create_storage_engine(url)
        self.SessionLocal = make_session_factory(self.engine)
        init_db(self.engine)

    def _session(self) -> Session:
        return self.SessionLocal()

    def get(self, key: str) -> Optional[str]:
        db = self._session()
        try:
            entry = db.get(StorageEntry, key)
            return entry.value if entry else None
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, values: Dict[str, str]) -> None:
        db = self._session()
        try:
            for key, value in values.items():
                entry = db.get(StorageEntry, key)
                if entry:
                    entry.value = value
                else:
                    db.add(StorageEntry(key=key, value=value))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def remove(self, key: str) -> None:
        self.remove_many([key])

    def remove_many(self, keys: Iterable[str]) -> None:
        db = self._session()
        try:
            db.query(StorageEntry).filter(
                StorageEntry.key.in_(list(keys))
            ).delete(synchronize_session=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # Session-shaped helpers

    def load_token(self) -> Optional[str]:
        return self.get(TOKEN_KEY)

    def load_profile(self) -> Optional[dict]:
        raw = self.get(USER_KEY)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable profile blob in client storage")
            return None

    def save_session(self, token: str, profile: dict) -> None:
        self.set_many({TOKEN_KEY: token, USER_KEY: json.dumps(profile)})

    def save_profile(self, profile: dict) -> None:
        self.set(USER_KEY, json.dumps(profile))

    def clear_session(self) -> None:
        self.remove_many([TOKEN_KEY, USER_KEY])

    def close(self) -> None:
        self.engine.dispose()
