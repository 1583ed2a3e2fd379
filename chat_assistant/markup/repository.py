from __future__ import annotations

import json
import logging
from copy import deepcopy
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import Column, DateTime, Integer, String, create_engine, delete, func, select
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .models import CachedMessageRecord

logger = logging.getLogger(__name__)

Base = declarative_base()


class CachedMessageModel(Base):
    __tablename__ = "message_cache"
    conversation_id = Column(Integer, primary_key=True)
    message_id = Column(Integer, primary_key=True)
    elements_json = Column(String)
    cached_at = Column(DateTime, index=True)


class MessageCacheRepository:
    """
    Persistence boundary for cached interactive elements, keyed by
    (conversation id, message id). Expiry policy lives in the service; the
    repository only stores, fetches and deletes.
    """

    def get_cached(self, conversation_id: int, message_id: int) -> Optional[CachedMessageRecord]:
        raise NotImplementedError

    def save_cached(self, record: CachedMessageRecord) -> None:
        raise NotImplementedError

    def delete_cached(self, conversation_id: int, message_id: int) -> bool:
        raise NotImplementedError

    def delete_conversation(self, conversation_id: int) -> int:
        raise NotImplementedError

    def delete_older_than(self, cutoff: datetime) -> int:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError


def _ensure_sqlite_dir(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def _decode_elements(payload: Optional[str]) -> Optional[Dict[str, Any]]:
    try:
        elements = json.loads(payload or "{}")
    except ValueError:
        return None
    return elements if isinstance(elements, dict) else None


class InMemoryMessageCacheRepository(MessageCacheRepository):
    """
    In-memory store for local runs and tests. Keeps copies of records to
    avoid cross-mutation between calls.
    """

    def __init__(self):
        self.entries: Dict[Tuple[int, int], CachedMessageRecord] = {}

    def _clone(self, obj):
        return deepcopy(obj)

    def get_cached(self, conversation_id: int, message_id: int) -> Optional[CachedMessageRecord]:
        record = self.entries.get((conversation_id, message_id))
        return self._clone(record) if record else None

    def save_cached(self, record: CachedMessageRecord) -> None:
        self.entries[(record.conversation_id, record.message_id)] = self._clone(record)

    def delete_cached(self, conversation_id: int, message_id: int) -> bool:
        return self.entries.pop((conversation_id, message_id), None) is not None

    def delete_conversation(self, conversation_id: int) -> int:
        keys = [key for key in self.entries if key[0] == conversation_id]
        for key in keys:
            del self.entries[key]
        return len(keys)

    def delete_older_than(self, cutoff: datetime) -> int:
        keys = [key for key, record in self.entries.items() if record.cached_at < cutoff]
        for key in keys:
            del self.entries[key]
        return len(keys)

    def count(self) -> int:
        return len(self.entries)


class SqlAlchemyMessageCacheRepository(MessageCacheRepository):
    """
    SQL-backed repository using SQLAlchemy. Works with SQLite/Postgres URLs.
    """

    def __init__(self, database_url: str):
        _ensure_sqlite_dir(database_url)
        self.engine = create_engine(database_url, future=True)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)

    def _session(self) -> Session:
        return self.SessionLocal()

    def get_cached(self, conversation_id: int, message_id: int) -> Optional[CachedMessageRecord]:
        with self._session() as session:
            model = session.get(CachedMessageModel, (conversation_id, message_id))
            if not model:
                return None
            elements = _decode_elements(model.elements_json)
            if elements is None:
                logger.warning(
                    "Discarding unreadable cache payload for conversation %s message %s",
                    conversation_id,
                    message_id,
                )
                return None
            return CachedMessageRecord(
                conversation_id=model.conversation_id,
                message_id=model.message_id,
                interactive_list=elements.get("interactive_list"),
                suggested_questions=elements.get("suggested_questions"),
                outline=elements.get("outline"),
                youtube_resources=elements.get("youtube_resources"),
                cached_at=model.cached_at,
            )

    def save_cached(self, record: CachedMessageRecord) -> None:
        with self._session() as session:
            model = CachedMessageModel(
                conversation_id=record.conversation_id,
                message_id=record.message_id,
                elements_json=json.dumps(record.elements(), ensure_ascii=False),
                cached_at=record.cached_at,
            )
            session.merge(model)
            session.commit()

    def delete_cached(self, conversation_id: int, message_id: int) -> bool:
        with self._session() as session:
            stmt = delete(CachedMessageModel).where(
                CachedMessageModel.conversation_id == conversation_id,
                CachedMessageModel.message_id == message_id,
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount > 0

    def delete_conversation(self, conversation_id: int) -> int:
        with self._session() as session:
            stmt = delete(CachedMessageModel).where(CachedMessageModel.conversation_id == conversation_id)
            result = session.execute(stmt)
            session.commit()
            return result.rowcount

    def delete_older_than(self, cutoff: datetime) -> int:
        with self._session() as session:
            stmt = delete(CachedMessageModel).where(CachedMessageModel.cached_at < cutoff)
            result = session.execute(stmt)
            session.commit()
            return result.rowcount

    def count(self) -> int:
        with self._session() as session:
            return session.execute(select(func.count()).select_from(CachedMessageModel)).scalar_one()
