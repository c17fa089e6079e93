"""
Memory Store: the durable record repository.

Every operation opens its own Session, so one store instance can be shared by
all request threads. Sessions do not expire objects on commit; what callers
get back are detached copies, never objects bound to a live session.
"""
from collections import Counter
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, Tuple
from datetime import datetime
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, desc, func, select
from memorai.errors import IntegrityError, PersistenceError
from memorai.models.base import utcnow
from memorai.models.memory import Memory, MemoryTag
from memorai.logging import logger

PROFILE_TEXT_LIMIT = 100


class MemoryStore:
    def __init__(self, engine: Engine, clock: Callable[[], datetime] = utcnow):
        self.engine = engine
        self.clock = clock

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        try:
            with Session(self.engine, expire_on_commit=False) as session:
                yield session
        except SQLAlchemyError as e:
            logger.error(f"Failed to {action}: {e}")
            raise PersistenceError(f"Failed to {action}: {e}") from e

    def create(
        self,
        text: str,
        tags: Sequence[str],
        source: Optional[str],
        embedding: Sequence[float],
    ) -> Memory:
        now = self.clock()
        memory = Memory(
            text=text,
            tags=list(tags),
            source=source,
            embedding=b"",
            created_at=now,
            updated_at=now,
        )
        memory.set_vector(list(embedding))

        with self._session("create memory") as session:
            session.add(memory)
            for tag in memory.tags:
                session.add(MemoryTag(memory_id=memory.id, tag=tag))
            session.commit()

            stored = session.get(Memory, memory.id, populate_existing=True)
            if stored is None:
                raise IntegrityError("No memory returned after creation")

        logger.info(f"Stored memory {stored.id} ({len(stored.tags)} tags, dims={stored.dims})")
        return stored

    def fetch_all(self) -> List[Memory]:
        with self._session("fetch memories") as session:
            return list(session.exec(select(Memory)).all())

    def fetch_paginated(
        self,
        page: int,
        per_page: int,
        tag: Optional[str] = None,
        source: Optional[str] = None,
    ) -> List[Memory]:
        """
        One page of memories, newest first.

        `page` is 1-indexed. Filters are combined with AND; a filter left as
        None is not applied.
        """
        offset = max(0, page - 1) * per_page

        statement = select(Memory)
        if tag is not None:
            tagged = select(MemoryTag.memory_id).where(MemoryTag.tag == tag)
            statement = statement.where(col(Memory.id).in_(tagged))
        if source is not None:
            statement = statement.where(Memory.source == source)
        statement = statement.order_by(desc(Memory.created_at)).offset(offset).limit(per_page)

        with self._session("query memories") as session:
            return list(session.exec(statement).all())

    def delete(self, memory_id: str) -> Optional[Memory]:
        with self._session("delete memory") as session:
            memory = session.get(Memory, memory_id)
            if memory is None:
                return None

            tag_rows = session.exec(select(MemoryTag).where(MemoryTag.memory_id == memory_id)).all()
            for row in tag_rows:
                session.delete(row)
            session.delete(memory)
            session.commit()

        logger.info(f"Deleted memory {memory_id}")
        return memory

    def count(self) -> int:
        with self._session("count memories") as session:
            result = session.exec(select(func.count()).select_from(Memory)).first()

        try:
            return int(result)
        except (TypeError, ValueError):
            logger.warning(f"Unparseable memory count {result!r}; reporting 0")
            return 0

    def all_texts(self, limit: int = PROFILE_TEXT_LIMIT) -> List[str]:
        statement = select(Memory.text).order_by(desc(Memory.created_at)).limit(limit)
        with self._session("fetch texts") as session:
            return list(session.exec(statement).all())

    def tag_counts(self) -> List[Tuple[str, int]]:
        """
        Number of memories carrying each tag, most frequent first.

        A tag repeated within one memory is counted once for that memory.
        """
        counter: Counter = Counter()
        for memory in self.fetch_all():
            counter.update(list(dict.fromkeys(memory.tags or [])))
        return _sorted_counts(counter)

    def source_counts(self) -> List[Tuple[str, int]]:
        counter: Counter = Counter(m.source for m in self.fetch_all() if m.source is not None)
        return _sorted_counts(counter)


def _sorted_counts(counter: Counter) -> List[Tuple[str, int]]:
    # Stable sort: equal counts keep first-seen order
    return sorted(counter.items(), key=lambda item: item[1], reverse=True)
