"""
Key/value document store.

The engine only needs get/put/scan/delete over JSON documents addressed by
(collection, key). Two backends:
- InMemoryDocumentStore: dict-backed, used by tests and the `memory` backend
- SqlDocumentStore: SQLAlchemy `documents` table (SQLite by default)

Documents are deep-copied on the way in and out so callers never share
mutable state with the store.
"""
from __future__ import annotations

import copy
from collections.abc import Iterator
from typing import Any, Protocol, runtime_checkable

from loguru import logger
from sqlalchemy import Engine, delete, select

from arivom.db.database import init_db, make_session_factory, session_scope
from arivom.db.tables import DocumentRecord

Document = dict[str, Any]


@runtime_checkable
class DocumentStore(Protocol):
    def get(self, collection: str, key: str) -> Document | None: ...

    def put(self, collection: str, key: str, document: Document) -> None: ...

    def scan(self, collection: str, prefix: str = "") -> Iterator[tuple[str, Document]]: ...

    def delete(self, collection: str, key: str) -> bool: ...


class InMemoryDocumentStore:
    """Dict-backed store. Scan order is key order."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Document]] = {}

    def get(self, collection: str, key: str) -> Document | None:
        document = self._data.get(collection, {}).get(key)
        return copy.deepcopy(document) if document is not None else None

    def put(self, collection: str, key: str, document: Document) -> None:
        self._data.setdefault(collection, {})[key] = copy.deepcopy(document)

    def scan(self, collection: str, prefix: str = "") -> Iterator[tuple[str, Document]]:
        documents = self._data.get(collection, {})
        for key in sorted(documents):
            if key.startswith(prefix):
                yield key, copy.deepcopy(documents[key])

    def delete(self, collection: str, key: str) -> bool:
        return self._data.get(collection, {}).pop(key, None) is not None

    def __len__(self) -> int:
        return sum(len(docs) for docs in self._data.values())


class SqlDocumentStore:
    """Document store persisted in a single SQLAlchemy table."""

    def __init__(self, engine: Engine, create_tables: bool = True):
        self.engine = engine
        self._factory = make_session_factory(engine)
        if create_tables:
            init_db(engine)

    def get(self, collection: str, key: str) -> Document | None:
        with session_scope(self._factory) as session:
            record = session.get(DocumentRecord, (collection, key))
            return copy.deepcopy(record.body) if record is not None else None

    def put(self, collection: str, key: str, document: Document) -> None:
        with session_scope(self._factory) as session:
            record = session.get(DocumentRecord, (collection, key))
            if record is None:
                session.add(DocumentRecord(collection=collection, key=key, body=copy.deepcopy(document)))
            else:
                record.body = copy.deepcopy(document)
        logger.debug(f"Stored {collection}/{key}")

    def scan(self, collection: str, prefix: str = "") -> Iterator[tuple[str, Document]]:
        stmt = select(DocumentRecord).where(DocumentRecord.collection == collection)
        if prefix:
            stmt = stmt.where(DocumentRecord.key.startswith(prefix, autoescape=True))
        stmt = stmt.order_by(DocumentRecord.key)
        with session_scope(self._factory) as session:
            # LIKE is case-insensitive on SQLite
            rows = [(r.key, copy.deepcopy(r.body)) for r in session.scalars(stmt) if r.key.startswith(prefix)]
        yield from rows

    def delete(self, collection: str, key: str) -> bool:
        stmt = delete(DocumentRecord).where(
            DocumentRecord.collection == collection, DocumentRecord.key == key
        )
        with session_scope(self._factory) as session:
            result = session.execute(stmt)
            return result.rowcount > 0
