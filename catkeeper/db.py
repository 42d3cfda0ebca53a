"""
Document store abstraction with an SQLAlchemy implementation and an
in-memory test implementation.

Documents are plain dicts keyed by ``_id``. Queries are dicts of
field -> condition where a condition is either a literal (equality) or
``{"$in": [...]}``.
"""

from __future__ import annotations

import copy
import time
import uuid
from typing import Dict, Iterable, List, Optional, Protocol

from sqlalchemy import JSON, Column, Float, String, create_engine, delete, select
from sqlalchemy.orm import Session, declarative_base, sessionmaker


ID_FIELD = "_id"


class DocumentStore(Protocol):
    """Interface for document storage grouped into named collections."""

    def find(self, collection: str, query: Optional[dict] = None) -> List[dict]:
        ...

    def find_one(self, collection: str, query: dict) -> Optional[dict]:
        ...

    def find_one_and_update(
        self, collection: str, query: dict, update: dict
    ) -> Optional[dict]:
        ...

    def find_one_and_delete(self, collection: str, query: dict) -> Optional[dict]:
        ...

    def create(self, collection: str, document: dict) -> dict:
        ...

    def populate(
        self, documents: Iterable[dict], path: str, collection: str
    ) -> List[dict]:
        ...

    def reset(self) -> None:
        ...


def matches(document: dict, query: Optional[dict]) -> bool:
    """Return True if ``document`` satisfies every condition in ``query``."""
    if not query:
        return True
    for field_name, condition in query.items():
        value = document.get(field_name)
        if isinstance(condition, dict):
            unknown = set(condition) - {"$in"}
            if unknown:
                raise ValueError(f"Unsupported query operator(s): {sorted(unknown)}")
            if value not in condition["$in"]:
                return False
        elif value != condition:
            return False
    return True


def _merge_update(document: dict, update: dict) -> dict:
    merged = dict(document)
    for key, value in update.items():
        if key == ID_FIELD:
            continue
        merged[key] = copy.deepcopy(value)
    return merged


def _populate(
    store: DocumentStore, documents: Iterable[dict], path: str, collection: str
) -> List[dict]:
    documents = [copy.deepcopy(doc) for doc in documents]
    wanted: list[str] = []
    for doc in documents:
        wanted.extend(doc.get(path) or [])
    if not wanted:
        for doc in documents:
            doc[path] = []
        return documents

    targets = {
        target[ID_FIELD]: target
        for target in store.find(collection, {ID_FIELD: {"$in": list(set(wanted))}})
    }
    for doc in documents:
        # References to deleted documents are dropped.
        doc[path] = [
            copy.deepcopy(targets[ref]) for ref in doc.get(path) or [] if ref in targets
        ]
    return documents


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {}

    def _collection(self, collection: str) -> Dict[str, dict]:
        return self.collections.setdefault(collection, {})

    def _first(self, collection: str, query: dict) -> Optional[dict]:
        for doc in self._collection(collection).values():
            if matches(doc, query):
                return doc
        return None

    def find(self, collection: str, query: Optional[dict] = None) -> List[dict]:
        return [
            copy.deepcopy(doc)
            for doc in self._collection(collection).values()
            if matches(doc, query)
        ]

    def find_one(self, collection: str, query: dict) -> Optional[dict]:
        doc = self._first(collection, query)
        return copy.deepcopy(doc) if doc is not None else None

    def find_one_and_update(
        self, collection: str, query: dict, update: dict
    ) -> Optional[dict]:
        doc = self._first(collection, query)
        if doc is None:
            return None
        updated = _merge_update(doc, update)
        self._collection(collection)[doc[ID_FIELD]] = updated
        return copy.deepcopy(updated)

    def find_one_and_delete(self, collection: str, query: dict) -> Optional[dict]:
        doc = self._first(collection, query)
        if doc is None:
            return None
        return self._collection(collection).pop(doc[ID_FIELD])

    def create(self, collection: str, document: dict) -> dict:
        doc = copy.deepcopy(document)
        doc[ID_FIELD] = uuid.uuid4().hex
        self._collection(collection)[doc[ID_FIELD]] = doc
        return copy.deepcopy(doc)

    def populate(
        self, documents: Iterable[dict], path: str, collection: str
    ) -> List[dict]:
        return _populate(self, documents, path, collection)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.collections.clear()


class SqlDocumentStore:
    """
    SQLAlchemy-backed implementation storing each document as a JSON row.
    Accepts any SQLAlchemy URL (e.g., Postgres, or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("database_url is required for SqlDocumentStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _to_document(row: "DocumentRow") -> dict:
        return {ID_FIELD: row.id, **copy.deepcopy(row.data)}

    @staticmethod
    def _sql_condition(field_name: str, condition):
        """
        Translate one query condition into a SQL clause, or None when it can
        only be checked in Python. Data fields are compared as JSON text, so
        only string values are pushed down; ``matches`` still runs on the
        loaded rows.
        """
        if field_name == ID_FIELD:
            column = DocumentRow.id
        else:
            column = DocumentRow.data[field_name].as_string()
        if isinstance(condition, dict):
            values = condition.get("$in")
            if set(condition) != {"$in"} or not isinstance(values, (list, tuple, set)):
                return None
            values = list(values)
            if not all(isinstance(value, str) for value in values):
                return None
            return column.in_(values)
        if isinstance(condition, str):
            return column == condition
        return None

    def _rows(
        self, session: Session, collection: str, query: Optional[dict]
    ) -> List["DocumentRow"]:
        stmt = (
            select(DocumentRow)
            .where(DocumentRow.collection == collection)
            .order_by(DocumentRow.created_at.asc())
        )
        for field_name, condition in (query or {}).items():
            clause = self._sql_condition(field_name, condition)
            if clause is not None:
                stmt = stmt.where(clause)
        return [
            row
            for row in session.execute(stmt).scalars().all()
            if matches(self._to_document(row), query)
        ]

    def find(self, collection: str, query: Optional[dict] = None) -> List[dict]:
        with self.Session() as session:
            return [
                self._to_document(row) for row in self._rows(session, collection, query)
            ]

    def find_one(self, collection: str, query: dict) -> Optional[dict]:
        with self.Session() as session:
            rows = self._rows(session, collection, query)
            row = rows[0] if rows else None
            return self._to_document(row) if row is not None else None

    def find_one_and_update(
        self, collection: str, query: dict, update: dict
    ) -> Optional[dict]:
        with self.Session() as session:
            rows = self._rows(session, collection, query)
            row = rows[0] if rows else None
            if row is None:
                return None
            merged = _merge_update(self._to_document(row), update)
            merged.pop(ID_FIELD)
            # Assign a fresh dict so the JSON column is flagged dirty.
            row.data = merged
            session.commit()
            return self._to_document(row)

    def find_one_and_delete(self, collection: str, query: dict) -> Optional[dict]:
        with self.Session() as session:
            rows = self._rows(session, collection, query)
            row = rows[0] if rows else None
            if row is None:
                return None
            document = self._to_document(row)
            session.delete(row)
            session.commit()
            return document

    def create(self, collection: str, document: dict) -> dict:
        data = copy.deepcopy(document)
        data.pop(ID_FIELD, None)
        with self.Session() as session:
            row = DocumentRow(
                id=uuid.uuid4().hex,
                collection=collection,
                data=data,
                created_at=time.time(),
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_document(row)

    def populate(
        self, documents: Iterable[dict], path: str, collection: str
    ) -> List[dict]:
        return _populate(self, documents, path, collection)

    def reset(self) -> None:
        with self.Session() as session:
            session.execute(delete(DocumentRow))
            session.commit()


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    id = Column(String, primary_key=True)
    collection = Column(String, nullable=False, index=True)
    data = Column(JSON, nullable=False)
    created_at = Column(Float, nullable=False)
