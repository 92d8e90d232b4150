"""Durable key-value backend on a single SQLAlchemy table.

The table mirrors the shape of a classic KV table: a text primary key and a
JSON value column.  Prefix scans become ``key LIKE '<prefix>%'`` with the
``%``/``_`` wildcards escaped, because session ids contain underscores.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import JSON, Column, Text, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base

from receptionist.services.kv_store import StoreError

logger = logging.getLogger(__name__)

Base = declarative_base()


class KVEntry(Base):
    __tablename__ = "kv_store"

    key = Column(Text, primary_key=True)
    value = Column(JSON, nullable=False)


class SQLAlchemyKVStore:
    """KV substrate backed by any SQLAlchemy-supported database."""

    def __init__(self, url: str = "sqlite:///receptionist.db", **engine_kwargs: Any) -> None:
        self._engine = create_engine(url, **engine_kwargs)
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not initialise kv_store table: {exc}") from exc
        logger.info("KV store ready (%s)", self._engine.url.render_as_string(hide_password=True))

    def set(self, key: str, value: Any) -> None:
        """Upsert *key* with *value* (whole-value replace)."""
        try:
            with Session(self._engine) as session, session.begin():
                session.merge(KVEntry(key=key, value=value))
        except SQLAlchemyError as exc:
            logger.error("KV write failed for %s: %s", key, exc)
            raise StoreError(f"Failed to write {key}") from exc

    def get(self, key: str) -> Any | None:
        try:
            with Session(self._engine) as session:
                entry = session.get(KVEntry, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read {key}") from exc

    def get_by_prefix(self, prefix: str) -> list[Any]:
        """Return every value whose key starts with *prefix* (unordered)."""
        stmt = select(KVEntry.value).where(KVEntry.key.startswith(prefix, autoescape=True))
        try:
            with Session(self._engine) as session:
                return list(session.scalars(stmt))
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to scan prefix {prefix}") from exc

    def dispose(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()
