"""SQL-backed storage collaborator for the ledger engine.

Each ``SqlLedgerStorage`` owns one ``Session`` for the duration of a ``with``
block. ``transaction()`` commits on success and rolls back on any exception;
SQLAlchemy failures come out as ``StorageFault`` so callers only deal with the
ledger's own error types.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Protocol

from sqlalchemy import Row, select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from stockledger.core.errors import StorageFault
from stockledger.models.item import Item, utcnow
from stockledger.models.movement import Movement, MovementKind
from stockledger.models.user import User


logger = logging.getLogger(__name__)

UPSERT_INSERTS: dict[str, Any] = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class LedgerStorage(Protocol):
    def __enter__(self) -> LedgerStorage: ...

    def __exit__(self, *exc_info: Any) -> None: ...

    def transaction(self, read_only: bool = False) -> Any: ...

    def select_for_update(self, item_id: int) -> Item | None: ...

    def upsert_by_sku(self, sku: str, name: str, delta: int) -> Item: ...

    def insert_movement(self, item_id: int, user_id: int | None, kind: MovementKind, quantity: int) -> Movement: ...

    def select_items(self) -> list[Item]: ...

    def select_movements_joined(self, limit: int) -> list[Row]: ...


class SqlLedgerStorage:
    def __init__(self, session_factory: sessionmaker[Session], lock_timeout_ms: int = 0) -> None:
        self._session_factory = session_factory
        self._lock_timeout_ms = lock_timeout_ms
        self._session: Session | None = None

    def __enter__(self) -> SqlLedgerStorage:
        self._session = self._session_factory()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("SqlLedgerStorage used outside of its with-block")
        return self._session

    @property
    def dialect(self) -> str:
        return self.session.get_bind().dialect.name

    @contextmanager
    def transaction(self, read_only: bool = False) -> Iterator[None]:
        try:
            with self.session.begin():
                # procured before anything else so the SQLite begin hook sees the option
                self.session.connection(execution_options={"ledger_read_only": read_only})
                if not read_only and self._lock_timeout_ms > 0 and self.dialect == "postgresql":
                    self.session.execute(text(f"SET LOCAL lock_timeout = {int(self._lock_timeout_ms)}"))
                yield
        except SQLAlchemyError as exc:
            logger.error("ledger transaction rolled back", exc_info=True)
            raise StorageFault("storage unavailable") from exc
        except OverflowError as exc:
            logger.error("ledger transaction rolled back", exc_info=True)
            raise StorageFault("value out of storage range") from exc

    def select_for_update(self, item_id: int) -> Item | None:
        return self.session.scalar(select(Item).where(Item.id == item_id).with_for_update())

    def upsert_by_sku(self, sku: str, name: str, delta: int) -> Item:
        insert = UPSERT_INSERTS.get(self.dialect)
        if insert is None:
            return self._upsert_locked(sku, name, delta)

        stmt = insert(Item).values(sku=sku, name=name, quantity=delta)
        stmt = stmt.on_conflict_do_update(
            index_elements=["sku"],
            set_={
                "name": stmt.excluded.name,
                "quantity": Item.quantity + stmt.excluded.quantity,
                "updated_at": utcnow(),
            },
        ).returning(Item)
        return self.session.scalars(stmt, execution_options={"populate_existing": True}).one()

    def _upsert_locked(self, sku: str, name: str, delta: int) -> Item:
        # Dialects without ON CONFLICT: lock the existing row or insert a new one.
        # A concurrent first receipt of the same SKU loses on the unique index.
        item = self.session.scalar(select(Item).where(Item.sku == sku).with_for_update())
        if item is None:
            item = Item(sku=sku, name=name, quantity=delta)
            self.session.add(item)
        else:
            item.name = name
            item.quantity += delta
        self.session.flush()
        return item

    def insert_movement(self, item_id: int, user_id: int | None, kind: MovementKind, quantity: int) -> Movement:
        movement = Movement(item_id=item_id, user_id=user_id, kind=kind, quantity=quantity)
        self.session.add(movement)
        self.session.flush()
        return movement

    def select_items(self) -> list[Item]:
        return list(self.session.scalars(select(Item).order_by(Item.id.asc())).all())

    def select_movements_joined(self, limit: int) -> list[Row]:
        stmt = (
            select(Movement, Item.sku, Item.name, User.username)
            .join(Item, Item.id == Movement.item_id)
            .outerjoin(User, User.id == Movement.user_id)
            .order_by(Movement.id.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).all())
