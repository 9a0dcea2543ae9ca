from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from stockledger.core.errors import InsufficientStock, InvalidInput, NotFound
from stockledger.db.storage import LedgerStorage
from stockledger.models.item import INT32_MAX, NAME_MAX_LENGTH, SKU_MAX_LENGTH
from stockledger.models.movement import MovementKind
from stockledger.schemas.auth import Identity
from stockledger.schemas.inventory import ItemRead, MovementRead


logger = logging.getLogger(__name__)

DEFAULT_MOVEMENTS_LIMIT = 50
MAX_MOVEMENTS_LIMIT = 200


def _require_text(value: Any, field: str, max_length: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} is required")
    value = value.strip()
    if len(value) > max_length:
        raise InvalidInput(f"{field} must be at most {max_length} characters")
    return value


def _is_int(value: Any) -> bool:
    # bool is an int subclass; True must not pass as a quantity of 1
    return isinstance(value, int) and not isinstance(value, bool)


def _require_quantity(value: Any) -> int:
    if not _is_int(value) or not 0 < value <= INT32_MAX:
        raise InvalidInput(f"quantity must be an integer between 1 and {INT32_MAX}")
    return value


def clamp_limit(limit: int | None, default: int = DEFAULT_MOVEMENTS_LIMIT, maximum: int = MAX_MOVEMENTS_LIMIT) -> int:
    if limit is None:
        return default
    return max(1, min(int(limit), maximum))


class LedgerEngine:
    """Receipts, issues and reads against the stock ledger.

    ``storage_factory`` returns a fresh storage context per call, so the engine
    itself carries no state between operations. Each mutation runs in exactly
    one storage transaction: the quantity change and its movement row commit
    together or not at all.
    """

    def __init__(
        self,
        storage_factory: Callable[[], LedgerStorage],
        default_limit: int = DEFAULT_MOVEMENTS_LIMIT,
        max_limit: int = MAX_MOVEMENTS_LIMIT,
    ) -> None:
        self._storage_factory = storage_factory
        self.default_limit = default_limit
        self.max_limit = max_limit

    def receive_stock(self, sku: str, name: str, quantity: int, acting_user: Identity | None = None) -> ItemRead:
        sku = _require_text(sku, "sku", SKU_MAX_LENGTH)
        name = _require_text(name, "name", NAME_MAX_LENGTH)
        quantity = _require_quantity(quantity)
        user_id = acting_user.id if acting_user else None

        with self._storage_factory() as storage, storage.transaction():
            item = storage.upsert_by_sku(sku, name, quantity)
            storage.insert_movement(item.id, user_id, MovementKind.RECEIVE, quantity)
            result = ItemRead.model_validate(item)

        logger.info("received sku=%s qty=%s quantity_after=%s user_id=%s", sku, quantity, result.quantity, user_id)
        return result

    def issue_stock(self, item_id: int, quantity: int, acting_user: Identity | None = None) -> ItemRead:
        if not _is_int(item_id):
            raise InvalidInput("item_id must be an integer")
        quantity = _require_quantity(quantity)
        user_id = acting_user.id if acting_user else None

        with self._storage_factory() as storage, storage.transaction():
            # ids outside the key range cannot exist and would not bind
            item = storage.select_for_update(item_id) if 0 < item_id <= INT32_MAX else None
            if item is None:
                raise NotFound(f"item {item_id} not found")
            if quantity > item.quantity:
                logger.info("issue rejected item_id=%s requested=%s available=%s", item_id, quantity, item.quantity)
                raise InsufficientStock(item_id, quantity, item.quantity)

            item.quantity -= quantity
            storage.insert_movement(item.id, user_id, MovementKind.ISSUE, quantity)
            result = ItemRead.model_validate(item)

        logger.info("issued item_id=%s qty=%s quantity_after=%s user_id=%s", item_id, quantity, result.quantity, user_id)
        return result

    def list_items(self) -> list[ItemRead]:
        with self._storage_factory() as storage, storage.transaction(read_only=True):
            return [ItemRead.model_validate(item) for item in storage.select_items()]

    def list_movements(self, limit: int | None = None) -> list[MovementRead]:
        limit = clamp_limit(limit, self.default_limit, self.max_limit)
        with self._storage_factory() as storage, storage.transaction(read_only=True):
            rows = storage.select_movements_joined(limit)
            return [
                MovementRead(
                    id=movement.id,
                    item_id=movement.item_id,
                    user_id=movement.user_id,
                    kind=movement.kind,
                    quantity=movement.quantity,
                    created_at=movement.created_at,
                    sku=sku,
                    item_name=item_name,
                    username=username,
                )
                for movement, sku, item_name, username in rows
            ]
