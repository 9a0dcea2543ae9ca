from stockledger.models.item import Item
from stockledger.models.movement import Movement, MovementKind
from stockledger.models.user import User

__all__ = [
    "Item",
    "Movement",
    "MovementKind",
    "User",
]
