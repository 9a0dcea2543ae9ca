from stockledger.schemas.auth import AuthResponse, Identity, LoginRequest, RegisterRequest
from stockledger.schemas.inventory import IssueRequest, ItemRead, MovementRead, ReceiveRequest

__all__ = [
    "AuthResponse",
    "Identity",
    "IssueRequest",
    "ItemRead",
    "LoginRequest",
    "MovementRead",
    "ReceiveRequest",
    "RegisterRequest",
]
