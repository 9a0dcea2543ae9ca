"""Typed failures raised by the ledger, the account service and the token verifier.

The HTTP layer maps each class to a status code through ``status_code``; nothing
below the router knows about transport.
"""


class LedgerError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(LedgerError):
    status_code = 400


class Unauthenticated(LedgerError):
    status_code = 401


class NotFound(LedgerError):
    status_code = 404


class InsufficientStock(LedgerError):
    status_code = 409

    def __init__(self, item_id: int, requested: int, available: int) -> None:
        super().__init__(f"Insufficient stock: requested {requested}, available {available}")
        self.item_id = item_id
        self.requested = requested
        self.available = available


class Conflict(LedgerError):
    status_code = 409


class StorageFault(LedgerError):
    status_code = 503
