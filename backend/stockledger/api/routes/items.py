from fastapi import APIRouter, Depends, Query, status

from stockledger.api.deps import get_current_user, get_ledger
from stockledger.schemas.auth import Identity
from stockledger.schemas.inventory import IssueRequest, ReceiveRequest
from stockledger.services.ledger import LedgerEngine


router = APIRouter()


@router.get("/items")
def list_items(
    ledger: LedgerEngine = Depends(get_ledger),
    _: Identity = Depends(get_current_user),
) -> dict:
    return {"ok": True, "items": [item.model_dump(mode="json") for item in ledger.list_items()]}


@router.post("/items", status_code=status.HTTP_201_CREATED)
def receive_stock(
    payload: ReceiveRequest,
    ledger: LedgerEngine = Depends(get_ledger),
    current_user: Identity = Depends(get_current_user),
) -> dict:
    item = ledger.receive_stock(payload.sku, payload.name, payload.quantity, acting_user=current_user)
    return {"ok": True, "item": item.model_dump(mode="json")}


@router.post("/items/{item_id}/issue")
def issue_stock(
    item_id: int,
    payload: IssueRequest,
    ledger: LedgerEngine = Depends(get_ledger),
    current_user: Identity = Depends(get_current_user),
) -> dict:
    item = ledger.issue_stock(item_id, payload.quantity, acting_user=current_user)
    return {"ok": True, "item": item.model_dump(mode="json")}


@router.get("/transactions")
def list_transactions(
    limit: int | None = Query(default=None),
    ledger: LedgerEngine = Depends(get_ledger),
    _: Identity = Depends(get_current_user),
) -> dict:
    rows = ledger.list_movements(limit)
    return {"ok": True, "transactions": [row.model_dump(mode="json", exclude_none=True) for row in rows]}
