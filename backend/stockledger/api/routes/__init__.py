from fastapi import APIRouter

from stockledger.api.routes import auth, items


api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(items.router, tags=["Inventory"])
