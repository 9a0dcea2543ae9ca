from fastapi import APIRouter, Depends, status

from stockledger.api.deps import get_accounts, get_settings_from_app
from stockledger.core.config import Settings
from stockledger.core.security import create_access_token
from stockledger.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from stockledger.services.accounts import AccountService


router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    accounts: AccountService = Depends(get_accounts),
    settings: Settings = Depends(get_settings_from_app),
) -> AuthResponse:
    identity = accounts.register(payload.username, payload.password)
    return AuthResponse(token=create_access_token(identity, settings), user=identity)


@router.post("/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    accounts: AccountService = Depends(get_accounts),
    settings: Settings = Depends(get_settings_from_app),
) -> AuthResponse:
    identity = accounts.authenticate(payload.username, payload.password)
    return AuthResponse(token=create_access_token(identity, settings), user=identity)
