from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from stockledger.core.config import Settings, get_settings
from stockledger.core.security import verify_token
from stockledger.schemas.auth import Identity
from stockledger.services.accounts import AccountService
from stockledger.services.ledger import LedgerEngine


# a missing header falls through to verify_token
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{get_settings().api_v1_prefix}/auth/login", auto_error=False)


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_ledger(request: Request) -> LedgerEngine:
    return request.app.state.ledger


def get_accounts(request: Request) -> AccountService:
    return request.app.state.accounts


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings_from_app),
) -> Identity:
    return verify_token(token, settings)
