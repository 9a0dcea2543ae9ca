from pydantic import BaseModel, ConfigDict


class Identity(BaseModel):
    """A verified caller, as attached to movements."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str


class RegisterRequest(BaseModel):
    username: str
    password: str


class LoginRequest(BaseModel):
    username: str
    password: str


class AuthResponse(BaseModel):
    ok: bool = True
    token: str
    user: Identity
