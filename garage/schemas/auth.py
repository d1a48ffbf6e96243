from pydantic import BaseModel

from ..models import RoleEnum


class LoginRequest(BaseModel):
    username: str
    password: str


class PrincipalRead(BaseModel):
    id: int
    username: str
    role: RoleEnum
    is_active: bool

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    user_id: str
    session_token: str
    profile: PrincipalRead
