from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..auth import Principal, authorize
from ..config import settings
from ..db import get_db
from ..dependencies import get_principal, get_session_token
from ..schemas import LoginRequest, LoginResponse, PrincipalRead
from ..services import identity

router = APIRouter(prefix="/auth")


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest, response: Response, db: Session = Depends(get_db)
) -> LoginResponse:
    result = identity.authenticate(db, payload.username, payload.password)
    response.set_cookie(
        settings.session_cookie_name,
        result.session_token,
        max_age=settings.session_ttl_minutes * 60,
        httponly=True,
        samesite="lax",
    )
    return LoginResponse(
        user_id=result.user_id,
        session_token=result.session_token,
        profile=PrincipalRead.model_validate(result.principal),
    )


@router.post("/logout", status_code=204)
def logout(
    token: str | None = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> Response:
    identity.logout(db, token)
    response = Response(status_code=204)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get("/me", response_model=PrincipalRead)
def me(principal: Principal | None = Depends(get_principal)) -> PrincipalRead:
    return PrincipalRead.model_validate(authorize(principal))
