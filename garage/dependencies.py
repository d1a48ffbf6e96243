from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .auth import Principal
from .config import settings
from .db import get_db
from .services import identity


def get_session_token(request: Request) -> str | None:
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(settings.session_cookie_name)


def get_principal(
    token: str | None = Depends(get_session_token),
    db: Session = Depends(get_db),
) -> Principal | None:
    # Services run the authorization gate; a missing principal is not an error here.
    return identity.current_profile(db, token)
