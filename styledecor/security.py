from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError
from fastapi import Request, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRES_DAYS
from .errors import Unauthenticated, InvalidCredential

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    email: str
    role: str = "user"


def issue_token(email: str, role: str = "user", expires_in: timedelta | None = None) -> str:
    expires_at = datetime.now(timezone.utc) + (expires_in or timedelta(days=JWT_EXPIRES_DAYS))
    return jwt.encode(
        {"email": email, "role": role, "exp": expires_at},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


def decode_token(token: str | None) -> Identity:
    if not token:
        raise Unauthenticated("Missing Bearer token")

    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise InvalidCredential()

    email = payload.get("email")
    if not isinstance(email, str) or not email:
        raise InvalidCredential("Token carries no identity")

    return Identity(email=email, role=str(payload.get("role") or "user"))


def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    token = None
    if creds and creds.scheme.lower() == "bearer":
        token = creds.credentials

    identity = decode_token(token)

    request.state.user_email = identity.email
    request.state.user_role = identity.role
    return identity
