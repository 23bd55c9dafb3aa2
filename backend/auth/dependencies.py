import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.core.errors import UnauthorizedError
from backend.core.requester import Requester
from backend.database import get_db
from backend.models.user import User

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Not authorized, no token")

    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise UnauthorizedError("Invalid token") from exc

    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        raise UnauthorizedError("Invalid token subject")

    user = db.get(User, int(subject))
    if user is None:
        raise UnauthorizedError("User not found")
    return user


def get_requester(current_user: User = Depends(get_current_user)) -> Requester:
    return Requester(id=current_user.id, role=current_user.role)
