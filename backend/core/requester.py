from dataclasses import dataclass

from backend.core.errors import ForbiddenError

ROLE_STUDENT = "student"
ROLE_ADMIN = "admin"
ROLES = (ROLE_STUDENT, ROLE_ADMIN)


@dataclass(frozen=True)
class Requester:
    """The authenticated identity an operation runs on behalf of."""

    id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def require_admin(requester: Requester, message: str = "Admin access required.") -> None:
    if not requester.is_admin:
        raise ForbiddenError(message)
