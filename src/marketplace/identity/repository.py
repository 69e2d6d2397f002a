"""Repository for the User aggregate."""

from marketplace.domain import marketplace
from marketplace.identity.user import User


@marketplace.repository(part_of=User)
class UserRepository:
    def find_by_email(self, email: str | None) -> User | None:
        """Find a user by email (case-insensitive). Returns None when absent."""
        if not email:
            return None
        users = self._dao.query.filter(email=email.strip().lower()).limit(None).all().items
        return users[0] if users else None
