from sessionauth.repositories.session import RefreshSessionRepository
from sessionauth.repositories.user import UserRepository

__all__ = ["RefreshSessionRepository", "UserRepository"]
