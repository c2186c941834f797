from sessionauth.models.session import RefreshSession
from sessionauth.models.user import User

__all__ = ["RefreshSession", "User"]
