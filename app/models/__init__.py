"""Domain records persisted by the credential store."""

from app.models.user import NewUser, UserRecord

__all__ = ["NewUser", "UserRecord"]
