"""Identity provider seam for the authenticated owner."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class NotSignedInError(PermissionError):
    """Raised when an operation needs an owner but nobody is signed in."""

    def __init__(self, message: str = "Please sign in to continue") -> None:
        super().__init__(message)


class IdentityProvider(ABC):
    """Supplies the current user's stable identifier."""

    @abstractmethod
    def current_user_id(self) -> Optional[str]:
        """Return the signed-in user id, or ``None``."""

    def require_user_id(self) -> str:
        user_id = self.current_user_id()
        if not user_id:
            raise NotSignedInError()
        return user_id


class StaticIdentityProvider(IdentityProvider):
    """Identity fixed at construction, e.g. from a request header."""

    def __init__(self, user_id: Optional[str] = None) -> None:
        self.user_id = user_id

    def current_user_id(self) -> Optional[str]:
        return self.user_id or None


__all__ = ["NotSignedInError", "IdentityProvider", "StaticIdentityProvider"]
