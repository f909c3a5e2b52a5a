"""
Session Provider

The remote store scopes every row to an owner. Who the owner is, and
whether anyone is signed in at all, is decided outside this package
(login pages, redirects); the store only asks these two questions.
"""

from abc import ABC, abstractmethod
from typing import Optional


class SessionProvider(ABC):
    """Answers "is someone signed in, and who?" for the storage layer."""

    @abstractmethod
    def current_owner_id(self) -> Optional[str]:
        """Return the signed-in owner's id, or None when signed out."""
        pass

    @property
    def is_logged_in(self) -> bool:
        return self.current_owner_id() is not None


class StaticSession(SessionProvider):
    """
    A session fixed at startup.

    Used when the owner comes from configuration (a service account
    acting for one household) and in tests.
    """

    def __init__(self, owner_id: Optional[str] = None):
        self._owner_id = owner_id or None

    def current_owner_id(self) -> Optional[str]:
        return self._owner_id

    def sign_in(self, owner_id: str) -> None:
        if not owner_id:
            raise ValueError("owner_id must not be empty")
        self._owner_id = owner_id

    def sign_out(self) -> None:
        self._owner_id = None
