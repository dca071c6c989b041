"""
User Store - Accounts, points ledger and the ad library.
Each public call is one indivisible operation on the store.
"""
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config import settings
from ..exceptions import AuthenticationError, InvalidSelectionError
from ..models.user import User, AdContent

logger = logging.getLogger(__name__)


class LedgerStatus(str, Enum):
    """Outcome of a points operation."""
    OK = "ok"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    USER_NOT_FOUND = "user_not_found"


@dataclass(frozen=True)
class LedgerResult:
    """Result of a deduct or add, with the balance the store now holds."""
    status: LedgerStatus
    balance: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status == LedgerStatus.OK


class UserStore:
    """In-memory user records keyed by user id."""

    def __init__(self, starting_points: Optional[int] = None):
        self._users: dict[str, User] = {}
        self.starting_points = settings.starting_points if starting_points is None else starting_points
        self._seed_admin()

    def _seed_admin(self):
        admin = User(
            id=settings.admin_user_id,
            password=settings.admin_password,
            points=0,
            is_admin=True
        )
        self._users[admin.id] = admin

    # ===== ACCOUNTS =====
    def register(self, user_id: str, password: str) -> User:
        """Create a regular account with the starting balance."""
        user_id = user_id.strip()
        if not user_id or not password:
            raise InvalidSelectionError("User ID and password are required")
        if user_id in self._users:
            raise AuthenticationError("User ID already taken")

        user = User(id=user_id, password=password, points=self.starting_points)
        self._users[user_id] = user
        logger.info(f"Registered user {user_id} with {user.points} pts")
        return user.model_copy()

    def login(self, user_id: str, password: str) -> User:
        """Return the user when the credentials match."""
        user = self._users.get(user_id.strip())
        if user is None or user.password != password:
            raise AuthenticationError("Invalid user ID or password")
        return user.model_copy()

    def get_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    def list_users(self) -> list[User]:
        return [u.model_copy() for u in self._users.values()]

    def delete_user(self, user_id: str) -> bool:
        """Remove a user record. False if it was already gone."""
        if self._users.pop(user_id, None) is None:
            logger.warning(f"Delete requested for missing user {user_id}")
            return False
        logger.info(f"Deleted user {user_id}")
        return True

    # ===== LEDGER =====
    def deduct_points(self, user_id: str, amount: int) -> LedgerResult:
        """Take points only if the balance covers the whole amount."""
        _check_amount(amount)
        user = self._users.get(user_id)
        if user is None:
            return LedgerResult(LedgerStatus.USER_NOT_FOUND)
        if user.points < amount:
            return LedgerResult(LedgerStatus.INSUFFICIENT_FUNDS, user.points)

        user.points -= amount
        logger.info(f"Deducted {amount} pts from {user_id}, balance {user.points}")
        return LedgerResult(LedgerStatus.OK, user.points)

    def add_points(self, user_id: str, amount: int) -> LedgerResult:
        _check_amount(amount)
        user = self._users.get(user_id)
        if user is None:
            return LedgerResult(LedgerStatus.USER_NOT_FOUND)

        user.points += amount
        logger.info(f"Added {amount} pts to {user_id}, balance {user.points}")
        return LedgerResult(LedgerStatus.OK, user.points)


def _check_amount(amount: int):
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValueError(f"Points amount must be a positive integer, got {amount!r}")


class AdLibrary:
    """Ad creatives uploaded by admins."""

    def __init__(self):
        self._ads: dict[str, AdContent] = {}

    def add(self, ad: AdContent) -> AdContent:
        """Add or replace a creative by name."""
        self._ads[ad.name] = ad
        logger.info(f"Stored ad '{ad.name}' ({ad.type})")
        return ad

    def remove(self, name: str) -> bool:
        return self._ads.pop(name, None) is not None

    def list_ads(self) -> list[AdContent]:
        return list(self._ads.values())

    def pick(self) -> Optional[AdContent]:
        """Choose a creative to play, or None when the library is empty."""
        if not self._ads:
            return None
        return random.choice(list(self._ads.values()))


# Global instances
user_store: Optional[UserStore] = None
ad_library: Optional[AdLibrary] = None


def get_user_store() -> UserStore:
    """Get or create the global user store."""
    global user_store
    if user_store is None:
        user_store = UserStore()
    return user_store


def get_ad_library() -> AdLibrary:
    """Get or create the global ad library."""
    global ad_library
    if ad_library is None:
        ad_library = AdLibrary()
    return ad_library
