"""
Admin Console - User and ad management available on the ADMIN step.
"""
import logging
from typing import Optional

from .user_store import LedgerResult, get_user_store, get_ad_library
from ..exceptions import InvalidSelectionError, PermissionDeniedError
from ..models.session import AppStep, WizardSession
from ..models.user import AdContent, User

logger = logging.getLogger(__name__)


class AdminConsole:
    """Operations reserved for admin sessions."""

    def __init__(self, users=None, ads=None):
        self.users = users or get_user_store()
        self.ads = ads or get_ad_library()

    def _require_admin(self, session: WizardSession):
        if session.user is None or not session.user.is_admin or session.step != AppStep.ADMIN:
            raise PermissionDeniedError("Admin access required")

    def list_users(self, session: WizardSession) -> list[User]:
        self._require_admin(session)
        return self.users.list_users()

    def delete_user(self, session: WizardSession, user_id: str) -> bool:
        self._require_admin(session)
        target = self.users.get_user(user_id)
        if target is not None and target.is_admin:
            raise InvalidSelectionError("Admin accounts cannot be deleted")
        deleted = self.users.delete_user(user_id)
        logger.info(f"Admin {session.user.id} deleted {user_id}: {deleted}")
        return deleted

    def grant_points(self, session: WizardSession, user_id: str, amount: int) -> LedgerResult:
        self._require_admin(session)
        try:
            return self.users.add_points(user_id, amount)
        except ValueError as e:
            raise InvalidSelectionError(str(e)) from e

    def list_ads(self, session: WizardSession) -> list[AdContent]:
        self._require_admin(session)
        return self.ads.list_ads()

    def upload_ad(self, session: WizardSession, ad: AdContent) -> AdContent:
        self._require_admin(session)
        return self.ads.add(ad)

    def remove_ad(self, session: WizardSession, name: str) -> bool:
        self._require_admin(session)
        return self.ads.remove(name)


# Global admin console
admin_console: Optional[AdminConsole] = None


def get_admin_console() -> AdminConsole:
    """Get or create the global admin console."""
    global admin_console
    if admin_console is None:
        admin_console = AdminConsole()
    return admin_console
