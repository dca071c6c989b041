"""Services for the trip wizard."""
from .llm_client import LLMClient
from .trip_intelligence import TripIntelligenceService
from .user_store import UserStore, AdLibrary, LedgerResult, LedgerStatus
from .wizard_controller import WizardController
from .admin_console import AdminConsole

__all__ = [
    "LLMClient",
    "TripIntelligenceService",
    "UserStore",
    "AdLibrary",
    "LedgerResult",
    "LedgerStatus",
    "WizardController",
    "AdminConsole",
]
