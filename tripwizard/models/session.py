"""
Session management - Tracks the wizard step and the trip being built.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum
import uuid

from .trip import TripFormData, TripAnalysis
from .plan import TripPlanResponse
from .user import User, AdContent


class AppStep(str, Enum):
    """Wizard steps, each paired with one view."""
    AUTH = "AUTH"
    ADMIN = "ADMIN"
    LANDING = "LANDING"
    INPUTS = "INPUTS"
    ANALYZING = "ANALYZING"
    POINT_CHECK = "POINT_CHECK"
    AD_WATCH = "AD_WATCH"
    DURATION_SELECTION = "DURATION_SELECTION"
    TRANSPORT = "TRANSPORT"
    BUDGET = "BUDGET"
    LOADING = "LOADING"
    RESULTS = "RESULTS"
    ERROR = "ERROR"


class WizardSession(BaseModel):
    """One browser session walking through the wizard."""
    session_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Unique session identifier"
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        description="Session creation time"
    )
    updated_at: datetime = Field(
        default_factory=datetime.now,
        description="Last update time"
    )

    step: AppStep = Field(default=AppStep.AUTH, description="Current wizard step")

    # Local mirror of the store's user record
    user: Optional[User] = Field(None, description="Logged-in user")

    form: TripFormData = Field(
        default_factory=TripFormData,
        description="Trip parameters collected so far"
    )
    analysis: Optional[TripAnalysis] = Field(None, description="Last route analysis")
    plan: Optional[TripPlanResponse] = Field(None, description="Last generated plan")
    error: Optional[str] = Field(None, description="Message shown to the user")

    # Identity of the analysis/plan call whose result is still wanted
    pending_request: Optional[str] = Field(None, description="Outstanding request id")
    current_ad: Optional[AdContent] = Field(None, description="Ad playing in AD_WATCH")

    def move_to(self, step: AppStep):
        """Switch to another step."""
        self.step = step
        self.updated_at = datetime.now()

    def begin_request(self) -> str:
        """Tag a new external call; earlier calls become stale."""
        self.pending_request = str(uuid.uuid4())
        self.updated_at = datetime.now()
        return self.pending_request

    def is_current_request(self, request_id: str) -> bool:
        return self.pending_request is not None and self.pending_request == request_id

    def reset_trip(self):
        """Forget everything about the trip in progress."""
        self.form = TripFormData()
        self.analysis = None
        self.plan = None
        self.error = None
        self.pending_request = None
        self.current_ad = None
        self.updated_at = datetime.now()

    def clear_user(self):
        """Drop the logged-in user and any trip in progress."""
        self.user = None
        self.reset_trip()
        self.step = AppStep.AUTH

    def set_points(self, points: int):
        """Mirror the store's balance locally."""
        if self.user is not None:
            self.user = self.user.model_copy(update={"points": points})
            self.updated_at = datetime.now()


# In-memory session storage (would be replaced with database in production)
class SessionStore:
    """Simple in-memory session store."""

    def __init__(self):
        self._sessions: dict[str, WizardSession] = {}

    def create(self) -> WizardSession:
        """Create a new session."""
        session = WizardSession()
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Optional[WizardSession]:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def update(self, session: WizardSession):
        """Update a session."""
        self._sessions[session.session_id] = session


# Global session store
session_store = SessionStore()
