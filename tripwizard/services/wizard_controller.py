"""
Wizard Controller - Step transitions and the points economy.
Every user intent and every AI-call resolution goes through here.
"""
import asyncio
import logging
from typing import Optional, Union

from pydantic import ValidationError

from .points import unlock_cost, can_afford, suggested_days, ad_reward
from .trip_intelligence import get_trip_intelligence
from .user_store import get_user_store, get_ad_library
from ..config import settings
from ..exceptions import (
    InvalidSelectionError,
    InvalidTransitionError,
    PermissionDeniedError,
)
from ..models.session import AppStep, WizardSession
from ..models.trip import BudgetLevel, TransportType

logger = logging.getLogger(__name__)

ANALYSIS_FAILED = "Analysis failed. Please try again."
PLANNING_FAILED = "Planning failed. Please try again."
INSUFFICIENT_POINTS = "Insufficient points."
TRANSACTION_FAILED = "Transaction failed."

# Where "back" leads from each step that offers it
BACK_TARGETS = {
    AppStep.DURATION_SELECTION: AppStep.INPUTS,
    AppStep.TRANSPORT: AppStep.DURATION_SELECTION,
    AppStep.BUDGET: AppStep.TRANSPORT,
}


class WizardController:
    """
    Drives a WizardSession through the wizard.

    The controller holds no per-user state; everything lives on the session
    it is handed. AI calls are tagged with a request id so that a result
    arriving after reset, logout or a newer request is dropped.
    """

    def __init__(self, intelligence=None, users=None, ads=None):
        self.intelligence = intelligence or get_trip_intelligence()
        self.users = users or get_user_store()
        self.ads = ads or get_ad_library()

    # ===== AUTHENTICATION =====
    def login(self, session: WizardSession, user_id: str, password: str) -> AppStep:
        self._require(session, "login", AppStep.AUTH)
        user = self.users.login(user_id, password)
        return self._start_session(session, user)

    def register(self, session: WizardSession, user_id: str, password: str) -> AppStep:
        self._require(session, "register", AppStep.AUTH)
        user = self.users.register(user_id, password)
        return self._start_session(session, user)

    def _start_session(self, session: WizardSession, user) -> AppStep:
        session.reset_trip()
        session.user = user
        session.move_to(AppStep.ADMIN if user.is_admin else AppStep.LANDING)
        logger.info(f"Session {session.session_id}: {user.id} logged in -> {session.step.value}")
        return session.step

    def logout(self, session: WizardSession) -> AppStep:
        if session.user is None:
            raise InvalidTransitionError("logout", session.step)
        logger.info(f"Session {session.session_id}: {session.user.id} logged out")
        session.clear_user()
        return session.step

    def delete_account(self, session: WizardSession, confirm: bool) -> bool:
        """
        Delete the logged-in account.

        Returns False when the user did not confirm. A store that no longer
        knows the user counts as deleted.
        """
        if session.user is None or session.step == AppStep.AUTH:
            raise InvalidTransitionError("delete_account", session.step)
        if session.user.is_admin:
            raise PermissionDeniedError("Admin accounts cannot be deleted from a session")
        if not confirm:
            return False

        user_id = session.user.id
        if not self.users.delete_user(user_id):
            logger.warning(f"Account {user_id} was already gone; logging out anyway")
        session.clear_user()
        return True

    # ===== TRIP FLOW =====
    def start(self, session: WizardSession) -> AppStep:
        self._require(session, "start", AppStep.LANDING)
        session.move_to(AppStep.INPUTS)
        return session.step

    async def submit_inputs(self, session: WizardSession, origin: str, destination: str) -> AppStep:
        """Store the route and run the analysis."""
        self._require(session, "submit_inputs", AppStep.INPUTS)
        origin, destination = origin.strip(), destination.strip()
        if not origin or not destination:
            raise InvalidSelectionError("Origin and destination are required")

        session.form = session.form.update_fields({"origin": origin, "destination": destination})
        session.error = None
        session.move_to(AppStep.ANALYZING)
        request_id = session.begin_request()

        try:
            analysis = await asyncio.wait_for(
                self.intelligence.analyze_route(origin, destination),
                timeout=settings.analysis_timeout_seconds
            )
        except Exception as e:
            if self._is_stale(session, request_id, "analysis"):
                return session.step
            logger.error(f"Session {session.session_id}: analysis failed: {e!r}")
            return self._fail(session, ANALYSIS_FAILED)

        if self._is_stale(session, request_id, "analysis"):
            return session.step

        session.pending_request = None
        session.analysis = analysis
        session.form = session.form.update_fields({
            "origin": analysis.corrected_origin or origin,
            "destination": analysis.corrected_destination or destination,
        })
        session.move_to(AppStep.POINT_CHECK)
        return session.step

    def confirm_unlock(self, session: WizardSession) -> AppStep:
        """Pay for the analysed trip and move on to duration selection."""
        self._require(session, "confirm_unlock", AppStep.POINT_CHECK)
        user, analysis = session.user, session.analysis
        cost = unlock_cost(analysis)

        if not can_afford(user.points, analysis):
            session.error = INSUFFICIENT_POINTS
            return session.step

        result = self.users.deduct_points(user.id, cost)
        if not result.ok:
            logger.warning(
                f"Session {session.session_id}: store rejected deducting {cost} pts "
                f"from {user.id} ({result.status.value})"
            )
            if result.balance is not None:
                session.set_points(result.balance)
            session.error = TRANSACTION_FAILED
            return session.step

        session.set_points(result.balance)
        session.form = session.form.update_fields({"days": suggested_days(analysis)})
        session.error = None
        session.move_to(AppStep.DURATION_SELECTION)
        return session.step

    def start_ad(self, session: WizardSession) -> AppStep:
        self._require(session, "start_ad", AppStep.POINT_CHECK)
        if can_afford(session.user.points, session.analysis):
            raise InvalidSelectionError("You already have enough points to unlock this trip")

        session.current_ad = self.ads.pick()
        session.move_to(AppStep.AD_WATCH)
        return session.step

    def complete_ad(self, session: WizardSession) -> AppStep:
        """Credit the ad reward and go back to the point check."""
        self._require(session, "complete_ad", AppStep.AD_WATCH)
        result = self.users.add_points(session.user.id, ad_reward())
        if result.ok:
            session.set_points(result.balance)
            session.error = None
        else:
            logger.warning(f"Session {session.session_id}: ad reward rejected ({result.status.value})")
            session.error = TRANSACTION_FAILED

        session.current_ad = None
        session.move_to(AppStep.POINT_CHECK)
        return session.step

    def cancel_ad(self, session: WizardSession) -> AppStep:
        self._require(session, "cancel_ad", AppStep.AD_WATCH)
        session.current_ad = None
        session.move_to(AppStep.POINT_CHECK)
        return session.step

    def select_duration(self, session: WizardSession, days: int, travelers: int) -> AppStep:
        self._require(session, "select_duration", AppStep.DURATION_SELECTION)
        try:
            session.form = session.form.update_fields({"days": days, "travelers": travelers})
        except ValidationError as e:
            raise InvalidSelectionError("Days and travelers must be positive whole numbers") from e
        session.move_to(AppStep.TRANSPORT)
        return session.step

    def select_transport(self, session: WizardSession, transport: Union[TransportType, str]) -> AppStep:
        self._require(session, "select_transport", AppStep.TRANSPORT)
        try:
            transport = TransportType(transport)
        except ValueError as e:
            raise InvalidSelectionError(f"Unknown transport '{transport}'") from e
        if transport not in session.analysis.valid_transports:
            raise InvalidSelectionError(f"{transport.value} is not available for this route")

        session.form = session.form.update_fields({"transport": transport})
        session.move_to(AppStep.BUDGET)
        return session.step

    async def select_budget(self, session: WizardSession, budget: Union[BudgetLevel, str]) -> AppStep:
        """Store the budget tier and generate the plan."""
        self._require(session, "select_budget", AppStep.BUDGET)
        try:
            budget = BudgetLevel(budget)
        except ValueError as e:
            raise InvalidSelectionError(f"Unknown budget '{budget}'") from e

        session.form = session.form.update_fields({"budget": budget})
        session.error = None
        session.move_to(AppStep.LOADING)
        request_id = session.begin_request()
        form = session.form

        try:
            plan = await asyncio.wait_for(
                self.intelligence.generate_plan(form),
                timeout=settings.planning_timeout_seconds
            )
        except Exception as e:
            if self._is_stale(session, request_id, "plan"):
                return session.step
            logger.error(f"Session {session.session_id}: planning failed: {e!r}")
            return self._fail(session, PLANNING_FAILED)

        if self._is_stale(session, request_id, "plan"):
            return session.step

        session.pending_request = None
        session.plan = plan
        session.move_to(AppStep.RESULTS)
        return session.step

    def back(self, session: WizardSession) -> AppStep:
        target = BACK_TARGETS.get(session.step)
        if target is None:
            raise InvalidTransitionError("back", session.step)
        session.move_to(target)
        return session.step

    def reset(self, session: WizardSession) -> AppStep:
        """Discard the trip and start over from the landing page."""
        self._require(session, "reset", AppStep.RESULTS, AppStep.ERROR)
        session.reset_trip()
        session.move_to(AppStep.LANDING)
        return session.step

    # ===== HELPERS =====
    def _require(self, session: WizardSession, intent: str, *steps: AppStep):
        if session.step not in steps:
            raise InvalidTransitionError(intent, session.step)

    def _is_stale(self, session: WizardSession, request_id: str, kind: str) -> bool:
        if session.is_current_request(request_id):
            return False
        logger.info(f"Session {session.session_id}: discarding stale {kind} result")
        return True

    def _fail(self, session: WizardSession, message: str) -> AppStep:
        session.pending_request = None
        session.plan = None
        session.error = message
        session.move_to(AppStep.ERROR)
        return session.step


# Global wizard controller
wizard_controller: Optional[WizardController] = None


def get_wizard_controller() -> WizardController:
    """Get or create the global wizard controller."""
    global wizard_controller
    if wizard_controller is None:
        wizard_controller = WizardController()
    return wizard_controller
