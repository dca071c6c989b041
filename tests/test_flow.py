"""Tests for the wizard flow."""
import asyncio

import pytest
from unittest.mock import AsyncMock

from tripwizard.config import settings
from tripwizard.exceptions import (
    AnalysisError,
    InvalidSelectionError,
    InvalidTransitionError,
    PermissionDeniedError,
    PlanGenerationError,
)
from tripwizard.models.plan import TripPlanResponse
from tripwizard.models.session import AppStep, WizardSession
from tripwizard.models.trip import BudgetLevel, TransportType, TripAnalysis, TripFormData
from tripwizard.models.user import AdContent
from tripwizard.services.step_views import render_step
from tripwizard.services.user_store import AdLibrary, UserStore
from tripwizard.services.wizard_controller import (
    ANALYSIS_FAILED,
    INSUFFICIENT_POINTS,
    PLANNING_FAILED,
    TRANSACTION_FAILED,
    WizardController,
)


def make_analysis(**overrides) -> TripAnalysis:
    data = {
        "valid_transports": ["Car", "Train"],
        "min_days": 2,
        "max_days": 5,
        "is_international": False,
        "corrected_origin": "Paris",
        "corrected_destination": "Lyon",
        "reasoning": "Short domestic hop.",
    }
    data.update(overrides)
    return TripAnalysis(**data)


def make_plan() -> TripPlanResponse:
    return TripPlanResponse(
        destination_name="Lyon",
        currency_symbol="€",
        grand_total="€540",
        itinerary=[{"day": 1, "activities": [{"time": "09:00", "location": "Vieux Lyon"}]}],
        transport_details={"mode": "Train"}
    )


def make_controller(starting_points=100, analysis=None):
    intelligence = AsyncMock()
    intelligence.analyze_route.return_value = analysis or make_analysis()
    intelligence.generate_plan.return_value = make_plan()
    users = UserStore(starting_points=starting_points)
    ads = AdLibrary()
    controller = WizardController(intelligence=intelligence, users=users, ads=ads)
    return controller, intelligence, users


def logged_in(controller) -> WizardSession:
    session = WizardSession()
    controller.register(session, "alice", "secret")
    return session


async def at_point_check(controller) -> WizardSession:
    session = logged_in(controller)
    controller.start(session)
    await controller.submit_inputs(session, "paris", "lyon")
    return session


class TestWizardSession:
    """Session bookkeeping."""

    def test_new_session(self):
        """A fresh session waits for login with default trip data."""
        session = WizardSession()

        assert session.step == AppStep.AUTH
        assert session.user is None
        assert session.form == TripFormData()
        assert session.analysis is None
        assert session.plan is None

    def test_request_ids(self):
        """Only the latest request is current."""
        session = WizardSession()

        first = session.begin_request()
        second = session.begin_request()

        assert not session.is_current_request(first)
        assert session.is_current_request(second)


class TestAuthentication:
    """Login, logout and account deletion."""

    def test_regular_login_lands(self):
        """A regular user lands on the landing page."""
        controller, _, users = make_controller()
        users.register("bob", "pw")
        session = WizardSession()

        step = controller.login(session, "bob", "pw")

        assert step == AppStep.LANDING
        assert session.user.id == "bob"

    def test_admin_login_goes_to_admin(self):
        """Admin credentials open the admin console."""
        controller, _, _ = make_controller()
        session = WizardSession()

        step = controller.login(session, settings.admin_user_id, settings.admin_password)

        assert step == AppStep.ADMIN
        assert session.user.is_admin

    def test_logout_clears_user(self):
        """Logout returns to AUTH and drops the trip."""
        controller, _, _ = make_controller()
        session = logged_in(controller)
        controller.start(session)

        controller.logout(session)

        assert session.step == AppStep.AUTH
        assert session.user is None
        assert session.form == TripFormData()

    def test_logout_requires_user(self):
        """Logout without a user is not a valid intent."""
        controller, _, _ = make_controller()

        with pytest.raises(InvalidTransitionError):
            controller.logout(WizardSession())

    def test_delete_account_needs_confirmation(self):
        """Unconfirmed deletion changes nothing."""
        controller, _, users = make_controller()
        session = logged_in(controller)

        assert controller.delete_account(session, confirm=False) is False
        assert session.step == AppStep.LANDING
        assert users.get_user("alice") is not None

    def test_delete_account(self):
        """Confirmed deletion removes the record and logs out."""
        controller, _, users = make_controller()
        session = logged_in(controller)

        assert controller.delete_account(session, confirm=True) is True
        assert session.step == AppStep.AUTH
        assert session.user is None
        assert users.get_user("alice") is None

    def test_delete_already_removed_account_logs_out(self):
        """A record already gone from the store still counts as deleted."""
        controller, _, users = make_controller()
        session = logged_in(controller)
        users.delete_user("alice")

        assert controller.delete_account(session, confirm=True) is True
        assert session.step == AppStep.AUTH

    def test_admin_cannot_delete_own_account(self):
        """Admins cannot delete themselves from a session."""
        controller, _, _ = make_controller()
        session = WizardSession()
        controller.login(session, settings.admin_user_id, settings.admin_password)

        with pytest.raises(PermissionDeniedError):
            controller.delete_account(session, confirm=True)


class TestAnalysis:
    """Route submission and analysis."""

    @pytest.mark.asyncio
    async def test_successful_analysis_corrects_names(self):
        """Analysis replaces the inputs with corrected names."""
        controller, intelligence, _ = make_controller()

        session = await at_point_check(controller)

        assert session.step == AppStep.POINT_CHECK
        intelligence.analyze_route.assert_awaited_once_with("paris", "lyon")
        assert session.form.origin == "Paris"
        assert session.form.destination == "Lyon"
        assert session.analysis.min_days == 2

    @pytest.mark.asyncio
    async def test_empty_corrections_keep_user_input(self):
        """Blank corrections leave the typed names in place."""
        controller, _, _ = make_controller(
            analysis=make_analysis(corrected_origin="", corrected_destination="")
        )

        session = await at_point_check(controller)

        assert session.form.origin == "paris"
        assert session.form.destination == "lyon"

    @pytest.mark.asyncio
    async def test_analysis_failure_goes_to_error(self):
        """A failed analysis shows the analysis error."""
        controller, intelligence, _ = make_controller()
        intelligence.analyze_route.side_effect = AnalysisError("model down")

        session = await at_point_check(controller)

        assert session.step == AppStep.ERROR
        assert session.error == ANALYSIS_FAILED
        assert session.analysis is None

    @pytest.mark.asyncio
    async def test_reset_after_error(self):
        """Reset from ERROR restores the default form and clears results."""
        controller, intelligence, _ = make_controller()
        intelligence.analyze_route.side_effect = AnalysisError("model down")
        session = await at_point_check(controller)

        controller.reset(session)

        assert session.step == AppStep.LANDING
        assert session.form == TripFormData()
        assert session.analysis is None
        assert session.plan is None
        assert session.error is None

    @pytest.mark.asyncio
    async def test_analysis_timeout_goes_to_error(self, monkeypatch):
        """An analysis that never answers times out into ERROR."""
        controller, intelligence, _ = make_controller()
        monkeypatch.setattr(settings, "analysis_timeout_seconds", 0.01)

        async def never_answers(origin, destination):
            await asyncio.Event().wait()

        intelligence.analyze_route.side_effect = never_answers

        session = await at_point_check(controller)

        assert session.step == AppStep.ERROR
        assert session.error == ANALYSIS_FAILED

    @pytest.mark.asyncio
    async def test_blank_inputs_rejected(self):
        """Blank origin or destination is refused."""
        controller, _, _ = make_controller()
        session = logged_in(controller)
        controller.start(session)

        with pytest.raises(InvalidSelectionError):
            await controller.submit_inputs(session, "  ", "Lyon")
        assert session.step == AppStep.INPUTS

    @pytest.mark.asyncio
    async def test_stale_analysis_after_logout_is_ignored(self):
        """An analysis finishing after logout is dropped."""
        controller, intelligence, _ = make_controller()
        gate = asyncio.Event()

        async def slow_analysis(origin, destination):
            await gate.wait()
            return make_analysis()

        intelligence.analyze_route.side_effect = slow_analysis
        session = logged_in(controller)
        controller.start(session)

        task = asyncio.create_task(controller.submit_inputs(session, "paris", "lyon"))
        await asyncio.sleep(0)
        assert session.step == AppStep.ANALYZING

        controller.logout(session)
        gate.set()
        await task

        assert session.step == AppStep.AUTH
        assert session.analysis is None
        assert session.error is None

    @pytest.mark.asyncio
    async def test_stale_failure_after_account_deletion_is_ignored(self):
        """A late failure after account deletion is dropped."""
        controller, intelligence, _ = make_controller()
        gate = asyncio.Event()

        async def failing_analysis(origin, destination):
            await gate.wait()
            raise AnalysisError("late failure")

        intelligence.analyze_route.side_effect = failing_analysis
        session = logged_in(controller)
        controller.start(session)

        task = asyncio.create_task(controller.submit_inputs(session, "paris", "lyon"))
        await asyncio.sleep(0)
        controller.delete_account(session, confirm=True)
        gate.set()
        await task

        assert session.step == AppStep.AUTH
        assert session.error is None

    @pytest.mark.asyncio
    async def test_no_intents_while_analyzing(self):
        """Only logout and deletion are accepted while analyzing."""
        controller, intelligence, _ = make_controller()
        gate = asyncio.Event()

        async def slow_analysis(origin, destination):
            await gate.wait()
            return make_analysis()

        intelligence.analyze_route.side_effect = slow_analysis
        session = logged_in(controller)
        controller.start(session)

        task = asyncio.create_task(controller.submit_inputs(session, "paris", "lyon"))
        await asyncio.sleep(0)

        with pytest.raises(InvalidTransitionError):
            controller.confirm_unlock(session)
        with pytest.raises(InvalidTransitionError):
            controller.back(session)

        gate.set()
        await task
        assert session.step == AppStep.POINT_CHECK


class TestPointCheck:
    """Unlocking and ad rewards."""

    @pytest.mark.asyncio
    async def test_unlock_with_enough_points(self):
        """Unlocking deducts the cost and suggests a duration."""
        controller, _, users = make_controller(starting_points=100)
        session = await at_point_check(controller)

        step = controller.confirm_unlock(session)

        assert step == AppStep.DURATION_SELECTION
        assert session.user.points == 50
        assert users.get_user("alice").points == 50
        # ceil((2 + 5) / 2)
        assert session.form.days == 4

    @pytest.mark.asyncio
    async def test_international_unlock_costs_more(self):
        """International routes cost 100 points."""
        controller, _, users = make_controller(
            starting_points=150,
            analysis=make_analysis(is_international=True, valid_transports=["Flight"])
        )
        session = await at_point_check(controller)

        controller.confirm_unlock(session)

        assert session.user.points == 50
        assert users.get_user("alice").points == 50

    @pytest.mark.asyncio
    async def test_unlock_without_enough_points(self):
        """A short balance stays on the point check."""
        controller, _, users = make_controller(starting_points=40)
        session = await at_point_check(controller)

        step = controller.confirm_unlock(session)

        assert step == AppStep.POINT_CHECK
        assert session.error == INSUFFICIENT_POINTS
        assert session.user.points == 40
        assert users.get_user("alice").points == 40

    @pytest.mark.asyncio
    async def test_store_rejection_resyncs_balance(self):
        """Local balance was stale; the store refuses and the mirror catches up."""
        controller, _, users = make_controller(starting_points=100)
        session = await at_point_check(controller)
        users.deduct_points("alice", 80)

        step = controller.confirm_unlock(session)

        assert step == AppStep.POINT_CHECK
        assert session.error == TRANSACTION_FAILED
        assert session.user.points == 20

    @pytest.mark.asyncio
    async def test_watch_ad_then_unlock(self):
        """40 pts, national route: insufficient, ad to 90, unlock to 40."""
        controller, _, users = make_controller(starting_points=40)
        session = await at_point_check(controller)

        controller.confirm_unlock(session)
        assert session.error == INSUFFICIENT_POINTS

        assert controller.start_ad(session) == AppStep.AD_WATCH
        assert controller.complete_ad(session) == AppStep.POINT_CHECK
        assert session.user.points == 90
        assert users.get_user("alice").points == 90
        assert session.error is None

        assert controller.confirm_unlock(session) == AppStep.DURATION_SELECTION
        assert session.user.points == 40
        assert users.get_user("alice").points == 40

    @pytest.mark.asyncio
    async def test_ad_reward_is_always_fifty(self):
        """Completing an ad always credits 50 points."""
        controller, _, _ = make_controller(starting_points=0)
        session = await at_point_check(controller)

        controller.start_ad(session)
        controller.complete_ad(session)

        assert session.user.points == 50

    @pytest.mark.asyncio
    async def test_cancel_ad_grants_nothing(self):
        """Cancelling an ad grants no points."""
        controller, _, _ = make_controller(starting_points=10)
        session = await at_point_check(controller)

        controller.start_ad(session)
        step = controller.cancel_ad(session)

        assert step == AppStep.POINT_CHECK
        assert session.user.points == 10

    @pytest.mark.asyncio
    async def test_ad_is_picked_from_library(self):
        """The ad shown comes from the library."""
        controller, _, _ = make_controller(starting_points=10)
        ad = AdContent(type="video", data_url="data:video/mp4;base64,AAAA", name="promo")
        controller.ads.add(ad)
        session = await at_point_check(controller)

        controller.start_ad(session)

        assert session.current_ad == ad
        controller.complete_ad(session)
        assert session.current_ad is None

    @pytest.mark.asyncio
    async def test_cannot_watch_ad_when_affordable(self):
        """Ads are only offered when the balance is short."""
        controller, _, _ = make_controller(starting_points=100)
        session = await at_point_check(controller)

        with pytest.raises(InvalidSelectionError):
            controller.start_ad(session)
        assert session.step == AppStep.POINT_CHECK


    @pytest.mark.asyncio
    async def test_view_and_guard_agree_on_cost(self, monkeypatch):
        """The point-check view and the unlock guard read the same rule."""
        monkeypatch.setattr(settings, "national_unlock_cost", 70)
        controller, _, _ = make_controller(starting_points=60)
        session = await at_point_check(controller)

        view = render_step(session)
        assert view["cost"] == 70
        assert view["can_afford"] is False
        assert view["actions"] == ["watch_ad"]

        assert controller.confirm_unlock(session) == AppStep.POINT_CHECK
        assert session.error == INSUFFICIENT_POINTS
        assert controller.start_ad(session) == AppStep.AD_WATCH
        controller.complete_ad(session)

        view = render_step(session)
        assert view["can_afford"] is True
        assert view["actions"] == ["unlock"]
        with pytest.raises(InvalidSelectionError):
            controller.start_ad(session)
        assert controller.confirm_unlock(session) == AppStep.DURATION_SELECTION
        assert session.user.points == 40


class TestPlanning:
    """Duration, transport, budget and plan generation."""

    async def _at_budget(self, controller) -> WizardSession:
        session = await at_point_check(controller)
        controller.confirm_unlock(session)
        controller.select_duration(session, 3, 4)
        controller.select_transport(session, TransportType.TRAIN)
        return session

    @pytest.mark.asyncio
    async def test_full_flow_to_results(self):
        """Budget selection generates the plan from the form."""
        controller, intelligence, _ = make_controller()
        session = await self._at_budget(controller)

        step = await controller.select_budget(session, BudgetLevel.MEDIUM)

        assert step == AppStep.RESULTS
        assert session.plan == make_plan()
        assert session.error is None
        form = intelligence.generate_plan.await_args.args[0]
        assert form.days == 3
        assert form.travelers == 4
        assert form.transport == TransportType.TRAIN
        assert form.budget == BudgetLevel.MEDIUM

    @pytest.mark.asyncio
    async def test_planning_failure_goes_to_error(self):
        """A failed plan shows the planning error."""
        controller, intelligence, _ = make_controller()
        intelligence.generate_plan.side_effect = PlanGenerationError("bad json")
        session = await self._at_budget(controller)

        step = await controller.select_budget(session, "Luxury")

        assert step == AppStep.ERROR
        assert session.error == PLANNING_FAILED
        assert session.plan is None

    @pytest.mark.asyncio
    async def test_planning_timeout_goes_to_error(self, monkeypatch):
        """A plan that never arrives times out into ERROR."""
        controller, intelligence, _ = make_controller()
        monkeypatch.setattr(settings, "planning_timeout_seconds", 0.01)

        async def never_answers(form):
            await asyncio.Event().wait()

        intelligence.generate_plan.side_effect = never_answers
        session = await self._at_budget(controller)

        step = await controller.select_budget(session, BudgetLevel.MEDIUM)

        assert step == AppStep.ERROR
        assert session.error == PLANNING_FAILED
        assert session.plan is None

    @pytest.mark.asyncio
    async def test_stale_plan_after_logout_is_ignored(self):
        """A plan finishing after logout is dropped."""
        controller, intelligence, _ = make_controller()
        gate = asyncio.Event()

        async def slow_plan(form):
            await gate.wait()
            return make_plan()

        intelligence.generate_plan.side_effect = slow_plan
        session = await self._at_budget(controller)

        task = asyncio.create_task(controller.select_budget(session, BudgetLevel.MEDIUM))
        await asyncio.sleep(0)
        assert session.step == AppStep.LOADING

        controller.logout(session)
        gate.set()
        await task

        assert session.step == AppStep.AUTH
        assert session.plan is None
        assert session.error is None

    @pytest.mark.asyncio
    async def test_reset_from_results(self):
        """Reset from RESULTS restores the default form."""
        controller, _, _ = make_controller()
        session = await self._at_budget(controller)
        await controller.select_budget(session, BudgetLevel.LOW)

        controller.reset(session)

        assert session.step == AppStep.LANDING
        assert session.form == TripFormData()
        assert session.plan is None
        assert session.analysis is None

    @pytest.mark.asyncio
    async def test_back_navigation(self):
        """Back walks budget, transport, duration, inputs."""
        controller, _, _ = make_controller()
        session = await self._at_budget(controller)

        assert controller.back(session) == AppStep.TRANSPORT
        assert controller.back(session) == AppStep.DURATION_SELECTION
        assert controller.back(session) == AppStep.INPUTS
        with pytest.raises(InvalidTransitionError):
            controller.back(session)

    @pytest.mark.asyncio
    async def test_transport_must_fit_route(self):
        """Only the route's transport modes are accepted."""
        controller, _, _ = make_controller()
        session = await at_point_check(controller)
        controller.confirm_unlock(session)
        controller.select_duration(session, 3, 2)

        with pytest.raises(InvalidSelectionError):
            controller.select_transport(session, TransportType.FLIGHT)
        with pytest.raises(InvalidSelectionError):
            controller.select_transport(session, "Hovercraft")
        assert session.step == AppStep.TRANSPORT

    @pytest.mark.asyncio
    async def test_duration_must_be_positive(self):
        """Zero days is refused."""
        controller, _, _ = make_controller()
        session = await at_point_check(controller)
        controller.confirm_unlock(session)

        with pytest.raises(InvalidSelectionError):
            controller.select_duration(session, 0, 2)
        assert session.step == AppStep.DURATION_SELECTION

    def test_reset_only_from_results_or_error(self):
        """Reset is refused mid-trip."""
        controller, _, _ = make_controller()
        session = logged_in(controller)

        with pytest.raises(InvalidTransitionError):
            controller.reset(session)

    def test_start_requires_login(self):
        """Start needs a logged-in user."""
        controller, _, _ = make_controller()

        with pytest.raises(InvalidTransitionError):
            controller.start(WizardSession())
