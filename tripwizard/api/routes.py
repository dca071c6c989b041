"""
API Routes for the Trip Wizard.
Each endpoint is one user intent; every session endpoint answers with the
step the wizard is now on and the view to render for it.
"""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import Optional

from ..exceptions import (
    AuthenticationError,
    InvalidSelectionError,
    InvalidTransitionError,
    PermissionDeniedError,
    TripWizardError,
)
from ..models.session import WizardSession, session_store
from ..models.trip import BudgetLevel, TransportType
from ..models.user import AdContent
from ..services.admin_console import get_admin_console
from ..services.step_views import render_header, render_step
from ..services.wizard_controller import get_wizard_controller


router = APIRouter(prefix="/api", tags=["trip-wizard"])


# Request/Response Models
class StepResponse(BaseModel):
    session_id: str
    step: str
    header: Optional[dict] = None
    view: dict
    error: Optional[str] = None


class CredentialsRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class DeleteAccountRequest(BaseModel):
    confirm: bool = False


class InputsRequest(BaseModel):
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)


class DurationRequest(BaseModel):
    days: int = Field(..., ge=1)
    travelers: int = Field(..., ge=1)


class TransportRequest(BaseModel):
    transport: TransportType


class BudgetRequest(BaseModel):
    budget: BudgetLevel


class GrantPointsRequest(BaseModel):
    amount: int = Field(..., gt=0)


ERROR_STATUS = [
    (AuthenticationError, 401),
    (PermissionDeniedError, 403),
    (InvalidTransitionError, 409),
    (InvalidSelectionError, 400),
]


def _http_error(error: TripWizardError) -> HTTPException:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return HTTPException(status_code=status, detail=str(error))
    return HTTPException(status_code=500, detail=f"Error processing request: {error}")


def _get_session(session_id: str) -> WizardSession:
    session = session_store.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _step_response(session: WizardSession) -> StepResponse:
    session_store.update(session)
    return StepResponse(
        session_id=session.session_id,
        step=session.step.value,
        header=render_header(session),
        view=render_step(session),
        error=session.error
    )


# Session endpoints

@router.post("/session", response_model=StepResponse)
async def create_session():
    """Create a new wizard session, starting on the AUTH step."""
    session = session_store.create()
    return _step_response(session)


@router.get("/session/{session_id}", response_model=StepResponse)
async def get_session(session_id: str):
    """Get the current step and view."""
    return _step_response(_get_session(session_id))


@router.post("/session/{session_id}/register", response_model=StepResponse)
async def register(session_id: str, request: CredentialsRequest):
    """Create an account and log it in."""
    session = _get_session(session_id)
    try:
        get_wizard_controller().register(session, request.user_id, request.password)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/login", response_model=StepResponse)
async def login(session_id: str, request: CredentialsRequest):
    session = _get_session(session_id)
    try:
        get_wizard_controller().login(session, request.user_id, request.password)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/logout", response_model=StepResponse)
async def logout(session_id: str):
    session = _get_session(session_id)
    try:
        get_wizard_controller().logout(session)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/delete-account", response_model=StepResponse)
async def delete_account(session_id: str, request: DeleteAccountRequest):
    """Delete the logged-in account once the user has confirmed."""
    session = _get_session(session_id)
    try:
        get_wizard_controller().delete_account(session, request.confirm)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/start", response_model=StepResponse)
async def start(session_id: str):
    session = _get_session(session_id)
    try:
        get_wizard_controller().start(session)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/inputs", response_model=StepResponse)
async def submit_inputs(session_id: str, request: InputsRequest):
    """Submit origin and destination and wait for the route analysis."""
    session = _get_session(session_id)
    try:
        await get_wizard_controller().submit_inputs(session, request.origin, request.destination)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/unlock", response_model=StepResponse)
async def confirm_unlock(session_id: str):
    """Spend points to unlock planning for the analysed route."""
    session = _get_session(session_id)
    try:
        get_wizard_controller().confirm_unlock(session)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/ad/start", response_model=StepResponse)
async def start_ad(session_id: str):
    session = _get_session(session_id)
    try:
        get_wizard_controller().start_ad(session)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/ad/complete", response_model=StepResponse)
async def complete_ad(session_id: str):
    session = _get_session(session_id)
    try:
        get_wizard_controller().complete_ad(session)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/ad/cancel", response_model=StepResponse)
async def cancel_ad(session_id: str):
    session = _get_session(session_id)
    try:
        get_wizard_controller().cancel_ad(session)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/duration", response_model=StepResponse)
async def select_duration(session_id: str, request: DurationRequest):
    session = _get_session(session_id)
    try:
        get_wizard_controller().select_duration(session, request.days, request.travelers)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/transport", response_model=StepResponse)
async def select_transport(session_id: str, request: TransportRequest):
    session = _get_session(session_id)
    try:
        get_wizard_controller().select_transport(session, request.transport)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/budget", response_model=StepResponse)
async def select_budget(session_id: str, request: BudgetRequest):
    """Choose the budget tier and wait for the generated plan."""
    session = _get_session(session_id)
    try:
        await get_wizard_controller().select_budget(session, request.budget)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/back", response_model=StepResponse)
async def back(session_id: str):
    session = _get_session(session_id)
    try:
        get_wizard_controller().back(session)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


@router.post("/session/{session_id}/reset", response_model=StepResponse)
async def reset(session_id: str):
    session = _get_session(session_id)
    try:
        get_wizard_controller().reset(session)
    except TripWizardError as e:
        raise _http_error(e) from e
    return _step_response(session)


# Admin endpoints

@router.get("/admin/{session_id}/users")
async def list_users(session_id: str):
    """List all accounts with their balances."""
    session = _get_session(session_id)
    try:
        users = get_admin_console().list_users(session)
    except TripWizardError as e:
        raise _http_error(e) from e
    return {"users": [u.public_dict() for u in users]}


@router.delete("/admin/{session_id}/users/{user_id}")
async def delete_user(session_id: str, user_id: str):
    session = _get_session(session_id)
    try:
        deleted = get_admin_console().delete_user(session, user_id)
    except TripWizardError as e:
        raise _http_error(e) from e
    if not deleted:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True}


@router.post("/admin/{session_id}/users/{user_id}/points")
async def grant_points(session_id: str, user_id: str, request: GrantPointsRequest):
    session = _get_session(session_id)
    try:
        result = get_admin_console().grant_points(session, user_id, request.amount)
    except TripWizardError as e:
        raise _http_error(e) from e
    if not result.ok:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "points": result.balance}


@router.get("/admin/{session_id}/ads")
async def list_ads(session_id: str):
    session = _get_session(session_id)
    try:
        ads = get_admin_console().list_ads(session)
    except TripWizardError as e:
        raise _http_error(e) from e
    return {"ads": [ad.model_dump() for ad in ads]}


@router.post("/admin/{session_id}/ads")
async def upload_ad(session_id: str, ad: AdContent):
    """Add an ad creative to the library."""
    session = _get_session(session_id)
    try:
        stored = get_admin_console().upload_ad(session, ad)
    except TripWizardError as e:
        raise _http_error(e) from e
    return {"success": True, "ad": stored.model_dump()}


@router.delete("/admin/{session_id}/ads/{name}")
async def remove_ad(session_id: str, name: str):
    session = _get_session(session_id)
    try:
        removed = get_admin_console().remove_ad(session, name)
    except TripWizardError as e:
        raise _http_error(e) from e
    if not removed:
        raise HTTPException(status_code=404, detail="Ad not found")
    return {"success": True}
