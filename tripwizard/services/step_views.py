"""
Step Views - View models the frontend renders for each wizard step.
"""
from typing import Callable, Optional

from .points import unlock_cost, can_afford, suggested_days, ad_reward
from ..models.session import AppStep, WizardSession
from ..models.trip import BudgetLevel


def render_header(session: WizardSession) -> Optional[dict]:
    """Global user header, hidden on the AUTH and ADMIN steps."""
    user = session.user
    if user is None or session.step in (AppStep.AUTH, AppStep.ADMIN):
        return None
    return {
        "user_id": user.id,
        "points": user.points,
        "can_delete_account": not user.is_admin,
    }


def render_step(session: WizardSession) -> dict:
    """Build the view model for the session's current step."""
    return STEP_RENDERERS[session.step](session)


def _auth(session: WizardSession) -> dict:
    return {"actions": ["login", "register"]}


def _admin(session: WizardSession) -> dict:
    return {"admin_id": session.user.id if session.user else None, "actions": ["logout"]}


def _landing(session: WizardSession) -> dict:
    return {"actions": ["start"]}


def _inputs(session: WizardSession) -> dict:
    return {
        "origin": session.form.origin,
        "destination": session.form.destination,
        "actions": ["submit"],
    }


def _analyzing(session: WizardSession) -> dict:
    return {
        "title": "Checking Route...",
        "subtitle": "Correcting spelling & calculating distance",
        "actions": [],
    }


def _point_check(session: WizardSession) -> dict:
    analysis = session.analysis
    if analysis is None or session.user is None:
        return {}
    cost = unlock_cost(analysis)
    balance = session.user.points
    affordable = can_afford(balance, analysis)
    return {
        "origin": analysis.corrected_origin or session.form.origin,
        "destination": analysis.corrected_destination or session.form.destination,
        "trip_kind": "International Trip" if analysis.is_international else "National Trip",
        "cost": cost,
        "balance": balance,
        "can_afford": affordable,
        "ad_reward": ad_reward(),
        "actions": ["unlock"] if affordable else ["watch_ad"],
    }


def _ad_watch(session: WizardSession) -> dict:
    ad = session.current_ad
    return {
        "ad": ad.model_dump() if ad else None,
        "reward": ad_reward(),
        "actions": ["complete", "cancel"],
    }


def _duration(session: WizardSession) -> dict:
    analysis = session.analysis
    if analysis is None:
        return {}
    return {
        "destination": analysis.corrected_destination or session.form.destination,
        "min_days": analysis.min_days,
        "max_days": analysis.max_days,
        "suggested_days": suggested_days(analysis),
        "days": session.form.days,
        "travelers": session.form.travelers,
        "reasoning": analysis.reasoning,
        "actions": ["select", "back"],
    }


def _transport(session: WizardSession) -> dict:
    analysis = session.analysis
    if analysis is None:
        return {}
    return {
        "valid_transports": [t.value for t in analysis.valid_transports],
        "selected": session.form.transport.value,
        "actions": ["select", "back"],
    }


def _budget(session: WizardSession) -> dict:
    return {
        "budgets": [b.value for b in BudgetLevel],
        "actions": ["select", "back"],
    }


def _loading(session: WizardSession) -> dict:
    return {"title": "Planning Trip...", "actions": []}


def _results(session: WizardSession) -> dict:
    if session.plan is None:
        return {}
    return {
        "plan": session.plan.to_display_dict(),
        "form": session.form.model_dump(mode="json"),
        "summary": format_plan_summary(session),
        "actions": ["reset"],
    }


def _error(session: WizardSession) -> dict:
    return {
        "title": "Oops! Something went wrong.",
        "message": session.error,
        "actions": ["reset"],
    }


def format_plan_summary(session: WizardSession) -> str:
    """Short text summary of the plan."""
    plan, form = session.plan, session.form
    lines = [f"**{form.origin} → {plan.destination_name}**"]
    lines.append(
        f"📅 {len(plan.itinerary)} days | 👥 {form.travelers} travelers | "
        f"🚗 {form.transport.value} | 💰 {plan.grand_total}"
    )
    for day in plan.itinerary:
        lines.append(f"\n**Day {day.day}**")
        for act in day.activities[:4]:
            lines.append(f"  • {act.time}: {act.location}")
        if len(day.activities) > 4:
            lines.append(f"  ... and {len(day.activities) - 4} more activities")
    return "\n".join(lines)


STEP_RENDERERS: dict[AppStep, Callable[[WizardSession], dict]] = {
    AppStep.AUTH: _auth,
    AppStep.ADMIN: _admin,
    AppStep.LANDING: _landing,
    AppStep.INPUTS: _inputs,
    AppStep.ANALYZING: _analyzing,
    AppStep.POINT_CHECK: _point_check,
    AppStep.AD_WATCH: _ad_watch,
    AppStep.DURATION_SELECTION: _duration,
    AppStep.TRANSPORT: _transport,
    AppStep.BUDGET: _budget,
    AppStep.LOADING: _loading,
    AppStep.RESULTS: _results,
    AppStep.ERROR: _error,
}

_missing = set(AppStep) - set(STEP_RENDERERS)
if _missing:
    raise RuntimeError(f"No view for steps: {sorted(s.value for s in _missing)}")
