"""
Trip Intelligence - Route analysis and itinerary generation.
Both calls go through the LLM and either return a validated model or raise.
"""
import json
import logging
import re
from typing import Optional

from pydantic import ValidationError

from .llm_client import get_llm_client
from ..exceptions import AnalysisError, PlanGenerationError
from ..models.trip import TripAnalysis, TripFormData
from ..models.plan import TripPlanResponse

logger = logging.getLogger(__name__)

REQUEST_MARKER = "TRIP REQUEST (JSON):"


ANALYSIS_SYSTEM_PROMPT = """You are a travel route analyst. Check whether a trip between two places is feasible and how it should be done.

YOUR JOB:
1. Fix spelling mistakes in the origin and destination names
2. Decide whether the route crosses a national border
3. List only the transport modes that realistically connect the two places
4. Recommend a range of days for a worthwhile trip

RULES:
- valid_transports may only contain "Car", "Train", "Flight", "Bus"
- Routes across oceans can only use "Flight"
- min_days and max_days are whole numbers, min_days >= 1, max_days >= min_days

OUTPUT FORMAT - Return ONLY valid JSON:
{
  "valid_transports": ["Car", "Train"],
  "min_days": 2,
  "max_days": 5,
  "is_international": false,
  "corrected_origin": "Corrected origin name",
  "corrected_destination": "Corrected destination name",
  "reasoning": "One or two sentences explaining the recommendation"
}"""


PLANNER_SYSTEM_PROMPT = """You are a travel itinerary planner. Generate a realistic, day-by-day trip plan with costs.

YOUR JOB:
1. Create exactly one entry per trip day, numbered from 1
2. Respect the chosen transport mode and budget tier
3. Price everything for the given number of travelers in the destination's local currency
4. Recommend places to stay and local food

OUTPUT FORMAT - Return ONLY valid JSON:
{
  "destination_name": "Destination display name",
  "currency_symbol": "$",
  "grand_total": "Estimated total for the whole trip, all travelers",
  "local_transport_tip": "How to get around at the destination",
  "accommodations": [
    {"name": "Hotel name", "description": "Why it fits", "estimated_cost": "Price per night"}
  ],
  "itinerary": [
    {
      "day": 1,
      "activities": [
        {"time": "09:00", "location": "Place name", "description": "What to do there"}
      ]
    }
  ],
  "food": [
    {"dish_name": "Dish", "restaurant_name": "Where to eat it", "description": "Short description"}
  ],
  "transport_details": {
    "mode": "Chosen transport",
    "cost_breakdown": "How the transport cost adds up",
    "total_cost": "Total transport cost",
    "notes": "Booking tips"
  }
}"""


class TripIntelligenceService:
    """Analyses routes and generates trip plans."""

    def __init__(self, llm=None):
        self.llm = llm or get_llm_client()

    async def analyze_route(self, origin: str, destination: str) -> TripAnalysis:
        """
        Analyse the route between two free-text places.

        Raises:
            AnalysisError: if the LLM call fails or returns unusable data
        """
        request = {"origin": origin, "destination": destination}
        messages = [
            {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
            {"role": "user", "content": f"{REQUEST_MARKER}\n{json.dumps(request)}\n\nAnalyse this route now."}
        ]

        try:
            result = await self.llm.chat_json(messages, temperature=0.2, max_tokens=600)
        except Exception as e:
            raise AnalysisError(f"Route analysis call failed: {e}") from e

        data = self._clean_analysis(_snake_keys(result))
        try:
            analysis = TripAnalysis.model_validate(data)
        except ValidationError as e:
            raise AnalysisError(f"Route analysis returned invalid data: {e}") from e

        logger.info(
            f"Analysed {origin} -> {destination}: international={analysis.is_international}, "
            f"days={analysis.min_days}-{analysis.max_days}"
        )
        return analysis

    async def generate_plan(self, form: TripFormData) -> TripPlanResponse:
        """
        Generate the full itinerary for a completed form.

        Raises:
            PlanGenerationError: if the LLM call fails or returns unusable data
        """
        request = {
            "origin": form.origin,
            "destination": form.destination,
            "transport": form.transport.value,
            "days": form.days,
            "travelers": form.travelers,
            "budget": form.budget.value if form.budget else None,
        }
        messages = [
            {"role": "system", "content": PLANNER_SYSTEM_PROMPT},
            {"role": "user", "content": f"{REQUEST_MARKER}\n{json.dumps(request)}\n\nGenerate the plan now."}
        ]

        try:
            result = await self.llm.chat_json(messages, temperature=0.7)
        except Exception as e:
            raise PlanGenerationError(f"Plan generation call failed: {e}") from e

        data = _snake_keys(result)
        if not data:
            raise PlanGenerationError("Plan generation returned no data")
        data.setdefault("destination_name", form.destination)

        try:
            plan = TripPlanResponse.model_validate(data)
        except ValidationError as e:
            raise PlanGenerationError(f"Plan generation returned invalid data: {e}") from e

        logger.info(f"Generated {len(plan.itinerary)}-day plan for {plan.destination_name}")
        return plan

    def _clean_analysis(self, data: dict) -> dict:
        """Coerce loosely typed LLM values into the analysis field types."""
        cleaned = {}

        field_types = {
            "valid_transports": list,
            "min_days": int,
            "max_days": int,
            "is_international": bool,
            "corrected_origin": str,
            "corrected_destination": str,
            "reasoning": str,
        }

        for field, expected_type in field_types.items():
            value = data.get(field)
            if value is None:
                continue

            try:
                if expected_type == int and not isinstance(value, int):
                    value = int(float(value))
                elif expected_type == bool and not isinstance(value, bool):
                    value = str(value).strip().lower() in ("true", "yes", "1")
                elif expected_type == list and not isinstance(value, list):
                    value = [v.strip() for v in str(value).split(",") if v.strip()]
                elif expected_type == str and not isinstance(value, str):
                    value = str(value)
            except (ValueError, TypeError, OverflowError):
                # Leave it out, validation reports the missing field
                continue

            cleaned[field] = value.strip() if isinstance(value, str) else value

        return cleaned


def _snake_keys(value):
    """Recursively convert camelCase keys to snake_case."""
    if isinstance(value, dict):
        return {_to_snake(str(k)): _snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_snake_keys(v) for v in value]
    return value


def _to_snake(name: str) -> str:
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name).lower()


# Global service instance
trip_intelligence: Optional[TripIntelligenceService] = None


def get_trip_intelligence() -> TripIntelligenceService:
    """Get or create the global trip intelligence service."""
    global trip_intelligence
    if trip_intelligence is None:
        trip_intelligence = TripIntelligenceService()
    return trip_intelligence
