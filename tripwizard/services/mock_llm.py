"""
Mock LLM Client - Offline stand-in for the AI provider.
Answers route analysis and planning prompts from a small built-in city table,
so the whole wizard can be exercised without an API key.
"""
import difflib
import json
import logging
from typing import Optional

from .trip_intelligence import REQUEST_MARKER

logger = logging.getLogger(__name__)

# city -> (country, region, currency symbol)
CITIES = {
    "Paris": ("France", "europe", "€"),
    "Lyon": ("France", "europe", "€"),
    "Nice": ("France", "europe", "€"),
    "London": ("United Kingdom", "europe", "£"),
    "Edinburgh": ("United Kingdom", "europe", "£"),
    "Berlin": ("Germany", "europe", "€"),
    "Munich": ("Germany", "europe", "€"),
    "Rome": ("Italy", "europe", "€"),
    "Milan": ("Italy", "europe", "€"),
    "Madrid": ("Spain", "europe", "€"),
    "Barcelona": ("Spain", "europe", "€"),
    "Amsterdam": ("Netherlands", "europe", "€"),
    "New York": ("United States", "americas", "$"),
    "Boston": ("United States", "americas", "$"),
    "Chicago": ("United States", "americas", "$"),
    "San Francisco": ("United States", "americas", "$"),
    "Los Angeles": ("United States", "americas", "$"),
    "Toronto": ("Canada", "americas", "$"),
    "Tokyo": ("Japan", "asia", "¥"),
    "Osaka": ("Japan", "asia", "¥"),
    "Kyoto": ("Japan", "asia", "¥"),
    "Bangkok": ("Thailand", "asia", "฿"),
    "Chiang Mai": ("Thailand", "asia", "฿"),
    "Phuket": ("Thailand", "asia", "฿"),
    "Delhi": ("India", "asia", "₹"),
    "Mumbai": ("India", "asia", "₹"),
    "Jaipur": ("India", "asia", "₹"),
    "Goa": ("India", "asia", "₹"),
    "Dubai": ("United Arab Emirates", "asia", "AED"),
    "Sydney": ("Australia", "oceania", "A$"),
    "Melbourne": ("Australia", "oceania", "A$"),
}

BUDGET_NIGHTLY = {"Low Cost": 40, "Medium": 110, "Luxury": 320}
TRANSPORT_PER_PERSON = {"Car": 60, "Train": 80, "Bus": 35, "Flight": 250}
DAY_SLOTS = [
    ("09:00", "Old Town", "Walk the historic centre and its main square."),
    ("12:30", "Central Market", "Lunch on local street food."),
    ("15:00", "City Museum", "Learn the history of the region."),
    ("19:00", "Riverside", "Sunset stroll and dinner."),
]


class MockLLMClient:
    """Deterministic responses for the two prompts the wizard sends."""

    def __init__(self):
        self.model = "mock-trip-wizard"

    async def chat(
        self,
        messages: list[dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False
    ) -> str:
        user_msg = next((m["content"] for m in reversed(messages) if m["role"] == "user"), "")
        system_msg = next((m["content"] for m in messages if m["role"] == "system"), "")
        request = self._extract_request(user_msg)

        if "route analyst" in system_msg.lower():
            return json.dumps(self._analyze(request))
        if "itinerary planner" in system_msg.lower():
            return json.dumps(self._plan(request))

        return "I can only analyse routes and plan trips."

    def _extract_request(self, text: str) -> dict:
        if REQUEST_MARKER not in text:
            return {}
        payload = text.split(REQUEST_MARKER, 1)[1].strip().split("\n", 1)[0]
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Mock LLM received an unreadable trip request")
            return {}

    def _correct(self, place: str) -> str:
        """Snap a place name to the closest known city, else title-case it."""
        cleaned = " ".join(place.split()).title()
        match = difflib.get_close_matches(cleaned, CITIES.keys(), n=1, cutoff=0.75)
        return match[0] if match else cleaned

    def _analyze(self, request: dict) -> dict:
        origin = self._correct(request.get("origin", ""))
        destination = self._correct(request.get("destination", ""))
        origin_info = CITIES.get(origin)
        dest_info = CITIES.get(destination)

        international = bool(origin_info and dest_info and origin_info[0] != dest_info[0])
        same_region = bool(origin_info and dest_info and origin_info[1] == dest_info[1])

        if international and not same_region:
            transports = ["Flight"]
            min_days, max_days = 6, 12
            reasoning = f"{origin} and {destination} are on different continents, so flying is the only option."
        elif international:
            transports = ["Flight", "Train", "Bus"]
            min_days, max_days = 4, 8
            reasoning = f"{destination} is abroad but close enough to reach overland."
        else:
            transports = ["Car", "Train", "Bus", "Flight"]
            min_days, max_days = 2, 5
            reasoning = f"{origin} to {destination} is a domestic trip with several ways to travel."

        return {
            "valid_transports": transports,
            "min_days": min_days,
            "max_days": max_days,
            "is_international": international,
            "corrected_origin": origin,
            "corrected_destination": destination,
            "reasoning": reasoning,
        }

    def _plan(self, request: dict) -> dict:
        destination = self._correct(request.get("destination", "")) or "Your destination"
        days = max(int(request.get("days") or 1), 1)
        travelers = max(int(request.get("travelers") or 1), 1)
        transport = request.get("transport") or "Car"
        budget = request.get("budget") or "Medium"
        currency = CITIES.get(destination, ("", "", "$"))[2]

        nightly = BUDGET_NIGHTLY.get(budget, BUDGET_NIGHTLY["Medium"])
        transport_cost = TRANSPORT_PER_PERSON.get(transport, 60) * travelers
        stay_cost = nightly * max(days - 1, 1)
        food_cost = 30 * days * travelers
        total = transport_cost + stay_cost + food_cost

        itinerary = []
        for day in range(1, days + 1):
            activities = [
                {"time": time, "location": f"{destination} {place}", "description": description}
                for time, place, description in DAY_SLOTS
            ]
            itinerary.append({"day": day, "activities": activities})

        return {
            "destination_name": destination,
            "currency_symbol": currency,
            "grand_total": f"{currency}{total}",
            "local_transport_tip": f"Use public transport passes to get around {destination}.",
            "accommodations": [
                {
                    "name": f"{destination} {budget} Stay",
                    "description": f"Well located option for a {budget.lower()} budget.",
                    "estimated_cost": f"{currency}{nightly} per night",
                }
            ],
            "itinerary": itinerary,
            "food": [
                {
                    "dish_name": "Local speciality",
                    "restaurant_name": f"{destination} Kitchen",
                    "description": "The dish locals recommend first.",
                }
            ],
            "transport_details": {
                "mode": transport,
                "cost_breakdown": f"{travelers} x {currency}{TRANSPORT_PER_PERSON.get(transport, 60)}",
                "total_cost": f"{currency}{transport_cost}",
                "notes": "Book early for better fares.",
            },
        }
