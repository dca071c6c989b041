"""
Plan models - Structured itinerary returned for a fully specified trip.
"""
from pydantic import BaseModel, ConfigDict, Field


class Accommodation(BaseModel):
    """A place to stay."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Name of the hotel or stay")
    description: str = Field(default="", description="Why it fits the trip")
    estimated_cost: str = Field(default="", description="Price per night, with currency")


class Activity(BaseModel):
    """A single timed activity."""
    model_config = ConfigDict(frozen=True)

    time: str = Field(..., description="Time of day, e.g. '09:00' or 'Morning'")
    location: str = Field(..., description="Name of the place")
    description: str = Field(default="", description="What to do there")


class DayItinerary(BaseModel):
    """Plan for a single day."""
    model_config = ConfigDict(frozen=True)

    day: int = Field(..., ge=1, description="Day number in the trip, starting at 1")
    activities: list[Activity] = Field(
        default_factory=list,
        description="Activities in the order they happen"
    )


class FoodRecommendation(BaseModel):
    """A dish worth trying and where to try it."""
    model_config = ConfigDict(frozen=True)

    dish_name: str = Field(..., description="Name of the dish")
    restaurant_name: str = Field(default="", description="Where to eat it")
    description: str = Field(default="", description="Short description")


class TransportDetails(BaseModel):
    """Cost of getting there with the chosen transport."""
    model_config = ConfigDict(frozen=True)

    mode: str = Field(..., description="Transport mode")
    cost_breakdown: str = Field(default="", description="How the total is made up")
    total_cost: str = Field(default="", description="Total transport cost, with currency")
    notes: str = Field(default="", description="Booking tips")


class TripPlanResponse(BaseModel):
    """Complete generated trip plan."""
    model_config = ConfigDict(frozen=True)

    destination_name: str = Field(..., description="Display name of the destination")
    currency_symbol: str = Field(default="$", description="Currency used for all costs")
    grand_total: str = Field(default="", description="Estimated cost of the whole trip")
    local_transport_tip: str = Field(default="", description="How to get around locally")
    accommodations: list[Accommodation] = Field(default_factory=list)
    itinerary: list[DayItinerary] = Field(
        ...,
        min_length=1,
        description="Day-by-day plan"
    )
    food: list[FoodRecommendation] = Field(default_factory=list)
    transport_details: TransportDetails

    def activity_count(self) -> int:
        """Total number of activities across all days."""
        return sum(len(day.activities) for day in self.itinerary)

    def to_display_dict(self) -> dict:
        """Convert to display-friendly dictionary."""
        return {
            "destination_name": self.destination_name,
            "currency_symbol": self.currency_symbol,
            "grand_total": self.grand_total,
            "local_transport_tip": self.local_transport_tip,
            "total_days": len(self.itinerary),
            "total_activities": self.activity_count(),
            "accommodations": [a.model_dump() for a in self.accommodations],
            "itinerary": [
                {
                    "day": day.day,
                    "activities": [act.model_dump() for act in day.activities]
                }
                for day in self.itinerary
            ],
            "food": [f.model_dump() for f in self.food],
            "transport_details": self.transport_details.model_dump(),
        }
