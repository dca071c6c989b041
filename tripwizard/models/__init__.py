"""Data models for the trip wizard."""
from .trip import TripFormData, TripAnalysis, TransportType, BudgetLevel
from .plan import (
    TripPlanResponse,
    Accommodation,
    DayItinerary,
    Activity,
    FoodRecommendation,
    TransportDetails,
)
from .user import User, AdContent
from .session import WizardSession, AppStep

__all__ = [
    "TripFormData",
    "TripAnalysis",
    "TransportType",
    "BudgetLevel",
    "TripPlanResponse",
    "Accommodation",
    "DayItinerary",
    "Activity",
    "FoodRecommendation",
    "TransportDetails",
    "User",
    "AdContent",
    "WizardSession",
    "AppStep",
]
