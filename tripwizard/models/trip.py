"""
Trip models - Form data collected across wizard steps and route analysis.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional
from enum import Enum


class TransportType(str, Enum):
    """Ways of getting from origin to destination."""
    CAR = "Car"
    TRAIN = "Train"
    FLIGHT = "Flight"
    BUS = "Bus"


class BudgetLevel(str, Enum):
    """Trip budget tiers."""
    LOW = "Low Cost"
    MEDIUM = "Medium"
    HIGH = "Luxury"


class TripFormData(BaseModel):
    """
    Trip parameters built up step by step.
    Fully populated only once a budget tier has been chosen.
    """
    origin: str = Field(default="", description="Where the trip starts")
    destination: str = Field(default="", description="Where the trip goes")
    transport: TransportType = Field(
        default=TransportType.CAR,
        description="Main mode of transport"
    )
    days: int = Field(default=3, ge=1, description="Number of days")
    travelers: int = Field(default=2, ge=1, description="Number of travelers")
    budget: Optional[BudgetLevel] = Field(
        None,
        description="Budget tier, chosen last"
    )

    def update_fields(self, updates: dict) -> "TripFormData":
        """Return a validated copy with the given fields overwritten."""
        current_data = self.model_dump()
        for key, value in updates.items():
            if key in current_data:
                current_data[key] = value
        return TripFormData(**current_data)


class TripAnalysis(BaseModel):
    """Feasibility of a route. Replaced wholesale on every new analysis."""
    model_config = ConfigDict(frozen=True)

    valid_transports: list[TransportType] = Field(
        ...,
        min_length=1,
        description="Transport modes that make sense for the route"
    )
    min_days: int = Field(..., ge=1, description="Shortest recommended stay")
    max_days: int = Field(..., ge=1, description="Longest recommended stay")
    is_international: bool = Field(
        ...,
        description="Whether the route crosses a national border"
    )
    corrected_origin: str = Field(default="", description="Origin with spelling fixed")
    corrected_destination: str = Field(default="", description="Destination with spelling fixed")
    reasoning: str = Field(default="", description="Short explanation from the analyst")

    @field_validator("valid_transports", mode="before")
    @classmethod
    def drop_unknown_transports(cls, v):
        if not isinstance(v, list):
            return v
        known = {t.value.lower(): t for t in TransportType}
        cleaned = []
        for item in v:
            transport = known.get(str(getattr(item, "value", item)).strip().lower())
            if transport is not None and transport not in cleaned:
                cleaned.append(transport)
        return cleaned

    @model_validator(mode="after")
    def check_day_range(self) -> "TripAnalysis":
        if self.max_days < self.min_days:
            raise ValueError("max_days must not be below min_days")
        return self
